"""Shared fixtures for wren tests."""

from typing import Any

import pytest

from wren.context import Context
from wren.encoders import EncoderRegistry, default_registry
from wren.http.request import Request
from wren.http.response import BufferedResponse


class FailingResponse(BufferedResponse):
    """A sink whose body writes fail like a disconnected client."""

    def _emit(self, data: bytes) -> None:
        raise ConnectionResetError("client went away")


def make_request(
    method: str = "GET",
    path: str = "/",
    *,
    query: bytes = b"",
    headers: tuple[tuple[str, str], ...] = (),
    body: bytes = b"",
) -> Request:
    """Build a Request from a minimal ASGI scope."""
    scope: dict[str, Any] = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": query,
        "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers],
        "http_version": "1.1",
    }
    return Request.from_asgi(scope, body)


@pytest.fixture
def registry() -> EncoderRegistry:
    return default_registry()


@pytest.fixture
def sink() -> BufferedResponse:
    return BufferedResponse()


@pytest.fixture
def ctx(sink: BufferedResponse, registry: EncoderRegistry) -> Context:
    return Context(make_request(path="/items"), sink, encoders=registry)
