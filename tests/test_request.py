"""Tests for wren.http.request — the immutable Request."""

import pytest

from conftest import make_request


class TestRequest:
    def test_from_asgi(self) -> None:
        request = make_request(
            "POST",
            "/items",
            query=b"a=1",
            headers=(("Content-Type", "application/json"), ("Content-Length", "7")),
            body=b'{"x":1}',
        )
        assert request.method == "POST"
        assert request.path == "/items"
        assert request.query["a"] == "1"
        assert request.content_type == "application/json"
        assert request.content_length == 7
        assert request.json() == {"x": 1}
        assert request.text() == '{"x":1}'
        assert request.url == "/items?a=1"

    def test_url_without_query(self) -> None:
        assert make_request(path="/x").url == "/x"

    def test_invalid_content_length(self) -> None:
        request = make_request(headers=(("Content-Length", "nope"),))
        assert request.content_length is None

    def test_missing_headers(self) -> None:
        request = make_request()
        assert request.content_type is None
        assert request.content_length is None
        assert request.client is None

    def test_frozen(self) -> None:
        request = make_request()
        with pytest.raises(AttributeError):
            request.path = "/other"  # type: ignore[misc]
