"""Tests for wren.context — the per-request Context façade."""

import logging

import pytest

from conftest import FailingResponse, make_request
from wren.context import Context, context_var, get_context
from wren.encoders import EncoderRegistry
from wren.errors import SerializationError
from wren.http.params import Params
from wren.http.response import BufferedResponse


class TestConstruction:
    def test_params_default_to_query(self) -> None:
        request = make_request(query=b"q=1")
        ctx = Context(request, BufferedResponse())
        assert ctx.params["q"] == "1"
        assert ctx.user is None
        assert ctx.connection is None
        assert ctx.app is None

    def test_explicit_params_and_user(self) -> None:
        params = Params({"a": ["1", "2"]})
        shared = {"db": object()}
        ctx = Context(make_request(), BufferedResponse(), params=params, user=shared)
        assert ctx.params.get_list("a") == ["1", "2"]
        assert ctx.user is shared

    def test_connection_is_carried(self) -> None:
        class Conn:
            def receive(self) -> bytes:
                return b""

            def send(self, data: bytes | str) -> None:
                pass

            def close(self) -> None:
                pass

        conn = Conn()
        ctx = Context(make_request(), BufferedResponse(), connection=conn)
        assert ctx.connection is conn

    def test_repr(self, ctx: Context) -> None:
        assert repr(ctx) == "<Context GET /items>"


class TestResponseDelegation:
    def test_header_is_the_sink_headers(self, ctx: Context, sink: BufferedResponse) -> None:
        ctx.header().set("X-Trace", "abc")
        assert sink.header().get("x-trace") == "abc"

    def test_write_returns_count(self, ctx: Context, sink: BufferedResponse) -> None:
        assert ctx.write(b"hello") == 5
        assert sink.body == b"hello"
        assert sink.status == 200

    def test_write_propagates_sink_error(self) -> None:
        ctx = Context(make_request(), FailingResponse())
        with pytest.raises(ConnectionResetError):
            ctx.write(b"x")

    def test_headers_after_first_write_are_not_sent(
        self, ctx: Context, sink: BufferedResponse
    ) -> None:
        ctx.header().set("X-Before", "1")
        ctx.write(b"body")
        ctx.header().set("X-After", "1")
        names = [name.lower() for name, _ in sink.sent_headers]
        assert "x-before" in names
        assert "x-after" not in names

    def test_second_status_is_ignored(
        self, ctx: Context, sink: BufferedResponse, caplog: pytest.LogCaptureFixture
    ) -> None:
        ctx.write_header(201)
        with caplog.at_level(logging.WARNING, logger="wren.context"):
            ctx.set_status(500)
        assert sink.status == 201
        assert "superfluous" in caplog.text

    def test_write_anything_uses_context_registry(self, sink: BufferedResponse) -> None:
        ctx = Context(make_request(), sink, encoders=EncoderRegistry())
        ctx.content_type("json")
        with pytest.raises(SerializationError):
            ctx.write_anything({"a": 1})
        assert sink.written == 0

    def test_write_anything_json(self, ctx: Context, sink: BufferedResponse) -> None:
        ctx.content_type("json")
        ctx.write_anything({"a": 1})
        assert sink.body == b'{"a": 1}'


class TestContentType:
    def test_extension(self, ctx: Context) -> None:
        assert ctx.content_type("json") == "application/json"
        assert ctx.header().get("Content-Type") == "application/json"

    def test_leading_dot(self, ctx: Context) -> None:
        assert ctx.content_type(".html") == "text/html; charset=utf-8"

    def test_slash_is_verbatim(self, ctx: Context) -> None:
        assert ctx.content_type("bogus/unknown-ext") == "bogus/unknown-ext"
        assert ctx.header().get("Content-Type") == "bogus/unknown-ext"

    def test_unknown_extension(self, ctx: Context) -> None:
        assert ctx.content_type("nonexistent") == ""
        assert "Content-Type" not in ctx.header()

    def test_unknown_extension_keeps_previous(self, ctx: Context) -> None:
        ctx.content_type("json")
        assert ctx.content_type("nonexistent") == ""
        assert ctx.header().get("Content-Type") == "application/json"


class TestAbortHelpers:
    def test_abort_order(self, ctx: Context, sink: BufferedResponse) -> None:
        ctx.abort(418, "teapot")
        assert sink.status == 418
        assert ("content-type", "text/plain; charset=utf-8") in sink.sent_headers
        assert sink.text == "teapot"

    def test_redirect(self, ctx: Context, sink: BufferedResponse) -> None:
        ctx.redirect(302, "http://example.com/x")
        assert sink.status == 302
        assert ("location", "http://example.com/x") in sink.sent_headers
        assert sink.text == "Redirecting to: http://example.com/x"

    def test_redirect_to_non_latin1_url(self, ctx: Context, sink: BufferedResponse) -> None:
        ctx.redirect(302, "/caf€")
        assert sink.status == 302
        assert sink.started
        assert ("location", "/caf€") in sink.sent_headers
        assert sink.text == "Redirecting to: /caf€"

    def test_redirect_status_not_validated(self, ctx: Context, sink: BufferedResponse) -> None:
        ctx.redirect(200, "/elsewhere")
        assert sink.status == 200

    def test_not_modified(self, ctx: Context, sink: BufferedResponse) -> None:
        ctx.not_modified()
        assert sink.status == 304
        assert sink.body == b""

    @pytest.mark.parametrize(
        ("method", "status"),
        [
            ("not_found", 404),
            ("not_acceptable", 406),
            ("unauthorized", 401),
            ("forbidden", 403),
        ],
    )
    def test_named_helpers(
        self, ctx: Context, sink: BufferedResponse, method: str, status: int
    ) -> None:
        getattr(ctx, method)("missing")
        assert sink.status == status
        assert sink.header().get("Content-Type") == "text/plain; charset=utf-8"
        assert sink.text == "missing"

    def test_not_found_swallows_write_error(self) -> None:
        sink = FailingResponse()
        ctx = Context(make_request(), sink)
        ctx.not_found("missing")  # must not raise
        assert sink.status == 404
        assert sink.written == 0

    def test_abort_after_close_is_silent(self, ctx: Context, sink: BufferedResponse) -> None:
        sink.close()
        ctx.forbidden("late")
        assert sink.status == 200


class TestContextVar:
    def test_get_context_raises_outside_request(self) -> None:
        with pytest.raises(LookupError):
            get_context()

    def test_set_and_get(self, ctx: Context) -> None:
        token = context_var.set(ctx)
        try:
            assert get_context() is ctx
        finally:
            context_var.reset(token)
