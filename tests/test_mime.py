"""Tests for wren.http.mime — extension lookup."""

import pytest

from wren.http import mime
from wren.http.mime import add_type, type_by_extension


class TestTypeByExtension:
    @pytest.mark.parametrize(
        ("ext", "expected"),
        [
            (".json", "application/json"),
            (".txt", "text/plain; charset=utf-8"),
            (".html", "text/html; charset=utf-8"),
            (".png", "image/png"),
            (".JSON", "application/json"),
        ],
    )
    def test_builtin(self, ext: str, expected: str) -> None:
        assert type_by_extension(ext) == expected

    def test_requires_dot(self) -> None:
        assert type_by_extension("json") == ""

    def test_unknown(self) -> None:
        assert type_by_extension(".nonexistent") == ""
        assert type_by_extension(".") == ""

    def test_falls_back_to_mimetypes(self) -> None:
        assert type_by_extension(".mp4") == "video/mp4"


class TestAddType:
    def test_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(mime, "_extra", {})
        add_type(".json", "application/vnd.api+json")
        assert type_by_extension(".json") == "application/vnd.api+json"

    def test_new_extension(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(mime, "_extra", {})
        add_type(".Wren", "application/x-wren")
        assert type_by_extension(".wren") == "application/x-wren"

    def test_requires_dot(self) -> None:
        with pytest.raises(ValueError, match="must start with"):
            add_type("wren", "application/x-wren")
