"""Tests for wren.http.forms — body parsing and UploadFile."""

from pathlib import Path

import pytest

from wren.http.forms import UploadFile, parse_form_data


class TestParseFormData:
    def test_urlencoded(self) -> None:
        form = parse_form_data(b"a=1&a=2&b=%C3%A9", "application/x-www-form-urlencoded")
        assert form.get_list("a") == ["1", "2"]
        assert form["b"] == "é"

    def test_unsupported_type(self) -> None:
        with pytest.raises(ValueError, match="Unsupported form content type"):
            parse_form_data(b"{}", "application/json")

    def test_multipart_repeated_field(self) -> None:
        body = (
            b"--b\r\n"
            b'Content-Disposition: form-data; name="tag"\r\n\r\n'
            b"one\r\n"
            b"--b\r\n"
            b'Content-Disposition: form-data; name="tag"\r\n\r\n'
            b"two\r\n"
            b"--b--\r\n"
        )
        form = parse_form_data(body, "multipart/form-data; boundary=b")
        assert form.get_list("tag") == ["one", "two"]
        assert form.files == {}


class TestUploadFile:
    def test_save(self, tmp_path: Path) -> None:
        upload = UploadFile("a.bin", "application/octet-stream", 3, b"abc")
        target = tmp_path / "a.bin"
        upload.save(target)
        assert target.read_bytes() == b"abc"

    def test_repr(self) -> None:
        upload = UploadFile("a.bin", "application/octet-stream", 3, b"abc")
        assert repr(upload) == "UploadFile('a.bin', 'application/octet-stream', 3 bytes)"
