"""URL scheme 校验与 HTTP 辅助函数测试"""

import io
import json

import pytest

from edkit.core.exceptions import ValidationError
from edkit.utils.net import UrllibClient, copy_stream, post_json, validate_url_scheme


class TestValidateUrlScheme:
    def test_http_ok(self) -> None:
        validate_url_scheme("http://example.com/api")

    def test_https_ok(self) -> None:
        validate_url_scheme("https://example.com/api")

    @pytest.mark.parametrize("url", [
        "file:///etc/passwd", "ftp://evil.com/payload", "/local/path",
    ])
    def test_rejected(self, url: str) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            validate_url_scheme(url)

    def test_context_in_error(self) -> None:
        with pytest.raises(ValidationError, match="catalog fetch"):
            validate_url_scheme("file:///x", context="catalog fetch")

    def test_client_rejects_before_request(self) -> None:
        with pytest.raises(ValidationError):
            UrllibClient().open("file:///etc/hosts")


class TestHelpers:
    def test_post_json(self, http) -> None:
        http.add("https://api.example.com/q", {"ok": True})
        assert post_json(http, "https://api.example.com/q", {"a": 1}) == {"ok": True}
        request = http.requests[0]
        assert request["method"] == "POST"
        assert json.loads(request["body"]) == {"a": 1}
        assert request["headers"]["Content-Type"] == "application/json"

    def test_copy_stream_reports_chunks(self, http) -> None:
        http.add("https://dl.example.com/a", b"z" * 10)
        out = io.BytesIO()
        chunks: list[int] = []
        total = copy_stream(
            http.open("https://dl.example.com/a"), out, chunks.append, chunk_size=4,
        )
        assert total == 10
        assert chunks == [4, 4, 2]
        assert out.getvalue() == b"z" * 10
