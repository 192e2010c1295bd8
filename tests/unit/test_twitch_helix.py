"""Helix メタデータ取得のテスト"""

import httpx
import pytest

from src.domain.entities import AppToken
from src.domain.exceptions import UpstreamAuthError, UpstreamUnavailableError
from src.infrastructure.twitch_helix import HelixVideoClient

VIDEO = {
    "id": "123456789",
    "user_name": "streamer",
    "title": "Speedrun attempts",
    "created_at": "2024-01-01T00:00:00Z",
    "url": "https://www.twitch.tv/videos/123456789",
    "thumbnail_url": "https://static-cdn.jtvnw.net/thumb-%{width}x%{height}.jpg",
    "view_count": 42,
    "duration": "1h2m3s",
}


def make_helix(handler) -> HelixVideoClient:
    return HelixVideoClient(httpx.Client(transport=httpx.MockTransport(handler)))


class TestGetMetadata:

    def test_success(self) -> None:
        """Helix のフィールドを VodMetadata に変換"""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [VIDEO]})

        metadata = make_helix(handler).get_metadata("123456789", "cid", AppToken("t"))

        assert metadata is not None
        assert metadata.title == "Speedrun attempts"
        assert metadata.duration_label == "1h2m3s"
        assert metadata.duration_sec == 3723
        assert metadata.view_count == 42
        assert seen[0].url.params["id"] == "123456789"
        assert seen[0].headers["Authorization"] == "Bearer t"

    def test_not_found(self) -> None:
        """data が空なら None"""
        helix = make_helix(lambda r: httpx.Response(200, json={"data": []}))
        assert helix.get_metadata("1", "cid", AppToken("t")) is None

    def test_missing_fields_use_sentinel(self) -> None:
        helix = make_helix(lambda r: httpx.Response(200, json={"data": [{"id": "1"}]}))

        metadata = helix.get_metadata("1", "cid", AppToken("t"))

        assert metadata.title == "Unknown"
        assert metadata.duration_label == "Unknown"
        assert metadata.duration_sec == 0

    def test_unauthorized(self) -> None:
        helix = make_helix(lambda r: httpx.Response(401, json={"message": "invalid token"}))

        with pytest.raises(UpstreamAuthError):
            helix.get_metadata("1", "cid", AppToken("t"))

    def test_server_error(self) -> None:
        helix = make_helix(lambda r: httpx.Response(500, text="oops"))

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            helix.get_metadata("1", "cid", AppToken("t"))
        assert exc_info.value.detail["status"] == 500

    @pytest.mark.parametrize(
        "body",
        [["not-an-object"], {"data": "x"}, {"data": ["not-an-object"]}, {"data": [None]}],
    )
    def test_malformed_response(self, body) -> None:
        """想定外の形の応答は上流障害として扱う"""
        helix = make_helix(lambda r: httpx.Response(200, json=body))

        with pytest.raises(UpstreamUnavailableError):
            helix.get_metadata("1", "cid", AppToken("t"))

    def test_non_json(self) -> None:
        helix = make_helix(lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(UpstreamUnavailableError):
            helix.get_metadata("1", "cid", AppToken("t"))

    def test_non_string_fields_coerced(self) -> None:
        """数値タイトルは文字列化し、型の合わない項目は捨てる"""
        video = {"id": 1, "title": 2024, "duration": "5m", "view_count": "many", "url": ["x"]}
        helix = make_helix(lambda r: httpx.Response(200, json={"data": [video]}))

        metadata = helix.get_metadata("1", "cid", AppToken("t"))

        assert metadata.vod_id == "1"
        assert metadata.title == "2024"
        assert metadata.duration_sec == 300
        assert metadata.view_count is None
        assert metadata.url is None
