"""Usher マニフェスト取得のテスト"""

import httpx
import pytest

from src.domain.entities import PlaybackToken
from src.domain.exceptions import (
    InvalidSourceLocatorError,
    ManifestFetchError,
    NoVariantFoundError,
    UpstreamTimeoutError,
)
from src.infrastructure.twitch_usher import UsherManifestResolver

SOURCE_URI = "https://cdn.example.com/vod/abc/chunked/index-dvr.m3u8"

MASTER_PLAYLIST = f"""#EXTM3U
#EXT-X-STREAM-INF:BANDWIDTH=3422999,RESOLUTION=1280x720,VIDEO="720p60"
https://cdn.example.com/vod/abc/720p60/index-dvr.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=8534030,RESOLUTION=1920x1080,VIDEO="chunked"
{SOURCE_URI}
"""


def make_resolver(handler) -> UsherManifestResolver:
    return UsherManifestResolver(httpx.Client(transport=httpx.MockTransport(handler)))


class TestResolveMasterManifest:
    """署名付きマスタープレイリストの解決"""

    def test_signed_request_and_selection(self) -> None:
        """トークンをURLエンコードして埋め込み、元画質を選択"""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=MASTER_PLAYLIST)

        token = PlaybackToken(value='{"vod_id":123}', signature="sig&1")
        manifest = make_resolver(handler).resolve_master_manifest("123", "cid", token)

        assert manifest.chosen_variant_uri == SOURCE_URI
        assert len(manifest.variants) == 2
        assert manifest.raw_text == MASTER_PLAYLIST

        request = seen[0]
        assert request.url.host == "usher.ttvnw.net"
        assert request.url.path == "/vod/123.m3u8"
        assert request.url.params["nauth"] == '{"vod_id":123}'
        assert request.url.params["nauthsig"] == "sig&1"
        assert request.url.params["allow_source"] == "true"
        assert b"sig%261" in request.url.query
        assert request.headers["Client-ID"] == "cid"

    def test_non_2xx(self) -> None:
        resolver = make_resolver(lambda r: httpx.Response(403, text="forbidden"))

        with pytest.raises(ManifestFetchError) as exc_info:
            resolver.resolve_master_manifest("123", "cid", PlaybackToken("v", "s"))
        assert exc_info.value.detail["status"] == 403

    def test_no_variant(self) -> None:
        resolver = make_resolver(lambda r: httpx.Response(200, text="#EXTM3U\n"))

        with pytest.raises(NoVariantFoundError):
            resolver.resolve_master_manifest("123", "cid", PlaybackToken("v", "s"))

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(UpstreamTimeoutError):
            make_resolver(handler).resolve_master_manifest("123", "cid", PlaybackToken("v", "s"))

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ManifestFetchError):
            make_resolver(handler).resolve_master_manifest("123", "cid", PlaybackToken("v", "s"))


class TestFetchPlaylist:

    def test_fetch(self) -> None:
        resolver = make_resolver(lambda r: httpx.Response(200, text="#EXTM3U\nseg.ts\n"))
        assert resolver.fetch_playlist("https://cdn.example.com/a/index.m3u8") == "#EXTM3U\nseg.ts\n"

    def test_rejects_relative_before_request(self) -> None:
        """絶対URLでなければリクエストしない"""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("network must not be called")

        with pytest.raises(InvalidSourceLocatorError):
            make_resolver(handler).fetch_playlist("/a/index.m3u8")
