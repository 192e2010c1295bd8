"""Twitch トークン取得クライアントのテスト"""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from src.domain.entities import AppToken
from src.domain.exceptions import AuthConfigError, UpstreamAuthError, UpstreamTimeoutError
from src.infrastructure.twitch_auth import (
    GQL_URL,
    OAUTH_TOKEN_URL,
    AppTokenCache,
    TwitchAuthClient,
    credential_fingerprint,
)


def make_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def oauth_ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"access_token": "app-token", "expires_in": 3600})


class TestGetAppToken:
    """client credentials フローのテスト"""

    def test_success(self) -> None:
        """フォーム送信と有効期限の計算"""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return oauth_ok(request)

        token = TwitchAuthClient(make_client(handler)).get_app_token("cid", "secret")

        assert token.value == "app-token"
        assert token.expires_at is not None
        assert token.expires_at > datetime.now(timezone.utc) + timedelta(minutes=59)
        assert str(seen[0].url) == OAUTH_TOKEN_URL
        body = seen[0].content.decode()
        assert "grant_type=client_credentials" in body
        assert "client_id=cid" in body

    @pytest.mark.parametrize("client_id,client_secret", [(None, "s"), ("c", None), ("", "")])
    def test_missing_credentials(self, client_id, client_secret) -> None:
        """認証情報なしはネットワーク呼び出し前にエラー"""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("network must not be called")

        with pytest.raises(AuthConfigError):
            TwitchAuthClient(make_client(handler)).get_app_token(client_id, client_secret)

    def test_non_2xx(self) -> None:
        client = make_client(lambda r: httpx.Response(400, json={"message": "invalid client"}))

        with pytest.raises(UpstreamAuthError) as exc_info:
            TwitchAuthClient(client).get_app_token("cid", "secret")
        assert exc_info.value.detail["status"] == 400

    def test_missing_access_token(self) -> None:
        client = make_client(lambda r: httpx.Response(200, json={"token_type": "bearer"}))

        with pytest.raises(UpstreamAuthError):
            TwitchAuthClient(client).get_app_token("cid", "secret")

    @pytest.mark.parametrize("payload", [["x"], "token", {"access_token": 123}, {"access_token": ""}])
    def test_malformed_oauth_response(self, payload) -> None:
        """JSONオブジェクトでない、または access_token が文字列でない応答"""
        client = make_client(lambda r: httpx.Response(200, json=payload))

        with pytest.raises(UpstreamAuthError):
            TwitchAuthClient(client).get_app_token("cid", "secret")

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UpstreamTimeoutError):
            TwitchAuthClient(make_client(handler)).get_app_token("cid", "secret")

    def test_cache_reused(self) -> None:
        """キャッシュ有効時は2回目のリクエストを省略"""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return oauth_ok(request)

        auth = TwitchAuthClient(make_client(handler), token_cache=AppTokenCache())
        first = auth.get_app_token("cid", "secret")
        second = auth.get_app_token("cid", "secret")

        assert first == second
        assert len(calls) == 1

    def test_cache_keyed_by_credentials(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return oauth_ok(request)

        auth = TwitchAuthClient(make_client(handler), token_cache=AppTokenCache())
        auth.get_app_token("cid", "secret")
        auth.get_app_token("other", "secret")

        assert len(calls) == 2


class TestAppTokenCache:
    """キャッシュの有効期限のテスト"""

    def test_expired_token_not_returned(self) -> None:
        cache = AppTokenCache(skew_sec=60)
        key = credential_fingerprint("cid", "secret")
        cache.put(key, AppToken("t", expires_at=datetime.now(timezone.utc) + timedelta(seconds=30)))

        assert cache.get(key) is None

    def test_token_without_expiry_not_returned(self) -> None:
        cache = AppTokenCache()
        key = credential_fingerprint("cid", "secret")
        cache.put(key, AppToken("t"))

        assert cache.get(key) is None

    def test_valid_token_returned(self) -> None:
        cache = AppTokenCache()
        key = credential_fingerprint("cid", "secret")
        token = AppToken("t", expires_at=datetime.now(timezone.utc) + timedelta(hours=1))
        cache.put(key, token)

        assert cache.get(key) is token

    def test_fingerprint_hides_secret(self) -> None:
        key = credential_fingerprint("cid", "secret")
        assert "secret" not in key
        assert len(key) == 64


class TestGetPlaybackToken:
    """PlaybackAccessToken クエリのテスト"""

    def test_success(self) -> None:
        """VOD用のクエリとヘッダを送信"""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"data": {"videoPlaybackAccessToken": {"value": "{\"vod\":1}", "signature": "abc"}}},
            )

        token = TwitchAuthClient(make_client(handler)).get_playback_token(
            "123456789", AppToken("app-token"), "cid"
        )

        assert token.value == '{"vod":1}'
        assert token.signature == "abc"

        request = seen[0]
        assert str(request.url) == GQL_URL
        assert request.headers["Client-ID"] == "cid"
        assert request.headers["Authorization"] == "Bearer app-token"
        variables = json.loads(request.content)["variables"]
        assert variables["isVod"] is True
        assert variables["isLive"] is False
        assert variables["vodID"] == "123456789"

    @pytest.mark.parametrize(
        "payload",
        [
            {"data": {"videoPlaybackAccessToken": {"value": "v"}}},
            {"data": {"videoPlaybackAccessToken": {"signature": "s"}}},
            {"data": {"videoPlaybackAccessToken": None}},
            {"errors": [{"message": "PersistedQueryNotFound"}]},
            [],
            {"data": {"videoPlaybackAccessToken": "abc"}},
            {"data": ["x"]},
            {"data": "x"},
            {"data": {"videoPlaybackAccessToken": {"value": 1, "signature": {"a": 1}}}},
            {"data": {"videoPlaybackAccessToken": {"value": "v", "signature": ["s"]}}},
        ],
    )
    def test_malformed_response(self, payload) -> None:
        """value / signature が揃わない応答は受け付けない"""
        client = make_client(lambda r: httpx.Response(200, json=payload))

        with pytest.raises(UpstreamAuthError):
            TwitchAuthClient(client).get_playback_token("1", AppToken("t"), "cid")

    def test_non_json(self) -> None:
        client = make_client(lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(UpstreamAuthError):
            TwitchAuthClient(client).get_playback_token("1", AppToken("t"), "cid")

    def test_non_2xx(self) -> None:
        client = make_client(lambda r: httpx.Response(401, json={"error": "Unauthorized"}))

        with pytest.raises(UpstreamAuthError) as exc_info:
            TwitchAuthClient(client).get_playback_token("1", AppToken("t"), "cid")
        assert exc_info.value.http_status == 503
