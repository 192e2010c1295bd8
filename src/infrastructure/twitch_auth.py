"""Twitch トークン取得クライアント（OAuth client credentials + PlaybackAccessToken）"""

import hashlib
import threading
from datetime import datetime, timedelta, timezone

import httpx

from src.domain.entities import AppToken, PlaybackToken
from src.domain.exceptions import AuthConfigError, UpstreamAuthError, UpstreamTimeoutError
from src.infrastructure.logging_config import get_logger, trace_tool

logger = get_logger(__name__)

OAUTH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
GQL_URL = "https://gql.twitch.tv/gql"

# PlaybackAccessToken の persisted query
PLAYBACK_ACCESS_TOKEN_HASH = "0828119ded1c13477966434e15800ff57ddacf13ba1911c129dc2200705b0712"


def credential_fingerprint(client_id: str, client_secret: str) -> str:
    """認証情報のフィンガープリント（キャッシュキー用、平文は保持しない）"""
    return hashlib.sha256(f"{client_id}:{client_secret}".encode("utf-8")).hexdigest()


class AppTokenCache:
    """
    認証情報ごとの app token キャッシュ

    プロセス全体のシングルトンではなく、呼び出し側が明示的に生成して渡す。
    有効期限（skew込み）を過ぎたトークンは返さない。
    """

    def __init__(self, skew_sec: int = 60):
        self.skew_sec = skew_sec
        self._tokens: dict[str, AppToken] = {}
        self._lock = threading.Lock()

    def get(self, fingerprint: str) -> AppToken | None:
        with self._lock:
            token = self._tokens.get(fingerprint)
            if token is None:
                return None
            if token.expires_at is None or token.is_expired(skew_sec=self.skew_sec):
                # 期限不明のトークンは再利用しない
                del self._tokens[fingerprint]
                return None
            return token

    def put(self, fingerprint: str, token: AppToken) -> None:
        with self._lock:
            self._tokens[fingerprint] = token


class TwitchAuthClient:
    """Twitch のトークン取得（TokenProvider 実装）"""

    def __init__(
        self,
        http_client: httpx.Client,
        token_cache: AppTokenCache | None = None,
    ):
        """
        Args:
            http_client: リクエスト単位の httpx クライアント（タイムアウト設定済み）
            token_cache: 任意の app token キャッシュ
        """
        self.http = http_client
        self.token_cache = token_cache

    @trace_tool(name="twitch_app_token")
    def get_app_token(self, client_id: str | None, client_secret: str | None) -> AppToken:
        """
        client credentials フローで app token を取得

        Raises:
            AuthConfigError: client id / secret が未設定（ネットワーク呼び出しなし）
            UpstreamAuthError: 非2xx、または access_token 欠落
            UpstreamTimeoutError: タイムアウト
        """
        if not client_id or not client_secret:
            logger.error("[TwitchAuth] Twitch 認証情報が未設定です")
            raise AuthConfigError("Twitch credentials not configured")

        fingerprint = credential_fingerprint(client_id, client_secret)
        if self.token_cache is not None:
            cached = self.token_cache.get(fingerprint)
            if cached is not None:
                logger.debug("[TwitchAuth] app token キャッシュヒット")
                return cached

        logger.info("[TwitchAuth] OAuth トークン取得開始")
        try:
            response = self.http.post(
                OAUTH_TOKEN_URL,
                data={
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "grant_type": "client_credentials",
                },
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError("Timed out requesting OAuth token") from e
        except httpx.HTTPError as e:
            raise UpstreamAuthError(f"OAuth token request failed: {e}") from e

        if not response.is_success:
            logger.error(f"[TwitchAuth] OAuth 失敗: status={response.status_code}")
            raise UpstreamAuthError(
                "Failed to get OAuth token from Twitch",
                detail={"status": response.status_code, "body": response.text[:500]},
            )

        payload = _json_or_none(response)
        if not isinstance(payload, dict):
            raise UpstreamAuthError("Invalid OAuth response from Twitch: not a JSON object")
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise UpstreamAuthError("Invalid OAuth response from Twitch: missing access_token")

        expires_at = None
        expires_in = payload.get("expires_in")
        if isinstance(expires_in, (int, float)) and expires_in > 0:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))

        token = AppToken(value=access_token, expires_at=expires_at)
        if self.token_cache is not None:
            self.token_cache.put(fingerprint, token)

        logger.info("[TwitchAuth] OAuth トークン取得完了")
        return token

    @trace_tool(name="twitch_playback_token")
    def get_playback_token(
        self,
        vod_id: str,
        app_token: AppToken,
        client_id: str,
    ) -> PlaybackToken:
        """
        GraphQL の PlaybackAccessToken クエリで VOD 用トークンを取得

        value と signature の両方が揃わないトークンは受け付けない
        （署名なしのマニフェスト要求を組み立てさせないため）。

        Raises:
            UpstreamAuthError: 非2xx、GraphQL エラー、フィールド欠落
            UpstreamTimeoutError: タイムアウト
        """
        query = {
            "operationName": "PlaybackAccessToken",
            "variables": {
                "isLive": False,
                "login": "",
                "isVod": True,
                "vodID": vod_id,
                "playerType": "embed",
            },
            "extensions": {
                "persistedQuery": {
                    "version": 1,
                    "sha256Hash": PLAYBACK_ACCESS_TOKEN_HASH,
                },
            },
        }

        logger.info(f"[TwitchAuth] playback token 取得開始: vod_id={vod_id}")
        try:
            response = self.http.post(
                GQL_URL,
                json=query,
                headers={
                    "Client-ID": client_id,
                    # "OAuth" スキームでは 401 になるため Bearer を使う
                    "Authorization": f"Bearer {app_token.value}",
                },
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError("Timed out requesting playback access token") from e
        except httpx.HTTPError as e:
            raise UpstreamAuthError(f"Playback access token request failed: {e}") from e

        if not response.is_success:
            logger.error(f"[TwitchAuth] GraphQL 失敗: status={response.status_code}")
            raise UpstreamAuthError(
                "Failed to get playback access token from Twitch",
                detail={"status": response.status_code, "body": response.text[:500]},
            )

        payload = _json_or_none(response)
        if not isinstance(payload, dict):
            raise UpstreamAuthError("Invalid playback access token response: not a JSON object")
        if payload.get("errors"):
            raise UpstreamAuthError(
                "Playback access token query returned errors",
                detail={"errors": payload["errors"]},
            )

        data = payload.get("data")
        token_data = data.get("videoPlaybackAccessToken") if isinstance(data, dict) else None
        if not isinstance(token_data, dict):
            token_data = {}
        value = token_data.get("value")
        signature = token_data.get("signature")
        if not _is_filled_str(value) or not _is_filled_str(signature):
            raise UpstreamAuthError(
                "Invalid playback access token response",
                detail={
                    "has_value": _is_filled_str(value),
                    "has_signature": _is_filled_str(signature),
                },
            )

        logger.info("[TwitchAuth] playback token 取得完了")
        return PlaybackToken(value=value, signature=signature)


def _is_filled_str(value: object) -> bool:
    return isinstance(value, str) and bool(value)


def _json_or_none(response: httpx.Response) -> dict | list | None:
    try:
        return response.json()
    except ValueError:
        return None
