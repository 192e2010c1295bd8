"""Twitch Helix API クライアント（VODメタデータ）"""

import httpx

from src.domain.entities import UNKNOWN, AppToken, VodMetadata
from src.domain.exceptions import UpstreamAuthError, UpstreamTimeoutError, UpstreamUnavailableError
from src.domain.time_utils import parse_twitch_duration
from src.infrastructure.logging_config import get_logger, trace_tool
from src.infrastructure.retry import metadata_retry

logger = get_logger(__name__)

HELIX_VIDEOS_URL = "https://api.twitch.tv/helix/videos"


class HelixVideoClient:
    """Helix /videos を使ったメタデータ取得（VodMetadataProvider 実装）"""

    def __init__(self, http_client: httpx.Client):
        self.http = http_client

    @trace_tool(name="helix_video_metadata")
    def get_metadata(
        self,
        vod_id: str,
        client_id: str,
        app_token: AppToken,
    ) -> VodMetadata | None:
        """
        VODメタデータを取得

        Args:
            vod_id: VOD ID
            client_id: Twitch client id
            app_token: アプリケーショントークン

        Returns:
            VodMetadata、該当VODがない場合はNone

        Raises:
            UpstreamAuthError: 401 / 403
            UpstreamUnavailableError: その他の非2xx・接続エラー
            UpstreamTimeoutError: タイムアウト
        """
        try:
            response = self._request(vod_id, client_id, app_token)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError("Timed out fetching VOD metadata") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(f"VOD metadata request failed: {e}") from e

        if response.status_code in (401, 403):
            raise UpstreamAuthError(
                "Helix API rejected the app token",
                detail={"status": response.status_code},
            )
        if not response.is_success:
            raise UpstreamUnavailableError(
                "Failed to fetch VOD from Twitch",
                detail={"status": response.status_code, "body": response.text[:500]},
            )

        data = _video_list(response)
        if not data:
            logger.info(f"[Helix] VODが見つかりません: vod_id={vod_id}")
            return None

        video = data[0]
        if not isinstance(video, dict):
            raise UpstreamUnavailableError(
                "Unexpected Helix video entry",
                detail={"entry_type": type(video).__name__},
            )

        duration_label = _text(video.get("duration")) or UNKNOWN
        view_count = video.get("view_count")
        metadata = VodMetadata(
            vod_id=_text(video.get("id")) or vod_id,
            title=_text(video.get("title")) or UNKNOWN,
            duration_label=duration_label,
            duration_sec=parse_twitch_duration(duration_label),
            user_name=_text(video.get("user_name")),
            thumbnail_url=_text(video.get("thumbnail_url")),
            url=_text(video.get("url")),
            created_at=_text(video.get("created_at")),
            view_count=view_count if isinstance(view_count, int) and not isinstance(view_count, bool) else None,
        )
        logger.info(f"[Helix] メタデータ取得完了: {metadata.title[:40]!r} ({metadata.duration_label})")
        return metadata

    @metadata_retry
    def _request(self, vod_id: str, client_id: str, app_token: AppToken) -> httpx.Response:
        """接続系エラーのみリトライ"""
        return self.http.get(
            HELIX_VIDEOS_URL,
            params={"id": vod_id},
            headers={
                "Client-ID": client_id,
                "Authorization": f"Bearer {app_token.value}",
            },
        )


def _video_list(response: httpx.Response) -> list:
    """レスポンスの data 配列（形式が想定外なら UpstreamUnavailableError）"""
    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamUnavailableError("Helix response is not JSON") from e
    if not isinstance(payload, dict):
        raise UpstreamUnavailableError(
            "Unexpected Helix response",
            detail={"payload_type": type(payload).__name__},
        )
    data = payload.get("data") or []
    if not isinstance(data, list):
        raise UpstreamUnavailableError(
            "Unexpected Helix response: data is not a list",
            detail={"data_type": type(data).__name__},
        )
    return data


def _text(value: object) -> str | None:
    """文字列・数値のみ文字列化（それ以外は None）"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None
