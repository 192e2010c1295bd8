"""Twitch Usher からの署名付きマスタープレイリスト取得"""

import httpx

from src.domain.entities import MasterManifest, PlaybackToken, require_http_url
from src.domain.exceptions import ManifestFetchError, UpstreamTimeoutError
from src.domain.playlist import parse_master_playlist, select_variant_uri
from src.infrastructure.logging_config import get_logger, redact_url, trace_tool

logger = get_logger(__name__)

USHER_VOD_URL = "https://usher.ttvnw.net/vod/{vod_id}.m3u8"


class UsherManifestResolver:
    """Usher エッジからマスタープレイリストを取得（ManifestResolver 実装）"""

    def __init__(self, http_client: httpx.Client):
        """
        Args:
            http_client: リクエスト単位の httpx クライアント（タイムアウト設定済み）
        """
        self.http = http_client

    @trace_tool(name="usher_master_manifest")
    def resolve_master_manifest(
        self,
        vod_id: str,
        client_id: str,
        playback_token: PlaybackToken,
    ) -> MasterManifest:
        """
        署名付きマスタープレイリストを取得し、元画質のバリアントを選択

        処理フロー:
        1. nauth / nauthsig を埋め込んだ Usher URL を構築（allow_source=true）
        2. 取得（非2xxは ManifestFetchError）
        3. バリアント解析 → 元画質 > 最初の絶対URI の順で選択

        Raises:
            ManifestFetchError: 取得失敗
            UpstreamTimeoutError: タイムアウト
            NoVariantFoundError: 候補URIなし
            ParseError: 選択URIが相対パス
        """
        # httpx が params を URL エンコードする
        params = {
            "nauth": playback_token.value,
            "nauthsig": playback_token.signature,
            "allow_source": "true",
            "player": "twitchweb",
        }

        logger.info(f"[Usher] マスタープレイリスト取得開始: vod_id={vod_id}")
        text = self._get_text(
            USHER_VOD_URL.format(vod_id=vod_id),
            params=params,
            headers={"Client-ID": client_id},
        )

        variants = parse_master_playlist(text)
        logger.debug(f"  バリアント数: {len(variants)}")
        for v in variants:
            logger.debug(f"    {v.label} (preferred={v.is_preferred_quality})")

        if not any(v.is_preferred_quality for v in variants):
            logger.info("[Usher] 元画質（chunked）が見つからないため最初のストリームを使用")

        chosen = select_variant_uri(text, variants)
        logger.info(f"[Usher] ストリームURL選択: {redact_url(chosen)}")

        return MasterManifest(
            chosen_variant_uri=chosen,
            raw_text=text,
            variants=tuple(variants),
        )

    @trace_tool(name="fetch_playlist")
    def fetch_playlist(self, uri: str) -> str:
        """
        任意のプレイリストを取得

        Raises:
            InvalidSourceLocatorError: 絶対URLではない
            ManifestFetchError: 取得失敗
            UpstreamTimeoutError: タイムアウト
        """
        uri = require_http_url(uri, "manifest_uri")
        logger.info(f"[Usher] プレイリスト取得: {redact_url(uri)}")
        text = self._get_text(uri)
        logger.debug(f"  取得完了: {len(text)} 文字")
        return text

    def _get_text(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        try:
            response = self.http.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError("Timed out fetching playlist") from e
        except httpx.HTTPError as e:
            raise ManifestFetchError(f"Failed to fetch playlist: {e}") from e

        if not response.is_success:
            logger.error(f"[Usher] プレイリスト取得失敗: status={response.status_code}")
            raise ManifestFetchError(
                f"Failed to fetch playlist: {response.status_code}",
                detail={"status": response.status_code, "body": response.text[:500]},
            )
        return response.text
