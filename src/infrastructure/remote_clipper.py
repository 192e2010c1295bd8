"""リモート抽出サービスへのクリップ抽出委譲"""

import httpx

from src.domain.entities import ClipResult, TimeRange
from src.domain.exceptions import ExtractionFailedError, UpstreamTimeoutError
from src.domain.media import MP4_MIME_TYPE
from src.infrastructure.logging_config import get_logger, redact_url, trace_tool

logger = get_logger(__name__)


class RemoteClipBackend:
    """
    抽出サービスに POST して切り出し済みバイナリを受け取る（ClipBackend）

    リクエスト: {"sourceLocator": str, "startTime": int, "endTime": int}
    レスポンス: トリム済みのMP4バイナリ
    """

    name = "remote"

    def __init__(self, http_client: httpx.Client, service_url: str, timeout_sec: float = 300):
        """
        Args:
            http_client: リクエスト単位の httpx クライアント
            service_url: 抽出サービスのベースURL
            timeout_sec: 抽出リクエストのタイムアウト
        """
        self.http = http_client
        self.endpoint = service_url.rstrip("/") + "/clip"
        self.timeout_sec = timeout_sec

    @trace_tool(name="remote_trim")
    def trim(self, source_locator: str, time_range: TimeRange) -> ClipResult:
        """
        抽出サービスで切り出す

        Raises:
            UpstreamTimeoutError: タイムアウト
            ExtractionFailedError: 非2xx応答、または接続失敗
        """
        payload = {
            "sourceLocator": source_locator,
            "startTime": time_range.start_sec,
            "endTime": time_range.end_sec,
        }
        logger.info(
            f"[RemoteClip] 抽出依頼: {self.endpoint} start={time_range.start_sec}s "
            f"end={time_range.end_sec}s src={redact_url(source_locator)}"
        )

        try:
            response = self.http.post(self.endpoint, json=payload, timeout=self.timeout_sec)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(f"Clip service timed out after {self.timeout_sec}s") from e
        except httpx.HTTPError as e:
            raise ExtractionFailedError(
                f"Clip service request failed: {e}",
                detail={"endpoint": self.endpoint},
            ) from e

        if not response.is_success:
            logger.error(f"[RemoteClip] 抽出失敗: status={response.status_code}")
            raise ExtractionFailedError(
                f"Clip service returned {response.status_code}",
                detail={"status": response.status_code, "body": response.text[:2000]},
            )

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        mime_type = content_type if content_type.startswith("video/") else MP4_MIME_TYPE
        logger.info(f"[RemoteClip] 受信完了: {len(response.content)} bytes ({mime_type})")
        return ClipResult(data=response.content, mime_type=mime_type)
