"""クリップ抽出ユースケース"""

from src.application.interfaces.clip_backend import ClipBackend
from src.domain.entities import ClipRequest, ClipResult
from src.domain.exceptions import ExtractionIntegrityError
from src.domain.media import has_mp4_signature, header_hex
from src.domain.time_utils import format_timestamp, normalize_range
from src.infrastructure.logging_config import LogContext, get_logger, redact_url

logger = get_logger(__name__)


class ClipExtractor:
    """
    クリップ抽出の共通契約

    バックエンド（ローカル ffmpeg / リモート委譲）に関係なく、
    - ロケータ検証（ClipRequest 生成時、外部呼び出しより前）
    - 出力の整合性チェック（非空 + コンテナシグネチャ）
    をここで一度だけ行う。リトライはしない。
    """

    def __init__(self, backend: ClipBackend):
        self.backend = backend

    def extract(self, request: ClipRequest) -> ClipResult:
        """
        クリップを抽出して検証

        Args:
            request: 検証済みのクリップリクエスト

        Returns:
            ClipResult

        Raises:
            ExtractionFailedError: 抽出エンジンの失敗
            ExtractionIntegrityError: 出力が空、またはMP4シグネチャなし
        """
        ctx = LogContext(
            backend=self.backend.name,
            start=format_timestamp(request.time_range.start_sec),
            duration=request.time_range.duration_sec,
            src=redact_url(request.source_locator),
        )
        logger.info(f"[ClipExtractor] 抽出開始: {ctx}")

        result = self.backend.trim(request.source_locator, request.time_range)
        self._verify(result)

        logger.info(f"[ClipExtractor] 抽出完了: {ctx.update(size=result.size_bytes)}")
        return result

    def _verify(self, result: ClipResult) -> None:
        if not result.data:
            raise ExtractionIntegrityError(
                "Extraction produced an empty output",
                detail={"backend": self.backend.name},
            )
        if not has_mp4_signature(result.data):
            header = header_hex(result.data)
            logger.error(f"[ClipExtractor] MP4ヘッダ不正: {header}")
            raise ExtractionIntegrityError(
                "Extraction output is not a valid MP4 container",
                detail={"backend": self.backend.name, "header": header},
            )


class ExtractClipUseCase:
    """
    ExtractClip: 時刻正規化 → クリップ抽出
    """

    def __init__(self, clip_extractor: ClipExtractor):
        self.clip_extractor = clip_extractor

    def execute(
        self,
        source_locator: str,
        start_time: int | float | str,
        end_time: int | float | str,
    ) -> ClipResult:
        """
        Args:
            source_locator: http(s) の絶対URL
            start_time: 開始時刻（秒 / "H:MM:SS" / "M:SS"）
            end_time: 終了時刻

        Returns:
            ClipResult

        Raises:
            InvalidSourceLocatorError, TimeParseError, InvalidRangeError: 入力エラー
            ExtractionFailedError, ExtractionIntegrityError: 抽出エラー
        """
        request = build_clip_request(source_locator, start_time, end_time)
        return self.clip_extractor.extract(request)


def build_clip_request(
    source_locator: str,
    start_time: int | float | str,
    end_time: int | float | str,
) -> ClipRequest:
    """入力を検証して ClipRequest を生成（外部呼び出しは行わない）"""
    time_range = normalize_range(start_time, end_time)
    return ClipRequest(source_locator=source_locator, time_range=time_range)
