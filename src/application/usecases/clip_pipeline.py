"""メインユースケース: VOD ID + 時間範囲 → クリップ"""

import time
from dataclasses import dataclass, field
from typing import Callable

from src.application.usecases.extract_clip import ClipExtractor
from src.application.usecases.resolve_stream import ResolveStreamUseCase
from src.domain.entities import ClipJobState, ClipRequest, ClipResult, VodReference
from src.domain.exceptions import VodClipperError
from src.domain.time_utils import normalize_range
from src.infrastructure.logging_config import get_logger, trace_chain

logger = get_logger(__name__)

# 許可される状態遷移（FAILED へはどの非終端状態からでも遷移可）
_TRANSITIONS: dict[ClipJobState, ClipJobState] = {
    ClipJobState.PENDING: ClipJobState.RESOLVING_TOKEN,
    ClipJobState.RESOLVING_TOKEN: ClipJobState.RESOLVING_MANIFEST,
    ClipJobState.RESOLVING_MANIFEST: ClipJobState.EXTRACTING,
    ClipJobState.EXTRACTING: ClipJobState.SUCCEEDED,
}


@dataclass
class ClipJob:
    """クリップリクエスト1件の状態（再開不可）"""

    vod_id: str
    state: ClipJobState = ClipJobState.PENDING
    history: list[ClipJobState] = field(default_factory=lambda: [ClipJobState.PENDING])
    error_kind: str | None = None

    def advance(self, next_state: ClipJobState) -> None:
        if self.state.is_terminal:
            raise RuntimeError(f"Clip job already finished: {self.state.value}")
        if next_state != ClipJobState.FAILED and _TRANSITIONS.get(self.state) != next_state:
            raise RuntimeError(f"Invalid transition: {self.state.value} -> {next_state.value}")
        self.state = next_state
        self.history.append(next_state)


class ClipPipelineUseCase:
    """
    Pending → Resolving(token) → Resolving(manifest) → Extracting → Succeeded / Failed

    各段は前段の出力に依存するため逐次実行。失敗時は Failed で終了し、
    再実行は呼び出し側が Pending からやり直す。
    """

    def __init__(
        self,
        resolve_stream: ResolveStreamUseCase,
        clip_extractor: ClipExtractor,
    ):
        self.resolve_stream = resolve_stream
        self.clip_extractor = clip_extractor

    @trace_chain(name="clip_pipeline")
    def execute(
        self,
        vod: VodReference,
        start_time: int | float | str,
        end_time: int | float | str,
        progress_callback: Callable[[ClipJobState], None] | None = None,
    ) -> ClipResult:
        """
        メイン実行フロー

        Args:
            vod: VOD参照
            start_time: 開始時刻
            end_time: 終了時刻
            progress_callback: 状態遷移ごとのコールバック

        Returns:
            ClipResult

        Raises:
            VodClipperError: いずれかの段で失敗（種別はそのまま伝播）
            Exception: 想定外の失敗も Failed へ遷移した上で再送出
        """
        started = time.time()
        job = ClipJob(vod_id=vod.vod_id)

        def update_state(state: ClipJobState) -> None:
            job.advance(state)
            logger.info(f"[ClipPipeline] vod_id={vod.vod_id} → {state.value}")
            if progress_callback:
                progress_callback(state)

        try:
            # 外部呼び出しの前に入力を検証
            time_range = normalize_range(start_time, end_time)

            update_state(ClipJobState.RESOLVING_TOKEN)
            app_token = self.resolve_stream.acquire_app_token()

            update_state(ClipJobState.RESOLVING_MANIFEST)
            resolved = self.resolve_stream.resolve_with_token(vod, app_token, with_metadata=False)

            update_state(ClipJobState.EXTRACTING)
            request = ClipRequest(source_locator=resolved.stream_uri, time_range=time_range)
            result = self.clip_extractor.extract(request)

        except VodClipperError as e:
            job.error_kind = e.kind
            update_state(ClipJobState.FAILED)
            logger.error(f"[ClipPipeline] 失敗: kind={e.kind} message={e.message}")
            raise
        except Exception as e:
            job.error_kind = "internal_error"
            update_state(ClipJobState.FAILED)
            logger.exception(f"[ClipPipeline] 予期しないエラー: {type(e).__name__}")
            raise

        update_state(ClipJobState.SUCCEEDED)
        logger.info(
            f"[ClipPipeline] 完了: {result.size_bytes} bytes ({time.time() - started:.1f}s)"
        )
        return result
