"""ffmpeg（ローカルサブプロセス）によるクリップ抽出"""

import os
import subprocess
import tempfile
from pathlib import Path

from src.domain.entities import ClipResult, TimeRange
from src.domain.exceptions import ExtractionFailedError, ExtractionTimeoutError
from src.domain.media import MP4_MIME_TYPE
from src.infrastructure.logging_config import get_logger, redact_url, trace_tool

logger = get_logger(__name__)

# HLS マニフェスト・リモートHTTPソースを直接読むための入力オプション
INPUT_OPTIONS = [
    "-protocol_whitelist", "file,http,https,tcp,tls,crypto",
    "-reconnect", "1",  # 一時的な切断時に再接続
    "-reconnect_streamed", "1",
    "-reconnect_delay_max", "5",
]

# stderr はこの文字数だけ診断情報として保持
STDERR_TAIL_CHARS = 4000


class FFmpegClipBackend:
    """ffmpeg -c copy による実装（ClipBackend）"""

    name = "local"

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        timeout_sec: int = 300,
        temp_dir: str | None = None,
    ):
        """
        Args:
            ffmpeg_path: ffmpegの実行パス
            timeout_sec: ffmpeg の実行タイムアウト（超過時はプロセスを終了）
            temp_dir: 一時ファイルの作成先（None ならOSの既定）
        """
        self.ffmpeg_path = ffmpeg_path
        self.timeout_sec = timeout_sec
        self.temp_dir = temp_dir

    def build_command(self, source_locator: str, time_range: TimeRange, output_path: str) -> list[str]:
        """ffmpeg コマンド構築"""
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-loglevel", "error",
            "-y",  # 上書き許可（mkstemp で作成済みのため）
            *INPUT_OPTIONS,
            "-ss", str(time_range.start_sec),  # 入力シーク
            "-i", source_locator,
            "-t", str(time_range.duration_sec),  # 切り出し長さ
            "-map", "0",
            "-c", "copy",  # 再エンコードなし
            "-avoid_negative_ts", "make_zero",  # タイムスタンプを0起点に
            "-movflags", "+faststart",  # Web再生用最適化
            "-f", "mp4",
            output_path,
        ]

    @trace_tool(name="ffmpeg_trim")
    def trim(self, source_locator: str, time_range: TimeRange) -> ClipResult:
        """
        指定範囲をストリームコピーで切り出す

        処理フロー:
        1. 一意な一時ファイルを作成
        2. ffmpeg -ss / -t / -c copy で切り出し（HLS・HTTPソースを直接読む）
        3. 出力をメモリに読み込み
        4. 成功・失敗・タイムアウトのいずれでも一時ファイルを削除

        Raises:
            ExtractionTimeoutError: タイムアウト（プロセスは終了済み）
            ExtractionFailedError: ffmpeg の異常終了、または起動失敗
        """
        fd, output_path = tempfile.mkstemp(prefix="clip-", suffix=".mp4", dir=self.temp_dir)
        os.close(fd)

        cmd = self.build_command(source_locator, time_range, output_path)
        logger.info(
            f"[FFmpeg] クリップ抽出開始: start={time_range.start_sec}s "
            f"duration={time_range.duration_sec}s src={redact_url(source_locator)}"
        )

        try:
            try:
                # タイムアウト時は subprocess.run が子プロセスを kill する
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    timeout=self.timeout_sec,
                )
            except subprocess.TimeoutExpired as e:
                logger.error(f"[FFmpeg] タイムアウト: {self.timeout_sec}s")
                raise ExtractionTimeoutError(
                    f"ffmpeg timed out after {self.timeout_sec}s",
                    detail={"stderr": _decode_tail(e.stderr)},
                ) from e
            except OSError as e:
                raise ExtractionFailedError(
                    f"Failed to start ffmpeg: {e}",
                    detail={"ffmpeg_path": self.ffmpeg_path},
                ) from e

            if result.returncode != 0:
                stderr = _decode_tail(result.stderr)
                logger.error(f"[FFmpeg] 異常終了: returncode={result.returncode}")
                logger.debug(f"  stderr: {stderr}")
                raise ExtractionFailedError(
                    f"ffmpeg exited with code {result.returncode}",
                    detail={"returncode": result.returncode, "stderr": stderr},
                )

            data = Path(output_path).read_bytes()
            logger.info(f"[FFmpeg] クリップ抽出完了: {len(data)} bytes")
            return ClipResult(data=data, mime_type=MP4_MIME_TYPE)

        finally:
            # 一時ファイルを削除
            Path(output_path).unlink(missing_ok=True)


def _decode_tail(stderr: bytes | str | None) -> str:
    if not stderr:
        return ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return stderr[-STDERR_TAIL_CHARS:]
