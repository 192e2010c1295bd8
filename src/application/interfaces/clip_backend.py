"""クリップ抽出バックエンドインターフェース"""

from typing import Protocol

from src.domain.entities import ClipResult, TimeRange


class ClipBackend(Protocol):
    """
    ソースロケータと時間範囲を受け取り、トリム済みのバイト列を返す

    実装: FFmpegClipBackend（ローカルサブプロセス）/ RemoteClipBackend（HTTP委譲）
    出力の検証は ClipExtractor が共通で行う。
    """

    name: str

    def trim(self, source_locator: str, time_range: TimeRange) -> ClipResult:
        """
        再エンコードなしで指定範囲を切り出す

        Args:
            source_locator: 検証済みの絶対URL（ファイルURLまたはプレイリストURL）
            time_range: 切り出す範囲

        Returns:
            ClipResult（未検証）

        Raises:
            ExtractionFailedError: 抽出エンジンの失敗
        """
        ...
