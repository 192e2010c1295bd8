"""VODメタデータ取得インターフェース"""

from typing import Protocol

from src.domain.entities import AppToken, VodMetadata


class VodMetadataProvider(Protocol):
    """VODのタイトル・長さなどを取得"""

    def get_metadata(
        self,
        vod_id: str,
        client_id: str,
        app_token: AppToken,
    ) -> VodMetadata | None:
        """
        VODメタデータを取得

        Returns:
            VodMetadata、VODが見つからない場合はNone
        """
        ...
