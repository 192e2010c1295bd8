"""マニフェスト解決インターフェース"""

from typing import Protocol

from src.domain.entities import MasterManifest, PlaybackToken


class ManifestResolver(Protocol):
    """署名付きマスタープレイリストの取得と解決"""

    def resolve_master_manifest(
        self,
        vod_id: str,
        client_id: str,
        playback_token: PlaybackToken,
    ) -> MasterManifest:
        """
        マスタープレイリストを取得し最高画質のバリアントを選択

        Args:
            vod_id: VOD ID
            client_id: Twitch client id
            playback_token: 署名付きトークン

        Returns:
            MasterManifest（選択URIと元テキスト）
        """
        ...

    def fetch_playlist(self, uri: str) -> str:
        """
        任意のプレイリストを取得

        Args:
            uri: プレイリストの絶対URI

        Returns:
            プレイリスト本文
        """
        ...
