"""トークン取得インターフェース"""

from typing import Protocol

from src.domain.entities import AppToken, PlaybackToken


class TokenProvider(Protocol):
    """プラットフォームのトークン取得インターフェース"""

    def get_app_token(self, client_id: str | None, client_secret: str | None) -> AppToken:
        """
        client credentials でアプリケーショントークンを取得

        Args:
            client_id: Twitch client id
            client_secret: Twitch client secret

        Returns:
            AppToken

        Raises:
            AuthConfigError: 認証情報が未設定
            UpstreamAuthError: トークン交換の失敗
        """
        ...

    def get_playback_token(
        self,
        vod_id: str,
        app_token: AppToken,
        client_id: str,
    ) -> PlaybackToken:
        """
        VOD再生用の署名付きトークンを取得

        Args:
            vod_id: VOD ID
            app_token: アプリケーショントークン
            client_id: Twitch client id

        Returns:
            value と signature が揃った PlaybackToken

        Raises:
            UpstreamAuthError: 取得失敗、またはレスポンス不正
        """
        ...
