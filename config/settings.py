"""設定管理"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

from src.domain.exceptions import ConfigError


class Settings(BaseSettings):
    """アプリケーション設定"""

    # Twitch API（未設定の場合はトークン取得時に AuthConfigError）
    TWITCH_CLIENT_ID: str | None = None
    TWITCH_CLIENT_SECRET: str | None = None

    # Clip extraction
    # local: ffmpeg をサブプロセスで実行 / remote: 抽出サービスに委譲
    CLIP_STRATEGY: Literal["local", "remote"] = "local"
    # remote 時の抽出サービスのベースURL（例: https://clipper.example.com）
    CLIP_SERVICE_URL: str | None = None

    # Timeouts (seconds)
    HTTP_TIMEOUT: float = 10.0
    CLIP_EXTRACT_TIMEOUT: int = 300
    REMOTE_CLIP_TIMEOUT: int = 300

    # app token を認証情報ごとにキャッシュするか（有効期限は厳守）
    ENABLE_TOKEN_CACHE: bool = False

    # Paths
    TEMP_DIR: str | None = None  # None の場合はOSの一時ディレクトリ
    FFMPEG_PATH: str = "ffmpeg"

    # HTTP
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Logging & Observability
    LOG_LEVEL: str = "INFO"
    LANGSMITH_TRACING: bool = False
    LANGSMITH_API_KEY: str | None = None
    LANGSMITH_PROJECT: str = "vod-clipper"

    def validate_strategy(self) -> None:
        """抽出戦略と関連設定の整合性チェック"""
        if self.CLIP_STRATEGY == "remote" and not self.CLIP_SERVICE_URL:
            raise ConfigError(
                "CLIP_SERVICE_URL is required when CLIP_STRATEGY=remote",
                detail={"setting": "CLIP_SERVICE_URL"},
            )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """シングルトンで設定を取得"""
    return Settings()
