"""ドメイン固有の例外定義"""

from typing import Any


class VodClipperError(Exception):
    """
    基底例外クラス

    すべての例外は kind（種別）・message・detail（任意の診断情報）を持つ。
    HTTP層は http_status と to_dict() をそのままレスポンスに使う。
    """

    kind: str = "internal_error"
    http_status: int = 500

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        """エラーレスポンス用の辞書"""
        return {
            "error": self.kind,
            "message": self.message,
            "detail": self.detail,
        }


class ConfigError(VodClipperError):
    """サーバー設定の不整合"""

    kind = "config_error"
    http_status = 500


class AuthConfigError(ConfigError):
    """認証情報（client id / secret）が未設定"""

    kind = "auth_config_error"


# --- 上流プラットフォーム障害（一時的な障害として扱う） ---


class UpstreamUnavailableError(VodClipperError):
    """上流サービスが利用できない"""

    kind = "upstream_unavailable"
    http_status = 503


class UpstreamAuthError(UpstreamUnavailableError):
    """トークン取得（OAuth / playback token）の失敗"""

    kind = "upstream_auth_error"


class ManifestFetchError(UpstreamUnavailableError):
    """マニフェスト取得の失敗"""

    kind = "manifest_fetch_error"


class UpstreamTimeoutError(UpstreamUnavailableError):
    """上流呼び出しのタイムアウト"""

    kind = "upstream_timeout"


# --- 上流のフォーマット異常（構造的な破損として扱う） ---


class UpstreamFormatError(VodClipperError):
    """上流レスポンスの形式が想定外"""

    kind = "upstream_format_error"
    http_status = 502


class ParseError(UpstreamFormatError):
    """マニフェストの解析エラー"""

    kind = "parse_error"


class NoVariantFoundError(UpstreamFormatError):
    """マスタープレイリストに候補URIがない"""

    kind = "no_variant_found"


# --- 呼び出し側の入力エラー ---


class ClientInputError(VodClipperError):
    """入力値エラー（detail に問題の値を含める）"""

    kind = "invalid_input"
    http_status = 400


class TimeParseError(ClientInputError):
    """時刻表現を秒に変換できない"""

    kind = "time_parse_error"


class InvalidRangeError(ClientInputError):
    """終了時刻が開始時刻以下"""

    kind = "invalid_range"


class InvalidSourceLocatorError(ClientInputError):
    """http(s) の絶対URLではないロケータ"""

    kind = "invalid_source_locator"


class InvalidVodReferenceError(ClientInputError):
    """VOD ID / URL の形式が不正"""

    kind = "invalid_vod_reference"


class VodNotFoundError(VodClipperError):
    """VODが存在しない"""

    kind = "vod_not_found"
    http_status = 404


# --- クリップ抽出 ---


class ExtractionError(VodClipperError):
    """クリップ抽出エラー"""

    kind = "extraction_error"
    http_status = 500


class ExtractionFailedError(ExtractionError):
    """ffmpeg の異常終了、またはリモート抽出サービスの非2xx応答"""

    kind = "extraction_failed"


class ExtractionTimeoutError(ExtractionFailedError):
    """ローカル ffmpeg の実行タイムアウト"""

    kind = "extraction_timeout"


class ExtractionIntegrityError(ExtractionError):
    """出力が空、またはコンテナシグネチャが不正"""

    kind = "extraction_integrity_error"
