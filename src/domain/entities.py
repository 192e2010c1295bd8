"""ドメインエンティティ定義"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from urllib.parse import urlsplit

from src.domain.exceptions import (
    InvalidRangeError,
    InvalidSourceLocatorError,
    InvalidVodReferenceError,
    ParseError,
)

UNKNOWN = "Unknown"

_VOD_ID_PATTERN = re.compile(r"[0-9]+")
_VOD_URL_PATTERN = re.compile(r"videos/([0-9]+)")


def is_absolute_http_url(value: str) -> bool:
    """http/https スキームとホストを持つ絶対URLかどうか"""
    if not isinstance(value, str):
        return False
    parts = urlsplit(value.strip())
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def require_http_url(value: str, field_name: str = "source_locator") -> str:
    """
    絶対URLであることを検証して返す

    ファイルパス（"/tmp/x.mp4" など）や file: スキームはローカルファイル
    漏洩につながるため、ネットワーク・サブプロセス呼び出しより前に拒否する。

    Raises:
        InvalidSourceLocatorError: http(s) の絶対URLではない
    """
    if not is_absolute_http_url(value):
        raise InvalidSourceLocatorError(
            f"{field_name} must be an absolute URL starting with http:// or https://",
            detail={field_name: value},
        )
    return value.strip()


@dataclass(frozen=True)
class VodReference:
    """VODの参照（数値ID）"""

    vod_id: str

    def __post_init__(self) -> None:
        if not _VOD_ID_PATTERN.fullmatch(self.vod_id or ""):
            raise InvalidVodReferenceError(
                "VOD ID must be numeric",
                detail={"vod_id": self.vod_id},
            )

    @classmethod
    def parse(cls, value: str) -> "VodReference":
        """
        VOD ID または VOD URL から VodReference を生成

        Example:
            "123456789" → VodReference("123456789")
            "https://www.twitch.tv/videos/123456789" → VodReference("123456789")
        """
        text = str(value or "").strip()
        if _VOD_ID_PATTERN.fullmatch(text):
            return cls(vod_id=text)

        match = _VOD_URL_PATTERN.search(text)
        if not match:
            raise InvalidVodReferenceError(
                "Invalid Twitch VOD URL format. Expected: https://www.twitch.tv/videos/123456789",
                detail={"value": value},
            )
        return cls(vod_id=match.group(1))

    @property
    def url(self) -> str:
        return f"https://www.twitch.tv/videos/{self.vod_id}"


@dataclass(frozen=True)
class AppToken:
    """アプリケーションアクセストークン（client credentials）"""

    value: str = field(repr=False)
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None, skew_sec: int = 60) -> bool:
        """有効期限切れ（skew_sec 秒前から期限切れ扱い）"""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at - timedelta(seconds=skew_sec)


@dataclass(frozen=True)
class PlaybackToken:
    """VOD再生用の署名付きトークン（ログ・保存禁止）"""

    value: str = field(repr=False)
    signature: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.value or not self.signature:
            raise ValueError("playback token requires both value and signature")


@dataclass(frozen=True)
class ManifestVariant:
    """マスタープレイリスト内の1バリアント（タグ行 + URI行）"""

    label: str
    uri: str
    is_preferred_quality: bool = False


@dataclass(frozen=True)
class MasterManifest:
    """マスタープレイリストの解決結果"""

    chosen_variant_uri: str
    raw_text: str
    variants: tuple[ManifestVariant, ...] = ()

    def __post_init__(self) -> None:
        if not is_absolute_http_url(self.chosen_variant_uri):
            raise ParseError(
                "Selected variant URI is not absolute",
                detail={"uri": self.chosen_variant_uri},
            )


@dataclass(frozen=True)
class TimeRange:
    """時間範囲を表す値オブジェクト（整数秒）"""

    start_sec: int
    end_sec: int

    def __post_init__(self) -> None:
        if self.start_sec < 0:
            raise InvalidRangeError(
                "start_sec must be non-negative",
                detail={"start_sec": self.start_sec},
            )
        if self.end_sec <= self.start_sec:
            raise InvalidRangeError(
                "end_sec must be greater than start_sec",
                detail={"start_sec": self.start_sec, "end_sec": self.end_sec},
            )

    @property
    def duration_sec(self) -> int:
        """区間の長さ（秒、最低1秒）"""
        return max(1, self.end_sec - self.start_sec)


@dataclass(frozen=True)
class ClipRequest:
    """クリップ抽出リクエスト"""

    source_locator: str
    time_range: TimeRange

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_locator", require_http_url(self.source_locator))


@dataclass(frozen=True)
class ClipResult:
    """抽出済みクリップ"""

    data: bytes = field(repr=False)
    mime_type: str = "video/mp4"

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass
class VodMetadata:
    """VODのメタデータ（Helix API）"""

    vod_id: str
    title: str = UNKNOWN
    duration_label: str = UNKNOWN
    duration_sec: int = 0
    user_name: str | None = None
    thumbnail_url: str | None = None
    url: str | None = None
    created_at: str | None = None
    view_count: int | None = None


@dataclass
class ResolvedStream:
    """再生可能なストリームの解決結果"""

    vod_id: str
    stream_uri: str
    title: str = UNKNOWN
    duration_label: str = UNKNOWN


class ClipJobState(str, Enum):
    """クリップリクエスト1件の状態遷移"""

    PENDING = "pending"
    RESOLVING_TOKEN = "resolving_token"
    RESOLVING_MANIFEST = "resolving_manifest"
    EXTRACTING = "extracting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ClipJobState.SUCCEEDED, ClipJobState.FAILED)
