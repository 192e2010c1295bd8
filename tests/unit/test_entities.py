"""ドメインエンティティのテスト"""

from datetime import datetime, timedelta, timezone

import pytest

from src.domain.entities import (
    AppToken,
    ClipJobState,
    ClipRequest,
    ClipResult,
    MasterManifest,
    PlaybackToken,
    TimeRange,
    VodReference,
)
from src.domain.exceptions import (
    InvalidRangeError,
    InvalidSourceLocatorError,
    InvalidVodReferenceError,
    ParseError,
)


class TestVodReference:
    """VodReference のテスト"""

    def test_parse_id(self) -> None:
        """数値IDをそのまま受け付ける"""
        assert VodReference.parse("123456789").vod_id == "123456789"

    def test_parse_url(self) -> None:
        """URLからIDを抽出"""
        vod = VodReference.parse("https://www.twitch.tv/videos/2001234567?t=1h2m")

        assert vod.vod_id == "2001234567"
        assert vod.url == "https://www.twitch.tv/videos/2001234567"

    @pytest.mark.parametrize(
        "value",
        ["", "abc", "https://www.twitch.tv/somechannel", None, "\u0661\u0662\u0663", "https://www.twitch.tv/videos/\uff11\uff12"],
    )
    def test_parse_invalid(self, value) -> None:
        """IDを抽出できない入力はエラー"""
        with pytest.raises(InvalidVodReferenceError):
            VodReference.parse(value)

    @pytest.mark.parametrize("vod_id", ["12a", "123\n", "\u0661\u0662\u0663", "\u00b2"])
    def test_non_numeric_id(self, vod_id) -> None:
        """ASCII数字以外（末尾改行を含む）は受け付けない"""
        with pytest.raises(InvalidVodReferenceError):
            VodReference(vod_id=vod_id)


class TestTimeRange:
    """TimeRange のテスト"""

    def test_duration(self) -> None:
        """長さの計算"""
        assert TimeRange(10, 50).duration_sec == 40

    def test_invalid_range(self) -> None:
        """end <= start はエラー"""
        with pytest.raises(InvalidRangeError):
            TimeRange(50, 10)

    def test_negative_start(self) -> None:
        with pytest.raises(InvalidRangeError):
            TimeRange(-1, 10)


class TestClipRequest:
    """ClipRequest のロケータ検証"""

    def test_absolute_url(self) -> None:
        request = ClipRequest(" https://cdn.example.com/v/index.m3u8 ", TimeRange(0, 5))
        assert request.source_locator == "https://cdn.example.com/v/index.m3u8"

    @pytest.mark.parametrize(
        "locator",
        ["/tmp/video.mp4", "file:///etc/passwd", "video.mp4", "ftp://example.com/a.mp4", "http://"],
    )
    def test_rejects_non_http(self, locator: str) -> None:
        """ファイルパスや http(s) 以外のスキームを拒否"""
        with pytest.raises(InvalidSourceLocatorError) as exc_info:
            ClipRequest(locator, TimeRange(0, 5))
        assert exc_info.value.detail == {"source_locator": locator}


class TestTokens:
    """トークンのテスト"""

    def test_app_token_expiry(self) -> None:
        """skew を考慮した期限判定"""
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        token = AppToken(value="t", expires_at=now + timedelta(seconds=120))

        assert not token.is_expired(now=now)
        assert token.is_expired(now=now + timedelta(seconds=61))

    def test_app_token_without_expiry(self) -> None:
        assert not AppToken(value="t").is_expired()

    def test_tokens_hidden_from_repr(self) -> None:
        """トークン値は repr に出さない"""
        playback = PlaybackToken(value="secret-value", signature="secret-sig")
        app_token = AppToken(value="secret-app")

        assert "secret" not in repr(playback)
        assert "secret" not in repr(app_token)

    @pytest.mark.parametrize("value,signature", [("", "sig"), ("val", ""), ("", "")])
    def test_playback_token_requires_both(self, value: str, signature: str) -> None:
        """value と signature の両方が必要"""
        with pytest.raises(ValueError):
            PlaybackToken(value=value, signature=signature)


class TestMasterManifest:

    def test_relative_uri_rejected(self) -> None:
        with pytest.raises(ParseError):
            MasterManifest(chosen_variant_uri="720p60/index.m3u8", raw_text="")


class TestClipResult:

    def test_size_and_repr(self) -> None:
        result = ClipResult(data=b"\x00" * 10)

        assert result.size_bytes == 10
        assert result.mime_type == "video/mp4"
        assert "\\x00" not in repr(result)


class TestClipJobState:

    def test_terminal_states(self) -> None:
        assert ClipJobState.SUCCEEDED.is_terminal
        assert ClipJobState.FAILED.is_terminal
        assert not ClipJobState.EXTRACTING.is_terminal
