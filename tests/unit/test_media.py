"""コンテナシグネチャ判定のテスト"""

from src.domain.media import has_mp4_signature, header_hex


class TestHasMp4Signature:

    def test_ftyp_at_offset_4(self) -> None:
        assert has_mp4_signature(b"\x00\x00\x00\x20ftypisom\x00\x00")

    def test_ftyp_at_offset_8(self) -> None:
        assert has_mp4_signature(b"\x00\x00\x00\x00\x00\x00\x00\x00ftyp")

    def test_other_container(self) -> None:
        """MPEG-TS などは不正扱い"""
        assert not has_mp4_signature(b"\x47\x40\x11\x10" * 4)

    def test_too_short(self) -> None:
        assert not has_mp4_signature(b"ftyp")
        assert not has_mp4_signature(b"")


def test_header_hex() -> None:
    assert header_hex(b"\x00\x01\xff") == "00 01 ff"
