"""メディアコンテナのシグネチャ判定"""

MP4_MIME_TYPE = "video/mp4"
HLS_MIME_TYPE = "application/vnd.apple.mpegurl"

# ISO BMFF（MP4系）の ftyp ボックス。先頭4バイトはボックスサイズ
_FTYP = b"ftyp"


def has_mp4_signature(data: bytes) -> bool:
    """
    先頭バイトに MP4 系コンテナのシグネチャがあるか

    オフセット4またはオフセット8の4バイトが "ftyp" であれば有効とみなす。
    """
    if len(data) < 8:
        return False
    return data[4:8] == _FTYP or data[8:12] == _FTYP


def header_hex(data: bytes, length: int = 12) -> str:
    """診断用に先頭バイトを16進表記で返す"""
    return " ".join(f"{b:02x}" for b in data[:length])
