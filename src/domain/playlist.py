"""HLS（拡張M3U）プレイリストの解析と書き換え"""

import re
from urllib.parse import urlsplit, urlunsplit

from src.domain.entities import ManifestVariant, is_absolute_http_url, require_http_url
from src.domain.exceptions import NoVariantFoundError, ParseError

# 元画質（source）トラックを示すマーカー
SOURCE_QUALITY_MARKER = "chunked"

_ATTRIBUTE_PATTERN = re.compile(r'([A-Z0-9-]+)=("[^"]*"|[^,]*)')


def _is_absolute(line: str) -> bool:
    return line.startswith("http://") or line.startswith("https://")


def parse_attributes(tag_line: str) -> dict[str, str]:
    """
    タグ行の属性リストを辞書に変換

    Example:
        '#EXT-X-STREAM-INF:BANDWIDTH=1,VIDEO="chunked"'
        → {"BANDWIDTH": "1", "VIDEO": "chunked"}
    """
    _, _, attributes = tag_line.partition(":")
    return {key: value.strip('"') for key, value in _ATTRIBUTE_PATTERN.findall(attributes)}


def parse_master_playlist(text: str) -> list[ManifestVariant]:
    """
    マスタープレイリストからバリアント一覧を抽出

    連続するタグ行（#で始まる行）のグループに #EXT-X-STREAM-INF が含まれる場合、
    その後の最初の非コメント・非空行をバリアントのURIとみなす。
    グループ内のいずれかのタグ行に "chunked" を含めば元画質として扱う。

    Args:
        text: プレイリスト本文

    Returns:
        出現順のバリアントリスト
    """
    variants: list[ManifestVariant] = []
    pending_tags: list[str] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("#"):
            pending_tags.append(line)
            continue

        stream_inf = next((t for t in pending_tags if t.startswith("#EXT-X-STREAM-INF")), None)
        if stream_inf is not None:
            variants.append(
                ManifestVariant(
                    label=_variant_label(stream_inf, pending_tags, line),
                    uri=line,
                    is_preferred_quality=any(SOURCE_QUALITY_MARKER in t for t in pending_tags),
                )
            )
        pending_tags = []

    return variants


def _variant_label(stream_inf: str, tags: list[str], uri: str) -> str:
    attrs = parse_attributes(stream_inf)
    if attrs.get("VIDEO"):
        return attrs["VIDEO"]
    for tag in tags:
        if tag.startswith("#EXT-X-MEDIA"):
            name = parse_attributes(tag).get("NAME")
            if name:
                return name
    return attrs.get("RESOLUTION") or uri


def select_variant_uri(text: str, variants: list[ManifestVariant] | None = None) -> str:
    """
    最適なバリアントURIを選択

    選択ルール（2段階のみ、スコアリングなし）:
    1. 元画質（chunked）バリアントの最初のもの
    2. なければ文書中の最初の絶対 http(s) URI 行

    Raises:
        NoVariantFoundError: 候補URIが1つもない
        ParseError: 選択されたURIが相対パス
    """
    if variants is None:
        variants = parse_master_playlist(text)

    preferred = next((v for v in variants if v.is_preferred_quality), None)
    if preferred is not None:
        if not is_absolute_http_url(preferred.uri):
            raise ParseError(
                "Source-quality variant URI is not absolute",
                detail={"uri": preferred.uri, "label": preferred.label},
            )
        return preferred.uri

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line and not line.startswith("#") and _is_absolute(line):
            return line

    raise NoVariantFoundError(
        "No stream URL found in VOD playlist",
        detail={"variant_count": len(variants)},
    )


def manifest_base_url(manifest_uri: str) -> str:
    """
    マニフェストURIから相対参照の基準URLを算出

    クエリ・フラグメントを除いたパスの最後の "/" までを返す。
    """
    parts = urlsplit(require_http_url(manifest_uri, "manifest_uri"))
    path = parts.path[: parts.path.rfind("/") + 1] or "/"
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def rewrite_manifest(text: str, manifest_uri: str) -> str:
    """
    プレイリスト内の相対参照を絶対URIに書き換え

    - 空行と "#" 行はそのまま（ディレクティブを保持）
    - http:// / https:// で始まる行はそのまま
    - それ以外は base + 行 に書き換え

    絶対URIは変更しないので、書き換え済みの入力に対しては何もしない（冪等）。

    Args:
        text: プレイリスト本文
        manifest_uri: このプレイリスト自身のURI

    Returns:
        書き換え後のプレイリスト

    Raises:
        InvalidSourceLocatorError: manifest_uri が絶対URLではない
    """
    base = manifest_base_url(manifest_uri)

    out = []
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or _is_absolute(stripped):
            out.append(line)
        else:
            out.append(base + stripped)
    return "\n".join(out)


def count_relative_references(text: str) -> int:
    """書き換え対象（相対参照）の行数"""
    return sum(
        1
        for line in text.split("\n")
        if line.strip() and not line.strip().startswith("#") and not _is_absolute(line.strip())
    )
