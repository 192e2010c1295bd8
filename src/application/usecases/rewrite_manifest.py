"""マニフェスト書き換えユースケース"""

from src.application.interfaces.manifest_resolver import ManifestResolver
from src.domain.entities import require_http_url
from src.domain.playlist import count_relative_references, manifest_base_url, rewrite_manifest
from src.infrastructure.logging_config import get_logger, redact_url

logger = get_logger(__name__)


class RewriteManifestUseCase:
    """
    RewriteManifest: プレイリストを取得し、相対参照を絶対URIに書き換える

    別オリジンから配信しても有効なプレイリストにするため。
    """

    def __init__(self, manifest_resolver: ManifestResolver):
        self.manifest_resolver = manifest_resolver

    def execute(self, manifest_uri: str) -> str:
        """
        Args:
            manifest_uri: プレイリストの絶対URI

        Returns:
            書き換え後のプレイリスト

        Raises:
            InvalidSourceLocatorError: 絶対URLではない（取得前に拒否）
            ManifestFetchError / UpstreamTimeoutError: 取得失敗
        """
        manifest_uri = require_http_url(manifest_uri, "manifest_uri")
        text = self.manifest_resolver.fetch_playlist(manifest_uri)

        relative_count = count_relative_references(text)
        logger.info(
            f"[RewriteManifest] base={redact_url(manifest_base_url(manifest_uri))} "
            f"相対参照 {relative_count} 件を書き換え"
        )
        return rewrite_manifest(text, manifest_uri)
