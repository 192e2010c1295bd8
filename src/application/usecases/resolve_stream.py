"""ストリーム解決ユースケース: VOD ID → 署名付きストリームURL"""

from dataclasses import dataclass

from src.application.interfaces.manifest_resolver import ManifestResolver
from src.application.interfaces.metadata_provider import VodMetadataProvider
from src.application.interfaces.token_provider import TokenProvider
from src.domain.entities import AppToken, ResolvedStream, VodMetadata, VodReference
from src.domain.exceptions import VodClipperError, VodNotFoundError
from src.infrastructure.logging_config import get_logger, redact_url, trace_chain

logger = get_logger(__name__)


@dataclass(frozen=True)
class TwitchCredentials:
    """Twitch API の認証情報（呼び出しごとに明示的に渡す）"""

    client_id: str | None
    client_secret: str | None


class ResolveStreamUseCase:
    """
    ResolveStream: app token → playback token → マスタープレイリスト → ストリームURL

    メタデータ（タイトル・長さ）はベストエフォートで、失敗しても "Unknown" を返す。
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        manifest_resolver: ManifestResolver,
        credentials: TwitchCredentials,
        metadata_provider: VodMetadataProvider | None = None,
    ):
        self.token_provider = token_provider
        self.manifest_resolver = manifest_resolver
        self.credentials = credentials
        self.metadata_provider = metadata_provider

    def acquire_app_token(self) -> AppToken:
        return self.token_provider.get_app_token(
            self.credentials.client_id,
            self.credentials.client_secret,
        )

    def resolve_with_token(
        self,
        vod: VodReference,
        app_token: AppToken,
        with_metadata: bool = True,
    ) -> ResolvedStream:
        """
        app token 取得済みの状態からストリームURLを解決

        with_metadata=False ならタイトル等の取得を省略（"Unknown" のまま）
        """
        client_id = self.credentials.client_id or ""

        playback_token = self.token_provider.get_playback_token(vod.vod_id, app_token, client_id)
        manifest = self.manifest_resolver.resolve_master_manifest(vod.vod_id, client_id, playback_token)

        resolved = ResolvedStream(vod_id=vod.vod_id, stream_uri=manifest.chosen_variant_uri)

        metadata = self._lookup_metadata(vod, app_token) if with_metadata else None
        if metadata is not None:
            resolved.title = metadata.title
            resolved.duration_label = metadata.duration_label

        logger.info(
            f"[ResolveStream] 解決完了: vod_id={vod.vod_id} "
            f"stream={redact_url(resolved.stream_uri)} title={resolved.title[:40]!r}"
        )
        return resolved

    @trace_chain(name="resolve_stream")
    def execute(self, vod: VodReference) -> ResolvedStream:
        """
        Args:
            vod: VOD参照

        Returns:
            ResolvedStream

        Raises:
            AuthConfigError: 認証情報が未設定
            UpstreamAuthError / ManifestFetchError / UpstreamTimeoutError: 上流障害
            ParseError / NoVariantFoundError: マニフェスト形式異常
        """
        logger.info(f"[ResolveStream] 開始: vod_id={vod.vod_id}")
        app_token = self.acquire_app_token()
        return self.resolve_with_token(vod, app_token)

    def _lookup_metadata(self, vod: VodReference, app_token: AppToken) -> VodMetadata | None:
        """メタデータ取得（失敗は警告ログのみで None）"""
        if self.metadata_provider is None:
            return None
        try:
            return self.metadata_provider.get_metadata(
                vod.vod_id,
                self.credentials.client_id or "",
                app_token,
            )
        except VodClipperError as e:
            logger.warning(f"[ResolveStream] メタデータ取得失敗（続行）: {e}")
            return None


class GetVodInfoUseCase:
    """VOD URL からメタデータを取得"""

    def __init__(
        self,
        token_provider: TokenProvider,
        metadata_provider: VodMetadataProvider,
        credentials: TwitchCredentials,
    ):
        self.token_provider = token_provider
        self.metadata_provider = metadata_provider
        self.credentials = credentials

    @trace_chain(name="vod_info")
    def execute(self, vod: VodReference) -> VodMetadata:
        """
        Raises:
            VodNotFoundError: VODが存在しない
        """
        app_token = self.token_provider.get_app_token(
            self.credentials.client_id,
            self.credentials.client_secret,
        )
        metadata = self.metadata_provider.get_metadata(
            vod.vod_id,
            self.credentials.client_id or "",
            app_token,
        )
        if metadata is None:
            raise VodNotFoundError("VOD not found", detail={"vod_id": vod.vod_id})
        return metadata
