# Use Cases
from src.application.usecases.clip_pipeline import ClipJob, ClipPipelineUseCase
from src.application.usecases.extract_clip import (
    ClipExtractor,
    ExtractClipUseCase,
    build_clip_request,
)
from src.application.usecases.resolve_stream import (
    GetVodInfoUseCase,
    ResolveStreamUseCase,
    TwitchCredentials,
)
from src.application.usecases.rewrite_manifest import RewriteManifestUseCase

__all__ = [
    "ClipExtractor",
    "ExtractClipUseCase",
    "build_clip_request",
    "ResolveStreamUseCase",
    "GetVodInfoUseCase",
    "TwitchCredentials",
    "RewriteManifestUseCase",
    "ClipPipelineUseCase",
    "ClipJob",
]
