# Application Interfaces (Protocols)
from src.application.interfaces.clip_backend import ClipBackend
from src.application.interfaces.manifest_resolver import ManifestResolver
from src.application.interfaces.metadata_provider import VodMetadataProvider
from src.application.interfaces.token_provider import TokenProvider

__all__ = [
    "TokenProvider",
    "ManifestResolver",
    "VodMetadataProvider",
    "ClipBackend",
]
