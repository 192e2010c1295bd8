# Domain Layer
from src.domain.entities import (
    AppToken,
    ClipJobState,
    ClipRequest,
    ClipResult,
    ManifestVariant,
    MasterManifest,
    PlaybackToken,
    ResolvedStream,
    TimeRange,
    VodMetadata,
    VodReference,
)
from src.domain.exceptions import (
    AuthConfigError,
    ClientInputError,
    ConfigError,
    ExtractionError,
    ExtractionFailedError,
    ExtractionIntegrityError,
    ExtractionTimeoutError,
    InvalidRangeError,
    InvalidSourceLocatorError,
    InvalidVodReferenceError,
    ManifestFetchError,
    NoVariantFoundError,
    ParseError,
    TimeParseError,
    UpstreamAuthError,
    UpstreamFormatError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    VodClipperError,
    VodNotFoundError,
)

__all__ = [
    "VodReference",
    "AppToken",
    "PlaybackToken",
    "ManifestVariant",
    "MasterManifest",
    "TimeRange",
    "ClipRequest",
    "ClipResult",
    "VodMetadata",
    "ResolvedStream",
    "ClipJobState",
    "VodClipperError",
    "ConfigError",
    "AuthConfigError",
    "UpstreamUnavailableError",
    "UpstreamAuthError",
    "ManifestFetchError",
    "UpstreamTimeoutError",
    "UpstreamFormatError",
    "ParseError",
    "NoVariantFoundError",
    "ClientInputError",
    "TimeParseError",
    "InvalidRangeError",
    "InvalidSourceLocatorError",
    "InvalidVodReferenceError",
    "VodNotFoundError",
    "ExtractionError",
    "ExtractionFailedError",
    "ExtractionTimeoutError",
    "ExtractionIntegrityError",
]
