# Infrastructure Layer
from src.infrastructure.ffmpeg_clipper import FFmpegClipBackend
from src.infrastructure.remote_clipper import RemoteClipBackend
from src.infrastructure.twitch_auth import AppTokenCache, TwitchAuthClient
from src.infrastructure.twitch_helix import HelixVideoClient
from src.infrastructure.twitch_usher import UsherManifestResolver

__all__ = [
    "TwitchAuthClient",
    "AppTokenCache",
    "UsherManifestResolver",
    "HelixVideoClient",
    "FFmpegClipBackend",
    "RemoteClipBackend",
]
