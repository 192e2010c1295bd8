"""FastAPI アプリケーションエントリーポイント"""

from pathlib import Path
from typing import Iterator

# .envファイルを最初に読み込む（LangSmith等の環境変数を設定するため）
from dotenv import load_dotenv

project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, StrictFloat, StrictInt, StrictStr, model_validator

from config.settings import Settings, get_settings
from src.application.interfaces.clip_backend import ClipBackend
from src.application.usecases.clip_pipeline import ClipPipelineUseCase
from src.application.usecases.extract_clip import ClipExtractor, ExtractClipUseCase
from src.application.usecases.resolve_stream import (
    GetVodInfoUseCase,
    ResolveStreamUseCase,
    TwitchCredentials,
)
from src.application.usecases.rewrite_manifest import RewriteManifestUseCase
from src.domain.entities import ClipResult, VodReference
from src.domain.exceptions import VodClipperError
from src.domain.media import HLS_MIME_TYPE
from src.infrastructure.ffmpeg_clipper import FFmpegClipBackend
from src.infrastructure.logging_config import get_logger, setup_logging
from src.infrastructure.remote_clipper import RemoteClipBackend
from src.infrastructure.twitch_auth import AppTokenCache, TwitchAuthClient
from src.infrastructure.twitch_helix import HelixVideoClient
from src.infrastructure.twitch_usher import UsherManifestResolver

# ロギング初期化
_settings = get_settings()
setup_logging(level=_settings.LOG_LEVEL)

logger = get_logger(__name__)

TimeValue = StrictInt | StrictFloat | StrictStr

ENDPOINTS = ["/vod/info", "/vod/stream", "/rewrite-m3u8", "/clip", "/vod/clip"]

app = FastAPI(title="vod-clipper")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
# app token キャッシュ（ENABLE_TOKEN_CACHE=true のときのみ使用）
app.state.token_cache = AppTokenCache()


# =========================================================
# Request models
# =========================================================


class VodRefBody(BaseModel):
    """vodId か vodUrl のどちらか一方"""

    vodId: StrictStr | StrictInt | None = None
    vodUrl: StrictStr | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "VodRefBody":
        if (self.vodId is None) == (self.vodUrl is None):
            raise ValueError("Exactly one of vodId or vodUrl is required")
        return self

    def to_reference(self) -> VodReference:
        return VodReference.parse(str(self.vodId if self.vodId is not None else self.vodUrl))


class VodInfoBody(BaseModel):
    vodUrl: StrictStr


class ClipBody(BaseModel):
    sourceLocator: StrictStr
    startTime: TimeValue
    endTime: TimeValue


class VodClipBody(VodRefBody):
    startTime: TimeValue
    endTime: TimeValue


# =========================================================
# Dependencies（DIでユースケースを組み立て）
# =========================================================


def get_http_client(settings: Settings = Depends(get_settings)) -> Iterator[httpx.Client]:
    """リクエスト単位の HTTP クライアント"""
    with httpx.Client(timeout=settings.HTTP_TIMEOUT, follow_redirects=True) as client:
        yield client


def get_credentials(settings: Settings = Depends(get_settings)) -> TwitchCredentials:
    return TwitchCredentials(
        client_id=settings.TWITCH_CLIENT_ID,
        client_secret=settings.TWITCH_CLIENT_SECRET,
    )


def get_token_provider(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: httpx.Client = Depends(get_http_client),
) -> TwitchAuthClient:
    cache = request.app.state.token_cache if settings.ENABLE_TOKEN_CACHE else None
    return TwitchAuthClient(http_client=client, token_cache=cache)


def get_manifest_resolver(client: httpx.Client = Depends(get_http_client)) -> UsherManifestResolver:
    return UsherManifestResolver(http_client=client)


def get_resolve_stream_usecase(
    token_provider: TwitchAuthClient = Depends(get_token_provider),
    manifest_resolver: UsherManifestResolver = Depends(get_manifest_resolver),
    credentials: TwitchCredentials = Depends(get_credentials),
    client: httpx.Client = Depends(get_http_client),
) -> ResolveStreamUseCase:
    return ResolveStreamUseCase(
        token_provider=token_provider,
        manifest_resolver=manifest_resolver,
        credentials=credentials,
        metadata_provider=HelixVideoClient(http_client=client),
    )


def get_clip_backend(
    settings: Settings = Depends(get_settings),
    client: httpx.Client = Depends(get_http_client),
) -> ClipBackend:
    """設定に応じて抽出戦略を選択"""
    settings.validate_strategy()
    if settings.CLIP_STRATEGY == "remote":
        return RemoteClipBackend(
            http_client=client,
            service_url=settings.CLIP_SERVICE_URL,
            timeout_sec=settings.REMOTE_CLIP_TIMEOUT,
        )
    return FFmpegClipBackend(
        ffmpeg_path=settings.FFMPEG_PATH,
        timeout_sec=settings.CLIP_EXTRACT_TIMEOUT,
        temp_dir=settings.TEMP_DIR,
    )


def get_clip_extractor(backend: ClipBackend = Depends(get_clip_backend)) -> ClipExtractor:
    return ClipExtractor(backend=backend)


# =========================================================
# Error handling
# =========================================================


@app.exception_handler(VodClipperError)
async def handle_domain_error(request: Request, exc: VodClipperError) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log(f"[API] {request.url.path} 失敗: kind={exc.kind} message={exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"[API] {request.url.path} リクエスト不正")
    return JSONResponse(
        status_code=400,
        content={
            "error": "invalid_input",
            "message": "Invalid request body",
            "detail": {"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]},
        },
    )


def clip_response(result: ClipResult) -> Response:
    return Response(
        content=result.data,
        media_type=result.mime_type,
        headers={"Content-Disposition": 'attachment; filename="clip.mp4"'},
    )


# =========================================================
# Routes
# =========================================================


@app.get("/")
def health(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "status": "ok",
        "service": "vod-clipper",
        "strategy": settings.CLIP_STRATEGY,
        "endpoints": ENDPOINTS,
    }


@app.post("/vod/info")
def vod_info(
    body: VodInfoBody,
    token_provider: TwitchAuthClient = Depends(get_token_provider),
    credentials: TwitchCredentials = Depends(get_credentials),
    client: httpx.Client = Depends(get_http_client),
) -> dict:
    """VOD URL からメタデータを取得"""
    vod = VodReference.parse(body.vodUrl)
    usecase = GetVodInfoUseCase(
        token_provider=token_provider,
        metadata_provider=HelixVideoClient(http_client=client),
        credentials=credentials,
    )
    metadata = usecase.execute(vod)
    return {
        "vodId": metadata.vod_id,
        "title": metadata.title,
        "duration": metadata.duration_label,
        "durationInSeconds": metadata.duration_sec,
        "thumbnail": metadata.thumbnail_url,
        "url": metadata.url or vod.url,
        "createdAt": metadata.created_at,
        "viewCount": metadata.view_count,
        "userName": metadata.user_name,
    }


@app.post("/vod/stream")
def vod_stream(
    body: VodRefBody,
    usecase: ResolveStreamUseCase = Depends(get_resolve_stream_usecase),
) -> dict:
    """VOD の署名付きストリームURLを解決"""
    resolved = usecase.execute(body.to_reference())
    return {
        "vodId": resolved.vod_id,
        "streamUrl": resolved.stream_uri,
        "vodTitle": resolved.title,
        "vodDuration": resolved.duration_label,
    }


@app.get("/rewrite-m3u8")
def rewrite_m3u8(
    url: str = Query(..., description="書き換えるプレイリストの絶対URL"),
    manifest_resolver: UsherManifestResolver = Depends(get_manifest_resolver),
) -> Response:
    """プレイリストの相対参照を絶対URIに書き換えて返す"""
    text = RewriteManifestUseCase(manifest_resolver).execute(url)
    return Response(
        content=text,
        media_type=HLS_MIME_TYPE,
        headers={"Cache-Control": "no-cache"},
    )


@app.post("/clip")
def clip(
    body: ClipBody,
    clip_extractor: ClipExtractor = Depends(get_clip_extractor),
) -> Response:
    """ソースロケータと時間範囲からクリップを抽出"""
    result = ExtractClipUseCase(clip_extractor).execute(
        body.sourceLocator,
        body.startTime,
        body.endTime,
    )
    return clip_response(result)


@app.post("/vod/clip")
def vod_clip(
    body: VodClipBody,
    resolve_stream: ResolveStreamUseCase = Depends(get_resolve_stream_usecase),
    clip_extractor: ClipExtractor = Depends(get_clip_extractor),
) -> Response:
    """VOD ID からストリームを解決してクリップを抽出"""
    usecase = ClipPipelineUseCase(resolve_stream=resolve_stream, clip_extractor=clip_extractor)
    result = usecase.execute(body.to_reference(), body.startTime, body.endTime)
    return clip_response(result)


def run() -> None:
    """uvicorn でサーバーを起動"""
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
