"""ロギング設定とLangSmithトレーシング統合"""

import logging
import os
import re
import sys
import uuid
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, TypeVar
from urllib.parse import urlsplit, urlunsplit

# LangSmithのインポート
try:
    from langsmith import traceable

    LANGSMITH_AVAILABLE = True
except ImportError:
    LANGSMITH_AVAILABLE = False
    traceable = None  # type: ignore

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# 署名付きURLのクエリ（nauth / nauthsig / sig / token）
_SIGNED_QUERY = re.compile(r"(https?://[^\s?\"']+)\?[^\s\"']*")

# httpx は INFO でリクエストURL（トークン入りクエリ）を出力するため抑制
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def get_logger(name: str) -> logging.Logger:
    """名前付きロガーを取得（通常は __name__ を渡す）"""
    return logging.getLogger(name)


class SignedUrlFilter(logging.Filter):
    """ログメッセージ中のURLクエリを伏せるフィルタ"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _SIGNED_QUERY.sub(r"\1?<redacted>", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> None:
    """
    アプリケーション全体のロギングを設定

    Args:
        level: ログレベル（"DEBUG" などの名前も可）
        format_string: ログフォーマット文字列
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SignedUrlFilter())

    logging.basicConfig(
        level=level,
        format=format_string or DEFAULT_FORMAT,
        handlers=[handler],
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def redact_url(url: str) -> str:
    """
    ログ出力用にクエリ文字列を伏せたURLを返す

    Twitch の署名付きURLはクエリに token / sig を含むため。
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<invalid url>"
    if not parts.query:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "<redacted>", ""))


def is_langsmith_enabled() -> bool:
    """LangSmithが有効かどうかを確認"""
    if not LANGSMITH_AVAILABLE:
        return False

    from config.settings import get_settings

    settings = get_settings()
    if settings.LANGSMITH_TRACING and settings.LANGSMITH_API_KEY:
        return True
    # Settings を経由しない環境変数指定も許可
    tracing_enabled = os.getenv("LANGSMITH_TRACING", "").lower() in ("true", "1", "yes")
    return tracing_enabled and bool(os.getenv("LANGSMITH_API_KEY"))


def generate_trace_metadata() -> dict[str, Any]:
    """トレース1件ごとのリクエストIDとタイムスタンプ"""
    return {
        "request_id": uuid.uuid4().hex[:12],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "vod-clipper",
    }


def _drop_payload(_: Any) -> dict[str, Any]:
    # 入出力にはトークン・署名付きURL・動画バイナリが含まれるため記録しない
    return {}


def trace_run(
    name: str | None = None,
    run_type: str = "tool",
    metadata: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """
    処理をトレースするデコレータ

    LangSmithが無効の場合はパススルー。
    入出力は記録せず、名前・所要時間・例外のみをトレースに残す。

    Args:
        name: トレース名（デフォルトは関数名）
        run_type: 実行タイプ ("chain", "tool")
        metadata: 追加メタデータ

    Example:
        @trace_tool(name="usher_master_manifest")
        def resolve_master_manifest(self, vod_id: str, ...) -> MasterManifest:
            ...
    """
    def decorator(func: F) -> F:
        if not is_langsmith_enabled() or traceable is None:
            return func

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            traced_func = traceable(
                name=name or func.__name__,
                run_type=run_type,
                metadata={**(metadata or {}), **generate_trace_metadata()},
                process_inputs=_drop_payload,
                process_outputs=_drop_payload,
            )(func)
            return traced_func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def trace_chain(
    name: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """ユースケース全体をトレース"""
    return trace_run(name=name, run_type="chain", metadata=metadata)


def trace_tool(
    name: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """外部呼び出し（Twitch API / ffmpeg / 抽出サービス）をトレース"""
    return trace_run(name=name, run_type="tool", metadata=metadata)


class LogContext:
    """
    クリップ処理のログ用コンテキスト

    Example:
        ctx = LogContext(backend="local", start=10, duration=5)
        logger.info(f"[ClipExtractor] 抽出開始: {ctx}")
    """

    def __init__(self, **fields: Any):
        self._fields = fields

    def __str__(self) -> str:
        return " | ".join(f"{key}={value!r}" for key, value in self._fields.items())

    def update(self, **fields: Any) -> "LogContext":
        """項目を追加したコピーを返す"""
        return LogContext(**{**self._fields, **fields})
