"""時間変換ユーティリティ"""

import math
import re

from src.domain.entities import TimeRange
from src.domain.exceptions import InvalidRangeError, TimeParseError

_TWITCH_DURATION_PART = re.compile(r"([0-9]+)([hms])")
_CLOCK_FIELD = re.compile(r"[0-9]+")


def normalize_time(value: int | float | str) -> int:
    """
    さまざまな時刻表現を0以上の整数秒に正規化

    - 数値: 0方向へ切り捨て、負数は0にクランプ
    - "H:MM:SS" / "M:SS": 各要素は符号なし整数
    - コロンなしの数値文字列: 数値として扱う

    不正な値は0に丸めず、必ず TimeParseError を送出する
    （0に丸めると長さ0や不正なクリップを黙って作ってしまうため）。

    Args:
        value: 秒数、または時刻文字列

    Returns:
        整数秒

    Raises:
        TimeParseError: 解釈できない値

    Example:
        normalize_time("01:02:03") → 3723
        normalize_time("2:05") → 125
        normalize_time(-7) → 0
    """
    if isinstance(value, bool):
        raise TimeParseError("Time value must be a number or string", detail={"value": value})

    if isinstance(value, (int, float)):
        return _normalize_number(value)

    if not isinstance(value, str):
        raise TimeParseError("Time value must be a number or string", detail={"value": repr(value)})

    text = value.strip()
    if not text:
        raise TimeParseError("Time value is empty", detail={"value": value})

    if ":" in text:
        return _parse_clock(text, original=value)

    # float() は全角・アラビア数字も受け付けるため ASCII に限定
    if not text.isascii():
        raise TimeParseError(f"Could not parse time value: {value!r}", detail={"value": value})
    try:
        number = float(text)
    except ValueError as e:
        raise TimeParseError(f"Could not parse time value: {value!r}", detail={"value": value}) from e
    return _normalize_number(number, original=value)


def _normalize_number(number: int | float, original: object = None) -> int:
    if isinstance(number, float) and not math.isfinite(number):
        raise TimeParseError(
            "Time value must be finite",
            detail={"value": original if original is not None else str(number)},
        )
    return max(0, int(number))


def _parse_clock(text: str, original: str) -> int:
    """H:MM:SS / M:SS を秒に変換"""
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(_CLOCK_FIELD.fullmatch(p) for p in parts):
        raise TimeParseError(
            f"Invalid time format: {original!r} (expected H:MM:SS or M:SS)",
            detail={"value": original},
        )

    numbers = [int(p) for p in parts]
    if len(numbers) == 3:
        hours, minutes, seconds = numbers
        return hours * 3600 + minutes * 60 + seconds
    minutes, seconds = numbers
    return minutes * 60 + seconds


def normalize_range(start: int | float | str, end: int | float | str) -> TimeRange:
    """
    開始・終了を正規化して TimeRange を生成

    Raises:
        TimeParseError: どちらかが解釈できない
        InvalidRangeError: end <= start
    """
    start_sec = normalize_time(start)
    end_sec = normalize_time(end)
    if end_sec <= start_sec:
        raise InvalidRangeError(
            "Invalid time range: endTime must be greater than startTime",
            detail={
                "startTime": start,
                "endTime": end,
                "startSeconds": start_sec,
                "endSeconds": end_sec,
            },
        )
    return TimeRange(start_sec=start_sec, end_sec=end_sec)


def format_timestamp(seconds: int) -> str:
    """秒を H:MM:SS 形式に変換（3723 → "1:02:03"）"""
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def parse_twitch_duration(duration: str) -> int:
    """Helix API の duration（"1h23m45s" 形式）を秒に変換"""
    total = 0
    for amount, unit in _TWITCH_DURATION_PART.findall(duration or ""):
        if unit == "h":
            total += int(amount) * 3600
        elif unit == "m":
            total += int(amount) * 60
        else:
            total += int(amount)
    return total
