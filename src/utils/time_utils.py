"""
时间工具模块
统一使用UTC时间，序列化为毫秒精度、以 Z 结尾的ISO-8601字符串，保证字符串顺序与时间顺序一致
"""

from datetime import datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    """获取当前UTC时间"""
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """
    将时间转换为UTC ISO字符串

    Args:
        value: 时间，无时区信息时按UTC处理

    Returns:
        形如 2024-01-01T00:00:00.000Z 的字符串
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: Any) -> Optional[datetime]:
    """
    解析ISO格式的时间字符串

    Args:
        value: 时间字符串，支持 Z 后缀和纯日期

    Returns:
        带UTC时区的时间，无法解析时返回None
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def now_iso() -> str:
    """当前UTC时间的ISO字符串"""
    return to_iso(utc_now())
