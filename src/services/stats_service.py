"""
日记统计服务
根据日记日期计算总篇数和连续写作天数
"""

from datetime import date, timedelta
from typing import Any, Dict, Iterable, Optional

from src.utils.time_utils import parse_iso, utc_now


def day_key(value: Any) -> Optional[str]:
    """
    获取日记日期对应的UTC日期键

    Args:
        value: 日记的 date 字段

    Returns:
        YYYY-MM-DD 字符串，无法解析时返回None
    """
    parsed = parse_iso(value)
    if parsed is None:
        return None
    return parsed.date().isoformat()


def compute_stats(dates: Iterable[Any], today: Optional[date] = None) -> Dict[str, int]:
    """
    计算日记统计

    连续天数从今天（UTC）开始向前逐日检查，遇到第一个没有日记的日期即停止；
    今天没有日记时连续天数为0

    Args:
        dates: 用户所有日记的 date 字段
        today: 计算基准日期，默认为当前UTC日期

    Returns:
        {"total_entries": 总篇数, "writing_streak": 连续写作天数}
    """
    dates = list(dates)
    days = {key for key in (day_key(value) for value in dates) if key}
    current = today or utc_now().date()

    streak = 0
    while (current - timedelta(days=streak)).isoformat() in days:
        streak += 1

    return {"total_entries": len(dates), "writing_streak": streak}
