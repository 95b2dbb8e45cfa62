"""
Date and time utilities for the quotes API.
All timestamps are stored and returned in UTC.
"""

from datetime import datetime, timezone
from typing import Optional


def get_utc_time() -> datetime:
    """获取当前UTC时间（带时区）"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间带UTC时区

    SQLite 不保存时区信息，读取出来的是 naive datetime，按UTC处理。
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
