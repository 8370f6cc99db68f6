"""
業務日付ユーティリティ

バッチはUTCで動くが、「今日」は事業所の現地時間（JST）で判定する。
"""
import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from carealert.core.config import settings


def local_today(now: Optional[datetime] = None) -> date:
    """
    設定されたオフセット（既定 +9時間）での今日の日付を返す

    Examples:
        >>> local_today(datetime(2025, 10, 1, 15, 0, tzinfo=timezone.utc))
        datetime.date(2025, 10, 2)
    """
    tz = timezone(timedelta(hours=settings.TIMEZONE_OFFSET_HOURS))
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(tz).date()


def first_of_month(target: date) -> date:
    return target.replace(day=1)


def add_months(target: date, months: int) -> date:
    """
    月をずらした同日を返す（存在しない日は月末に丸める）

    Examples:
        >>> add_months(date(2025, 3, 31), -1)
        datetime.date(2025, 2, 28)
    """
    month_index = target.year * 12 + target.month - 1 + months
    year, month = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(target.day, last_day))
