"""时间戳工具 -- ISO-8601 UTC 规范化与解析

规范格式与存储层导出一致：YYYY-MM-DDTHH:MM:SS.mmmZ
缺失的时间一律为 None，不使用空字符串或其他哨兵值。
"""

from datetime import UTC, date, datetime, time, timedelta

_DATE_ONLY_LENGTH = 10


def to_iso(value: datetime | date | str | None) -> str | None:
    """将存储层时间值转换为规范字符串

    Args:
        value: datetime（naive 视为 UTC）、date（当天 00:00 UTC）、
               ISO-8601 字符串或 None

    Returns:
        规范 ISO-8601 UTC 字符串；输入缺失（None 或空白字符串）时返回 None

    Raises:
        ValueError: 字符串无法解析为时间
        TypeError: 不支持的输入类型
    """
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        value = parse_timestamp(value)
    elif isinstance(value, datetime):
        value = as_utc(value)
    elif isinstance(value, date):
        value = datetime.combine(value, time.min, tzinfo=UTC)
    else:
        raise TypeError(f"不支持的时间类型: {type(value).__name__}")

    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """解析 ISO-8601 字符串为带时区的 UTC datetime

    纯日期视为当天 00:00 UTC；无时区信息视为 UTC。
    """
    return as_utc(datetime.fromisoformat(value.strip()))


def is_date_only(value: str) -> bool:
    """是否为纯日期字符串（YYYY-MM-DD）"""
    value = value.strip()
    if len(value) != _DATE_ONLY_LENGTH:
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def range_end(value: str) -> datetime:
    """闭区间上界：纯日期覆盖当天最后一刻"""
    if is_date_only(value):
        return parse_timestamp(value) + timedelta(days=1) - timedelta(microseconds=1)
    return parse_timestamp(value)


def as_utc(value: datetime) -> datetime:
    """naive datetime 视为 UTC，其余转换到 UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
