"""时间工具 -- UTC 存储格式与 scheduled_time 推导

库内所有时间戳统一以 UTC、微秒精度的 ISO-8601 文本存储，
保证按字符串排序即按时间排序。
"""

from datetime import UTC, datetime, tzinfo


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: datetime, tz: tzinfo | None = None) -> datetime:
    """转换为 UTC；naive 时间按 tz（None 为系统本地时区）解释"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz) if tz is not None else dt.astimezone()
    return dt.astimezone(UTC)


def to_storage(dt: datetime | None) -> str | None:
    """datetime -> 落库文本"""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat(timespec="microseconds")


def from_storage(value: str | None) -> datetime | None:
    """落库文本 -> datetime"""
    if value is None:
        return None
    return datetime.fromisoformat(value)


def parse_instant(raw: str | None, tz: tzinfo | None = None) -> datetime | None:
    """解析外部时间字符串为 UTC 时间；空值或非法值返回 None

    接受 ISO-8601（含 "Z" 后缀）；不带时区的值按本地时区 tz 解释。
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return ensure_utc(parsed, tz)


def local_hhmm(instant: datetime, tz: tzinfo | None = None) -> str:
    """取时间在本地时区的 HH:MM（tz 为 None 时使用系统本地时区）"""
    local = instant.astimezone(tz)
    return f"{local.hour:02d}:{local.minute:02d}"
