"""时间格式工具：统一使用带毫秒的 UTC ISO 字符串（2024-01-01T00:00:00.000Z）"""

from datetime import datetime, timezone


def format_iso(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    return format_iso(datetime.now(timezone.utc))


def parse_iso(value: str) -> datetime:
    """解析 ISO 字符串，兼容 Z 后缀；无法解析时抛出 ValueError"""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)
