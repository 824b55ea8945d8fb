"""
主页数据服务

整个站点只有一份主页数据文档（portfolio_data），结构：
    {"data": {...各栏目...}, "last_time": "2024-01-01T00:00:00.000Z"}

写入采用后写覆盖（不做乐观并发控制），last_time 始终由服务端生成。
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from homesite.exceptions import ValidationError
from homesite.infra.kv_store import PORTFOLIO_KEY, BaseKVStore
from homesite.infra.time_utils import format_iso, parse_iso

logger = logging.getLogger(__name__)

# 主页必须包含的栏目，缺失时按类型补默认值
REQUIRED_FIELDS = [
    "github",
    "web_info",
    "quoteData",
    "timelineData",
    "projectsData",
    "sitesData",
    "skillsData",
    "socialData",
    "tagsData",
    "imagesData",
    "profileData",
    "locationData",
    "portalData",
    "noticeData",
    "adData",
    "ice",
    "thema",
]

OBJECT_FIELDS = {"web_info", "profileData", "locationData"}
BOOLEAN_FIELDS = {"ice", "thema"}
TEXT_FIELDS = {"github", "quoteData"}


def default_value(field: str) -> Any:
    """对象栏目 → {}，开关 → False，文本栏目 → 空字符串，其余 *Data 列表栏目 → []"""
    if field in OBJECT_FIELDS:
        return {}
    if field in BOOLEAN_FIELDS:
        return False
    if field in TEXT_FIELDS:
        return ""
    if field.endswith("Data"):
        return []
    return ""


def default_portfolio() -> dict:
    return {
        "data": {field: default_value(field) for field in REQUIRED_FIELDS},
        "last_time": None,
    }


def _next_last_time(previous: Any, now: datetime | None = None) -> str:
    """生成新的 last_time（毫秒精度），保证严格大于上一次写入的值"""
    now = now or datetime.now(timezone.utc)
    now = now.replace(microsecond=now.microsecond // 1000 * 1000)
    if isinstance(previous, str):
        try:
            prev = parse_iso(previous)
        except ValueError:
            prev = None
        if prev is not None and prev.tzinfo is not None and now <= prev:
            now = prev + timedelta(milliseconds=1)
    return format_iso(now)


async def get_portfolio(kv: BaseKVStore) -> dict:
    """读取主页数据，未初始化时返回各栏目为空的默认结构"""
    doc = await kv.get_json(PORTFOLIO_KEY)
    if not doc:
        return default_portfolio()
    return doc


async def save_portfolio(kv: BaseKVStore, data: Any) -> dict:
    """
    保存主页数据

    Raises:
        ValidationError: data 不是对象
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid data format: data must be an object")

    merged = dict(data)
    for field in REQUIRED_FIELDS:
        if field not in merged:
            merged[field] = default_value(field)

    previous = await kv.get_json(PORTFOLIO_KEY)
    previous_time = previous.get("last_time") if isinstance(previous, dict) else None
    last_time = _next_last_time(previous_time)

    await kv.put_json(PORTFOLIO_KEY, {"data": merged, "last_time": last_time})
    logger.info(f"主页数据已更新: last_time={last_time}")

    return {
        "message": "Data updated successfully",
        "last_time": last_time,
    }
