"""
KV 存储模块

整个站点的唯一持久化层：扁平的 key → value 存储，支持写入时设置 TTL。
不提供事务和二级索引，多键更新（如"创建账号 + 追加用户索引"）不是原子的。

后端：
- RedisKVStore:  生产环境，基于 redis.asyncio
- MemoryKVStore: 开发/测试环境，进程内字典（单实例）

固定使用的键：
- portfolio_data           主页数据文档
- admin_credentials        管理员凭证
- secret_key               管理员会话签名密钥
- jwt_secret_key           用户 Token 签名密钥
- user:<username>          用户账号
- user_list                用户名索引
- token_blacklist:<jti>    已撤销的用户 Token
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from homesite.config import get_settings
from homesite.exceptions import StoreError, StoreNotConfiguredError

logger = logging.getLogger(__name__)

PORTFOLIO_KEY = "portfolio_data"
ADMIN_CREDENTIALS_KEY = "admin_credentials"
USER_INDEX_KEY = "user_list"


def user_key(username: str) -> str:
    return f"user:{username}"


def blacklist_key(jti: str) -> str:
    return f"token_blacklist:{jti}"


class BaseKVStore(ABC):
    """KV 存储基类"""

    def __init__(self, key_prefix: str = "") -> None:
        self.key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """读取字符串值，不存在返回 None"""

    @abstractmethod
    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        """写入字符串值，ttl 为过期秒数"""

    @abstractmethod
    async def put_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        """仅在键不存在时写入，返回是否写入成功"""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """删除键，键不存在时静默成功"""

    async def get_json(self, key: str) -> Any:
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"KV 数据不是合法 JSON: key={key}")
            raise StoreError() from e

    async def put_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self.put(key, json.dumps(value, ensure_ascii=False), ttl=ttl)

    async def close(self) -> None:
        """释放连接"""


class MemoryKVStore(BaseKVStore):
    """
    内存 KV 存储

    适用于开发环境和测试，多实例部署请使用 Redis。
    过期键在读取时清除。
    """

    def __init__(self, key_prefix: str = "") -> None:
        super().__init__(key_prefix)
        self._data: dict[str, tuple[str, float | None]] = {}

    def _alive(self, key: str) -> bool:
        item = self._data.get(key)
        if item is None:
            return False
        _, expires_at = item
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return False
        return True

    async def get(self, key: str) -> str | None:
        key = self._key(key)
        if not self._alive(key):
            return None
        return self._data[key][0]

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        expires_at = time.monotonic() + ttl if ttl else None
        self._data[self._key(key)] = (value, expires_at)

    async def put_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        if self._alive(self._key(key)):
            return False
        await self.put(key, value, ttl=ttl)
        return True

    async def delete(self, key: str) -> None:
        self._data.pop(self._key(key), None)


class RedisKVStore(BaseKVStore):
    """
    Redis KV 存储

    所有 Redis 异常统一包装为 StoreError，不向调用方暴露驱动细节。
    """

    def __init__(self, redis_url: str, key_prefix: str = "") -> None:
        super().__init__(key_prefix)
        self._redis_url = redis_url
        self._client = aioredis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(self._key(key))
        except RedisError as e:
            logger.error(f"Redis 读取失败: key={key}, error={e}")
            raise StoreError() from e

    async def put(self, key: str, value: str, ttl: int | None = None) -> None:
        try:
            await self._client.set(self._key(key), value, ex=ttl or None)
        except RedisError as e:
            logger.error(f"Redis 写入失败: key={key}, error={e}")
            raise StoreError() from e

    async def put_if_absent(self, key: str, value: str, ttl: int | None = None) -> bool:
        try:
            created = await self._client.set(self._key(key), value, ex=ttl or None, nx=True)
        except RedisError as e:
            logger.error(f"Redis 条件写入失败: key={key}, error={e}")
            raise StoreError() from e
        return bool(created)

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisError as e:
            logger.error(f"Redis 删除失败: key={key}, error={e}")
            raise StoreError() from e

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis 连接已关闭")


@lru_cache(maxsize=1)
def get_kv_store() -> BaseKVStore:
    """
    获取 KV 存储单例

    Raises:
        StoreNotConfiguredError: 配置了 redis 后端却没有 redis_url，或后端名称未知
    """
    settings = get_settings()
    backend = settings.kv_backend.lower()

    if backend == "redis":
        if not settings.redis_url:
            raise StoreNotConfiguredError()
        logger.info("使用 Redis KV 存储")
        return RedisKVStore(settings.redis_url, key_prefix=settings.kv_key_prefix)

    if backend == "memory":
        logger.info("使用内存 KV 存储（单实例模式）")
        return MemoryKVStore(key_prefix=settings.kv_key_prefix)

    raise StoreNotConfiguredError(f"未知的 KV 后端: {settings.kv_backend}")


async def get_kv() -> BaseKVStore:
    """FastAPI 依赖：当前请求使用的 KV 存储"""
    return get_kv_store()
