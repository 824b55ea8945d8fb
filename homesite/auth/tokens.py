"""
签名 Token 模块

两套相互独立的 Token 方案，共用同一种签名格式：

    base64(payload_json) + "." + base64(HMAC-SHA256(secret, base64(payload_json)))

- 管理员会话（AdminSessionScheme）：写入 auth_token Cookie，24 小时有效，不可撤销
- 用户 Token（UserTokenScheme）：Bearer 头携带，7 天有效，登出时按 jti 加入黑名单

每套方案有自己的签名密钥，首次签发时随机生成并写入 KV（条件写入，
并发首次签发时以先写入者为准），之后只读不轮换。

有效性由三个独立判定组成：签名（verify_signature）、过期（scheme.is_expired）、
撤销（is_revoked），verify_token 依次调用。
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import math
import secrets
import time
import uuid
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any

from homesite.config import get_settings
from homesite.infra.kv_store import BaseKVStore, blacklist_key

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class TokenScheme(ABC):
    """Token 方案基类"""

    name: str = ""
    secret_key: str = ""   # 签名密钥在 KV 中的键
    revocable: bool = False

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_ms = ttl_seconds * 1000

    @abstractmethod
    def build_payload(self, username: str, issued_at: int) -> dict[str, Any]:
        """生成待签名的载荷"""

    @abstractmethod
    def is_expired(self, payload: dict[str, Any], now: int) -> bool:
        """载荷是否已过期（缺少时间字段视为过期）"""


class AdminSessionScheme(TokenScheme):
    """管理员会话：{username, timestamp, salt}，now - timestamp < ttl 时有效"""

    name = "admin"
    secret_key = "secret_key"

    def build_payload(self, username: str, issued_at: int) -> dict[str, Any]:
        return {
            "username": username,
            "timestamp": issued_at,
            "salt": secrets.token_hex(8),
        }

    def is_expired(self, payload: dict[str, Any], now: int) -> bool:
        timestamp = payload.get("timestamp")
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            return True
        return now - timestamp >= self.ttl_ms


class UserTokenScheme(TokenScheme):
    """用户 Token：{username, type, iat, exp, jti}，now < exp 时有效，可按 jti 撤销"""

    name = "user"
    secret_key = "jwt_secret_key"
    revocable = True

    def build_payload(self, username: str, issued_at: int) -> dict[str, Any]:
        return {
            "username": username,
            "type": "user",
            "iat": issued_at,
            "exp": issued_at + self.ttl_ms,
            "jti": str(uuid.uuid4()),
        }

    def is_expired(self, payload: dict[str, Any], now: int) -> bool:
        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            return True
        return now >= exp


@lru_cache(maxsize=1)
def get_admin_scheme() -> AdminSessionScheme:
    return AdminSessionScheme(get_settings().admin_session_ttl_seconds)


@lru_cache(maxsize=1)
def get_user_scheme() -> UserTokenScheme:
    return UserTokenScheme(get_settings().user_token_ttl_seconds)


# ==================== 签名密钥 ====================

async def get_or_create_secret(kv: BaseKVStore, scheme: TokenScheme) -> str:
    """
    读取方案的签名密钥，不存在时生成并条件写入

    两个请求同时首次签发时，只有一个能写入成功；写入失败的一方
    重新读取并使用已存在的密钥，保证同一方案只有一个有效密钥。
    """
    secret = await kv.get(scheme.secret_key)
    if secret:
        return secret

    candidate = secrets.token_hex(32)
    if await kv.put_if_absent(scheme.secret_key, candidate):
        logger.info(f"已生成 {scheme.name} 签名密钥")
        return candidate

    secret = await kv.get(scheme.secret_key)
    return secret or candidate


# ==================== 编码与签名 ====================

def _sign(secret: str, payload_b64: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), payload_b64.encode("utf-8"), hashlib.sha256).digest()


def encode_token(payload: dict[str, Any], secret: str) -> str:
    payload_json = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    payload_b64 = base64.b64encode(payload_json.encode("utf-8")).decode("ascii")
    signature_b64 = base64.b64encode(_sign(secret, payload_b64)).decode("ascii")
    return f"{payload_b64}.{signature_b64}"


def verify_signature(payload_b64: str, signature_b64: str, secret: str) -> bool:
    try:
        signature = base64.b64decode(signature_b64, validate=True)
    except (binascii.Error, ValueError):
        return False
    return hmac.compare_digest(_sign(secret, payload_b64), signature)


def decode_payload(payload_b64: str) -> dict[str, Any] | None:
    try:
        payload = json.loads(base64.b64decode(payload_b64, validate=True).decode("utf-8"))
    except (binascii.Error, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    return payload


async def is_revoked(kv: BaseKVStore, jti: str | None) -> bool:
    if not jti:
        return False
    return bool(await kv.get(blacklist_key(jti)))


# ==================== 签发 / 校验 / 撤销 ====================

async def issue_token(
    kv: BaseKVStore,
    scheme: TokenScheme,
    username: str,
    now: int | None = None,
) -> str:
    """签发 Token，首次调用时可能生成并写入签名密钥"""
    secret = await get_or_create_secret(kv, scheme)
    payload = scheme.build_payload(username, now if now is not None else now_ms())
    return encode_token(payload, secret)


async def verify_token(
    kv: BaseKVStore,
    scheme: TokenScheme,
    token: str | None,
    now: int | None = None,
) -> dict[str, Any] | None:
    """
    校验 Token，有效时返回载荷，否则返回 None

    以下任一情况视为无效：
    - 不是恰好两段（以 "." 分隔）
    - 签名密钥不存在
    - 签名不匹配
    - 载荷不是 JSON 对象
    - 已过期
    - （可撤销方案）jti 在黑名单中
    """
    if not token:
        return None
    parts = token.split(".")
    if len(parts) != 2:
        return None
    payload_b64, signature_b64 = parts

    secret = await kv.get(scheme.secret_key)
    if not secret:
        return None

    if not verify_signature(payload_b64, signature_b64, secret):
        return None

    payload = decode_payload(payload_b64)
    if payload is None:
        return None

    if scheme.is_expired(payload, now if now is not None else now_ms()):
        return None

    if scheme.revocable:
        if payload.get("type") != scheme.name:
            return None
        if await is_revoked(kv, payload.get("jti")):
            return None

    return payload


async def revoke_token(
    kv: BaseKVStore,
    payload: dict[str, Any],
    now: int | None = None,
) -> int:
    """
    将 Token 的 jti 加入黑名单，TTL 为剩余有效期（秒）

    剩余有效期为 0 时（已过期）不写入。

    Returns:
        int: 实际使用的 TTL
    """
    jti = payload.get("jti")
    exp = payload.get("exp")
    if not jti or not isinstance(exp, (int, float)):
        return 0

    current = now if now is not None else now_ms()
    # 不足 1 秒的剩余有效期向上取整，保证登出后立即失效
    ttl = max(0, math.ceil((exp - current) / 1000))
    if ttl > 0:
        await kv.put(blacklist_key(jti), "true", ttl=ttl)
        logger.info(f"Token 已加入黑名单: jti={jti}, ttl={ttl}s")
    return ttl
