"""
用户账号服务

注册、登录、登出、个人信息，以及管理员的用户管理（列表/更新/删除）。

存储布局：
- user:<username>  账号文档（权威数据）
- user_list        用户名索引（仅用于遍历，KV 不支持扫描）

"创建账号 + 追加索引"是两次独立写入，不是原子操作：中途失败可能留下
没有索引的账号或指向空记录的索引条目。判断用户是否存在一律以账号记录为准，
遍历时跳过索引中已不存在的记录。
"""

import logging
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from homesite.auth.passwords import generate_salt, hash_password, verify_password
from homesite.auth.tokens import get_user_scheme, issue_token, revoke_token, verify_token
from homesite.config import get_settings
from homesite.exceptions import AuthError, NotFoundError, ValidationError
from homesite.infra.kv_store import USER_INDEX_KEY, BaseKVStore, user_key
from homesite.infra.time_utils import parse_iso, utc_now_iso
from homesite.models import UserAccount

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6


def parse_expire_at(value: Any) -> datetime | None:
    """
    解析 VIP 过期时间

    支持 ISO 字符串（含 Z 后缀；不带时区时按配置的时区解释）和毫秒时间戳。
    无法解析时返回 None。
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            parsed = parse_iso(value)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=ZoneInfo(get_settings().timezone))
        return parsed
    return None


def effective_vip(account: UserAccount, now: datetime | None = None) -> bool:
    """
    计算实际 VIP 状态：vip 标记为真，且未设置过期时间或过期时间晚于当前时间

    过期时间无法解析时视为已过期。
    """
    if not account.vip:
        return False
    if account.vip_expire_at in (None, "", 0):
        return True
    expire_at = parse_expire_at(account.vip_expire_at)
    if expire_at is None:
        return False
    return expire_at > (now or datetime.now(timezone.utc))


def public_user(account: UserAccount, include_created: bool = False) -> dict:
    """对外展示的用户信息"""
    user = {
        "username": account.username,
        "nickname": account.nickname,
        "verified": account.verified,
        "vip": effective_vip(account),
        "vipExpireAt": account.vip_expire_at,
    }
    if include_created:
        user["createdAt"] = account.created_at
    return user


# ==================== 存储读写 ====================

async def get_account(kv: BaseKVStore, username: str) -> UserAccount | None:
    doc = await kv.get_json(user_key(username))
    if not doc:
        return None
    return UserAccount.model_validate(doc)


async def save_account(kv: BaseKVStore, account: UserAccount) -> None:
    await kv.put_json(user_key(account.username), account.to_document())


async def get_user_index(kv: BaseKVStore) -> list[str]:
    index = await kv.get_json(USER_INDEX_KEY)
    return index if isinstance(index, list) else []


async def add_to_user_index(kv: BaseKVStore, username: str) -> None:
    index = await get_user_index(kv)
    if username not in index:
        index.append(username)
        await kv.put_json(USER_INDEX_KEY, index)


async def remove_from_user_index(kv: BaseKVStore, username: str) -> None:
    index = await get_user_index(kv)
    await kv.put_json(USER_INDEX_KEY, [u for u in index if u != username])


# ==================== 用户自助 ====================

async def register(
    kv: BaseKVStore,
    username: str | None,
    password: str | None,
    nickname: str | None = None,
) -> dict:
    """
    注册新用户并签发 Token

    Raises:
        ValidationError: 参数缺失、长度不合法或用户名已存在
    """
    if not username or not password:
        raise ValidationError("用户名和密码不能为空")
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError("用户名长度需在3-20个字符之间")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError("密码长度不能少于6位")

    if await kv.get_json(user_key(username)):
        raise ValidationError("用户名已存在")

    salt = generate_salt()
    now = utc_now_iso()
    account = UserAccount(
        username=username,
        nickname=nickname or username,
        pass_hash=hash_password(password, salt),
        salt=salt,
        verified=False,
        vip=False,
        vip_expire_at=None,
        created_at=now,
        updated_at=now,
    )
    await save_account(kv, account)
    await add_to_user_index(kv, username)

    token = await issue_token(kv, get_user_scheme(), username)
    logger.info(f"用户注册成功: {username}")

    return {
        "message": "注册成功",
        "token": token,
        "user": public_user(account),
    }


async def login(kv: BaseKVStore, username: str | None, password: str | None) -> dict:
    """
    用户登录，每次登录都签发新 Token

    账号不存在和密码错误返回同一条错误信息。
    """
    if not username or not password:
        raise ValidationError("用户名和密码不能为空")

    account = await get_account(kv, username)
    if account is None or not verify_password(password, account.salt, account.pass_hash):
        logger.warning(f"用户登录失败: {username}")
        raise AuthError("用户名或密码错误")

    token = await issue_token(kv, get_user_scheme(), username)
    return {
        "message": "登录成功",
        "token": token,
        "user": public_user(account),
    }


def get_profile(account: UserAccount) -> dict:
    return {"user": public_user(account, include_created=True)}


async def logout(kv: BaseKVStore, token: str | None) -> dict:
    """
    用户登出：Token 有效时将其 jti 加入黑名单

    无论 Token 是否有效都返回成功。
    """
    if not token:
        return {"message": "已登出"}

    payload = await verify_token(kv, get_user_scheme(), token)
    if payload is not None:
        await revoke_token(kv, payload)
    return {"message": "登出成功"}


# ==================== 管理员用户管理 ====================

async def list_users(kv: BaseKVStore) -> dict:
    """
    遍历用户索引逐个读取账号

    每个用户一次 KV 读取（O(n)），用户量小时可以接受。
    """
    users = []
    for username in await get_user_index(kv):
        account = await get_account(kv, username)
        if account is None:
            continue
        users.append(public_user(account, include_created=True))
    return {"users": users}


async def update_user(kv: BaseKVStore, username: str | None, changes: dict[str, Any]) -> dict:
    """
    部分更新用户

    Args:
        changes: 请求中实际出现的字段；verified / vip 仅在值为布尔时生效，
                 vipExpireAt 出现即生效（None 表示清除），nickname 非空时生效
    """
    if not username:
        raise ValidationError("用户名不能为空")

    account = await get_account(kv, username)
    if account is None:
        raise NotFoundError("用户不存在")

    if isinstance(changes.get("verified"), bool):
        account.verified = changes["verified"]
    if isinstance(changes.get("vip"), bool):
        account.vip = changes["vip"]
    if "vipExpireAt" in changes:
        account.vip_expire_at = changes["vipExpireAt"]
    if changes.get("nickname"):
        account.nickname = changes["nickname"]
    account.updated_at = utc_now_iso()

    await save_account(kv, account)
    logger.info(f"用户信息已更新: {username}")

    return {
        "message": "用户信息更新成功",
        "user": public_user(account),
    }


async def delete_user(kv: BaseKVStore, username: str | None) -> dict:
    """删除账号及其索引条目，账号已不存在时同样成功"""
    if not username:
        raise ValidationError("用户名不能为空")

    await kv.delete(user_key(username))
    await remove_from_user_index(kv, username)
    logger.info(f"用户已删除: {username}")
    return {"message": "用户删除成功"}
