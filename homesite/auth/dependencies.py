"""
认证依赖

管理员：从 auth_token Cookie 读取会话 Token
用户：  从 Authorization: Bearer <token> 读取用户 Token

两者都是失败即拒绝（fail closed）：缺失、格式错误、签名错误、过期一律视为未认证。
用户认证通过后还会重新读取账号记录，账号已删除时拒绝，个人信息只以存储为准。
"""

import logging

from fastapi import Depends, Request

from homesite.auth.tokens import get_admin_scheme, get_user_scheme, verify_token
from homesite.config import get_settings
from homesite.exceptions import AuthError, NotFoundError
from homesite.infra.kv_store import BaseKVStore, get_kv
from homesite.infra.logging import set_username
from homesite.models import UserAccount
from homesite.services.accounts import get_account
from homesite.services.admin import get_admin_username

logger = logging.getLogger(__name__)


def read_admin_cookie(request: Request) -> str | None:
    token = request.cookies.get(get_settings().admin_cookie_name)
    return token or None


def get_bearer_token(request: Request) -> str | None:
    header_val = request.headers.get("Authorization")
    if not header_val or not header_val.startswith("Bearer "):
        return None
    return header_val[len("Bearer "):].strip() or None


async def check_admin_auth(request: Request, kv: BaseKVStore) -> bool:
    """
    校验管理员会话

    除签名和 24 小时有效期外，还要求会话中的用户名与当前管理员用户名一致，
    管理员修改用户名后旧会话立即失效。
    """
    token = read_admin_cookie(request)
    if not token:
        return False

    payload = await verify_token(kv, get_admin_scheme(), token)
    if payload is None:
        return False

    username = payload.get("username")
    if not username or username != await get_admin_username(kv):
        return False

    set_username(username)
    return True


async def authenticate_user(request: Request, kv: BaseKVStore) -> UserAccount:
    """
    校验用户 Token 并重新读取账号

    Raises:
        AuthError: 未携带 Token，或 Token 无效/过期/已撤销
        NotFoundError: Token 有效但账号已被删除
    """
    token = get_bearer_token(request)
    if not token:
        raise AuthError("未登录")

    payload = await verify_token(kv, get_user_scheme(), token)
    if payload is None:
        raise AuthError("Token 无效或已过期")

    account = await get_account(kv, payload.get("username") or "")
    if account is None:
        raise NotFoundError("用户不存在")
    return account


async def check_user_auth(request: Request, kv: BaseKVStore) -> UserAccount | None:
    """同 authenticate_user，任一步失败返回 None"""
    try:
        return await authenticate_user(request, kv)
    except (AuthError, NotFoundError):
        return None


async def require_admin(request: Request, kv: BaseKVStore = Depends(get_kv)) -> None:
    """FastAPI 依赖：要求管理员会话"""
    if not await check_admin_auth(request, kv):
        raise AuthError("Unauthorized")


async def require_user(request: Request, kv: BaseKVStore = Depends(get_kv)) -> UserAccount:
    """FastAPI 依赖：要求有效的用户 Token，注入重新读取的账号"""
    account = await authenticate_user(request, kv)
    set_username(account.username)
    return account
