"""
用户认证接口

- POST /api/auth/register  注册并返回 Token
- POST /api/auth/login     登录并返回新 Token
- GET  /api/auth/me        当前用户信息（Bearer Token）
- POST /api/auth/logout    登出，Token 加入黑名单，始终返回 200
"""

import logging

from fastapi import APIRouter, Depends, Request

from homesite.api.deps import get_kv, require_user
from homesite.auth.dependencies import get_bearer_token
from homesite.exceptions import StoreError
from homesite.infra.kv_store import BaseKVStore
from homesite.models import UserAccount
from homesite.schemas import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from homesite.services import accounts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, response_model_exclude_unset=True)
async def register(payload: RegisterRequest, kv: BaseKVStore = Depends(get_kv)):
    return await accounts.register(kv, payload.username, payload.password, payload.nickname)


@router.post("/login", response_model=AuthResponse, response_model_exclude_unset=True)
async def login(payload: LoginRequest, kv: BaseKVStore = Depends(get_kv)):
    return await accounts.login(kv, payload.username, payload.password)


@router.get("/me", response_model=MeResponse)
async def me(account: UserAccount = Depends(require_user)):
    return accounts.get_profile(account)


@router.post("/logout")
async def logout(request: Request, kv: BaseKVStore = Depends(get_kv)) -> dict:
    """登出始终成功；黑名单写入失败只记录日志"""
    try:
        return await accounts.logout(kv, get_bearer_token(request))
    except StoreError:
        logger.warning("登出时写入黑名单失败")
        return {"message": "已登出"}
