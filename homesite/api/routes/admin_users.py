"""
管理员用户管理接口

所有接口需要管理员会话 Cookie。

- GET  /api/admin/users        用户列表
- POST /api/admin/user/update  部分更新（verified / vip / vipExpireAt / nickname）
- POST /api/admin/user/delete  删除用户
"""

from fastapi import APIRouter, Depends

from homesite.api.deps import get_kv, require_admin
from homesite.infra.kv_store import BaseKVStore
from homesite.schemas import UserDeleteRequest, UserListResponse, UserUpdateRequest, UserUpdateResponse
from homesite.services import accounts

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],  # 所有接口需要管理员认证
)


@router.get("/users", response_model=UserListResponse)
async def list_users(kv: BaseKVStore = Depends(get_kv)):
    return await accounts.list_users(kv)


@router.post("/user/update", response_model=UserUpdateResponse, response_model_exclude_unset=True)
async def update_user(payload: UserUpdateRequest, kv: BaseKVStore = Depends(get_kv)):
    # 只把请求中实际出现的字段交给服务层
    changes = payload.model_dump(exclude_unset=True)
    return await accounts.update_user(kv, payload.username, changes)


@router.post("/user/delete")
async def delete_user(payload: UserDeleteRequest, kv: BaseKVStore = Depends(get_kv)) -> dict:
    return await accounts.delete_user(kv, payload.username)
