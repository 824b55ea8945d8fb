"""管理员接口的请求/响应模型"""

from typing import Any

from pydantic import BaseModel

from homesite.schemas.auth import PublicUser


class ChangePasswordRequest(BaseModel):
    """修改管理员凭证请求"""
    username: str | None = None
    password: str | None = None


class UserUpdateRequest(BaseModel):
    """
    更新用户请求（部分更新）

    verified / vip 只有在传入布尔值时才会更新；
    vipExpireAt 只要出现在请求中就会更新（显式 null 表示清除）。
    """
    username: str | None = None
    nickname: str | None = None
    verified: Any = None
    vip: Any = None
    vipExpireAt: str | int | float | None = None


class UserDeleteRequest(BaseModel):
    """删除用户请求"""
    username: str | None = None


class UserListResponse(BaseModel):
    users: list[PublicUser]


class UserUpdateResponse(BaseModel):
    message: str
    user: PublicUser
