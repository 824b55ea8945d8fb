"""用户注册/登录相关的请求/响应模型"""

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """用户注册请求（长度等业务校验在服务层完成）"""
    username: str | None = None
    password: str | None = None
    nickname: str | None = None


class LoginRequest(BaseModel):
    """用户登录请求"""
    username: str | None = None
    password: str | None = None


class PublicUser(BaseModel):
    """对外展示的用户信息（不含密码哈希）"""
    username: str
    nickname: str
    verified: bool
    vip: bool                                     # 实际 VIP 状态（已考虑过期时间）
    vipExpireAt: str | int | float | None = None
    createdAt: str | None = Field(default=None)


class AuthResponse(BaseModel):
    """注册/登录响应"""
    message: str
    token: str
    user: PublicUser


class MeResponse(BaseModel):
    """当前用户信息响应"""
    user: PublicUser
