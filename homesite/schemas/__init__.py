"""
数据模式层 (Schemas)

使用 Pydantic 定义 API 的请求和响应模型：
- 请求体类型校验（类型不符统一返回 400）
- 自动生成 OpenAPI 文档
"""

from homesite.schemas.admin import (
    ChangePasswordRequest,
    UserDeleteRequest,
    UserListResponse,
    UserUpdateRequest,
    UserUpdateResponse,
)
from homesite.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    PublicUser,
    RegisterRequest,
)
from homesite.schemas.portfolio import PortfolioSaveResponse, PortfolioUpdate

__all__ = [
    "AuthResponse",
    "ChangePasswordRequest",
    "LoginRequest",
    "MeResponse",
    "PortfolioSaveResponse",
    "PortfolioUpdate",
    "PublicUser",
    "RegisterRequest",
    "UserDeleteRequest",
    "UserListResponse",
    "UserUpdateRequest",
    "UserUpdateResponse",
]
