"""
业务异常定义

每个异常携带 HTTP 状态码和面向调用方的错误信息，
由 homesite.main 中注册的异常处理器统一转换为 {"error": "..."} 响应。
"""


class AppError(Exception):
    """业务异常基类"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    """请求参数缺失或格式错误"""

    status_code = 400
    default_message = "Invalid request"


class AuthError(AppError):
    """认证失败：Token/Cookie 缺失、无效、过期或已撤销"""

    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(AppError):
    """资源不存在"""

    status_code = 404
    default_message = "Not found"


class StoreError(AppError):
    """KV 存储不可用，对外只返回通用信息"""

    status_code = 500
    default_message = "Internal server error"


class StoreNotConfiguredError(StoreError):
    """KV 存储未配置"""

    default_message = "KV store not configured"

    def __init__(self, message: str | None = None, hint: str | None = None):
        super().__init__(message)
        self.hint = hint or "请配置 KV_BACKEND=redis 与 REDIS_URL，或在开发环境使用 KV_BACKEND=memory"

    def to_dict(self) -> dict:
        return {"error": self.message, "message": self.hint}
