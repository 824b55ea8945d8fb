"""
站点配置

环境变量 > .env 文件 > 默认值。字段名即环境变量名（不区分大小写），
例如 KV_BACKEND=redis、REDIS_URL=redis://localhost:6379/0。

默认值面向本地开发：内存 KV、默认管理员账号，生产环境务必覆盖。
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """站点全局配置"""

    # ==================== 应用基础配置 ====================
    app_name: str = "Home Portfolio Service"  # 应用名称，显示在 API 文档中
    environment: str = "dev"                  # 运行环境：dev/staging/prod
    log_level: str = "INFO"                   # 日志级别：DEBUG/INFO/WARNING/ERROR
    log_json: bool | None = None              # 日志格式：True=JSON，None=自动（prod用JSON）
    timezone: str = "Asia/Shanghai"           # 不带时区的 VIP 过期时间按此时区解释

    # ==================== KV 存储配置 ====================
    # memory: 进程内存储（开发/测试，单实例）
    # redis:  Redis 存储（生产），必须同时配置 redis_url
    kv_backend: str = "memory"
    redis_url: str | None = None  # Redis 连接 URL，如 redis://localhost:6379/0
    kv_key_prefix: str = ""       # 键前缀，多个站点共用一个 Redis 时用于隔离

    # ==================== 认证配置 ====================
    admin_session_ttl_seconds: int = 24 * 60 * 60    # 管理员会话有效期：24 小时
    user_token_ttl_seconds: int = 7 * 24 * 60 * 60   # 用户 Token 有效期：7 天
    admin_cookie_name: str = "auth_token"
    admin_cookie_secure: bool = True  # 本地 http 调试时可关闭

    # 首次登录时写入的默认管理员凭证，上线后请立即修改
    default_admin_username: str = "admin"
    default_admin_password: str = "admin123"

    # ==================== 静态资源 ====================
    static_dir: str | None = None  # 配置后 /static/* 从该目录读取

    model_config = {
        "env_file": ".env",           # 从 .env 文件加载配置
        "env_file_encoding": "utf-8",  # .env 文件编码
        "extra": "ignore",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """配置单例，进程内只读取一次环境变量"""
    return Settings()
