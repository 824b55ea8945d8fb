"""
API 依赖注入函数

这个模块汇总了 API 路由共用的依赖项。
FastAPI 的依赖注入系统会自动调用这些函数，并将结果注入到路由处理函数中。

使用示例：
    @router.get("/example")
    async def example_endpoint(
        account=Depends(require_user),   # 要求用户 Token，注入账号
        kv=Depends(get_kv),              # 注入 KV 存储
    ):
        pass
"""

from homesite.auth.dependencies import require_admin, require_user
from homesite.infra.kv_store import get_kv

__all__ = ["get_kv", "require_admin", "require_user"]
