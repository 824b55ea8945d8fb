"""
FastAPI 应用实例

这是 FastAPI 应用的核心配置文件，负责：
1. 创建 FastAPI 应用实例
2. 配置应用生命周期（关闭时释放 KV 连接）
3. 注册所有路由和中间件
4. 统一错误响应格式 {"error": "..."}
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from homesite.api.routes import api_router
from homesite.config import get_settings
from homesite.exceptions import AppError, StoreError, StoreNotConfiguredError
from homesite.infra.kv_store import get_kv_store
from homesite.infra.logging import setup_logging, get_logger
from homesite.middleware import CORSHeadersMiddleware, RequestTraceMiddleware

# 配置结构化日志
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理器

    - yield 之前：启动日志
    - yield 之后：关闭 KV 连接
    """
    logger.info(f"应用启动中... 环境: {settings.environment}, KV 后端: {settings.kv_backend}")

    yield

    try:
        await get_kv_store().close()
    except StoreNotConfiguredError:
        pass


app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
)

# 注册中间件（注意顺序：后添加的先执行，CORS 需在最外层以覆盖 500 响应）
app.add_middleware(RequestTraceMiddleware)  # 请求追踪 + 异常兜底
app.add_middleware(CORSHeadersMiddleware)   # 跨域

app.include_router(api_router)

if settings.static_dir:
    app.mount("/static", StaticFiles(directory=settings.static_dir, check_dir=False), name="static")


@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError):
    """业务异常：按异常类型映射状态码"""
    if isinstance(exc, StoreError):
        logger.error(f"KV 存储错误: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_: Request, exc: StarletteHTTPException):
    """未知路由、方法不允许等框架异常"""
    detail = "Not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError):
    """请求体类型错误或 JSON 格式错误统一返回 400"""
    errors = exc.errors()
    detail = "请求参数格式错误"
    if errors:
        loc = ".".join(str(part) for part in errors[0].get("loc", ()) if part != "body")
        if loc:
            detail = f"{detail}: {loc}"
    return JSONResponse(status_code=400, content={"error": detail})
