"""
主页数据接口

- GET  /api/data             公开，读取主页数据（未初始化时返回默认结构）
- POST /api/data             管理员，保存主页数据
- POST /api/change-password  管理员，修改管理员凭证
- GET  /api/visitor-ip       公开，访客 IP 与位置
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from homesite.api.deps import get_kv, require_admin
from homesite.infra.kv_store import BaseKVStore
from homesite.schemas import ChangePasswordRequest, PortfolioSaveResponse, PortfolioUpdate
from homesite.services import admin, portfolio
from homesite.services.visitor import visitor_info

router = APIRouter(prefix="/api")


@router.get("/data")
async def get_data(kv: BaseKVStore = Depends(get_kv)) -> dict:
    return await portfolio.get_portfolio(kv)


@router.post("/data", response_model=PortfolioSaveResponse, dependencies=[Depends(require_admin)])
async def save_data(payload: PortfolioUpdate, kv: BaseKVStore = Depends(get_kv)):
    """保存主页数据，缺失的栏目补默认值，last_time 由服务端生成"""
    return await portfolio.save_portfolio(kv, payload.data)


@router.post("/change-password", dependencies=[Depends(require_admin)])
async def change_password(payload: ChangePasswordRequest, kv: BaseKVStore = Depends(get_kv)) -> dict:
    return await admin.change_admin_password(kv, payload.username, payload.password)


@router.get("/visitor-ip")
async def visitor_ip(request: Request) -> JSONResponse:
    return JSONResponse(visitor_info(request), headers={"Cache-Control": "no-cache"})
