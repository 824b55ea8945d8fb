"""
管理后台页面

- POST /login   表单登录，成功后写入 auth_token Cookie 并跳转 /manage
- GET  /logout  清除 Cookie 并跳转 /manage
- GET  /manage  已登录显示管理页，未登录显示登录表单

页面只提供最小外壳，具体内容由前端静态资源渲染。
"""

from pathlib import Path

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from homesite.api.deps import get_kv
from homesite.auth.dependencies import check_admin_auth
from homesite.auth.tokens import get_admin_scheme, issue_token
from homesite.config import get_settings
from homesite.infra.kv_store import BaseKVStore
from homesite.services.admin import authenticate_admin

BASE_DIR = Path(__file__).resolve().parents[2]
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter(tags=["pages"])


def _login_page(request: Request, error: str = "") -> HTMLResponse:
    return templates.TemplateResponse(request, "login.html", {"error": error})


@router.post("/login")
async def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    kv: BaseKVStore = Depends(get_kv),
):
    if not await authenticate_admin(kv, username, password):
        return _login_page(request, "用户名或密码错误")

    settings = get_settings()
    token = await issue_token(kv, get_admin_scheme(), username)
    response = RedirectResponse("/manage", status_code=302)
    response.set_cookie(
        settings.admin_cookie_name,
        token,
        max_age=settings.admin_session_ttl_seconds,
        path="/",
        httponly=True,
        secure=settings.admin_cookie_secure,
        samesite="strict",
    )
    return response


@router.get("/logout")
async def logout():
    response = RedirectResponse("/manage", status_code=302)
    response.delete_cookie(get_settings().admin_cookie_name, path="/")
    return response


@router.get("/manage", response_class=HTMLResponse)
async def manage(request: Request, kv: BaseKVStore = Depends(get_kv)):
    if not await check_admin_auth(request, kv):
        return _login_page(request)
    return templates.TemplateResponse(request, "manage.html", {"app_name": get_settings().app_name})
