"""
API 路由汇总

将所有子路由注册到主路由器，统一对外暴露。
路由按精确路径 + 方法分发，不含路径参数；路由层只做参数解析和调用服务层。

路由模块说明：
- health.py      : 健康检查接口
- data.py        : 主页数据、管理员改密、访客 IP
- auth.py        : 用户注册/登录/登出/个人信息
- admin_users.py : 管理员用户管理
- pages.py       : 管理后台登录/登出/页面
"""

from fastapi import APIRouter

from homesite.api.routes import admin_users, auth, data, health, pages

# 主路由器，包含所有端点
api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(data.router, tags=["data"])
api_router.include_router(auth.router)  # auth 路由自带 tags
api_router.include_router(admin_users.router)  # admin 路由自带 tags
api_router.include_router(pages.router)
