"""
测试公共 fixture

每个测试使用独立的内存 KV 存储，通过 dependency_overrides 注入应用。
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from homesite.auth.tokens import get_admin_scheme, issue_token
from homesite.infra.kv_store import MemoryKVStore, get_kv
from homesite.main import app
from homesite.services.admin import load_admin_credentials


@pytest.fixture
def kv() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture
def client(kv):
    async def _override_kv():
        return kv

    app.dependency_overrides[get_kv] = _override_kv
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client, kv):
    """已登录管理员的 Cookie 头（默认凭证 admin/admin123）"""
    async def _issue():
        await load_admin_credentials(kv)
        return await issue_token(kv, get_admin_scheme(), "admin")

    token = asyncio.run(_issue())
    return {"Cookie": f"auth_token={token}"}
