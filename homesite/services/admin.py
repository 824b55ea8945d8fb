"""
管理员凭证服务

站点只有一个管理员账号，凭证存放在 admin_credentials 键：
    {"username": "...", "passHash": "...", "salt": "..."}

首次登录时如果凭证不存在，写入配置中的默认账号（default_admin_username /
default_admin_password），上线后应立即通过 /api/change-password 修改。
旧格式的明文凭证 {"username", "password"} 仍可用于登录，修改密码后转为哈希格式。
"""

import hmac
import logging

from homesite.auth.passwords import generate_salt, hash_password, verify_password
from homesite.config import get_settings
from homesite.exceptions import ValidationError
from homesite.infra.kv_store import ADMIN_CREDENTIALS_KEY, BaseKVStore

logger = logging.getLogger(__name__)


def _build_credentials(username: str, password: str) -> dict:
    salt = generate_salt()
    return {
        "username": username,
        "passHash": hash_password(password, salt),
        "salt": salt,
    }


async def load_admin_credentials(kv: BaseKVStore) -> dict:
    """读取管理员凭证，不存在时写入默认凭证"""
    creds = await kv.get_json(ADMIN_CREDENTIALS_KEY)
    if isinstance(creds, dict) and creds.get("username"):
        return creds

    settings = get_settings()
    creds = _build_credentials(settings.default_admin_username, settings.default_admin_password)
    await kv.put_json(ADMIN_CREDENTIALS_KEY, creds)
    logger.warning("管理员凭证不存在，已写入默认凭证，请尽快修改密码")
    return creds


async def get_admin_username(kv: BaseKVStore) -> str | None:
    """当前管理员用户名（不写入默认凭证）"""
    creds = await kv.get_json(ADMIN_CREDENTIALS_KEY)
    if isinstance(creds, dict) and creds.get("username"):
        return creds["username"]
    return None


async def authenticate_admin(kv: BaseKVStore, username: str | None, password: str | None) -> bool:
    if not username or not password:
        return False

    creds = await load_admin_credentials(kv)
    if username != creds.get("username"):
        return False

    if "passHash" in creds:
        return verify_password(password, creds.get("salt", ""), creds["passHash"])

    # 旧格式明文凭证
    legacy = creds.get("password")
    if not isinstance(legacy, str):
        return False
    return hmac.compare_digest(password.encode("utf-8"), legacy.encode("utf-8"))


async def change_admin_password(kv: BaseKVStore, username: str | None, password: str | None) -> dict:
    """
    覆盖管理员凭证

    用户名变更后，旧用户名签发的会话随即失效。
    """
    if not username or not password:
        raise ValidationError("Username and password required")

    await kv.put_json(ADMIN_CREDENTIALS_KEY, _build_credentials(username, password))
    logger.info(f"管理员凭证已更新: username={username}")
    return {"message": "Password updated successfully"}
