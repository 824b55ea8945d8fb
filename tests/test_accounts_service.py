"""
账号服务单元测试

测试 homesite/services/accounts.py：
- 注册校验、重复注册、用户索引
- 登录失败信息不区分原因
- VIP 实际状态计算
- 管理员部分更新与删除
"""

from datetime import datetime, timedelta, timezone

import pytest

from homesite.auth.tokens import get_user_scheme, verify_token
from homesite.exceptions import AuthError, NotFoundError, ValidationError
from homesite.models import UserAccount
from homesite.services import accounts


def _account(**overrides) -> UserAccount:
    fields = {
        "username": "alice",
        "nickname": "alice",
        "pass_hash": "x",
        "salt": "y",
    }
    fields.update(overrides)
    return UserAccount(**fields)


class TestEffectiveVip:
    """VIP 实际状态"""

    NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)

    def test_flag_off(self):
        assert accounts.effective_vip(_account(vip=False), now=self.NOW) is False

    def test_no_expiry(self):
        assert accounts.effective_vip(_account(vip=True), now=self.NOW) is True
        assert accounts.effective_vip(_account(vip=True, vip_expire_at=""), now=self.NOW) is True
        # 0 同样表示永不过期，而不是 1970 年
        assert accounts.effective_vip(_account(vip=True, vip_expire_at=0), now=self.NOW) is True

    def test_future_expiry(self):
        account = _account(vip=True, vip_expire_at="2025-07-01T00:00:00.000Z")
        assert accounts.effective_vip(account, now=self.NOW) is True

    def test_past_expiry(self):
        account = _account(vip=True, vip_expire_at="2025-05-01T00:00:00.000Z")
        assert accounts.effective_vip(account, now=self.NOW) is False
        # 存储中的 vip 标记不被修改
        assert account.vip is True

    def test_epoch_millis_expiry(self):
        future = int((self.NOW + timedelta(days=1)).timestamp() * 1000)
        past = int((self.NOW - timedelta(days=1)).timestamp() * 1000)
        assert accounts.effective_vip(_account(vip=True, vip_expire_at=future), now=self.NOW) is True
        assert accounts.effective_vip(_account(vip=True, vip_expire_at=past), now=self.NOW) is False

    def test_unparseable_expiry(self):
        account = _account(vip=True, vip_expire_at="next tuesday")
        assert accounts.effective_vip(account, now=self.NOW) is False

    def test_naive_expiry_uses_configured_timezone(self):
        # Asia/Shanghai 2025-06-01 07:00 == UTC 2025-05-31 23:00
        account = _account(vip=True, vip_expire_at="2025-06-01T07:00:00")
        assert accounts.effective_vip(account, now=self.NOW) is False


class TestRegister:
    """注册"""

    @pytest.mark.asyncio
    async def test_register_success(self, kv):
        result = await accounts.register(kv, "alice", "secret1")

        assert result["message"] == "注册成功"
        assert result["user"] == {
            "username": "alice",
            "nickname": "alice",
            "verified": False,
            "vip": False,
            "vipExpireAt": None,
        }
        payload = await verify_token(kv, get_user_scheme(), result["token"])
        assert payload["username"] == "alice"

        stored = await kv.get_json("user:alice")
        assert stored["passHash"] != "secret1"
        assert stored["salt"]
        assert stored["createdAt"].endswith("Z")
        assert await kv.get_json("user_list") == ["alice"]

    @pytest.mark.asyncio
    async def test_register_with_nickname(self, kv):
        result = await accounts.register(kv, "bob", "secret1", nickname="小鲍")
        assert result["user"]["nickname"] == "小鲍"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "username,password,message",
        [
            ("", "secret1", "用户名和密码不能为空"),
            ("alice", None, "用户名和密码不能为空"),
            ("ab", "secret1", "用户名长度需在3-20个字符之间"),
            ("a" * 21, "secret1", "用户名长度需在3-20个字符之间"),
            ("alice", "12345", "密码长度不能少于6位"),
        ],
    )
    async def test_register_validation(self, kv, username, password, message):
        with pytest.raises(ValidationError) as exc_info:
            await accounts.register(kv, username, password)
        assert exc_info.value.message == message
        assert await kv.get_json("user_list") is None

    @pytest.mark.asyncio
    async def test_register_boundaries(self, kv):
        await accounts.register(kv, "abc", "123456")
        await accounts.register(kv, "a" * 20, "123456")

        assert await kv.get_json("user_list") == ["abc", "a" * 20]

    @pytest.mark.asyncio
    async def test_duplicate_username_never_overwrites(self, kv):
        await accounts.register(kv, "alice", "secret1")
        original = await kv.get_json("user:alice")

        with pytest.raises(ValidationError) as exc_info:
            await accounts.register(kv, "alice", "another-password")

        assert exc_info.value.message == "用户名已存在"
        assert await kv.get_json("user:alice") == original
        assert await kv.get_json("user_list") == ["alice"]

    @pytest.mark.asyncio
    async def test_username_is_case_sensitive(self, kv):
        await accounts.register(kv, "alice", "secret1")
        await accounts.register(kv, "Alice", "secret1")

        assert await kv.get_json("user_list") == ["alice", "Alice"]

    @pytest.mark.asyncio
    async def test_index_append_is_idempotent(self, kv):
        # 账号记录丢失但索引残留时重新注册，不重复追加
        await kv.put_json("user_list", ["alice"])

        await accounts.register(kv, "alice", "secret1")

        assert await kv.get_json("user_list") == ["alice"]


class TestLogin:
    """登录"""

    @pytest.mark.asyncio
    async def test_login_success_issues_new_token(self, kv):
        registered = await accounts.register(kv, "alice", "secret1")

        result = await accounts.login(kv, "alice", "secret1")

        assert result["message"] == "登录成功"
        assert result["token"] != registered["token"]

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_user_same_error(self, kv):
        await accounts.register(kv, "alice", "secret1")

        with pytest.raises(AuthError) as wrong_password:
            await accounts.login(kv, "alice", "wrong-password")
        with pytest.raises(AuthError) as unknown_user:
            await accounts.login(kv, "nobody", "secret1")

        assert wrong_password.value.message == unknown_user.value.message == "用户名或密码错误"

    @pytest.mark.asyncio
    async def test_login_missing_fields(self, kv):
        with pytest.raises(ValidationError):
            await accounts.login(kv, "alice", "")

    @pytest.mark.asyncio
    async def test_login_reports_effective_vip(self, kv):
        await accounts.register(kv, "alice", "secret1")
        await accounts.update_user(
            kv, "alice", {"vip": True, "vipExpireAt": "2000-01-01T00:00:00.000Z"}
        )

        result = await accounts.login(kv, "alice", "secret1")

        assert result["user"]["vip"] is False
        assert (await kv.get_json("user:alice"))["vip"] is True


class TestLogout:
    """登出"""

    @pytest.mark.asyncio
    async def test_logout_without_token(self, kv):
        assert await accounts.logout(kv, None) == {"message": "已登出"}

    @pytest.mark.asyncio
    async def test_logout_revokes_token(self, kv):
        token = (await accounts.register(kv, "alice", "secret1"))["token"]

        assert await accounts.logout(kv, token) == {"message": "登出成功"}
        assert await verify_token(kv, get_user_scheme(), token) is None

    @pytest.mark.asyncio
    async def test_logout_with_invalid_token(self, kv):
        assert await accounts.logout(kv, "garbage") == {"message": "登出成功"}


class TestAdminUserManagement:
    """管理员用户管理"""

    @pytest.mark.asyncio
    async def test_list_users_skips_missing_records(self, kv):
        await accounts.register(kv, "alice", "secret1")
        await accounts.register(kv, "bob", "secret1")
        await kv.delete("user:bob")  # 索引残留

        result = await accounts.list_users(kv)

        assert [u["username"] for u in result["users"]] == ["alice"]
        assert result["users"][0]["createdAt"]

    @pytest.mark.asyncio
    async def test_list_users_empty(self, kv):
        assert await accounts.list_users(kv) == {"users": []}

    @pytest.mark.asyncio
    async def test_update_only_literal_booleans(self, kv):
        await accounts.register(kv, "alice", "secret1")

        await accounts.update_user(kv, "alice", {"verified": "yes", "vip": 1})
        stored = await kv.get_json("user:alice")
        assert stored["verified"] is False
        assert stored["vip"] is False

        result = await accounts.update_user(kv, "alice", {"verified": True})
        assert result["message"] == "用户信息更新成功"
        assert result["user"]["verified"] is True
        assert result["user"]["vip"] is False

    @pytest.mark.asyncio
    async def test_update_vip_expire_presence(self, kv):
        await accounts.register(kv, "alice", "secret1")

        await accounts.update_user(kv, "alice", {"vip": True, "vipExpireAt": "2099-01-01T00:00:00.000Z"})
        # 未出现的字段不改动
        await accounts.update_user(kv, "alice", {"nickname": "爱丽丝"})
        stored = await kv.get_json("user:alice")
        assert stored["vipExpireAt"] == "2099-01-01T00:00:00.000Z"
        assert stored["nickname"] == "爱丽丝"

        # 显式 null 清除过期时间
        await accounts.update_user(kv, "alice", {"vipExpireAt": None})
        assert (await kv.get_json("user:alice"))["vipExpireAt"] is None

    @pytest.mark.asyncio
    async def test_update_empty_nickname_ignored(self, kv):
        await accounts.register(kv, "alice", "secret1", nickname="爱丽丝")

        await accounts.update_user(kv, "alice", {"nickname": ""})

        assert (await kv.get_json("user:alice"))["nickname"] == "爱丽丝"

    @pytest.mark.asyncio
    async def test_update_errors(self, kv):
        with pytest.raises(ValidationError):
            await accounts.update_user(kv, None, {})
        with pytest.raises(NotFoundError):
            await accounts.update_user(kv, "ghost", {"verified": True})

    @pytest.mark.asyncio
    async def test_delete_user(self, kv):
        await accounts.register(kv, "alice", "secret1")
        await accounts.register(kv, "bob", "secret1")

        result = await accounts.delete_user(kv, "alice")

        assert result == {"message": "用户删除成功"}
        assert await kv.get_json("user:alice") is None
        assert await kv.get_json("user_list") == ["bob"]

    @pytest.mark.asyncio
    async def test_delete_missing_user_is_tolerated(self, kv):
        assert await accounts.delete_user(kv, "ghost") == {"message": "用户删除成功"}

    @pytest.mark.asyncio
    async def test_delete_requires_username(self, kv):
        with pytest.raises(ValidationError):
            await accounts.delete_user(kv, "")
