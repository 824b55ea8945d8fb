"""
主页数据服务单元测试

测试 homesite/services/portfolio.py：
- 未初始化时的默认结构
- 缺失栏目补默认值
- last_time 严格递增
"""

from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import patch

from homesite.exceptions import ValidationError
from homesite.infra.time_utils import format_iso, parse_iso
from homesite.services import portfolio


class TestDefaults:
    def test_default_values_by_field_kind(self):
        assert portfolio.default_value("web_info") == {}
        assert portfolio.default_value("profileData") == {}
        assert portfolio.default_value("locationData") == {}
        assert portfolio.default_value("projectsData") == []
        assert portfolio.default_value("ice") is False
        assert portfolio.default_value("thema") is False
        assert portfolio.default_value("github") == ""
        assert portfolio.default_value("quoteData") == ""

    @pytest.mark.asyncio
    async def test_get_uninitialized(self, kv):
        doc = await portfolio.get_portfolio(kv)

        assert doc["last_time"] is None
        assert set(doc["data"]) == set(portfolio.REQUIRED_FIELDS)
        assert doc["data"]["sitesData"] == []
        # 读取不写入存储
        assert await kv.get("portfolio_data") is None


class TestSavePortfolio:
    @pytest.mark.asyncio
    async def test_save_fills_missing_fields(self, kv):
        result = await portfolio.save_portfolio(kv, {"github": "octocat", "custom": 1})

        assert result["message"] == "Data updated successfully"
        doc = await portfolio.get_portfolio(kv)
        assert doc["last_time"] == result["last_time"]
        assert doc["data"]["github"] == "octocat"
        assert doc["data"]["custom"] == 1
        assert doc["data"]["quoteData"] == ""
        assert doc["data"]["timelineData"] == []
        assert doc["data"]["web_info"] == {}
        assert doc["data"]["ice"] is False

    @pytest.mark.asyncio
    async def test_present_fields_are_kept_as_is(self, kv):
        await portfolio.save_portfolio(kv, {"ice": True, "tagsData": None})

        data = (await portfolio.get_portfolio(kv))["data"]
        assert data["ice"] is True
        assert data["tagsData"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [None, [], "text", 42])
    async def test_non_object_data_rejected(self, kv, data):
        with pytest.raises(ValidationError) as exc_info:
            await portfolio.save_portfolio(kv, data)

        assert exc_info.value.message == "Invalid data format: data must be an object"
        assert await kv.get("portfolio_data") is None

    @pytest.mark.asyncio
    async def test_last_time_format(self, kv):
        result = await portfolio.save_portfolio(kv, {})

        last_time = result["last_time"]
        assert last_time.endswith("Z")
        assert len(last_time) == len("2024-01-01T00:00:00.000Z")

    @pytest.mark.asyncio
    async def test_last_time_strictly_increases(self, kv):
        first = (await portfolio.save_portfolio(kv, {}))["last_time"]
        second = (await portfolio.save_portfolio(kv, {}))["last_time"]
        third = (await portfolio.save_portfolio(kv, {}))["last_time"]

        assert parse_iso(first) < parse_iso(second) < parse_iso(third)

    def test_last_time_same_millisecond_is_bumped(self):
        """同一毫秒内的两次写入，第二次在上一次基础上加 1 毫秒"""
        previous = "2024-01-01T00:00:00.257Z"
        now = datetime(2024, 1, 1, 0, 0, 0, 257800, tzinfo=timezone.utc)

        assert portfolio._next_last_time(previous, now=now) == "2024-01-01T00:00:00.258Z"

    def test_last_time_later_millisecond_not_bumped(self):
        now = datetime(2024, 1, 1, 0, 0, 0, 259400, tzinfo=timezone.utc)

        assert portfolio._next_last_time("2024-01-01T00:00:00.257Z", now=now) == "2024-01-01T00:00:00.259Z"

    @pytest.mark.asyncio
    async def test_last_time_ahead_of_clock(self, kv):
        """上一次写入的时间晚于当前时钟时，新时间在其基础上加 1 毫秒"""
        future = datetime.now(timezone.utc) + timedelta(hours=1)
        await kv.put_json("portfolio_data", {"data": {}, "last_time": format_iso(future)})

        result = await portfolio.save_portfolio(kv, {})

        assert parse_iso(result["last_time"]) - parse_iso(format_iso(future)) == timedelta(milliseconds=1)

    @pytest.mark.asyncio
    async def test_corrupt_previous_last_time_ignored(self, kv):
        await kv.put_json("portfolio_data", {"data": {}, "last_time": "yesterday"})

        result = await portfolio.save_portfolio(kv, {})

        assert parse_iso(result["last_time"])

    @pytest.mark.asyncio
    async def test_save_logs(self, kv):
        with patch.object(portfolio.logger, "info") as mock_info:
            await portfolio.save_portfolio(kv, {})
        mock_info.assert_called_once()
