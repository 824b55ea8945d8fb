"""
日志配置

- 生产环境输出单行 JSON，开发环境输出带颜色的可读格式
- 每条日志自动带上当前请求 ID 和登录用户（由中间件和认证依赖写入上下文）

使用示例：
    from homesite.infra.logging import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("主页数据已更新", extra={"last_time": "..."})
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from homesite.config import get_settings

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
username_var: ContextVar[str | None] = ContextVar("username", default=None)

# LogRecord 自带的属性，其余属性视为 extra
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "request_id", "username"}

NOISY_LOGGERS = ("uvicorn.access", "uvicorn.error", "httpx", "httpcore", "redis")


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def set_username(username: str | None) -> None:
    username_var.set(username)


class ContextFilter(logging.Filter):
    """把请求上下文写到 LogRecord 上，供格式化器使用"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.username = username_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """
    单行 JSON，字段：
        timestamp / level / logger / message / request_id / username / extra / exception
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("request_id", "username"):
            value = getattr(record, key, None)
            if value:
                entry[key] = value

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS and not k.startswith("_")}
        if extra:
            entry["extra"] = extra
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """2024-01-01 00:00:00 INFO     [1a2b3c4d] <alice> homesite.services.accounts - 消息"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        line = f"{self.formatTime(record, '%Y-%m-%d %H:%M:%S')} {color}{record.levelname:8}{self.RESET}"

        request_id = getattr(record, "request_id", None)
        if request_id:
            line += f" [{request_id[:8]}]"
        username = getattr(record, "username", None)
        if username:
            line += f" <{username}>"

        line += f" {record.name} - {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str | None = None, json_format: bool | None = None) -> None:
    """
    配置根 logger

    json_format 未指定时跟随 log_json 配置；log_json 也未配置时，
    dev/test 环境使用控制台格式，其余环境使用 JSON。
    """
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    if json_format is None:
        json_format = settings.log_json
    if json_format is None:
        json_format = settings.environment not in ("dev", "development", "test")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else ConsoleFormatter())
    handler.addFilter(ContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class RequestTimer:
    """请求耗时（毫秒）"""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._start) * 1000, 2)
