"""主页数据相关的请求/响应模型"""

from typing import Any

from pydantic import BaseModel


class PortfolioUpdate(BaseModel):
    """
    保存主页数据请求

    data 为自由结构对象，是否为对象由服务层校验，
    客户端传入的 last_time 会被忽略。
    """
    data: Any = None


class PortfolioSaveResponse(BaseModel):
    message: str
    last_time: str
