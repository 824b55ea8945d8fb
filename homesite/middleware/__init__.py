"""
中间件模块

提供 FastAPI 中间件：
- RequestTraceMiddleware: 请求追踪、日志记录、未处理异常兜底
- CORSHeadersMiddleware: 跨域响应头与预检短路
"""

from homesite.middleware.cors import CORSHeadersMiddleware
from homesite.middleware.request_trace import RequestTraceMiddleware

__all__ = ["CORSHeadersMiddleware", "RequestTraceMiddleware"]
