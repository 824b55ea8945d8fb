"""
数据模型层

KV 中存放的 JSON 文档结构：
    UserAccount  → user:<username>

主页数据（portfolio_data）是自由结构的 JSON，不建模。
"""

from homesite.models.user import UserAccount

__all__ = ["UserAccount"]
