"""
访客 IP 服务

从平台注入的请求头推断访客 IP 和地理位置（Cloudflare 风格）：
- IP:   CF-Connecting-IP → X-Forwarded-For（第一跳）→ X-Real-IP → 连接对端地址
- 位置: CF-IPCountry / CF-Region / CF-IPCity

尽力而为，任何异常都返回兜底信息，不影响页面。
"""

import logging

from starlette.requests import Request

logger = logging.getLogger(__name__)

UNKNOWN = "未知"
UNKNOWN_IP = "未知IP"
UNKNOWN_LOCATION = "未知位置"
FALLBACK_TEXT = "无法获取IP地址"


def _client_ip(request: Request) -> str:
    headers = request.headers
    ip = headers.get("CF-Connecting-IP")
    if ip:
        return ip.strip()

    forwarded = headers.get("X-Forwarded-For")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_IP


def _display_ip(ip: str) -> str:
    # IPv6 地址过长时截断显示
    if ":" in ip and len(ip) > 20:
        return ip[:26] + "..."
    return ip


def describe_visitor(request: Request) -> dict:
    """构建访客信息"""
    ip = _client_ip(request)
    display_ip = _display_ip(ip)

    country = request.headers.get("CF-IPCountry") or UNKNOWN
    region = request.headers.get("CF-Region") or UNKNOWN
    city = request.headers.get("CF-IPCity") or UNKNOWN

    parts = [p for p in (country, region, city) if p and p != UNKNOWN]
    location = " ".join(parts) if parts else UNKNOWN_LOCATION

    return {
        "ip": display_ip,
        "fullIP": ip,
        "country": country,
        "region": region,
        "city": city,
        "location": location,
        "displayText": f"{display_ip}<br>({location} 的好友)",
    }


def visitor_info(request: Request) -> dict:
    """获取访客信息，失败时返回兜底内容"""
    try:
        return describe_visitor(request)
    except Exception as e:
        logger.warning(f"获取访客 IP 失败: {e}")
        return {
            "error": "Failed to get IP information",
            "ip": FALLBACK_TEXT,
            "displayText": FALLBACK_TEXT,
        }
