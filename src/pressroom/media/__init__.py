"""
Media passthrough proxy for third-party image hosts.
"""

from pressroom.media.proxy import (
    CORS_HEADERS,
    DEFAULT_ALLOWED_HOSTS,
    PROXY_PATH,
    MediaProxy,
    ProxiedMedia,
    is_blocked_address,
    resolve_host,
    rewrite_url,
)

__all__ = [
    "CORS_HEADERS",
    "DEFAULT_ALLOWED_HOSTS",
    "PROXY_PATH",
    "MediaProxy",
    "ProxiedMedia",
    "is_blocked_address",
    "resolve_host",
    "rewrite_url",
]
