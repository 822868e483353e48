"""
Transport layer - HTTP client and credentials for external services.

Provides httpx-based transport with:
- Fixed request timeouts
- Credential resolution from explicit values and environment
- OAuth2 client-credentials token caching
"""

from pressroom.transport.auth import (
    basic_auth_header,
    bearer_auth_header,
    resolve_credential,
)
from pressroom.transport.http import HttpTransport, build_client, resolve_timeout
from pressroom.transport.token_cache import CachedToken, TokenCache

__all__ = [
    "CachedToken",
    "HttpTransport",
    "TokenCache",
    "basic_auth_header",
    "bearer_auth_header",
    "build_client",
    "resolve_credential",
    "resolve_timeout",
]
