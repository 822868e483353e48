"""
Credential resolution utilities.

Resolves provider credentials from:
1. Explicit value
2. Environment variables
"""

from __future__ import annotations

import base64
import os


def resolve_credential(env_var: str, explicit: str | None = None) -> str | None:
    """Resolve a credential for a provider.

    Resolution order:
    1. Explicit value if provided
    2. Environment variable `env_var`

    Blank values count as absent, so an empty variable disables the
    provider instead of producing an authentication error.

    Args:
        env_var: Environment variable name (e.g. "PEXELS_API_KEY")
        explicit: Explicitly provided value

    Returns:
        Resolved credential or None if not found
    """
    if explicit and explicit.strip():
        return explicit.strip()

    value = os.getenv(env_var)
    if value and value.strip():
        return value.strip()

    return None


def basic_auth_header(username: str, password: str) -> dict[str, str]:
    """Build a Basic authorization header."""
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return {"Authorization": f"Basic {token}"}


def bearer_auth_header(token: str) -> dict[str, str]:
    """Build a Bearer authorization header."""
    return {"Authorization": f"Bearer {token}"}
