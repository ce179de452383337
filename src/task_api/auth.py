from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import Unauthenticated
from .settings import Settings, get_settings

_security = HTTPBearer(auto_error=False)

_CHALLENGE = {"WWW-Authenticate": "Bearer"}


# PUBLIC_INTERFACE
async def require_bearer_token(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Enforce the bearer-token gate when ENABLE_AUTH is on; no-op otherwise.

    Raises:
        Unauthenticated if the token is missing, wrong, or the server has no
        AUTH_TOKEN configured. The error is rendered with the standard
        envelope and a ``WWW-Authenticate: Bearer`` header.
    """
    if not settings.enable_auth:
        return None

    if creds is None or not creds.credentials:
        raise Unauthenticated("Not authenticated", headers=_CHALLENGE)

    if not settings.auth_token:
        # Auth enabled but AUTH_TOKEN not provided
        raise Unauthenticated("Server authentication not configured", headers=_CHALLENGE)

    if not secrets.compare_digest(creds.credentials.encode(), settings.auth_token.encode()):
        raise Unauthenticated("Invalid authentication credentials", headers=_CHALLENGE)
    return None
