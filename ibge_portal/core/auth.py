"""Static bearer-token check for the sync endpoints."""

import logging
from typing import Optional

from fastapi import Header, Request

from ibge_portal.core.errors import AuthError

log = logging.getLogger("auth")


async def require_bearer_token(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> None:
    """Missing or non-Bearer header → 401, wrong token → 403."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Token de autorização não fornecido", status_code=401)

    token = authorization[len("Bearer "):]
    if token != request.app.state.settings.api_key:
        log.warning(f"Rejected bearer token on {request.url.path}")
        raise AuthError("Token de autorização inválido", status_code=403)
