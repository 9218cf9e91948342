"""
Auth Module - Dependencies
===========================
FastAPI dependencies resolving the current actor from the bearer token.
These are injected into route handlers via Depends().
"""

from typing import Optional

from fastapi import Request, Depends, HTTPException, status

from common.security import decode_token
from modules.user.models import Actor, Role


def get_current_actor(request: Request) -> Optional[Actor]:
    """
    Identify the caller from the Authorization header (or auth_token cookie).
    Returns Actor or None.
    """
    token = None
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        token = header[7:].strip()
    if not token:
        token = request.cookies.get("auth_token")
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    sub = payload.get("sub")
    try:
        actor_id = int(sub)
        role = Role(payload.get("role", Role.BORROWER.value))
    except (TypeError, ValueError):
        return None

    return Actor(id=actor_id, role=role)


def require_login(actor=Depends(get_current_actor)) -> Actor:
    """Require any authenticated actor. Raises 401 if not logged in."""
    if not actor:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="login_required")
    return actor


def require_admin(actor=Depends(get_current_actor)) -> Actor:
    """Only allow admins. Raises 403 otherwise."""
    if not actor:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="login_required")
    if not actor.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Akses ditolak")
    return actor
