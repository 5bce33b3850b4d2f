"""
Authentication dependencies for FastAPI.

This module resolves the caller context from a bearer token. It never
rejects a request itself; the ledger's authorization gate decides.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from backend.app.core.jwt import decode_access_token
from backend.app.domain.wallet.authorization import CallerContext

# HTTP Bearer security scheme (missing header yields None instead of 403)
security = HTTPBearer(auto_error=False)


async def get_caller_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[CallerContext]:
    """
    FastAPI dependency for the authenticated caller.

    Args:
        credentials: HTTP Bearer token from request header

    Returns:
        CallerContext for a valid token carrying a subject, None otherwise
    """
    if credentials is None:
        return None

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        return None

    uid = payload.get("sub")
    if not isinstance(uid, str) or not uid:
        return None

    return CallerContext(uid=uid, username=payload.get("username"))
