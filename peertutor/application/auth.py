"""Bearer token verification producing the AuthContext for each request."""

import logging
from typing import Optional

from fastapi import Header, HTTPException, status
from jose import JWTError, jwt

from ..domain.entities.auth import AuthContext
from .config import settings

logger = logging.getLogger(__name__)


def decode_token(token: str, secret: Optional[str] = None, algorithm: Optional[str] = None) -> AuthContext:
    """
    Verify a JWT and extract the actor identity.

    The token must carry a ``userId`` (or standard ``sub``) claim and may
    carry an ``isTutor`` flag.

    Raises:
        JWTError: If the signature, expiry or claims are invalid.
    """
    claims = jwt.decode(
        token,
        secret or settings.jwt_secret,
        algorithms=[algorithm or settings.jwt_algorithm],
    )
    user_id = claims.get("userId") or claims.get("sub")
    if not user_id:
        raise JWTError("Token has no user identity")
    return AuthContext(user_id=str(user_id), is_tutor=bool(claims.get("isTutor", False)))


async def get_auth_context(authorization: Optional[str] = Header(None)) -> AuthContext:
    """FastAPI dependency resolving the Authorization header to an AuthContext."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication token, access denied",
        )

    try:
        return decode_token(authorization[len("Bearer "):])
    except JWTError as e:
        logger.warning(f"Rejected token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")
