"""
@file: auth.py
@description:
Bearer token authentication for the Cloude API. Access tokens are issued by
Supabase Auth; this module only validates them and exposes the caller as an
`AuthenticatedUser` dependency for protected routes.

Two validation strategies are supported:
- Local: when SUPABASE_JWT_SECRET is configured the token is decoded with the
  project's JWT secret (HS256, audience "authenticated")
- Remote: otherwise the service-role client asks Supabase Auth for the user

@dependencies:
- fastapi.security: For the OAuth2 bearer scheme
- jose: For local JWT decoding
- supabase: For remote token validation
- cloude.core.config: For JWT settings
- cloude.core.logger: For component-specific logging

@notes:
- Every 401 carries a `WWW-Authenticate: Bearer` header
- Tokens without a `sub` claim are rejected
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from supabase import AuthError, Client

from cloude.core.config import settings
from cloude.core.logger import setup_logger
from cloude.db.supabase_client import get_supabase_admin

# Create a component-specific logger
logger = setup_logger("cloude.core.auth")

# The login endpoint issues tokens; auto_error is off so a missing header gets our own message
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class Token(BaseModel):
    """Schema for the token response."""
    access_token: str
    token_type: str = "bearer"
    expires_at: Optional[int] = None  # Unix timestamp for token expiration


class AuthenticatedUser(BaseModel):
    """The caller of a protected route."""
    id: str
    email: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Sign a token the way Supabase Auth does, with the project JWT secret.

    Used by tooling and the test suite; production tokens come from Supabase.

    Args:
        data: Claims to encode; `sub` should hold the user id
        expires_delta: Lifetime of the token, one hour when omitted

    Returns:
        str: The encoded JWT token

    Raises:
        ValueError: If SUPABASE_JWT_SECRET is not configured
    """
    if not settings.SUPABASE_JWT_SECRET:
        raise ValueError("SUPABASE_JWT_SECRET is required to sign access tokens")

    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=1))
    to_encode.setdefault("aud", settings.JWT_AUDIENCE)
    to_encode.setdefault("role", "authenticated")
    to_encode.update({"exp": expire})

    logger.debug(f"Created access token for user_id: {data.get('sub')}")
    return jwt.encode(to_encode, settings.SUPABASE_JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> AuthenticatedUser:
    """
    Decode a Supabase access token with the project JWT secret.

    Raises:
        HTTPException: 401 "Invalid token" if the signature, audience or
            expiry check fails, or the token has no subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.warning(f"Token validation failed: {str(e)}")
        raise _unauthorized("Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Token is missing user_id (sub claim)")
        raise _unauthorized("Invalid token")

    return AuthenticatedUser(id=user_id, email=payload.get("email"))


def fetch_token_user(client: Client, token: str) -> AuthenticatedUser:
    """
    Ask Supabase Auth who owns the token.

    Raises:
        HTTPException: 401 "Invalid token" when Supabase rejects the token,
            401 "Authentication failed" on any other failure
    """
    try:
        response = client.auth.get_user(token)
    except AuthError as e:
        logger.warning(f"Supabase rejected token: {str(e)}")
        raise _unauthorized("Invalid token")
    except Exception as e:
        logger.error(f"Token lookup failed: {str(e)}")
        raise _unauthorized("Authentication failed")

    user = getattr(response, "user", None)
    if user is None:
        logger.warning("Supabase returned no user for token")
        raise _unauthorized("Invalid token")

    return AuthenticatedUser(id=str(user.id), email=user.email)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    client: Client = Depends(get_supabase_admin),
) -> AuthenticatedUser:
    """
    Resolve the caller of a protected route from its bearer token.

    Args:
        token: The bearer token from the Authorization header, if any
        client: Service-role Supabase client

    Returns:
        AuthenticatedUser: The authenticated user

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if not token:
        raise _unauthorized("No token provided")

    if settings.SUPABASE_JWT_SECRET:
        return decode_access_token(token)

    return fetch_token_user(client, token)
