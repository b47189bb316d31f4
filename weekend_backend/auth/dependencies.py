"""
FastAPI dependency functions for authentication.

These functions are used as FastAPI dependencies to verify Supabase Auth
Bearer tokens and resolve the authenticated user's numeric id and role.

Uses Supabase's JWT Signing Keys system with ECC (P-256) public key verification.
The numeric user id and the role come from custom access token claims
(USER_ID_CLAIM / USER_ROLE_CLAIM, added by a Supabase custom access token hook).
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from jwt import PyJWKClient, decode
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError, PyJWKClientError

from weekend_backend.config import settings

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

# Initialize JWKS client for fetching and caching Supabase's public keys
_jwks_client: PyJWKClient | None = None


@dataclass
class AuthenticatedUser:
    """
    The caller resolved from a verified access token.

    Attributes:
        user_id: Numeric user id from the USER_ID_CLAIM claim
        role: Application role from the USER_ROLE_CLAIM claim, if any
    """
    user_id: int
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def _unauthorized(error: str, details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "details": details}
    )


def get_jwks_client() -> PyJWKClient:
    """
    Get or create the JWKS client instance.

    Lazy initialization ensures we only create the client when needed.
    The client caches JWKS responses to minimize network calls.

    Raises:
        ValueError: If SUPABASE_URL is not configured
    """
    global _jwks_client

    if _jwks_client is None:
        jwks_url = settings.SUPABASE_JWKS_URL
        if not jwks_url:
            raise ValueError(
                "SUPABASE_URL is not configured. "
                "Cannot construct JWKS URL for JWT verification."
            )

        logger.info(f"Initializing JWKS client with URL: {jwks_url}")
        _jwks_client = PyJWKClient(
            jwks_url,
            cache_keys=True,
            max_cached_keys=16,
        )

    return _jwks_client


def user_from_claims(payload: Dict[str, Any]) -> AuthenticatedUser:
    """
    Build an AuthenticatedUser from verified token claims.

    Raises:
        HTTPException: 401 if the user id claim is missing or not an integer
    """
    raw_user_id = payload.get(settings.USER_ID_CLAIM)

    if isinstance(raw_user_id, bool) or raw_user_id is None:
        logger.error(f"Token payload missing '{settings.USER_ID_CLAIM}' claim")
        raise _unauthorized("unauthorized", "Invalid token: missing user ID")

    try:
        user_id = int(raw_user_id)
    except (TypeError, ValueError):
        logger.error(f"Token claim '{settings.USER_ID_CLAIM}' is not numeric")
        raise _unauthorized("unauthorized", "Invalid token: malformed user ID")

    role = payload.get(settings.USER_ROLE_CLAIM)
    return AuthenticatedUser(
        user_id=user_id,
        role=str(role) if role is not None else None,
    )


async def get_authenticated_user(
    authorization: Annotated[str | None, Header()] = None
) -> AuthenticatedUser:
    """
    Verify Supabase Auth Bearer token and return the authenticated user.

    This is a FastAPI dependency that:
    1. Reads Authorization header (format: "Bearer <token>")
    2. Verifies token signature, audience, issuer and expiration
    3. Extracts the numeric user id and the role claim

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired

    Security:
        - This is the ONLY source of truth for user_id
        - Any user_id sent in request body is ignored
    """
    if not authorization:
        logger.warning("Missing Authorization header")
        raise _unauthorized("unauthorized", "Missing Authorization header")

    # Extract token from "Bearer <token>" format
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Invalid Authorization header format")
        raise _unauthorized("unauthorized", "Invalid Authorization header format")

    token = parts[1]

    try:
        jwks_client = get_jwks_client()
        signing_key = jwks_client.get_signing_key_from_jwt(token)

        # Supabase tokens use an issuer that includes the /auth/v1 path
        issuer = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1"

        payload = decode(
            token,
            signing_key.key,
            algorithms=["ES256"],
            audience="authenticated",
            issuer=issuer,
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_aud": True,
                "verify_iss": True,
            }
        )

    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise _unauthorized("token_expired", "Authentication token has expired")

    except PyJWKClientError as e:
        logger.error(f"JWKS client error: {str(e)}")
        raise _unauthorized("jwks_error", "Unable to verify token signature")

    except InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise _unauthorized("invalid_token", "Invalid authentication token")

    except ValueError as e:
        logger.error(f"Token verification not configured: {str(e)}")
        raise _unauthorized("unauthorized", "Token verification failed")

    user = user_from_claims(payload)
    logger.info(f"Token verified successfully for user_id={user.user_id}")
    return user


async def require_admin(
    auth_user: AuthenticatedUser = Depends(get_authenticated_user)
) -> AuthenticatedUser:
    """
    Allow only users whose role claim is 'admin'.

    Raises:
        HTTPException: 403 for authenticated non-admin users
    """
    if not auth_user.is_admin:
        logger.warning(f"Admin access denied for user_id={auth_user.user_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "forbidden", "details": "Admin access required"}
        )
    return auth_user
