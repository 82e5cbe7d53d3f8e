"""
Authentication — Supabase JWT verification and cron secret checks.

Dashboard users sign in through Supabase Auth; the frontend forwards the
access token as a Bearer header. Scheduled jobs (external cron) call the
cron endpoints with `Authorization: Bearer <CRON_SECRET>`.
"""
import hmac
import logging
from typing import Optional, List

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)
security = HTTPBearer()


def decode_supabase_token(token: str) -> dict:
    """Verify an HS256 Supabase access token and return its claims."""
    if not settings.supabase_jwt_secret:
        raise JWTError("SUPABASE_JWT_SECRET is not configured")
    return jwt.decode(
        token,
        settings.supabase_jwt_secret,
        algorithms=["HS256"],
        audience=settings.supabase_jwt_audience,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Validate the Supabase JWT and return user data.

    Token validation includes signature, expiry and audience checks.
    """
    token = credentials.credentials

    logger.debug("Validating Supabase authentication token")
    try:
        payload = decode_supabase_token(token)
    except JWTError as e:
        logger.warning(f"Authentication failed - JWT error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "code": "UNAUTHORIZED",
                "message": f"Invalid or expired token: {str(e)}",
            },
        )

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("Authentication failed - missing user ID in token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "code": "UNAUTHORIZED",
                "message": "Invalid token: missing user ID",
            },
        )

    app_metadata = payload.get("app_metadata") or {}
    role = app_metadata.get("role") or payload.get("role", "authenticated")

    logger.debug(f"Authentication successful - user_id: {user_id}, role: {role}")

    return {
        "user_id": user_id,
        "email": payload.get("email"),
        "role": role,
        "scope": (payload.get("scope") or "").split(),
    }


def require_roles(required_roles: List[str]):
    """
    Dependency factory for requiring specific app roles.

    Usage:
        @router.delete("/rules/{rule_id}")
        async def delete_rule(user: dict = Depends(require_roles(["admin"]))):
            ...
    """
    async def check_roles(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in required_roles:
            logger.warning(
                f"Access denied - user {user.get('user_id')} has role {user.get('role')}, "
                f"needs one of: {required_roles}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "FORBIDDEN",
                    "message": f"Access denied. Required roles: {required_roles}",
                },
            )

        return user

    return check_roles


require_admin = require_roles(["admin"])


async def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Reject cron calls whose Bearer token does not match CRON_SECRET."""
    expected = settings.cron_secret
    if not expected:
        logger.warning("Cron call rejected - CRON_SECRET is not configured")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    supplied = authorization or ""
    if not hmac.compare_digest(supplied.encode(), f"Bearer {expected}".encode()):
        logger.warning("Cron call rejected - bad secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
