"""
Security utilities for authentication and the campus identity gate
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import logging
import time

from app.config import settings
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.models.user import Viewer

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

RESTRICTED_MESSAGE = "Access Restricted: Please sign in with your school .edu email."


class SecurityManager:
    """
    Security manager for authentication
    """

    @staticmethod
    def create_access_token(
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token
        """
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
        )

        # High precision issued-at keeps tokens unique
        to_encode.update({
            "exp": expire,
            "type": "access",
            "iat": time.time(),
        })

        return jwt.encode(
            to_encode,
            settings.JWT_SECRET_KEY,
            algorithm=settings.JWT_ALGORITHM
        )

    @staticmethod
    def _token_key(token: str) -> str:
        return jwt.get_unverified_header(token).get("jti", token[-10:])

    @staticmethod
    async def is_token_blacklisted(token: str) -> bool:
        if not settings.TOKEN_REVOCATION_ENABLED:
            return False
        try:
            from app.core.redis import redis_manager
            client = await redis_manager.get_client()
            return await client.get(f"blacklist:{SecurityManager._token_key(token)}") is not None
        except Exception as e:
            logger.error(f"Error checking token blacklist: {e}")
            return False  # Fail open for availability

    @staticmethod
    async def blacklist_token(token: str, expires_at: Optional[datetime] = None):
        """
        Add token to blacklist until expiration
        """
        if not settings.TOKEN_REVOCATION_ENABLED:
            return
        try:
            from app.core.redis import redis_manager
            client = await redis_manager.get_client()

            if not expires_at:
                payload = jwt.get_unverified_claims(token)
                expires_at = datetime.fromtimestamp(payload.get("exp", 0), tz=timezone.utc)

            ttl = max(1, int((expires_at - datetime.now(timezone.utc)).total_seconds()))
            await client.setex(f"blacklist:{SecurityManager._token_key(token)}", ttl, "1")
        except Exception as e:
            logger.error(f"Error blacklisting token: {e}")

    @staticmethod
    async def decode_token(token: str) -> Dict[str, Any]:
        """
        Decode and verify a JWT token, checking blacklist first
        """
        if await SecurityManager.is_token_blacklisted(token):
            raise AuthenticationError("Token has been invalidated")

        try:
            return jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM]
            )
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            raise AuthenticationError("Could not validate credentials")


# Create global security manager
security_manager = SecurityManager()


def is_allowed_email(email: Optional[str]) -> bool:
    return bool(email) and email.strip().lower().endswith(settings.ALLOWED_EMAIL_SUFFIX)


def display_name_from_claims(payload: Dict[str, Any]) -> str:
    """Provider name, then the email's local part, then a generic label"""
    name = (payload.get("name") or "").strip()
    if name:
        return name
    email = (payload.get("email") or "").strip()
    if email and "@" in email:
        local_part = email.split("@", 1)[0]
        if local_part:
            return local_part
    return "User"


async def viewer_from_token(token: str) -> Viewer:
    """
    Resolve a signed-in viewer. Sessions from non-school accounts are revoked
    and refused.
    """
    payload = await security_manager.decode_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Could not validate credentials")

    email = payload.get("email")
    if not is_allowed_email(email):
        logger.warning(f"Rejected sign-in for {user_id}: email outside {settings.ALLOWED_EMAIL_SUFFIX}")
        await security_manager.blacklist_token(token)
        raise AuthorizationError(RESTRICTED_MESSAGE)

    return Viewer(id=str(user_id), name=display_name_from_claims(payload), email=email)


async def get_current_viewer(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Viewer:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return await viewer_from_token(credentials.credentials)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create access token helper function
    """
    return security_manager.create_access_token(data, expires_delta)
