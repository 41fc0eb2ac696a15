"""
Bearer-token authentication for UISketch.

Supabase signs access tokens with HS256 for the "authenticated" audience.
They are verified locally against the project's JWT secret and resolved to
the caller's profile row, with no round-trip to Supabase auth.
"""
import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from dotenv import load_dotenv
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from supabase import create_client, Client

from services.user_service import UserService

load_dotenv()

logger = logging.getLogger(__name__)

JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"
ACCESS_TOKEN_LIFETIME = timedelta(hours=24)

# Checked in order; all of these subclass jwt.PyJWTError
TOKEN_ERROR_DETAILS = (
    (jwt.ExpiredSignatureError, "Token has expired"),
    (jwt.InvalidAudienceError, "Invalid token audience"),
    (jwt.InvalidSignatureError, "Invalid token signature"),
)

# Profile columns handed to route handlers as the current user
CURRENT_USER_FIELDS = (
    "id",
    "email",
    "full_name",
    "plan",
    "credits_used",
    "credits_reset_at",
    "subscription_status",
    "dodo_customer_id",
)


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def current_user_from_profile(profile: Dict[str, Any]) -> Dict[str, Any]:
    user = {field: profile.get(field) for field in CURRENT_USER_FIELDS}
    user["plan"] = user["plan"] or "free"
    user["credits_used"] = user["credits_used"] or 0
    return user


def _create_supabase_client() -> Client:
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_SERVICE_KEY")
    if not supabase_url:
        raise ValueError("SUPABASE_URL environment variable is required")
    if not supabase_key:
        raise ValueError("SUPABASE_SERVICE_KEY environment variable is required")
    return create_client(supabase_url, supabase_key)


class AuthMiddleware:
    def __init__(self, supabase_client: Optional[Client] = None, jwt_secret: Optional[str] = None):
        self.jwt_secret = jwt_secret or JWT_SECRET
        if not self.jwt_secret:
            raise ValueError("SUPABASE_JWT_SECRET environment variable is required")

        self.supabase: Client = supabase_client if supabase_client is not None else _create_supabase_client()
        self.users = UserService(self.supabase)
        logger.info("Auth middleware ready with local JWT validation")

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify signature, audience and expiry and return the claims.

        Raises:
            HTTPException: 401 with a reason the client can show
        """
        try:
            claims = jwt.decode(token, self.jwt_secret, algorithms=[JWT_ALGORITHM], audience=JWT_AUDIENCE)
        except jwt.PyJWTError as e:
            for error_type, detail in TOKEN_ERROR_DETAILS:
                if isinstance(e, error_type):
                    raise unauthorized(detail) from e
            raise unauthorized(f"Invalid token: {str(e)}") from e

        if not claims.get("sub") or not claims.get("email"):
            raise unauthorized("Invalid token: missing user information")
        return claims

    async def verify_token(self, credentials: HTTPAuthorizationCredentials) -> Dict[str, Any]:
        claims = self.decode_token(credentials.credentials)

        profile = await self.users.get_user_profile(claims["sub"])
        if not profile:
            logger.warning(f"Valid token for user {claims['sub']} without a profile row")
            raise unauthorized("User profile not found")

        return current_user_from_profile(profile)

    def create_access_token(self, user_id: str, email: str) -> str:
        """Token in the same shape Supabase issues, for custom auth flows and tests."""
        issued_at = datetime.now(timezone.utc)
        return jwt.encode(
            {
                "sub": user_id,
                "email": email,
                "aud": JWT_AUDIENCE,
                "iat": issued_at,
                "exp": issued_at + ACCESS_TOKEN_LIFETIME,
            },
            self.jwt_secret,
            algorithm=JWT_ALGORITHM,
        )


# Global auth middleware instance - created on first use
auth_middleware = None

def get_auth_middleware() -> AuthMiddleware:
    global auth_middleware
    if auth_middleware is None:
        auth_middleware = AuthMiddleware()
    return auth_middleware
