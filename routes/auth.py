"""
Authentication routes for UISketch. Sign-up and sign-in go through Supabase
auth; the profile row and the access token are handled here.
"""
from fastapi import APIRouter, HTTPException, status, Depends
from fastapi.security import HTTPAuthorizationCredentials
from supabase import Client
from typing import Any, Callable, Dict, Union
import asyncio
import logging

from auth.dependencies import bearer_scheme, get_current_user, get_supabase
from auth.middleware import get_auth_middleware
from config.app_config import FRONTEND_URL
from models.user import (
    RegistrationPendingResponse,
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)
from services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)

# Supabase sign-up sends the confirmation mail synchronously
AUTH_CALL_TIMEOUT = 120


async def _call_auth(method: Callable[[Dict[str, Any]], Any], credentials: Dict[str, Any]):
    try:
        return await asyncio.wait_for(asyncio.to_thread(method, credentials), timeout=AUTH_CALL_TIMEOUT)
    except asyncio.TimeoutError:
        logger.error(f"Supabase auth call {method.__name__} timed out for {credentials.get('email')}")
        raise HTTPException(
            status_code=status.HTTP_408_REQUEST_TIMEOUT,
            detail="Authentication service timed out. Please try again."
        )


def _token_response(profile: Dict[str, Any]) -> TokenResponse:
    token = get_auth_middleware().create_access_token(profile["id"], profile["email"])
    return TokenResponse(access_token=token, user=UserResponse(**profile))


@router.post("/register", response_model=Union[TokenResponse, RegistrationPendingResponse])
async def register(request: UserCreate, supabase: Client = Depends(get_supabase)):
    """
    Register a new account on the free plan. Until the email is confirmed no
    token is issued.
    """
    try:
        auth_response = await _call_auth(supabase.auth.sign_up, {
            "email": request.email,
            "password": request.password,
            "options": {
                "data": {"full_name": request.full_name},
                "email_redirect_to": f"{FRONTEND_URL}/auth/callback",
            },
        })
        if auth_response.user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Registration failed. Email might already be registered."
            )

        account = auth_response.user
        profile = await UserService(supabase).ensure_user_profile(account.id, account.email, request.full_name)

        if not account.email_confirmed_at:
            logger.info(f"Registered {request.email}, waiting for email confirmation")
            return RegistrationPendingResponse(
                message="Registration successful. Please check your email to confirm your account.",
                user_id=account.id,
            )

        logger.info(f"Registered and confirmed {request.email}")
        return _token_response(profile)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Registration error for {request.email}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Registration failed")


@router.post("/login", response_model=TokenResponse)
async def login(request: UserLogin, supabase: Client = Depends(get_supabase)):
    try:
        auth_response = await _call_auth(
            supabase.auth.sign_in_with_password,
            {"email": request.email, "password": request.password},
        )
    except HTTPException:
        raise
    except Exception as e:
        # Supabase raises on bad credentials
        logger.info(f"Login rejected for {request.email}: {str(e)}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    if auth_response.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    account = auth_response.user
    profile = await UserService(supabase).ensure_user_profile(account.id, account.email)
    logger.info(f"User logged in: {request.email}")
    return _token_response(profile)


@router.post("/logout")
async def logout(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
                 supabase: Client = Depends(get_supabase)):
    """
    Best-effort: tokens are stateless and simply expire on the client.
    """
    try:
        supabase.auth.sign_out()
    except Exception as e:
        logger.warning(f"Logout error: {str(e)}")
    return {"message": "Logged out successfully"}


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: dict = Depends(get_current_user), supabase: Client = Depends(get_supabase)):
    profile = await UserService(supabase).get_user_profile(current_user["id"])
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")
    return UserResponse(**profile)


@router.put("/profile", response_model=UserResponse)
async def update_profile(update_data: UserUpdate, current_user: dict = Depends(get_current_user),
                         supabase: Client = Depends(get_supabase)):
    fields = update_data.model_dump(exclude_none=True)
    if not fields:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    profile = await UserService(supabase).update_user_profile(current_user["id"], fields)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")
    return UserResponse(**profile)
