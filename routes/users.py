"""
User routes for UISketch: profile and credit ledger
"""
from fastapi import APIRouter, HTTPException, status, Depends
from supabase import Client
import logging

from auth.dependencies import get_current_user, get_supabase
from models.user import UserResponse, UserCreditsInfo, CreditCheckResult
from services.credit_service import CreditService
from services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)

def get_credit_service(supabase: Client = Depends(get_supabase)) -> CreditService:
    return CreditService(supabase)

@router.get("/me", response_model=UserResponse)
async def get_me(current_user: dict = Depends(get_current_user), supabase: Client = Depends(get_supabase)):
    profile = await UserService(supabase).get_user_profile(current_user["id"])
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")
    return UserResponse(**profile)

@router.get("/credits", response_model=UserCreditsInfo)
async def get_credits(
    current_user: dict = Depends(get_current_user),
    credit_service: CreditService = Depends(get_credit_service),
):
    """
    Credit ledger for the header badge and the upgrade page.
    Unlimited values are reported as -1.
    """
    credits = await credit_service.get_user_credits(current_user["id"])
    if credits is None:
        logger.error(f"[{current_user['id']}] Credit ledger unavailable")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to get credits")
    return credits

@router.get("/credits/check", response_model=CreditCheckResult)
async def check_credits(
    current_user: dict = Depends(get_current_user),
    credit_service: CreditService = Depends(get_credit_service),
):
    return await credit_service.can_user_generate(current_user["id"])
