"""
Billing routes: Pro upgrade through Dodo Payments.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from supabase import Client

from auth.dependencies import get_current_user, get_supabase
from models.user import Plan
from services.dodo_service import DodoService

router = APIRouter(prefix="/dodo", tags=["Billing"])
logger = logging.getLogger(__name__)

class CheckoutResponse(BaseModel):
    checkout_url: str

class PortalResponse(BaseModel):
    portal_url: str

class SyncResponse(BaseModel):
    plan: Plan
    subscription_status: Optional[str] = None

def get_dodo_service(supabase: Client = Depends(get_supabase)) -> DodoService:
    return DodoService(supabase)

@router.post("/create-checkout", response_model=CheckoutResponse)
async def create_checkout(
    current_user: dict = Depends(get_current_user),
    dodo_service: DodoService = Depends(get_dodo_service),
):
    if current_user.get("plan") == Plan.PRO.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You are already on the Pro plan.")

    try:
        return CheckoutResponse(checkout_url=await dodo_service.create_checkout_session(current_user))
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

@router.post("/webhook")
async def receive_webhook(request: Request, dodo_service: DodoService = Depends(get_dodo_service)):
    """
    Signed Dodo Payments events. 400 on a bad signature so Dodo does not keep retrying forged calls.
    """
    try:
        return await dodo_service.process_webhook(await request.body(), dict(request.headers))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error processing Dodo webhook: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook processing failed due to an internal error."
        )

@router.post("/portal", response_model=PortalResponse)
async def create_portal(
    current_user: dict = Depends(get_current_user),
    dodo_service: DodoService = Depends(get_dodo_service),
):
    if not current_user.get("dodo_customer_id"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No subscription found for this user.")

    try:
        return PortalResponse(portal_url=await dodo_service.create_portal_session(current_user["dodo_customer_id"]))
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

@router.post("/sync", response_model=SyncResponse)
async def sync_subscription(
    current_user: dict = Depends(get_current_user),
    dodo_service: DodoService = Depends(get_dodo_service),
):
    """
    Called when checkout returns, so the plan is right even before the webhook lands.
    """
    result = await dodo_service.sync_subscription(current_user)
    logger.info(f"[{current_user['id']}] Subscription synced: {result['plan']}")
    return SyncResponse(**result)
