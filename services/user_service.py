"""
Profile rows in user_profiles: one per Supabase auth user, carrying the plan
and the credit ledger columns.
"""
from typing import Optional, Dict, Any
from datetime import datetime, timezone
import logging
from supabase import Client

from config.decorators import retry_on_transient_error
from models.user import Plan

logger = logging.getLogger(__name__)

PROFILES_TABLE = "user_profiles"


@retry_on_transient_error
def _execute(query):
    return query.execute()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserService:
    def __init__(self, supabase_client: Client):
        self.supabase = supabase_client

    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = _execute(self.supabase.table(PROFILES_TABLE).select("*").eq("id", user_id).limit(1))
        except Exception as e:
            logger.error(f"Error getting user profile {user_id}: {str(e)}")
            return None
        return response.data[0] if response.data else None

    async def ensure_user_profile(self, user_id: str, email: str, full_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Return the user's profile, creating it on first sign-up: free plan,
        no credits used, credit cycle starting now.
        """
        existing = await self.get_user_profile(user_id)
        if existing:
            return existing

        now = _now()
        response = _execute(self.supabase.table(PROFILES_TABLE).insert({
            "id": user_id,
            "email": email,
            "full_name": full_name,
            "plan": Plan.FREE.value,
            "credits_used": 0,
            "credits_reset_at": now,
            "created_at": now,
            "updated_at": now,
        }))
        logger.info(f"Created free profile for {email}")
        return response.data[0]

    async def update_user_profile(self, user_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        changes = {k: v for k, v in fields.items() if v is not None}
        if not changes:
            return await self.get_user_profile(user_id)

        response = _execute(
            self.supabase.table(PROFILES_TABLE).update({**changes, "updated_at": _now()}).eq("id", user_id)
        )
        if not response.data:
            return None
        logger.info(f"Updated profile {user_id}: {sorted(changes)}")
        return response.data[0]

    async def set_plan(self, user_id: str, plan: Plan, subscription_status: Optional[str], **extra) -> None:
        """Move a user between free and pro; extra columns are written in the same update."""
        _execute(self.supabase.table(PROFILES_TABLE).update({
            "plan": plan.value,
            "subscription_status": subscription_status,
            "updated_at": _now(),
            **extra,
        }).eq("id", user_id))
        logger.info(f"User {user_id} moved to plan {plan.value} ({subscription_status})")

    async def set_subscription_status(self, subscription_id: str, subscription_status: str) -> None:
        """Flag whichever profile holds this subscription, leaving its plan alone."""
        _execute(
            self.supabase.table(PROFILES_TABLE)
            .update({"subscription_status": subscription_status, "updated_at": _now()})
            .eq("subscription_id", subscription_id)
        )
