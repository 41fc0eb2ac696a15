"""
Credit ledger for UISketch.

Free accounts get a fixed number of generations per cycle; pro accounts are
unlimited. The check and the increment are separate calls, so two requests
racing on the last credit can both pass the check.
"""
from typing import Optional, Dict, Any, Tuple
from datetime import datetime, timedelta, timezone
import logging
from supabase import Client

from config.tier_config import get_tier_features, is_unlimited
from models.user import Plan, UserCreditsInfo, CreditCheckResult

logger = logging.getLogger(__name__)

UNLIMITED = -1
USER_NOT_FOUND = "User not found"


def parse_timestamp(value: Any) -> datetime:
    """Supabase returns ISO strings, sometimes with a trailing Z."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def roll_cycle(reset_at: datetime, now: datetime, interval_days: int) -> Tuple[datetime, bool]:
    """
    Advance the cycle start by whole cycles until the cycle contains now.
    Returns the new cycle start and whether it moved.
    """
    cycle = timedelta(days=interval_days)
    elapsed = now - reset_at
    if elapsed < cycle:
        return reset_at, False
    cycles = int(elapsed // cycle)
    return reset_at + cycles * cycle, True


def limit_reached_message(cap: int) -> str:
    return f"You've used all {cap} free generations this month. Upgrade to Pro for unlimited generations!"


class CreditService:
    def __init__(self, supabase_client: Client):
        self.supabase = supabase_client

    def _fetch_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        response = self.supabase.table("user_profiles").select(
            "id, plan, credits_used, credits_reset_at, subscription_status"
        ).eq("id", user_id).limit(1).execute()
        return response.data[0] if response.data else None

    def _roll_if_elapsed(self, user_id: str, profile: Dict[str, Any]) -> Dict[str, Any]:
        """Reset credits_used when the free cycle has elapsed, persisting the new cycle start."""
        features = get_tier_features(profile.get("plan", Plan.FREE.value))
        interval_days = features.get("credits_reset_interval_days")
        if not interval_days:
            return profile

        reset_at = parse_timestamp(profile["credits_reset_at"])
        new_reset_at, rolled = roll_cycle(reset_at, datetime.now(timezone.utc), interval_days)
        if not rolled:
            return profile

        update_data = {"credits_used": 0, "credits_reset_at": new_reset_at.isoformat()}
        self.supabase.table("user_profiles").update(update_data).eq("id", user_id).execute()
        logger.info(f"Credit cycle rolled for user {user_id}, new cycle starts {new_reset_at.isoformat()}")
        return {**profile, **update_data}

    async def get_user_credits(self, user_id: str) -> Optional[UserCreditsInfo]:
        try:
            profile = self._fetch_profile(user_id)
            if not profile:
                return None

            plan = profile.get("plan", Plan.FREE.value)
            if not is_unlimited(plan):
                profile = self._roll_if_elapsed(user_id, profile)

            credits_used = profile.get("credits_used", 0)

            if is_unlimited(plan):
                return UserCreditsInfo(
                    plan=plan,
                    credits_used=credits_used,
                    credits_remaining=UNLIMITED,
                    credits_total=UNLIMITED,
                    is_unlimited=True,
                    can_generate=True,
                    reset_date=None,
                    subscription_status=profile.get("subscription_status"),
                )

            features = get_tier_features(plan)
            cap = features["credits_limit"]
            reset_at = parse_timestamp(profile["credits_reset_at"])
            return UserCreditsInfo(
                plan=plan,
                credits_used=credits_used,
                credits_remaining=max(0, cap - credits_used),
                credits_total=cap,
                is_unlimited=False,
                can_generate=credits_used < cap,
                reset_date=reset_at + timedelta(days=features["credits_reset_interval_days"]),
                subscription_status=profile.get("subscription_status"),
            )

        except Exception as e:
            logger.error(f"Error fetching credits for user {user_id}: {str(e)}", exc_info=True)
            return None

    async def can_user_generate(self, user_id: str) -> CreditCheckResult:
        try:
            profile = self._fetch_profile(user_id)
            if not profile:
                return CreditCheckResult(can_generate=False, reason=USER_NOT_FOUND)

            plan = profile.get("plan", Plan.FREE.value)
            if is_unlimited(plan):
                return CreditCheckResult(can_generate=True)

            profile = self._roll_if_elapsed(user_id, profile)
            cap = get_tier_features(plan)["credits_limit"]

            if profile.get("credits_used", 0) >= cap:
                return CreditCheckResult(can_generate=False, reason=limit_reached_message(cap), limit_reached=True)

            return CreditCheckResult(can_generate=True)

        except Exception as e:
            logger.error(f"Error checking generation eligibility for user {user_id}: {str(e)}", exc_info=True)
            return CreditCheckResult(can_generate=False, reason="Error checking credits")

    async def increment_credits_used(self, user_id: str) -> bool:
        """
        Consume one credit. Pro accounts are never charged.
        Not atomic with can_user_generate: concurrent submissions at the cap can both pass.
        """
        try:
            profile = self._fetch_profile(user_id)
            if not profile:
                logger.error(f"Cannot increment credits, user {user_id} not found")
                return False

            if is_unlimited(profile.get("plan", Plan.FREE.value)):
                return True

            new_usage = profile.get("credits_used", 0) + 1
            response = self.supabase.table("user_profiles").update({
                "credits_used": new_usage,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }).eq("id", user_id).execute()

            if response.data:
                logger.info(f"Updated credits for user {user_id}: {new_usage}")
                return True
            return False

        except Exception as e:
            logger.error(f"Error incrementing credits for user {user_id}: {str(e)}")
            return False

    async def refund_credit(self, user_id: str) -> bool:
        """Give back a credit charged for work that never got queued."""
        try:
            profile = self._fetch_profile(user_id)
            if not profile:
                logger.error(f"Cannot refund credit, user {user_id} not found")
                return False

            if is_unlimited(profile.get("plan", Plan.FREE.value)):
                return True

            new_usage = max(0, profile.get("credits_used", 0) - 1)
            response = self.supabase.table("user_profiles").update({
                "credits_used": new_usage,
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }).eq("id", user_id).execute()

            if response.data:
                logger.info(f"Refunded credit for user {user_id}: {new_usage}")
                return True
            return False

        except Exception as e:
            logger.error(f"Error refunding credit for user {user_id}: {str(e)}")
            return False
