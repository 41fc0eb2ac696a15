"""
Dodo Payments billing for UISketch.

The only thing billing changes in the app is user_profiles.plan: checkout
webhooks move a user to pro, expiry moves them back to free, and sync
re-reads Dodo when a webhook may not have arrived yet.
"""
import os
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from dodopayments import AsyncDodoPayments
from standardwebhooks import Webhook
from supabase import Client

from config.app_config import FRONTEND_URL
from models.user import Plan
from services.user_service import UserService

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_TABLE = "subscriptions"
WEBHOOK_EVENTS_TABLE = "dodo_webhook_events"
ACTIVE_SUBSCRIPTION_STATUSES = ("active", "trialing")


class DodoService:
    def __init__(self, supabase_client: Client, async_client: Optional[AsyncDodoPayments] = None):
        self.supabase = supabase_client
        self.users = UserService(supabase_client)
        self.webhook_secret = os.getenv("DODO_WEBHOOK_SECRET")
        self.pro_plan_id = os.getenv("DODO_PRO_PLAN_ID")
        self.async_client = async_client if async_client is not None else self._create_client()

        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[None]]] = {
            "subscription.active": self._on_active,
            "subscription.renewed": self._on_renewed,
            "subscription.on_hold": self._on_hold,
            "subscription.cancelled": self._on_cancelled,
            "subscription.expired": self._on_expired,
        }

    def _create_client(self) -> AsyncDodoPayments:
        api_key = os.getenv("DODO_API_KEY")
        if not (api_key and self.webhook_secret and self.pro_plan_id):
            logger.error("Dodo Payments environment variables are not fully configured.")
            raise ValueError("DODO_API_KEY, DODO_WEBHOOK_SECRET, and DODO_PRO_PLAN_ID must be set.")
        return AsyncDodoPayments(bearer_token=api_key, environment=os.getenv("DODO_ENVIRONMENT", "live_mode"))

    # Checkout and portal

    async def create_checkout_session(self, user: Dict[str, Any]) -> str:
        """
        Hosted checkout for the pro plan. The user id travels in metadata so
        the subscription.active webhook can find the profile.
        """
        if user.get("dodo_customer_id"):
            customer = {"customer_id": user["dodo_customer_id"]}
        else:
            customer = {"email": user["email"], "name": user.get("full_name") or user["email"]}

        try:
            session = await self.async_client.checkout_sessions.create(
                customer=customer,
                product_cart=[{"product_id": self.pro_plan_id, "quantity": 1}],
                return_url=f"{FRONTEND_URL}/upgrade?payment=success",
                metadata={"user_id": user["id"]},
            )
        except Exception as e:
            logger.error(f"Failed to create Dodo checkout session for user {user['id']}: {e}", exc_info=True)
            raise RuntimeError("Could not create payment session.") from e

        logger.info(f"Created Dodo checkout session for user {user['id']}")
        return session.checkout_url

    async def create_portal_session(self, dodo_customer_id: Optional[str]) -> str:
        if not dodo_customer_id:
            raise ValueError("Customer does not have a payment history.")

        try:
            portal = await self.async_client.customers.customer_portal.create(customer_id=dodo_customer_id)
        except Exception as e:
            logger.error(f"Failed to create Dodo portal session for {dodo_customer_id}: {e}", exc_info=True)
            raise RuntimeError("Could not create customer portal session.") from e
        return portal.link

    # Webhooks

    def verify_webhook(self, payload: bytes, headers: Dict[str, Any]) -> Dict[str, Any]:
        """
        Raises:
            ValueError: If the standard-webhooks signature does not verify
        """
        try:
            return Webhook(self.webhook_secret).verify(payload, headers)
        except Exception as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise ValueError("Invalid webhook signature.") from e

    async def process_webhook(self, payload: bytes, headers: Dict[str, Any]) -> Dict[str, Any]:
        event = self.verify_webhook(payload, headers)
        event_type = event.get("type")
        self._record_event(event)

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"Ignoring unhandled webhook event type: {event_type}")
        else:
            await handler(event.get("data") or {})

        return {"status": "success", "event_type": event_type}

    async def _on_active(self, data: Dict[str, Any]) -> None:
        user_id = (data.get("metadata") or {}).get("user_id")
        subscription_id = data.get("subscription_id")
        if not user_id or not subscription_id:
            logger.error("subscription.active is missing user_id metadata or subscription_id")
            return

        self.supabase.table(SUBSCRIPTIONS_TABLE).upsert({
            "dodo_subscription_id": subscription_id,
            "user_id": user_id,
            "plan_id": Plan.PRO.value,
            "status": "active",
            "current_period_start": data.get("previous_billing_date"),
            "current_period_end": data.get("next_billing_date"),
        }, on_conflict="dodo_subscription_id").execute()

        await self.users.set_plan(
            user_id,
            Plan.PRO,
            "active",
            subscription_id=subscription_id,
            dodo_customer_id=(data.get("customer") or {}).get("customer_id"),
        )

    async def _on_renewed(self, data: Dict[str, Any]) -> None:
        self._update_subscription(
            data.get("subscription_id"),
            status="active",
            current_period_start=data.get("previous_billing_date"),
            current_period_end=data.get("next_billing_date"),
            cancel_at_period_end=False,
        )

    async def _on_hold(self, data: Dict[str, Any]) -> None:
        """Payment failed: the user keeps pro, flagged past_due, until the subscription expires."""
        subscription_id = data.get("subscription_id")
        if self._update_subscription(subscription_id, status="past_due"):
            await self.users.set_subscription_status(subscription_id, "past_due")
            logger.warning(f"Subscription {subscription_id} is on hold")

    async def _on_cancelled(self, data: Dict[str, Any]) -> None:
        """Cancelled subscriptions run to the end of the paid period."""
        self._update_subscription(data.get("subscription_id"), cancel_at_period_end=True)

    async def _on_expired(self, data: Dict[str, Any]) -> None:
        user_id = (data.get("metadata") or {}).get("user_id")
        if not self._update_subscription(data.get("subscription_id"), status="expired"):
            return
        if not user_id:
            logger.error("subscription.expired is missing user_id metadata")
            return
        await self.users.set_plan(user_id, Plan.FREE, None, subscription_id=None)

    def _update_subscription(self, subscription_id: Optional[str], **fields) -> bool:
        if not subscription_id:
            logger.error(f"Webhook without subscription_id, cannot apply {sorted(fields)}")
            return False
        self.supabase.table(SUBSCRIPTIONS_TABLE).update(fields).eq("dodo_subscription_id", subscription_id).execute()
        logger.info(f"Subscription {subscription_id} updated: {fields}")
        return True

    def _record_event(self, event: Dict[str, Any]) -> None:
        """Audit trail only; a failure here does not stop the event from being applied."""
        try:
            self.supabase.table(WEBHOOK_EVENTS_TABLE).insert({
                "event_id": event.get("id"),
                "event_type": event.get("type"),
                "payload": event,
                "status": "processed",
            }).execute()
        except Exception as e:
            logger.error(f"Failed to record webhook event {event.get('id')}: {e}")

    # Sync

    async def sync_subscription(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Re-read the customer's subscriptions from Dodo and correct the plan.
        When Dodo cannot be reached the stored plan is reported unchanged.
        """
        stored = {
            "plan": user.get("plan") or Plan.FREE.value,
            "subscription_status": user.get("subscription_status"),
        }
        customer_id = user.get("dodo_customer_id")
        if not customer_id:
            return stored

        try:
            active = None
            async for subscription in self.async_client.subscriptions.list(customer_id=customer_id):
                if subscription.status in ACTIVE_SUBSCRIPTION_STATUSES:
                    active = subscription
                    break
        except Exception as e:
            logger.error(f"Error fetching subscriptions from Dodo for user {user['id']}: {e}", exc_info=True)
            return stored

        if active is None:
            await self.users.set_plan(user["id"], Plan.FREE, None, subscription_id=None)
            return {"plan": Plan.FREE.value, "subscription_status": None}

        await self.users.set_plan(user["id"], Plan.PRO, active.status, subscription_id=active.subscription_id)
        return {"plan": Plan.PRO.value, "subscription_status": active.status}
