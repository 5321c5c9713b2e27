from supabase import Client
from app.config import settings
from app.modules.subscriptions import rules
from app.modules.subscriptions.schemas import CheckoutRequest, CheckoutResponse, PortalResponse
from app.modules.subscriptions.stripe_client import configure_stripe
from typing import Dict, Optional
from fastapi import HTTPException
import logging
import stripe

logger = logging.getLogger(__name__)


class SubscriptionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _resolve_price_id(self, request: CheckoutRequest) -> Optional[str]:
        if request.price_id:
            return request.price_id
        if request.tier:
            return settings.get_price_id(request.tier)
        return None

    def create_checkout(self, request: CheckoutRequest, user_data: Dict) -> CheckoutResponse:
        """Start a Stripe Checkout Session in subscription mode. The free tier never reaches Stripe."""
        if request.tier and not rules.is_valid_tier(request.tier):
            raise HTTPException(status_code=400, detail=f"Invalid tier: {request.tier}")
        if request.tier == "free":
            return CheckoutResponse(tier="free", message="Free tier requires no payment")

        price_id = self._resolve_price_id(request)
        errors = rules.validate_checkout_request(price_id, request.success_url, request.cancel_url)
        if errors:
            raise HTTPException(status_code=400, detail=errors)

        metadata = {
            "user_id": user_data["id"],
            "tier": request.tier or "",
            "user_type": request.user_type,
        }
        try:
            configure_stripe()
            session = stripe.checkout.Session.create(
                mode="subscription",
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=request.success_url,
                cancel_url=request.cancel_url,
                customer_email=user_data.get("email"),
                client_reference_id=user_data["id"],
                metadata=metadata,
                subscription_data={"metadata": metadata},
            )
            logger.info(f"Checkout session {session.id} created for {user_data['id']} ({request.tier or price_id})")
            return CheckoutResponse(tier=request.tier, session_id=session.id, url=session.url)
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout failed for {user_data['id']}: {e}")
            raise HTTPException(status_code=500, detail=rules.payment_error_message(getattr(e, "code", None)))

    def create_portal(self, user_id: str, return_url: Optional[str] = None) -> PortalResponse:
        result = self.supabase.table("subscriptions")\
            .select("stripe_customer_id")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data or not result.data.get("stripe_customer_id"):
            raise HTTPException(status_code=404, detail="No Stripe customer found for this user")
        try:
            configure_stripe()
            session = stripe.billing_portal.Session.create(
                customer=result.data["stripe_customer_id"],
                return_url=return_url or settings.site_url,
            )
            return PortalResponse(url=session.url)
        except stripe.StripeError as e:
            logger.error(f"Stripe portal session failed for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
