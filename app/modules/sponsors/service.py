from supabase import Client
from app.modules.sponsors.rules import validate_corporate_metadata, tier_benefits
from app.modules.sponsors.schemas import SponsorResponse, SponsorBenefit, SponsorDetail
from app.core.timeutils import utcnow
from typing import List, Dict, Any
from datetime import timedelta
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SUBSCRIPTION_PERIOD = timedelta(days=30)


class SponsorService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def handle_corporate_checkout(self, session: Dict[str, Any]) -> Dict[str, Any]:
        """
        Activate a corporate sponsorship from a completed Stripe Checkout session.

        Metadata is validated before anything is written. The welcome email is best-effort
        and never fails the webhook.
        """
        metadata = session.get("metadata") or {}
        problem = validate_corporate_metadata(metadata)
        if problem:
            logger.error(
                f"Rejected corporate checkout {session.get('id')}: {problem} "
                f"(has_user_id={bool(metadata.get('user_id'))}, has_tier={bool(metadata.get('tier'))}, "
                f"has_company_name={bool(metadata.get('company_name'))})"
            )
            raise HTTPException(status_code=400, detail=problem)

        now = utcnow()
        tier = metadata["tier"].lower()
        try:
            result = self.supabase.table("corporate_subscriptions").upsert({
                "user_id": metadata["user_id"],
                "tier": tier,
                "company_name": metadata["company_name"][:255],
                "logo_url": (metadata.get("logo_url") or "")[:2048] or None,
                "website_url": (metadata.get("website_url") or "")[:2048] or None,
                "stripe_customer_id": session.get("customer"),
                "stripe_subscription_id": session.get("subscription"),
                "status": "active",
                "current_period_start": now.isoformat(),
                "current_period_end": (now + SUBSCRIPTION_PERIOD).isoformat(),
                "cancel_at_period_end": False,
            }, on_conflict="user_id").execute()
        except Exception as e:
            logger.error(f"Error creating corporate subscription for {metadata['user_id']}: {e}")
            raise HTTPException(status_code=500, detail="Database error creating subscription")
        if not result.data:
            raise HTTPException(status_code=500, detail="Database error creating subscription")
        subscription = result.data[0]
        logger.info(f"Corporate subscription {subscription['id']} active for user {metadata['user_id']} ({tier})")

        self._grant_benefits(subscription["id"], tier)
        self._init_impact_metrics(subscription["id"], now.date().isoformat())
        self._send_welcome(metadata["user_id"], metadata["company_name"], tier)
        return subscription

    def _grant_benefits(self, subscription_id: str, tier: str):
        self.supabase.table("sponsor_benefits").delete().eq("subscription_id", subscription_id).execute()
        rows = [{"subscription_id": subscription_id, **benefit} for benefit in tier_benefits(tier)]
        self.supabase.table("sponsor_benefits").insert(rows).execute()
        logger.info(f"Granted {len(rows)} benefit(s) for tier {tier}")

    def _init_impact_metrics(self, subscription_id: str, metric_date: str):
        self.supabase.table("sponsor_impact_metrics").upsert({
            "subscription_id": subscription_id,
            "metric_date": metric_date,
            "businesses_supported": 0,
            "total_transactions": 0,
            "community_reach": 0,
            "economic_impact": 0,
        }, on_conflict="subscription_id,metric_date").execute()

    def _send_welcome(self, user_id: str, company_name: str, tier: str):
        try:
            user_response = self.supabase.auth.admin.get_user_by_id(user_id)
            email = user_response.user.email if user_response and user_response.user else None
            if not email:
                logger.warning(f"No email for corporate sponsor {user_id}, skipping welcome")
                return
            self.supabase.functions.invoke(
                "send-corporate-welcome",
                invoke_options={"body": {"email": email, "companyName": company_name, "tier": tier}},
            )
            logger.info(f"Welcome email triggered for sponsor {user_id}")
        except Exception as e:
            logger.error(f"Failed to send corporate welcome for {user_id}: {e}")

    def get_by_user(self, user_id: str) -> SponsorDetail:
        try:
            result = self.supabase.table("corporate_subscriptions")\
                .select("*")\
                .eq("user_id", user_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="No corporate sponsorship found")
            return SponsorDetail(
                subscription=SponsorResponse(**result.data),
                benefits=self.get_benefits(result.data["id"]),
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_benefits(self, subscription_id: str) -> List[SponsorBenefit]:
        try:
            result = self.supabase.table("sponsor_benefits")\
                .select("*")\
                .eq("subscription_id", subscription_id)\
                .execute()
            return [SponsorBenefit(**b) for b in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_sponsors(self, status: str = "active") -> List[SponsorResponse]:
        try:
            result = self.supabase.table("corporate_subscriptions")\
                .select("*")\
                .eq("status", status)\
                .order("created_at", desc=True)\
                .execute()
            return [SponsorResponse(**s) for s in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
