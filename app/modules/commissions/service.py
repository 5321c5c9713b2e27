from supabase import Client
from app.modules.commissions import calculator
from app.modules.subscriptions import rules as subscription_rules
from app.modules.commissions.schemas import (
    AgentCreate, AgentResponse, AgentDashboard, NextAgentTier, ReferralCreate, ReferralResult,
    CommissionResponse, CommissionStatusUpdate
)
from app.core.timeutils import utcnow
from typing import List, Optional, Dict, Any
from decimal import Decimal
from fastapi import HTTPException
import logging
import secrets
import string

logger = logging.getLogger(__name__)

REFERRAL_CODE_PREFIX = "MM"
REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_referral_code(length: int = 6) -> str:
    return REFERRAL_CODE_PREFIX + "".join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length))


class CommissionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _agent_by(self, column: str, value: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("sales_agents")\
            .select("*")\
            .eq(column, value)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def _unique_referral_code(self) -> str:
        for _ in range(5):
            code = generate_referral_code()
            if not self._agent_by("referral_code", code):
                return code
        raise HTTPException(status_code=500, detail="Could not allocate a referral code")

    def register_agent(self, agent_data: AgentCreate, user_id: str) -> AgentResponse:
        try:
            if self._agent_by("user_id", user_id):
                raise HTTPException(status_code=409, detail="User is already a sales agent")

            recruiter_id = None
            if agent_data.recruiter_code:
                recruiter = self._agent_by("referral_code", agent_data.recruiter_code.strip().upper())
                if not recruiter:
                    raise HTTPException(status_code=400, detail="Unknown recruiter code")
                recruiter_id = recruiter["id"]

            tier, rate = calculator.agent_tier_for_referrals(0)
            result = self.supabase.table("sales_agents").insert({
                "user_id": user_id,
                "full_name": agent_data.full_name,
                "email": agent_data.email,
                "phone": agent_data.phone,
                "referral_code": self._unique_referral_code(),
                "tier": tier,
                "commission_rate": float(rate),
                "recruited_by_agent_id": recruiter_id,
                "lifetime_referrals": 0,
                "total_earned": 0,
                "total_pending": 0,
                "is_active": True,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to register sales agent")
            logger.info(f"Sales agent {result.data[0]['id']} registered (recruiter={recruiter_id})")
            return AgentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_dashboard(self, user_id: str) -> AgentDashboard:
        try:
            agent = self._agent_by("user_id", user_id)
            if not agent:
                raise HTTPException(status_code=404, detail="Sales agent not found")

            commissions = self.supabase.table("agent_commissions")\
                .select("amount, status")\
                .eq("sales_agent_id", agent["id"])\
                .execute().data or []
            totals = {"pending": Decimal("0"), "approved": Decimal("0"), "paid": Decimal("0")}
            for row in commissions:
                if row.get("status") in totals:
                    totals[row["status"]] += calculator.to_decimal(row["amount"])

            team = self.supabase.table("sales_agents")\
                .select("id")\
                .eq("recruited_by_agent_id", agent["id"])\
                .execute().data or []

            upcoming = calculator.next_agent_tier(agent.get("lifetime_referrals") or 0)
            return AgentDashboard(
                agent=AgentResponse(**agent),
                next_tier=NextAgentTier(**upcoming) if upcoming else None,
                pending_total=float(calculator.round_money(totals["pending"])),
                approved_total=float(calculator.round_money(totals["approved"])),
                paid_total=float(calculator.round_money(totals["paid"])),
                team_size=len(team),
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _insert_commission(self, agent_id: str, referral_id: str, amount: Decimal, commission_type: str, tier_level: int) -> Dict[str, Any]:
        result = self.supabase.table("agent_commissions").insert({
            "sales_agent_id": agent_id,
            "referral_id": referral_id,
            "amount": float(amount),
            "commission_type": commission_type,
            "tier_level": tier_level,
            "status": "pending",
        }).execute()
        return result.data[0]

    def _add_pending(self, agent: Dict[str, Any], amount: Decimal, extra: Optional[Dict[str, Any]] = None):
        pending = calculator.round_money(calculator.to_decimal(agent.get("total_pending") or 0) + amount)
        update_data = {"total_pending": float(pending), "updated_at": utcnow().isoformat()}
        update_data.update(extra or {})
        self.supabase.table("sales_agents").update(update_data).eq("id", agent["id"]).execute()

    def _paid_subscription(self, user_id: str) -> Dict[str, Any]:
        """The referred user's active paid subscription; commissions are priced from its tier"""
        result = self.supabase.table("subscriptions")\
            .select("tier, status, user_type")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        subscription = result.data if result else None
        if not subscription or subscription.get("status") != "active" or not subscription_rules.tier_price(subscription.get("tier")):
            raise HTTPException(status_code=400, detail="Referred user has no active paid subscription")
        return subscription

    def record_referral(self, referral_data: ReferralCreate, referred_user_id: str) -> ReferralResult:
        """
        Record a referral and create its commissions.

        The referring agent earns their tier rate on the referred user's subscription price. Their recruiter,
        if any, earns a team override on that commission and, on the agent's first referral,
        a one-time recruitment bonus.
        """
        try:
            agent = self._agent_by("referral_code", referral_data.referral_code.strip().upper())
            if not agent or not agent.get("is_active", True):
                raise HTTPException(status_code=404, detail="Referral code not found")
            if agent["user_id"] == referred_user_id:
                raise HTTPException(status_code=400, detail="Agents cannot refer themselves")

            existing = self.supabase.table("referrals")\
                .select("id")\
                .eq("referred_user_id", referred_user_id)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="User has already been referred")

            subscription = self._paid_subscription(referred_user_id)
            subscription_amount = subscription_rules.tier_price(subscription["tier"])
            referred_user_type = subscription.get("user_type") if subscription.get("user_type") in ("customer", "business") else referral_data.referred_user_type

            rate = calculator.to_decimal(agent.get("commission_rate") or calculator.AGENT_COMMISSION_RATE)
            direct = calculator.direct_commission(subscription_amount, rate)

            referral = self.supabase.table("referrals").insert({
                "sales_agent_id": agent["id"],
                "referred_user_id": referred_user_id,
                "referred_user_type": referred_user_type,
                "subscription_amount": subscription_amount,
                "commission_amount": float(direct),
                "commission_status": "pending",
                "referral_date": utcnow().isoformat(),
            }).execute().data[0]

            commissions = [self._insert_commission(agent["id"], referral["id"], direct, "direct", 1)]

            lifetime = (agent.get("lifetime_referrals") or 0) + 1
            tier, new_rate = calculator.agent_tier_for_referrals(lifetime)
            if tier != agent.get("tier"):
                logger.info(f"Sales agent {agent['id']} promoted to {tier} at {lifetime} referrals")
            self._add_pending(agent, direct, {
                "lifetime_referrals": lifetime,
                "tier": tier,
                "commission_rate": float(new_rate),
            })

            recruiter_id = agent.get("recruited_by_agent_id")
            if recruiter_id:
                recruiter = self._agent_by("id", recruiter_id)
                if recruiter:
                    recruiter_total = Decimal("0")
                    override = calculator.team_override(direct)
                    if override > 0:
                        commissions.append(self._insert_commission(recruiter_id, referral["id"], override, "team_override", 2))
                        recruiter_total += override
                    if lifetime == 1:
                        bonus = calculator.RECRUITMENT_BONUS
                        commissions.append(self._insert_commission(recruiter_id, referral["id"], bonus, "recruitment_bonus", 2))
                        recruiter_total += bonus
                        logger.info(f"Recruitment bonus for {recruiter_id}: agent {agent['id']} activated")
                    if recruiter_total > 0:
                        self._add_pending(recruiter, recruiter_total)

            logger.info(f"Referral {referral['id']} recorded for agent {agent['id']}: direct={direct}")
            return ReferralResult(
                referral_id=referral["id"],
                sales_agent_id=agent["id"],
                agent_tier=tier,
                commissions=[CommissionResponse(**c) for c in commissions],
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_status(self, commission_id: str, update: CommissionStatusUpdate) -> CommissionResponse:
        try:
            result = self.supabase.table("agent_commissions")\
                .select("*")\
                .eq("id", commission_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Commission not found")
            commission = result.data
            current = commission.get("status") or "pending"
            if not calculator.can_transition(current, update.status):
                raise HTTPException(
                    status_code=400,
                    detail=f"Cannot move commission from {current} to {update.status}"
                )

            update_data: Dict[str, Any] = {"status": update.status}
            if update.status == "paid":
                update_data["paid_date"] = utcnow().isoformat()
                update_data["payment_reference"] = update.payment_reference
            updated = self.supabase.table("agent_commissions")\
                .update(update_data)\
                .eq("id", commission_id)\
                .execute()

            if update.status in ("paid", "cancelled"):
                self._settle_agent_totals(commission, paid=update.status == "paid")

            logger.info(f"Commission {commission_id}: {current} -> {update.status}")
            return CommissionResponse(**updated.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _settle_agent_totals(self, commission: Dict[str, Any], paid: bool):
        agent = self._agent_by("id", commission["sales_agent_id"])
        if not agent:
            return
        amount = calculator.to_decimal(commission["amount"])
        pending = max(calculator.to_decimal(agent.get("total_pending") or 0) - amount, Decimal("0"))
        update_data = {"total_pending": float(calculator.round_money(pending))}
        if paid:
            earned = calculator.to_decimal(agent.get("total_earned") or 0) + amount
            update_data["total_earned"] = float(calculator.round_money(earned))
        self.supabase.table("sales_agents").update(update_data).eq("id", agent["id"]).execute()

    def list_commissions(self, user_id: str, status: Optional[str] = None) -> List[CommissionResponse]:
        try:
            agent = self._agent_by("user_id", user_id)
            if not agent:
                raise HTTPException(status_code=404, detail="Sales agent not found")
            query = self.supabase.table("agent_commissions").select("*").eq("sales_agent_id", agent["id"])
            if status:
                query = query.eq("status", status)
            return [CommissionResponse(**c) for c in query.execute().data or []]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
