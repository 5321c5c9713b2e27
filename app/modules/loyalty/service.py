from supabase import Client
from app.modules.loyalty.schemas import (
    LoyaltySummary, PointsBalance, RewardCreate, RewardResponse, RedemptionResponse,
    KarmaStatus, DecayRunResult
)
from app.modules.loyalty import rules
from app.core.timeutils import parse_timestamp, utcnow
from typing import List, Optional, Dict, Any
from datetime import datetime
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class LoyaltyService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Points ledger

    def get_balances(self, customer_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("loyalty_points")\
            .select("*")\
            .eq("customer_id", customer_id)\
            .execute()
        return result.data or []

    def get_total_points(self, customer_id: str) -> int:
        return sum(int(row.get("points") or 0) for row in self.get_balances(customer_id))

    def credit_points(self, customer_id: str, business_id: str, points: int) -> int:
        """Add points to the (customer, business) balance and return the new balance."""
        existing = self.supabase.table("loyalty_points")\
            .select("*")\
            .eq("customer_id", customer_id)\
            .eq("business_id", business_id)\
            .maybe_single()\
            .execute()
        now = utcnow().isoformat()
        if existing and existing.data:
            new_balance = int(existing.data.get("points") or 0) + points
            self.supabase.table("loyalty_points")\
                .update({"points": new_balance, "updated_at": now})\
                .eq("id", existing.data["id"])\
                .execute()
            return new_balance
        self.supabase.table("loyalty_points").insert({
            "customer_id": customer_id,
            "business_id": business_id,
            "points": points,
        }).execute()
        return points

    def _set_balance(self, balance_id: str, points: int):
        if points < 0:
            raise HTTPException(status_code=400, detail="Insufficient points")
        self.supabase.table("loyalty_points")\
            .update({"points": points, "updated_at": utcnow().isoformat()})\
            .eq("id", balance_id)\
            .execute()

    def get_summary(self, customer_id: str) -> LoyaltySummary:
        try:
            balances = self.get_balances(customer_id)
            total = sum(int(b.get("points") or 0) for b in balances)
            upcoming = rules.next_tier(total)
            streak = self.get_streak(customer_id)
            return LoyaltySummary(
                customer_id=customer_id,
                total_points=total,
                tier=rules.tier_for_points(total),
                next_tier=upcoming["tier"] if upcoming else None,
                points_to_next_tier=upcoming["points_needed"] if upcoming else None,
                current_streak=(streak or {}).get("current_streak", 0),
                balances=[PointsBalance(business_id=b["business_id"], points=int(b.get("points") or 0)) for b in balances],
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Streaks

    def get_streak(self, customer_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("loyalty_streaks")\
            .select("*")\
            .eq("customer_id", customer_id)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def peek_streak(self, customer_id: str, now: datetime) -> int:
        """Streak length the customer would have after activity at `now`, without saving it."""
        streak = self.get_streak(customer_id)
        if not streak:
            return 1
        return rules.next_streak(
            int(streak.get("current_streak") or 0),
            parse_timestamp(streak.get("last_activity_date")),
            now,
        )

    def save_streak(self, customer_id: str, streak_days: int, now: datetime):
        existing = self.get_streak(customer_id) or {}
        longest = max(int(existing.get("longest_streak") or 0), streak_days)
        self.supabase.table("loyalty_streaks").upsert({
            "customer_id": customer_id,
            "current_streak": streak_days,
            "longest_streak": longest,
            "last_activity_date": now.isoformat(),
        }, on_conflict="customer_id").execute()

    # Rewards catalog

    def list_rewards(self, business_id: Optional[str] = None) -> List[RewardResponse]:
        try:
            query = self.supabase.table("rewards").select("*").eq("is_active", True)
            if business_id:
                query = query.eq("business_id", business_id)
            result = query.order("points_cost").execute()
            return [RewardResponse(**r) for r in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_reward(self, reward_data: RewardCreate) -> RewardResponse:
        if not reward_data.is_global and not reward_data.business_id:
            raise HTTPException(status_code=400, detail="Business rewards need a business_id")
        try:
            insert_data = reward_data.model_dump()
            insert_data["is_active"] = True
            if reward_data.is_global:
                insert_data["business_id"] = None
            result = self.supabase.table("rewards").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create reward")
            return RewardResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def redeem_reward(self, reward_id: str, customer_id: str) -> RedemptionResponse:
        """Spend points on a reward. Business rewards draw from that business's balance,
        global rewards from the largest balances first. Balances never go negative."""
        try:
            reward_result = self.supabase.table("rewards")\
                .select("*")\
                .eq("id", reward_id)\
                .maybe_single()\
                .execute()
            if not reward_result or not reward_result.data:
                raise HTTPException(status_code=404, detail="Reward not found")
            reward = reward_result.data
            if not reward.get("is_active"):
                raise HTTPException(status_code=400, detail="Reward is no longer available")

            cost = int(reward["points_cost"])
            balances = self.get_balances(customer_id)
            if not reward.get("is_global"):
                balances = [b for b in balances if b["business_id"] == reward.get("business_id")]
            available = sum(int(b.get("points") or 0) for b in balances)
            if available < cost:
                raise HTTPException(status_code=400, detail="Insufficient points")

            remaining_cost = cost
            debits = []
            for balance in sorted(balances, key=lambda b: int(b.get("points") or 0), reverse=True):
                if remaining_cost == 0:
                    break
                take = min(int(balance.get("points") or 0), remaining_cost)
                if take == 0:
                    continue
                self._set_balance(balance["id"], int(balance["points"]) - take)
                debits.append((balance["business_id"], take))
                remaining_cost -= take

            redemption = self.supabase.table("reward_redemptions").insert({
                "reward_id": reward_id,
                "customer_id": customer_id,
                "points_spent": cost,
            }).execute()
            for business_id, points in debits:
                self.supabase.table("transactions").insert({
                    "customer_id": customer_id,
                    "business_id": business_id,
                    "points_earned": 0,
                    "points_redeemed": points,
                    "transaction_type": "redemption",
                    "description": f"Redeemed {reward['title']}",
                }).execute()

            logger.info(f"Customer {customer_id} redeemed reward {reward_id} for {cost} points")
            return RedemptionResponse(
                redemption_id=redemption.data[0]["id"] if redemption.data else "",
                reward_id=reward_id,
                points_spent=cost,
                remaining_points=self.get_total_points(customer_id),
                message=f"Redeemed {reward['title']}",
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # Economic karma

    def _last_positive_karma_at(self, user_id: str) -> Optional[datetime]:
        result = self.supabase.table("karma_transactions")\
            .select("created_at")\
            .eq("user_id", user_id)\
            .gt("change_amount", 0)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return parse_timestamp(result.data[0]["created_at"])

    def get_karma(self, user_id: str, now: Optional[datetime] = None) -> KarmaStatus:
        now = now or utcnow()
        try:
            result = self.supabase.table("profiles")\
                .select("id, economic_karma, karma_last_decay_at")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
            profile = result.data if result and result.data else {}
            score = profile.get("economic_karma")
            score = rules.KARMA_DEFAULT if score is None else score
            last_decay = parse_timestamp(profile.get("karma_last_decay_at"))
            last_active = self._last_positive_karma_at(user_id)
            return KarmaStatus(
                user_id=user_id,
                score=float(score),
                level=rules.karma_level(score),
                last_decay_at=last_decay,
                next_decay_at=rules.next_decay_at(last_decay, last_active, now),
                decay_due=rules.is_decay_due(last_decay, last_active, now),
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def run_karma_decay(self, now: Optional[datetime] = None) -> DecayRunResult:
        """One monthly decay pass over every profile above the karma floor; an unset score counts as the default."""
        now = now or utcnow()
        cutoff = (now - rules.KARMA_DECAY_PERIOD).isoformat()

        profiles = self.supabase.table("profiles")\
            .select("id, economic_karma, karma_last_decay_at")\
            .or_(f"economic_karma.gt.{rules.KARMA_FLOOR},economic_karma.is.null")\
            .execute().data or []
        recent = self.supabase.table("karma_transactions")\
            .select("user_id, created_at")\
            .gt("change_amount", 0)\
            .gte("created_at", cutoff)\
            .execute().data or []
        last_active: Dict[str, datetime] = {}
        for row in recent:
            ts = parse_timestamp(row["created_at"])
            if row["user_id"] not in last_active or ts > last_active[row["user_id"]]:
                last_active[row["user_id"]] = ts

        decayed = 0
        for profile in profiles:
            user_id = profile["id"]
            last_decay = parse_timestamp(profile.get("karma_last_decay_at"))
            if not rules.is_decay_due(last_decay, last_active.get(user_id), now):
                continue
            score = profile.get("economic_karma")
            previous = rules.KARMA_DEFAULT if score is None else rules.to_decimal(score)
            new_score = rules.decayed_karma(previous)
            try:
                self.supabase.table("profiles")\
                    .update({"economic_karma": float(new_score), "karma_last_decay_at": now.isoformat()})\
                    .eq("id", user_id)\
                    .execute()
                self.supabase.table("karma_transactions").insert({
                    "user_id": user_id,
                    "change_amount": float(new_score - previous),
                    "previous_score": float(previous),
                    "new_score": float(new_score),
                    "reason": "monthly_decay",
                }).execute()
                decayed += 1
            except Exception as e:
                logger.error(f"Karma decay failed for {user_id}: {e}")

        logger.info(f"Karma decay pass: {decayed}/{len(profiles)} profiles decayed")
        return DecayRunResult(profiles_checked=len(profiles), profiles_decayed=decayed)
