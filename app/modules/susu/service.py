from supabase import Client
from app.modules.susu.schemas import ContributionResult, PayoutResult, AdvanceResult, CircleStatus
from app.modules.commissions.calculator import round_money, to_decimal
from app.core.timeutils import utcnow
from typing import List, Optional, Dict, Any, Tuple
from decimal import Decimal
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

SUSU_PLATFORM_FEE = Decimal("0.015")


def contribution_fee(amount) -> Decimal:
    return round_money(to_decimal(amount) * SUSU_PLATFORM_FEE)


def round_recipient(memberships: List[Dict[str, Any]], round_number: int) -> Optional[Dict[str, Any]]:
    return next((m for m in memberships if m.get("payout_position") == round_number), None)


class SusuService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_circle(self, circle_id: str) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
        """Return the circle row and its memberships, or raise 404"""
        result = self.supabase.table("susu_circles")\
            .select("*")\
            .eq("id", circle_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Circle not found")
        memberships = self.supabase.table("susu_memberships")\
            .select("*")\
            .eq("circle_id", circle_id)\
            .execute().data or []
        return result.data, memberships

    def _round_escrow(self, circle_id: str, round_number: int, status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = self.supabase.table("susu_escrow")\
            .select("*")\
            .eq("circle_id", circle_id)\
            .eq("round_number", round_number)
        if status:
            query = query.eq("status", status)
        return query.execute().data or []

    def contribute(self, circle_id: str, user_id: str, amount: float) -> ContributionResult:
        try:
            circle, memberships = self.get_circle(circle_id)
            if circle.get("status") == "completed":
                raise HTTPException(status_code=400, detail="Circle has completed")
            if not any(m["user_id"] == user_id for m in memberships):
                raise HTTPException(status_code=403, detail="User is not a member of this circle")

            round_number = circle["current_round"]
            if any(e["contributor_id"] == user_id for e in self._round_escrow(circle_id, round_number)):
                raise HTTPException(status_code=409, detail="Already contributed this round")

            recipient = round_recipient(memberships, round_number)
            held = round_money(amount)
            fee = contribution_fee(held)
            result = self.supabase.table("susu_escrow").insert({
                "circle_id": circle_id,
                "round_number": round_number,
                "contributor_id": user_id,
                "recipient_id": recipient["user_id"] if recipient else None,
                "amount": float(held),
                "platform_fee": float(fee),
                "status": "held",
                "held_at": utcnow().isoformat(),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to hold contribution")
            logger.info(f"Susu contribution held: {held} from {user_id} in circle {circle_id} round {round_number}")
            return ContributionResult(
                escrow_id=result.data[0]["id"],
                round_number=round_number,
                amount_held=float(held),
                platform_fee=float(fee),
                recipient_id=recipient["user_id"] if recipient else None,
                message="Contribution held in escrow",
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def release_payout(self, circle_id: str) -> PayoutResult:
        """Release the round's pot once every member has paid in"""
        try:
            circle, memberships = self.get_circle(circle_id)
            round_number = circle["current_round"]
            held = self._round_escrow(circle_id, round_number, status="held")

            contributors = {e["contributor_id"] for e in held}
            if len(contributors) < len(memberships):
                raise HTTPException(
                    status_code=400,
                    detail=f"Not all members have contributed ({len(contributors)} of {len(memberships)})"
                )
            recipient = round_recipient(memberships, round_number)
            if not recipient:
                raise HTTPException(status_code=400, detail="No recipient found for current round")

            total = round_money(sum((to_decimal(e["amount"]) for e in held), Decimal("0")))
            fees = round_money(sum((to_decimal(e["platform_fee"]) for e in held), Decimal("0")))
            net = round_money(total - fees)

            self.supabase.table("susu_escrow")\
                .update({"status": "released", "released_at": utcnow().isoformat()})\
                .eq("circle_id", circle_id)\
                .eq("round_number", round_number)\
                .eq("status", "held")\
                .execute()
            logger.info(f"Susu payout of {net} released to {recipient['user_id']} (circle {circle_id}, round {round_number})")
            return PayoutResult(
                recipient_id=recipient["user_id"],
                round=round_number,
                total_contributed=float(total),
                platform_fee=float(fees),
                net_payout=float(net),
                message=f"Payout of {net} released to round {round_number} recipient",
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def advance_round(self, circle_id: str) -> AdvanceResult:
        try:
            circle, memberships = self.get_circle(circle_id)
            current = circle["current_round"]
            next_round = current + 1
            completed = next_round > len(memberships)
            self.supabase.table("susu_circles").update({
                "current_round": current if completed else next_round,
                "status": "completed" if completed else "active",
                "updated_at": utcnow().isoformat(),
            }).eq("id", circle_id).execute()
            logger.info(f"Susu circle {circle_id}: round {current} -> {'completed' if completed else next_round}")
            return AdvanceResult(
                previous_round=current,
                new_round=current if completed else next_round,
                circle_completed=completed,
                message="Circle completed!" if completed else f"Advanced to round {next_round}",
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_status(self, circle_id: str) -> CircleStatus:
        try:
            circle, memberships = self.get_circle(circle_id)
            round_number = circle["current_round"]
            contributions = self._round_escrow(circle_id, round_number)
            recipient = round_recipient(memberships, round_number)
            return CircleStatus(
                circle_id=circle_id,
                circle_name=circle["name"],
                status=circle.get("status") or "active",
                current_round=round_number,
                total_rounds=len(memberships),
                contribution_amount=float(circle.get("contribution_amount") or 0),
                platform_fee_rate=float(SUSU_PLATFORM_FEE),
                current_recipient_id=recipient["user_id"] if recipient else None,
                contributions_this_round=len(contributions),
                members_count=len(memberships),
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
