from supabase import Client
from app.config import settings
from app.modules.qr_codes.schemas import QRCodeCreate, QRCodeUpdate, QRCodeResponse, QRScanRequest, QRScanResult
from app.modules.qr_codes import rules
from app.modules.businesses.rules import check_business_status
from app.modules.commissions.calculator import PLATFORM_COMMISSION_RATE, round_half_up_int
from app.modules.loyalty import rules as loyalty_rules
from app.modules.loyalty.service import LoyaltyService
from app.modules.fraud.service import FraudService
from app.core.timeutils import utcnow
from typing import List, Optional, Dict, Any
from datetime import timedelta
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class QRCodeService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.loyalty = LoyaltyService(supabase)
        self.fraud = FraudService(supabase)

    def create_qr_code(self, qr_data: QRCodeCreate) -> QRCodeResponse:
        try:
            insert_data = qr_data.model_dump(exclude_none=True, mode="json")
            insert_data["current_scans"] = 0
            result = self.supabase.table("qr_codes").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create QR code")
            logger.info(f"QR code {result.data[0]['id']} ({qr_data.code_type}) created for business {qr_data.business_id}")
            return QRCodeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_qr_row(self, qr_code_id: str) -> Dict[str, Any]:
        if not rules.is_valid_qr_code_id(qr_code_id):
            raise HTTPException(status_code=400, detail="Invalid QR code format")
        result = self.supabase.table("qr_codes")\
            .select("*")\
            .eq("id", qr_code_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="QR code not found")
        return result.data

    def get_qr_code(self, qr_code_id: str) -> QRCodeResponse:
        try:
            return QRCodeResponse(**self.get_qr_row(qr_code_id))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_by_business(self, business_id: str) -> List[QRCodeResponse]:
        try:
            result = self.supabase.table("qr_codes")\
                .select("*")\
                .eq("business_id", business_id)\
                .order("created_at", desc=True)\
                .execute()
            return [QRCodeResponse(**q) for q in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_qr_code(self, qr_code_id: str, qr_data: QRCodeUpdate) -> QRCodeResponse:
        try:
            update_data = qr_data.model_dump(exclude_none=True, mode="json")
            update_data["updated_at"] = utcnow().isoformat()
            result = self.supabase.table("qr_codes")\
                .update(update_data)\
                .eq("id", qr_code_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="QR code not found")
            return QRCodeResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_qr_code(self, qr_code_id: str) -> bool:
        try:
            result = self.supabase.table("qr_codes")\
                .delete()\
                .eq("id", qr_code_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _recent_scan_exists(self, qr_code_id: str, customer_id: str, since: str) -> bool:
        result = self.supabase.table("qr_scans")\
            .select("id")\
            .eq("qr_code_id", qr_code_id)\
            .eq("customer_id", customer_id)\
            .gte("scan_date", since)\
            .limit(1)\
            .execute()
        return bool(result.data)

    def _previous_located_scan(self, customer_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("qr_scans")\
            .select("id, customer_id, business_id, location_lat, location_lng, scan_date")\
            .eq("customer_id", customer_id)\
            .order("scan_date", desc=True)\
            .limit(10)\
            .execute()
        for scan in result.data or []:
            if scan.get("location_lat") is not None and scan.get("location_lng") is not None:
                return scan
        return None

    def process_scan(self, qr_code_id: str, customer_id: str, scan: QRScanRequest) -> QRScanResult:
        """
        Validate a scan and award points.

        Points are multiplied by the customer's streak bonus, then the platform keeps its
        commission and the customer is credited the rest at the scanning business.
        """
        try:
            now = utcnow()
            qr = self.get_qr_row(qr_code_id)

            allowed, reason = rules.can_scan(qr, now)
            if not allowed:
                raise HTTPException(status_code=400, detail=reason)

            business_result = self.supabase.table("businesses")\
                .select("*")\
                .eq("id", qr["business_id"])\
                .maybe_single()\
                .execute()
            if not business_result or not business_result.data:
                raise HTTPException(status_code=404, detail="Business not found")
            business = business_result.data
            valid, reason = check_business_status(business)
            if not valid:
                raise HTTPException(status_code=400, detail=reason)

            cooldown_start = (now - timedelta(hours=settings.qr_scan_cooldown_hours)).isoformat()
            if self._recent_scan_exists(qr_code_id, customer_id, cooldown_start):
                raise HTTPException(status_code=409, detail="You have already scanned this QR code recently")

            streak_days = self.loyalty.peek_streak(customer_id, now)
            base_points = rules.points_from_scan(qr)
            gross_points = round_half_up_int(base_points * loyalty_rules.streak_multiplier(streak_days))
            commission, net_points = rules.split_points(gross_points)
            discount = rules.discount_from_scan(qr, scan.order_total)

            current = qr.get("current_scans")
            counter = self.supabase.table("qr_codes")\
                .update({"current_scans": (current or 0) + 1, "updated_at": now.isoformat()})\
                .eq("id", qr_code_id)
            # an unset counter only matches IS NULL
            counter = counter.is_("current_scans", "null") if current is None else counter.eq("current_scans", current)
            counter = counter.execute()
            if not counter.data:
                raise HTTPException(status_code=409, detail="QR code was scanned concurrently, please retry")

            previous_scan = self._previous_located_scan(customer_id) if scan.latitude is not None else None

            scan_row = {
                "qr_code_id": qr_code_id,
                "customer_id": customer_id,
                "business_id": qr["business_id"],
                "points_awarded": net_points,
                "discount_applied": float(discount),
                "location_lat": scan.latitude,
                "location_lng": scan.longitude,
                "scan_date": now.isoformat(),
            }
            inserted = self.supabase.table("qr_scans").insert(scan_row).execute()
            if not inserted.data:
                raise HTTPException(status_code=500, detail="Failed to record scan")
            scan_row = inserted.data[0]

            prior_total = self.loyalty.get_total_points(customer_id)
            if net_points > 0:
                self.loyalty.credit_points(customer_id, qr["business_id"], net_points)
            self.loyalty.save_streak(customer_id, streak_days, now)

            self.supabase.table("transactions").insert({
                "customer_id": customer_id,
                "business_id": qr["business_id"],
                "points_earned": net_points,
                "points_redeemed": 0,
                "amount": scan.order_total,
                "discount_applied": float(discount),
                "transaction_type": "scan",
                "qr_scan_id": scan_row["id"],
                "description": (
                    f"QR scan at {business['business_name']}: {gross_points} gross, "
                    f"{commission} platform commission, {net_points} net"
                ),
                "metadata": {
                    "gross_points": gross_points,
                    "platform_commission": commission,
                    "commission_rate": float(PLATFORM_COMMISSION_RATE),
                    "streak_days": streak_days,
                },
            }).execute()

            upgraded, new_tier = loyalty_rules.check_tier_progress(prior_total, net_points)
            total_points = prior_total + net_points

            if scan.latitude is not None and scan.longitude is not None:
                self.fraud.check_scan_travel(previous_scan, scan_row)

            logger.info(
                f"Scan {scan_row['id']} of QR {qr_code_id} by {customer_id}: "
                f"gross={gross_points} commission={commission} net={net_points}"
            )
            if net_points > 0:
                message = rules.format_points_notification(net_points, business["business_name"])
            elif discount > 0:
                message = f"You saved ${discount} at {business['business_name']}!"
            else:
                message = f"Checked in at {business['business_name']}!"

            return QRScanResult(
                scan_id=scan_row["id"],
                qr_code_id=qr_code_id,
                business_id=qr["business_id"],
                business_name=business["business_name"],
                code_type=qr["code_type"],
                gross_points=gross_points,
                platform_commission=commission,
                points_awarded=net_points,
                discount_amount=float(discount),
                streak_days=streak_days,
                total_points=total_points,
                tier=loyalty_rules.tier_for_points(total_points),
                tier_upgraded=upgraded,
                new_tier=new_tier,
                message=message,
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error processing scan of {qr_code_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
