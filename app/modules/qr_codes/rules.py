from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from app.core.timeutils import parse_timestamp, utcnow
from app.core.validators import is_valid_uuid
from app.modules.commissions.calculator import (
    PLATFORM_COMMISSION_RATE, round_half_up_int, round_money, to_decimal
)

CODE_TYPES = ("loyalty", "discount", "checkin", "info")


def is_valid_qr_code_id(qr_code_id: str) -> bool:
    return is_valid_uuid(qr_code_id)


def can_scan(qr_code: dict, now: Optional[datetime] = None) -> Tuple[bool, Optional[str]]:
    """Eligibility checks in order: active, not expired, under the scan limit. A zero or missing limit is unlimited."""
    now = now or utcnow()
    if not qr_code.get("is_active"):
        return False, "QR code is inactive"
    expiration = parse_timestamp(qr_code.get("expiration_date"))
    if expiration is not None and expiration < now:
        return False, "QR code has expired"
    scan_limit = qr_code.get("scan_limit")
    if scan_limit and (qr_code.get("current_scans") or 0) >= scan_limit:
        return False, "QR code scan limit reached"
    return True, None


def points_from_scan(qr_code: dict) -> int:
    if qr_code.get("code_type") != "loyalty":
        return 0
    return qr_code.get("points_value") or 0


def discount_from_scan(qr_code: dict, order_total) -> Decimal:
    if qr_code.get("code_type") != "discount" or not order_total:
        return Decimal("0.00")
    percentage = to_decimal(qr_code.get("discount_percentage") or 0)
    return round_money(to_decimal(order_total) * percentage / Decimal("100"))


def split_points(gross_points: int) -> Tuple[int, int]:
    """Return (platform_commission, net_points); the two always sum to gross."""
    commission = round_half_up_int(to_decimal(gross_points) * PLATFORM_COMMISSION_RATE)
    return commission, gross_points - commission


def format_points_notification(points: int, business_name: str) -> str:
    return f"You earned {points} points at {business_name}!"
