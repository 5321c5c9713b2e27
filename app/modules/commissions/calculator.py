"""
Commission and payout arithmetic.

All money is Decimal and rounded half-up to the cent, so a business payout plus the
platform commission always adds back to the transaction amount.
"""
from decimal import Decimal, ROUND_HALF_UP, ROUND_DOWN
from typing import Dict, Union, Optional, Tuple

Number = Union[int, float, str, Decimal]

CENT = Decimal("0.01")

PLATFORM_COMMISSION_RATE = Decimal("0.075")
AGENT_COMMISSION_RATE = Decimal("0.10")
MIN_AGENT_COMMISSION = Decimal("0.50")

TEAM_OVERRIDE_RATE = Decimal("0.025")
RECRUITMENT_BONUS = Decimal("50.00")

# (name, minimum lifetime referrals, commission rate); ordered by threshold
AGENT_TIERS = (
    ("bronze", 0, Decimal("0.10")),
    ("silver", 25, Decimal("0.12")),
    ("gold", 100, Decimal("0.13")),
    ("platinum", 200, Decimal("0.14")),
    ("diamond", 500, Decimal("0.15")),
)

COMMISSION_TRANSITIONS = {
    "pending": {"approved", "cancelled"},
    "approved": {"processing", "cancelled"},
    "processing": {"paid", "cancelled"},
    "paid": set(),
    "cancelled": set(),
}


def to_decimal(value: Number) -> Decimal:
    # str() first so floats like 33.33 keep their printed value
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_half_up_int(value: Number) -> int:
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def platform_commission(amount: Number) -> Decimal:
    return round_money(to_decimal(amount) * PLATFORM_COMMISSION_RATE)


def business_payout(amount: Number) -> Decimal:
    return round_money(to_decimal(amount) - platform_commission(amount))


def agent_commission(platform_amount: Number) -> Decimal:
    return round_money(max(to_decimal(platform_amount) * AGENT_COMMISSION_RATE, MIN_AGENT_COMMISSION))


def commission_breakdown(amount: Number) -> Dict[str, Decimal]:
    platform = platform_commission(amount)
    return {
        "transaction_amount": round_money(amount),
        "platform_commission": platform,
        "business_payout": business_payout(amount),
        "agent_commission": agent_commission(platform),
    }


def prorate_amount(full_amount: Number, days_used: Number, total_days: Number) -> Decimal:
    total = to_decimal(total_days)
    if total <= 0:
        return Decimal("0.00")
    return round_money(to_decimal(full_amount) / total * to_decimal(days_used))


def refund_amount(original_amount: Number, days_used: Number, total_days: Number) -> Decimal:
    used = prorate_amount(original_amount, days_used, total_days)
    return round_money(to_decimal(original_amount) - used)


def discounted_price(base_price: Number, discount_percent: Number) -> Decimal:
    """Price after a percentage discount, truncated to the cent (29.99 at 50% is 14.99)."""
    factor = Decimal("1") - to_decimal(discount_percent) / Decimal("100")
    return (to_decimal(base_price) * factor).quantize(CENT, rounding=ROUND_DOWN)


def agent_tier_for_referrals(lifetime_referrals: int) -> Tuple[str, Decimal]:
    current = AGENT_TIERS[0]
    for tier in AGENT_TIERS:
        if lifetime_referrals >= tier[1]:
            current = tier
    return current[0], current[2]


def next_agent_tier(lifetime_referrals: int) -> Optional[Dict[str, object]]:
    for name, threshold, rate in AGENT_TIERS:
        if lifetime_referrals < threshold:
            return {
                "tier": name,
                "referrals_needed": threshold - lifetime_referrals,
                "commission_rate": rate,
            }
    return None


def direct_commission(subscription_amount: Number, rate: Number) -> Decimal:
    return round_money(to_decimal(subscription_amount) * to_decimal(rate))


def team_override(recruit_commission: Number) -> Decimal:
    return round_money(to_decimal(recruit_commission) * TEAM_OVERRIDE_RATE)


def can_transition(current: str, new: str) -> bool:
    return new in COMMISSION_TRANSITIONS.get(current, set())
