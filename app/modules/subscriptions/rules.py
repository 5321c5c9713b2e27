from typing import List, Optional

# (id, display name, monthly price in USD, features)
SUBSCRIPTION_TIERS = (
    ("free", "Free", 0, ["Basic access", "Limited features"]),
    ("pro", "Pro", 9.99, ["Full access", "Priority support"]),
    ("enterprise", "Enterprise", 29.99, ["Custom solutions", "Dedicated support"]),
)

PAYMENT_ERROR_MESSAGES = {
    "card_declined": "Your card was declined. Please try another payment method.",
    "insufficient_funds": "Insufficient funds. Please try another card.",
    "expired_card": "Your card has expired. Please update your payment method.",
    "processing_error": "A processing error occurred. Please try again.",
}

# App Store Server Notification v2 types that set a definite status
APPLE_STATUS_BY_TYPE = {
    "SUBSCRIBED": "active",
    "DID_RENEW": "active",
    "OFFER_REDEEMED": "active",
    "DID_FAIL_TO_RENEW": "past_due",
    "EXPIRED": "expired",
    "GRACE_PERIOD_EXPIRED": "expired",
    "REFUND": "cancelled",
    "REVOKE": "cancelled",
}


def is_valid_tier(tier_id: Optional[str]) -> bool:
    return any(tier[0] == tier_id for tier in SUBSCRIPTION_TIERS)


def tier_price(tier_id: str) -> Optional[float]:
    for tier in SUBSCRIPTION_TIERS:
        if tier[0] == tier_id:
            return tier[2]
    return None


def validate_checkout_request(price_id: Optional[str], success_url: Optional[str], cancel_url: Optional[str]) -> List[str]:
    errors = []
    if not price_id:
        errors.append("Price ID required")
    if not success_url:
        errors.append("Success URL required")
    if not cancel_url:
        errors.append("Cancel URL required")
    return errors


def payment_error_message(error_code: Optional[str]) -> str:
    return PAYMENT_ERROR_MESSAGES.get(error_code or "", "An unexpected error occurred.")


def apple_status(notification_type: str) -> Optional[str]:
    return APPLE_STATUS_BY_TYPE.get(notification_type)


def tier_from_product_id(product_id: Optional[str]) -> Optional[str]:
    product = (product_id or "").lower()
    for tier in ("enterprise", "pro"):
        if tier in product:
            return tier
    return None
