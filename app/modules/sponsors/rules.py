from typing import Any, Dict, List, Optional

from app.core.validators import is_valid_uuid

SPONSOR_TIERS = ("bronze", "silver", "gold", "platinum")
PREMIUM_TIERS = ("gold", "platinum")

MAX_COMPANY_NAME_LENGTH = 255
MAX_URL_LENGTH = 2048


def validate_corporate_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the first problem with checkout metadata, or None when it is usable."""
    metadata = metadata or {}
    if not metadata.get("user_id") or not metadata.get("tier") or not metadata.get("company_name"):
        return "Invalid metadata in checkout session"
    if not is_valid_uuid(metadata["user_id"]):
        return "Invalid user_id format"
    if metadata["tier"].lower() not in SPONSOR_TIERS:
        return "Invalid tier value"
    if not 1 <= len(metadata["company_name"]) <= MAX_COMPANY_NAME_LENGTH:
        return "Invalid company_name length"
    if metadata.get("logo_url") and len(metadata["logo_url"]) > MAX_URL_LENGTH:
        return "Logo URL exceeds maximum length"
    if metadata.get("website_url") and len(metadata["website_url"]) > MAX_URL_LENGTH:
        return "Website URL exceeds maximum length"
    return None


def tier_benefits(tier: str) -> List[Dict[str, Any]]:
    if tier.lower() in PREMIUM_TIERS:
        return [
            {"benefit_type": "logo_footer", "benefit_value": {"enabled": True}},
            {"benefit_type": "logo_homepage", "benefit_value": {"enabled": True}},
            {"benefit_type": "impact_reports", "benefit_value": {"frequency": "monthly"}},
            {"benefit_type": "executive_briefings", "benefit_value": {"frequency": "quarterly"}},
            {"benefit_type": "cobranded_marketing", "benefit_value": {"enabled": True}},
        ]
    return [
        {"benefit_type": "logo_footer", "benefit_value": {"enabled": True}},
        {"benefit_type": "impact_reports", "benefit_value": {"frequency": "monthly"}},
    ]
