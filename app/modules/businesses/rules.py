from typing import Optional, Tuple

# PostgREST or-filter for rows that are not suspended; a NULL flag counts as active
NOT_SUSPENDED_FILTER = "is_suspended.is.null,is_suspended.is.false"


def check_business_status(business: dict) -> Tuple[bool, Optional[str]]:
    """Whether a business may award points or appear publicly. Suspension wins over verification."""
    if business.get("is_suspended"):
        return False, "Business is suspended"
    if not business.get("is_verified"):
        return False, "Business is not verified"
    return True, None
