from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional, Tuple, Dict, Any

from app.modules.commissions.calculator import round_money, to_decimal

# Customer loyalty tiers by lifetime points
LOYALTY_TIERS = (
    ("Bronze", 0),
    ("Silver", 1000),
    ("Gold", 2500),
    ("Platinum", 5000),
)

# (minimum streak days, multiplier)
STREAK_MULTIPLIERS = (
    (31, Decimal("1.5")),
    (15, Decimal("1.25")),
    (8, Decimal("1.1")),
    (0, Decimal("1.0")),
)

KARMA_DEFAULT = Decimal("100")
KARMA_FLOOR = Decimal("10")
KARMA_DECAY_RATE = Decimal("0.05")
KARMA_DECAY_PERIOD = timedelta(days=30)


def tier_for_points(points: int) -> str:
    current = LOYALTY_TIERS[0][0]
    for name, threshold in LOYALTY_TIERS:
        if points >= threshold:
            current = name
    return current


def next_tier(points: int) -> Optional[Dict[str, Any]]:
    for name, threshold in LOYALTY_TIERS:
        if points < threshold:
            return {"tier": name, "points_needed": threshold - points}
    return None


def check_tier_progress(current_points: int, points_earned: int) -> Tuple[bool, Optional[str]]:
    """Highest tier whose threshold was crossed from below by this award."""
    new_total = current_points + points_earned
    for name, threshold in sorted(LOYALTY_TIERS, key=lambda t: t[1], reverse=True):
        if current_points < threshold <= new_total:
            return True, name
    return False, None


def streak_multiplier(streak_days: int) -> Decimal:
    for minimum, multiplier in STREAK_MULTIPLIERS:
        if streak_days >= minimum:
            return multiplier
    return Decimal("1.0")


def next_streak(current_streak: int, last_activity: Optional[datetime], now: datetime) -> int:
    """Daily streak: same day keeps it, the next day extends it, any gap resets to 1."""
    if last_activity is None:
        return 1
    gap = (now.date() - last_activity.date()).days
    if gap <= 0:
        return max(current_streak, 1)
    if gap == 1:
        return current_streak + 1
    return 1


def karma_level(score) -> str:
    score = to_decimal(score)
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Fair"
    return "Needs Improvement"


def decayed_karma(score) -> Decimal:
    """Apply one 5% decay step; the score never drops below the floor."""
    score = to_decimal(score)
    if score <= KARMA_FLOOR:
        return score
    return max(round_money(score * (Decimal("1") - KARMA_DECAY_RATE)), KARMA_FLOOR)


def is_decay_due(
    last_decay_at: Optional[datetime],
    last_positive_activity_at: Optional[datetime],
    now: datetime,
) -> bool:
    if last_positive_activity_at is not None and now - last_positive_activity_at < KARMA_DECAY_PERIOD:
        return False
    if last_decay_at is not None and now - last_decay_at < KARMA_DECAY_PERIOD:
        return False
    return True


def next_decay_at(
    last_decay_at: Optional[datetime],
    last_positive_activity_at: Optional[datetime],
    now: datetime,
) -> datetime:
    candidates = [now]
    if last_decay_at is not None:
        candidates.append(last_decay_at + KARMA_DECAY_PERIOD)
    if last_positive_activity_at is not None:
        candidates.append(last_positive_activity_at + KARMA_DECAY_PERIOD)
    return max(candidates)
