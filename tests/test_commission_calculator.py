"""
Tests for commission, payout and agent tier arithmetic
"""
from decimal import Decimal

import pytest

from app.modules.commissions import calculator


class TestPlatformCommission:
    """Platform fee and business payout split"""

    def test_breakdown_for_round_amount(self):
        breakdown = calculator.commission_breakdown(100)
        assert breakdown["transaction_amount"] == Decimal("100.00")
        assert breakdown["platform_commission"] == Decimal("7.50")
        assert breakdown["business_payout"] == Decimal("92.50")
        assert breakdown["agent_commission"] == Decimal("0.75")

    def test_commission_rounds_half_up(self):
        # 5 * 0.075 = 0.375
        assert calculator.platform_commission(5) == Decimal("0.38")
        assert calculator.business_payout(5) == Decimal("4.62")

    @pytest.mark.parametrize("amount", ["0.01", "19.99", "33.33", "1234.56", "7"])
    def test_payout_and_commission_add_back_to_amount(self, amount):
        assert (
            calculator.platform_commission(amount) + calculator.business_payout(amount)
            == calculator.round_money(amount)
        )

    def test_agent_commission_has_a_floor(self):
        assert calculator.agent_commission(Decimal("0.38")) == Decimal("0.50")
        assert calculator.agent_commission(Decimal("100")) == Decimal("10.00")

    def test_float_inputs_keep_their_printed_value(self):
        assert calculator.to_decimal(33.33) == Decimal("33.33")


class TestProration:

    def test_prorate_and_refund(self):
        assert calculator.prorate_amount(30, 10, 30) == Decimal("10.00")
        assert calculator.refund_amount(30, 10, 30) == Decimal("20.00")

    def test_zero_length_period_prorates_to_zero(self):
        assert calculator.prorate_amount(30, 10, 0) == Decimal("0.00")

    def test_discounted_price_truncates_to_the_cent(self):
        assert calculator.discounted_price("29.99", 50) == Decimal("14.99")
        assert calculator.discounted_price("10.00", 0) == Decimal("10.00")


class TestAgentTiers:

    @pytest.mark.parametrize("referrals,tier,rate", [
        (0, "bronze", "0.10"),
        (24, "bronze", "0.10"),
        (25, "silver", "0.12"),
        (99, "silver", "0.12"),
        (100, "gold", "0.13"),
        (200, "platinum", "0.14"),
        (500, "diamond", "0.15"),
        (10000, "diamond", "0.15"),
    ])
    def test_tier_for_referrals(self, referrals, tier, rate):
        assert calculator.agent_tier_for_referrals(referrals) == (tier, Decimal(rate))

    def test_next_tier_reports_referrals_needed(self):
        upcoming = calculator.next_agent_tier(24)
        assert upcoming["tier"] == "silver"
        assert upcoming["referrals_needed"] == 1

    def test_no_next_tier_at_the_top(self):
        assert calculator.next_agent_tier(500) is None

    def test_direct_commission_and_team_override(self):
        direct = calculator.direct_commission("29.99", "0.10")
        assert direct == Decimal("3.00")
        assert calculator.team_override(direct) == Decimal("0.08")


class TestCommissionTransitions:

    @pytest.mark.parametrize("current,new", [
        ("pending", "approved"),
        ("approved", "processing"),
        ("processing", "paid"),
        ("pending", "cancelled"),
    ])
    def test_allowed(self, current, new):
        assert calculator.can_transition(current, new)

    @pytest.mark.parametrize("current,new", [
        ("pending", "paid"),
        ("paid", "cancelled"),
        ("cancelled", "approved"),
        ("unknown", "approved"),
    ])
    def test_rejected(self, current, new):
        assert not calculator.can_transition(current, new)
