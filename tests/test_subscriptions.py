"""
Tests for subscription tiers and Stripe Checkout / Billing Portal sessions
"""
from types import SimpleNamespace

import pytest
import stripe
from fastapi import HTTPException

from app.config import settings
from app.modules.subscriptions import rules
from app.modules.subscriptions.schemas import CheckoutRequest
from app.modules.subscriptions.service import SubscriptionService
from tests.conftest import CUSTOMER_ID, make_user

URLS = {"success_url": "https://app.example/ok", "cancel_url": "https://app.example/no"}


class TestRules:

    def test_checkout_validation_lists_every_missing_field(self):
        assert rules.validate_checkout_request(None, None, None) == [
            "Price ID required", "Success URL required", "Cancel URL required",
        ]
        assert rules.validate_checkout_request("price_1", "a", "b") == []

    def test_tiers(self):
        assert rules.is_valid_tier("pro")
        assert not rules.is_valid_tier("gold")
        assert rules.tier_price("enterprise") == 29.99

    def test_payment_error_messages(self):
        assert rules.payment_error_message("card_declined").startswith("Your card was declined")
        assert rules.payment_error_message("weird") == "An unexpected error occurred."
        assert rules.payment_error_message(None) == "An unexpected error occurred."

    def test_tier_from_apple_product(self):
        assert rules.tier_from_product_id("com.mansamusa.pro.monthly") == "pro"
        assert rules.tier_from_product_id("com.mansamusa.Enterprise.yearly") == "enterprise"
        assert rules.tier_from_product_id(None) is None


class TestCheckout:

    @pytest.fixture
    def stripe_calls(self, monkeypatch):
        calls = []

        def fake_create(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.com/c/cs_test_123")

        monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
        return calls

    def test_free_tier_skips_stripe(self, fake_db, stripe_calls):
        response = SubscriptionService(fake_db).create_checkout(CheckoutRequest(tier="free"), make_user(CUSTOMER_ID))
        assert response.tier == "free"
        assert response.session_id is None
        assert stripe_calls == []

    def test_invalid_tier(self, fake_db, stripe_calls):
        with pytest.raises(HTTPException) as exc:
            SubscriptionService(fake_db).create_checkout(CheckoutRequest(tier="gold"), make_user(CUSTOMER_ID))
        assert exc.value.status_code == 400

    def test_missing_fields_are_all_reported(self, fake_db, stripe_calls):
        with pytest.raises(HTTPException) as exc:
            SubscriptionService(fake_db).create_checkout(CheckoutRequest(), make_user(CUSTOMER_ID))
        assert exc.value.status_code == 400
        assert exc.value.detail == ["Price ID required", "Success URL required", "Cancel URL required"]

    def test_tier_resolves_configured_price(self, fake_db, stripe_calls, monkeypatch):
        monkeypatch.setattr(settings, "stripe_price_ids", "pro=price_pro_1,enterprise=price_ent_1")

        response = SubscriptionService(fake_db).create_checkout(
            CheckoutRequest(tier="pro", **URLS), make_user(CUSTOMER_ID)
        )

        assert response.session_id == "cs_test_123"
        call = stripe_calls[0]
        assert call["mode"] == "subscription"
        assert call["line_items"] == [{"price": "price_pro_1", "quantity": 1}]
        assert call["client_reference_id"] == CUSTOMER_ID
        assert call["metadata"] == {"user_id": CUSTOMER_ID, "tier": "pro", "user_type": "customer"}

    def test_stripe_error_maps_to_friendly_message(self, fake_db, monkeypatch):
        def declined(**kwargs):
            raise stripe.CardError("declined", None, "card_declined")

        monkeypatch.setattr(stripe.checkout.Session, "create", declined)
        with pytest.raises(HTTPException) as exc:
            SubscriptionService(fake_db).create_checkout(
                CheckoutRequest(price_id="price_1", **URLS), make_user(CUSTOMER_ID)
            )
        assert exc.value.status_code == 500
        assert exc.value.detail == rules.PAYMENT_ERROR_MESSAGES["card_declined"]


class TestPortal:

    def test_no_customer(self, fake_db):
        with pytest.raises(HTTPException) as exc:
            SubscriptionService(fake_db).create_portal(CUSTOMER_ID)
        assert exc.value.status_code == 404

    def test_portal_session(self, fake_db, monkeypatch):
        fake_db.seed("subscriptions", {"user_id": CUSTOMER_ID, "stripe_customer_id": "cus_42"})
        seen = {}

        def fake_create(**kwargs):
            seen.update(kwargs)
            return SimpleNamespace(url="https://billing.stripe.com/p/session_1")

        monkeypatch.setattr(stripe.billing_portal.Session, "create", fake_create)
        response = SubscriptionService(fake_db).create_portal(CUSTOMER_ID, "https://app.example/account")

        assert response.url == "https://billing.stripe.com/p/session_1"
        assert seen == {"customer": "cus_42", "return_url": "https://app.example/account"}


@pytest.mark.api
class TestSubscriptionRoutes:

    def test_list_tiers(self, client):
        response = client.get("/api/v1/subscriptions/tiers")
        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == ["free", "pro", "enterprise"]

    def test_checkout_validation_errors(self, client):
        response = client.post("/api/v1/subscriptions/checkout", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == ["Price ID required", "Success URL required", "Cancel URL required"]
