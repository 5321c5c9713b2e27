"""
Tests for susu savings circle escrow: contributions, payout release and round advance
"""
from decimal import Decimal

import pytest
from fastapi import HTTPException

from app.modules.susu.service import SusuService, contribution_fee
from tests.conftest import make_user

CIRCLE_ID = "99999999-9999-4999-8999-999999999999"
ORGANIZER = "e1111111-1111-4111-8111-111111111111"
MEMBER_2 = "e2222222-2222-4222-8222-222222222222"
MEMBER_3 = "e3333333-3333-4333-8333-333333333333"
OUTSIDER = "e4444444-4444-4444-8444-444444444444"
MEMBERS = (ORGANIZER, MEMBER_2, MEMBER_3)


@pytest.fixture
def circle(fake_db):
    row = fake_db.seed("susu_circles", {
        "id": CIRCLE_ID, "name": "Harlem Savers", "created_by": ORGANIZER,
        "contribution_amount": 100.0, "current_round": 1, "status": "active",
    })[0]
    fake_db.seed("susu_memberships", *[
        {"circle_id": CIRCLE_ID, "user_id": user_id, "payout_position": position}
        for position, user_id in enumerate(MEMBERS, start=1)
    ])
    return row


class TestContributions:

    def test_fee(self):
        assert contribution_fee(100) == Decimal("1.50")
        assert contribution_fee("33.33") == Decimal("0.50")

    def test_contribution_is_held_for_the_round_recipient(self, fake_db, circle):
        result = SusuService(fake_db).contribute(CIRCLE_ID, MEMBER_2, 100)

        assert result.round_number == 1
        assert result.amount_held == 100.0
        assert result.platform_fee == 1.5
        assert result.recipient_id == ORGANIZER
        escrow = fake_db.rows("susu_escrow")[0]
        assert escrow["status"] == "held"
        assert escrow["contributor_id"] == MEMBER_2

    def test_non_member(self, fake_db, circle):
        with pytest.raises(HTTPException) as exc:
            SusuService(fake_db).contribute(CIRCLE_ID, OUTSIDER, 100)
        assert exc.value.status_code == 403

    def test_one_contribution_per_round(self, fake_db, circle):
        service = SusuService(fake_db)
        service.contribute(CIRCLE_ID, MEMBER_2, 100)
        with pytest.raises(HTTPException) as exc:
            service.contribute(CIRCLE_ID, MEMBER_2, 100)
        assert exc.value.status_code == 409

    def test_completed_circle(self, fake_db, circle):
        fake_db.rows("susu_circles")[0]["status"] = "completed"
        with pytest.raises(HTTPException) as exc:
            SusuService(fake_db).contribute(CIRCLE_ID, MEMBER_2, 100)
        assert exc.value.status_code == 400

    def test_unknown_circle(self, fake_db):
        with pytest.raises(HTTPException) as exc:
            SusuService(fake_db).contribute(CIRCLE_ID, MEMBER_2, 100)
        assert exc.value.status_code == 404


class TestPayout:

    def test_release_needs_every_member(self, fake_db, circle):
        service = SusuService(fake_db)
        service.contribute(CIRCLE_ID, ORGANIZER, 100)
        service.contribute(CIRCLE_ID, MEMBER_2, 100)
        with pytest.raises(HTTPException) as exc:
            service.release_payout(CIRCLE_ID)
        assert exc.value.status_code == 400
        assert exc.value.detail == "Not all members have contributed (2 of 3)"

    def test_release_pays_net_of_fees(self, fake_db, circle):
        service = SusuService(fake_db)
        for member in MEMBERS:
            service.contribute(CIRCLE_ID, member, 100)

        payout = service.release_payout(CIRCLE_ID)

        assert payout.recipient_id == ORGANIZER
        assert payout.total_contributed == 300.0
        assert payout.platform_fee == 4.5
        assert payout.net_payout == 295.5
        assert {e["status"] for e in fake_db.rows("susu_escrow")} == {"released"}

    def test_advance_and_complete(self, fake_db, circle):
        service = SusuService(fake_db)
        assert service.advance_round(CIRCLE_ID).new_round == 2
        assert service.advance_round(CIRCLE_ID).new_round == 3

        final = service.advance_round(CIRCLE_ID)

        assert final.circle_completed
        assert final.new_round == 3
        assert fake_db.rows("susu_circles")[0]["status"] == "completed"

    def test_status(self, fake_db, circle):
        SusuService(fake_db).contribute(CIRCLE_ID, MEMBER_3, 100)
        status = SusuService(fake_db).get_status(CIRCLE_ID)
        assert status.total_rounds == 3
        assert status.contributions_this_round == 1
        assert status.current_recipient_id == ORGANIZER
        assert status.platform_fee_rate == 0.015


@pytest.mark.api
class TestSusuRoutes:

    def test_member_cannot_release(self, client, fake_db, circle, current_user):
        current_user.update(make_user(MEMBER_2))
        response = client.post(f"/api/v1/susu/{CIRCLE_ID}/release")
        assert response.status_code == 403

    def test_organizer_can_advance(self, client, fake_db, circle, current_user):
        current_user.update(make_user(ORGANIZER))
        response = client.post(f"/api/v1/susu/{CIRCLE_ID}/advance")
        assert response.status_code == 200
        assert response.json()["new_round"] == 2

    def test_contribute(self, client, fake_db, circle, current_user):
        current_user.update(make_user(MEMBER_3))
        response = client.post(f"/api/v1/susu/{CIRCLE_ID}/contribute", json={"amount": 100})
        assert response.status_code == 200
        assert response.json()["platform_fee"] == 1.5
