"""
Tests for sales agent registration, referral commissions and commission payout flow
"""
import pytest
from fastapi import HTTPException

from app.modules.commissions.schemas import AgentCreate, CommissionStatusUpdate, ReferralCreate
from app.modules.commissions.service import CommissionService, generate_referral_code
from tests.conftest import ADMIN_ID, CUSTOMER_ID, make_user

AGENT_USER = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"
RECRUITER_USER = "bbbbbbbb-bbbb-4bbb-8bbb-bbbbbbbbbbbb"
BUSINESS_USER = "cccccccc-cccc-4ccc-8ccc-cccccccccccc"


def _agent(**overrides):
    agent = {
        "user_id": AGENT_USER, "full_name": "Amara Diallo", "email": "amara@example.com",
        "referral_code": "MMAGENT1", "tier": "bronze", "commission_rate": 0.10,
        "recruited_by_agent_id": None, "lifetime_referrals": 0,
        "total_earned": 0, "total_pending": 0, "is_active": True,
    }
    agent.update(overrides)
    return agent


def _referral(code="MMAGENT1"):
    return ReferralCreate(referral_code=code)


def _subscribe(fake_db, user_id, tier="enterprise", user_type="business", status="active"):
    fake_db.seed("subscriptions", {"user_id": user_id, "tier": tier, "user_type": user_type, "status": status})


@pytest.fixture(autouse=True)
def business_subscription(fake_db):
    _subscribe(fake_db, BUSINESS_USER)


class TestAgentRegistration:

    def test_referral_code_format(self):
        code = generate_referral_code()
        assert code.startswith("MM")
        assert len(code) == 8
        assert code[2:].isalnum() and code[2:].upper() == code[2:]

    def test_register_with_recruiter(self, fake_db):
        recruiter = fake_db.seed("sales_agents", _agent(user_id=RECRUITER_USER, referral_code="MMRECRUT"))[0]

        agent = CommissionService(fake_db).register_agent(
            AgentCreate(full_name="Kofi", email="kofi@example.com", recruiter_code="mmrecrut"),
            AGENT_USER,
        )

        assert agent.tier == "bronze"
        assert agent.commission_rate == 0.10
        assert agent.recruited_by_agent_id == recruiter["id"]
        assert agent.referral_code.startswith("MM")

    def test_register_twice(self, fake_db):
        fake_db.seed("sales_agents", _agent())
        with pytest.raises(HTTPException) as exc:
            CommissionService(fake_db).register_agent(AgentCreate(full_name="A", email="a@example.com"), AGENT_USER)
        assert exc.value.status_code == 409

    def test_unknown_recruiter(self, fake_db):
        with pytest.raises(HTTPException) as exc:
            CommissionService(fake_db).register_agent(
                AgentCreate(full_name="A", email="a@example.com", recruiter_code="MMNOPE00"), AGENT_USER
            )
        assert exc.value.status_code == 400


class TestReferrals:

    def test_direct_commission_override_and_recruitment_bonus(self, fake_db):
        recruiter = fake_db.seed("sales_agents", _agent(user_id=RECRUITER_USER, referral_code="MMRECRUT"))[0]
        agent = fake_db.seed("sales_agents", _agent(recruited_by_agent_id=recruiter["id"]))[0]

        result = CommissionService(fake_db).record_referral(_referral(), BUSINESS_USER)

        by_type = {c.commission_type: c for c in result.commissions}
        assert by_type["direct"].amount == 3.00
        assert by_type["direct"].sales_agent_id == agent["id"]
        assert by_type["team_override"].amount == 0.08
        assert by_type["team_override"].tier_level == 2
        assert by_type["recruitment_bonus"].amount == 50.00
        assert by_type["recruitment_bonus"].sales_agent_id == recruiter["id"]

        agents = {a["id"]: a for a in fake_db.rows("sales_agents")}
        assert agents[agent["id"]]["lifetime_referrals"] == 1
        assert agents[agent["id"]]["total_pending"] == 3.00
        assert agents[recruiter["id"]]["total_pending"] == 50.08

    def test_bonus_is_paid_once(self, fake_db):
        recruiter = fake_db.seed("sales_agents", _agent(user_id=RECRUITER_USER, referral_code="MMRECRUT"))[0]
        fake_db.seed("sales_agents", _agent(recruited_by_agent_id=recruiter["id"], lifetime_referrals=3))

        result = CommissionService(fake_db).record_referral(_referral(), BUSINESS_USER)

        assert {c.commission_type for c in result.commissions} == {"direct", "team_override"}

    def test_tier_promotion(self, fake_db):
        fake_db.seed("sales_agents", _agent(lifetime_referrals=24))

        result = CommissionService(fake_db).record_referral(_referral(), BUSINESS_USER)

        assert result.agent_tier == "silver"
        assert result.commissions[0].amount == 3.00
        stored = fake_db.rows("sales_agents")[0]
        assert stored["tier"] == "silver"
        assert stored["commission_rate"] == 0.12

    def test_unknown_code(self, fake_db):
        with pytest.raises(HTTPException) as exc:
            CommissionService(fake_db).record_referral(_referral("MMZZZZZZ"), BUSINESS_USER)
        assert exc.value.status_code == 404

    def test_self_referral(self, fake_db):
        fake_db.seed("sales_agents", _agent())
        with pytest.raises(HTTPException) as exc:
            CommissionService(fake_db).record_referral(_referral(), AGENT_USER)
        assert exc.value.status_code == 400

    def test_amount_comes_from_subscription_tier(self, fake_db):
        fake_db.seed("sales_agents", _agent())
        _subscribe(fake_db, CUSTOMER_ID, tier="pro", user_type="customer")

        CommissionService(fake_db).record_referral(_referral(), CUSTOMER_ID)

        referral = next(r for r in fake_db.rows("referrals") if r["referred_user_id"] == CUSTOMER_ID)
        assert referral["subscription_amount"] == 9.99
        assert referral["commission_amount"] == 1.00
        assert referral["referred_user_type"] == "customer"

    @pytest.mark.parametrize("tier,status", [("free", "active"), ("pro", "cancelled")])
    def test_referred_user_needs_paid_subscription(self, fake_db, tier, status):
        fake_db.seed("sales_agents", _agent())
        _subscribe(fake_db, CUSTOMER_ID, tier=tier, status=status)
        with pytest.raises(HTTPException) as exc:
            CommissionService(fake_db).record_referral(_referral(), CUSTOMER_ID)
        assert exc.value.status_code == 400
        assert fake_db.rows("agent_commissions") == []

    def test_unsubscribed_user_earns_nothing(self, fake_db):
        fake_db.seed("sales_agents", _agent())
        with pytest.raises(HTTPException) as exc:
            CommissionService(fake_db).record_referral(_referral(), RECRUITER_USER)
        assert exc.value.status_code == 400

    def test_user_referred_twice(self, fake_db):
        fake_db.seed("sales_agents", _agent())
        service = CommissionService(fake_db)
        service.record_referral(_referral(), BUSINESS_USER)
        with pytest.raises(HTTPException) as exc:
            service.record_referral(_referral(), BUSINESS_USER)
        assert exc.value.status_code == 409


class TestCommissionStatus:

    def test_full_payout_flow_settles_agent_totals(self, fake_db):
        fake_db.seed("sales_agents", _agent())
        service = CommissionService(fake_db)
        commission_id = service.record_referral(_referral(), BUSINESS_USER).commissions[0].id

        for status in ("approved", "processing"):
            service.update_status(commission_id, CommissionStatusUpdate(status=status))
        paid = service.update_status(commission_id, CommissionStatusUpdate(status="paid", payment_reference="po_123"))

        assert paid.status == "paid"
        assert paid.paid_date is not None
        assert paid.payment_reference == "po_123"
        agent = fake_db.rows("sales_agents")[0]
        assert agent["total_pending"] == 0.0
        assert agent["total_earned"] == 3.00

    def test_skipping_states_is_rejected(self, fake_db):
        fake_db.seed("sales_agents", _agent())
        service = CommissionService(fake_db)
        commission_id = service.record_referral(_referral(), BUSINESS_USER).commissions[0].id
        with pytest.raises(HTTPException) as exc:
            service.update_status(commission_id, CommissionStatusUpdate(status="paid"))
        assert exc.value.status_code == 400

    def test_cancel_releases_pending(self, fake_db):
        fake_db.seed("sales_agents", _agent())
        service = CommissionService(fake_db)
        commission_id = service.record_referral(_referral(), BUSINESS_USER).commissions[0].id
        service.update_status(commission_id, CommissionStatusUpdate(status="cancelled"))
        agent = fake_db.rows("sales_agents")[0]
        assert agent["total_pending"] == 0.0
        assert agent["total_earned"] == 0


@pytest.mark.api
class TestCommissionRoutes:

    def test_breakdown(self, client):
        response = client.get("/api/v1/commissions/breakdown", params={"amount": 100})
        assert response.status_code == 200
        assert response.json() == {
            "transaction_amount": 100.0,
            "platform_commission": 7.5,
            "business_payout": 92.5,
            "agent_commission": 0.75,
        }

    def test_referral_defaults_to_caller(self, client, fake_db, current_user):
        fake_db.seed("sales_agents", _agent())
        _subscribe(fake_db, CUSTOMER_ID, tier="pro", user_type="customer")
        response = client.post("/api/v1/commissions/referrals", json={
            "referral_code": "MMAGENT1", "subscription_amount": 100000, "referred_user_type": "customer",
        })
        assert response.status_code == 201
        referral = fake_db.rows("referrals")[0]
        assert referral["referred_user_id"] == current_user["id"]
        assert referral["subscription_amount"] == 9.99

    def test_agent_cannot_name_other_referred_users(self, client, fake_db, current_user):
        fake_db.seed("sales_agents", _agent())
        current_user.update(make_user(AGENT_USER))
        response = client.post("/api/v1/commissions/referrals", json={
            "referral_code": "MMAGENT1", "referred_user_id": BUSINESS_USER,
        })
        assert response.status_code == 403
        assert fake_db.rows("agent_commissions") == []

    def test_approver_records_referral_for_another_user(self, client, fake_db, current_user):
        fake_db.seed("sales_agents", _agent())
        current_user.update(make_user(ADMIN_ID, admin=True))
        response = client.post("/api/v1/commissions/referrals", json={
            "referral_code": "MMAGENT1", "referred_user_id": BUSINESS_USER,
        })
        assert response.status_code == 201
        assert response.json()["commissions"][0]["amount"] == 3.00

    def test_status_change_needs_approve_permission(self, client, fake_db):
        response = client.post("/api/v1/commissions/some-id/status", json={"status": "approved"})
        assert response.status_code == 403

    def test_admin_can_approve(self, client, fake_db, current_user):
        fake_db.seed("sales_agents", _agent())
        commission_id = CommissionService(fake_db).record_referral(_referral(), BUSINESS_USER).commissions[0].id
        current_user.update(make_user(ADMIN_ID, admin=True))

        response = client.post(f"/api/v1/commissions/{commission_id}/status", json={"status": "approved"})

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
