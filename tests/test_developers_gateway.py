"""
Tests for developer API key issuance and the gateway's validation chain
"""
import pytest
from fastapi import HTTPException

from app.modules.developers.gateway import ApiGateway, GatewayError, extract_api_key, hash_api_key
from app.modules.developers.schemas import ApiKeyCreate
from app.modules.developers.service import DeveloperService, generate_api_key
from tests.conftest import CUSTOMER_ID

RAW_KEY = "mm_live_testkey"


def _developer(**overrides):
    row = {"developer_id": "dev-1", "api_key_id": "key-1", "tier": "pro", "status": "active",
           "rate_limit_per_minute": 120, "scopes": ["businesses:read"]}
    row.update(overrides)
    return row


@pytest.fixture
def gateway_db(fake_db):
    fake_db.rpc_handlers["validate_api_key"] = lambda params: (
        [_developer()] if params["p_key_hash"] == hash_api_key(RAW_KEY) else []
    )
    fake_db.rpc_handlers["check_api_rate_limit"] = lambda params: True
    return fake_db


class TestKeyHelpers:

    def test_hash_is_sha256_hex(self):
        assert hash_api_key("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_extract_prefers_bearer(self):
        assert extract_api_key("Bearer mm_live_a", "mm_live_b") == "mm_live_a"
        assert extract_api_key(None, "mm_live_b") == "mm_live_b"
        assert extract_api_key("Basic xyz", None) is None

    def test_generated_keys(self):
        key = generate_api_key()
        assert key.startswith("mm_live_")
        assert key != generate_api_key()


class TestValidate:

    def _error(self, gateway, key, scope=None):
        with pytest.raises(GatewayError) as exc:
            gateway.validate(key, scope)
        return exc.value

    def test_valid_key(self, gateway_db):
        identity = ApiGateway(gateway_db).validate(RAW_KEY, "businesses:read")
        assert identity.developer_id == "dev-1"
        assert identity.rate_limit_per_minute == 120
        name, params = gateway_db.rpc_calls[1]
        assert name == "check_api_rate_limit"
        assert params == {"p_api_key_id": "key-1", "p_limit_per_minute": 120}

    def test_single_row_result(self, gateway_db):
        gateway_db.rpc_handlers["validate_api_key"] = lambda params: _developer()
        assert ApiGateway(gateway_db).validate(RAW_KEY).api_key_id == "key-1"

    def test_missing_key(self, gateway_db):
        error = self._error(ApiGateway(gateway_db), None)
        assert (error.status_code, error.error_code) == (401, "MISSING_API_KEY")

    def test_unknown_key(self, gateway_db):
        error = self._error(ApiGateway(gateway_db), "mm_live_wrong")
        assert (error.status_code, error.error_code) == (401, "INVALID_API_KEY")

    def test_inactive_account(self, gateway_db):
        gateway_db.rpc_handlers["validate_api_key"] = lambda params: [_developer(status="suspended")]
        error = self._error(ApiGateway(gateway_db), RAW_KEY)
        assert (error.status_code, error.error_code) == (401, "ACCOUNT_INACTIVE")

    def test_rate_limited(self, gateway_db):
        gateway_db.rpc_handlers["check_api_rate_limit"] = lambda params: False
        error = self._error(ApiGateway(gateway_db), RAW_KEY)
        assert (error.status_code, error.error_code) == (429, "RATE_LIMIT_EXCEEDED")
        assert "120" in error.detail["error"]

    def test_scope_denied(self, gateway_db):
        error = self._error(ApiGateway(gateway_db), RAW_KEY, "payments:write")
        assert (error.status_code, error.error_code) == (403, "SCOPE_DENIED")

    def test_backend_failure(self, gateway_db):
        def broken(params):
            raise RuntimeError("db down")

        gateway_db.rpc_handlers["validate_api_key"] = broken
        error = self._error(ApiGateway(gateway_db), RAW_KEY)
        assert (error.status_code, error.error_code) == (500, "AUTH_ERROR")


class TestKeyManagement:

    def test_create_key_stores_only_the_hash(self, fake_db):
        created = DeveloperService(fake_db).create_key(CUSTOMER_ID, ApiKeyCreate(name="CI", scopes=["businesses:read"]))

        assert created.api_key.startswith("mm_live_")
        assert created.key_prefix == created.api_key[:12]
        stored = fake_db.rows("developer_api_keys")[0]
        assert stored["key_hash"] == hash_api_key(created.api_key)
        assert created.api_key not in stored.values()
        account = fake_db.rows("developer_accounts")[0]
        assert (account["status"], account["tier"], account["rate_limit_per_minute"]) == ("active", "free", 60)

    def test_suspended_account_cannot_create_keys(self, fake_db):
        fake_db.seed("developer_accounts", {"user_id": CUSTOMER_ID, "status": "suspended", "tier": "free"})
        with pytest.raises(HTTPException) as exc:
            DeveloperService(fake_db).create_key(CUSTOMER_ID, ApiKeyCreate(name="CI"))
        assert exc.value.status_code == 403

    def test_revoke(self, fake_db):
        service = DeveloperService(fake_db)
        created = service.create_key(CUSTOMER_ID, ApiKeyCreate(name="CI"))
        assert service.revoke_key(CUSTOMER_ID, created.id)
        assert fake_db.rows("developer_api_keys")[0]["is_active"] is False
        assert [k.is_active for k in service.list_keys(CUSTOMER_ID)] == [False]


@pytest.mark.api
class TestDeveloperRoutes:

    def test_validate_endpoint(self, client, gateway_db):
        response = client.post("/api/v1/developers/validate", json={}, headers={"X-API-Key": RAW_KEY})
        assert response.status_code == 200
        assert response.json()["developer"]["developer_id"] == "dev-1"

    def test_validate_error_body(self, client, gateway_db):
        response = client.post("/api/v1/developers/validate", json={})
        assert response.status_code == 401
        assert response.json()["detail"]["error_code"] == "MISSING_API_KEY"

    def test_usage_is_logged(self, client, gateway_db):
        response = client.post(
            "/api/v1/developers/usage",
            json={"endpoint": "/v1/businesses", "method": "get", "response_status": 404, "latency_ms": 87,
                  "billed_units": 3},
            headers={"Authorization": f"Bearer {RAW_KEY}", "X-Forwarded-For": "203.0.113.9, 10.0.0.1"},
        )
        assert response.status_code == 200
        name, params = gateway_db.rpc_calls[-1]
        assert name == "log_api_usage"
        assert params["p_billed_units"] == 3
        assert (params["p_method"], params["p_response_status"], params["p_latency_ms"]) == ("GET", 404, 87)
        assert params["p_ip_address"] == "203.0.113.9"
