"""
Shared fixtures: an in-memory stand-in for the Supabase query builder and a TestClient
with auth and database dependencies overridden.
"""
import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_current_user
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.auth.service import clear_auth_cache

CUSTOMER_ID = "11111111-1111-4111-8111-111111111111"
OWNER_ID = "22222222-2222-4222-8222-222222222222"
ADMIN_ID = "33333333-3333-4333-8333-333333333333"
BUSINESS_ID = "44444444-4444-4444-8444-444444444444"
QR_ID = "55555555-5555-4555-8555-555555555555"


def _coerce(value: Any) -> Any:
    if isinstance(value, str) and len(value) >= 10 and value[4:5] == "-" and value[7:8] == "-":
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            return value
    return value


def _compare(left: Any, right: Any, op: Callable[[Any, Any], bool]) -> bool:
    if left is None:
        return False
    left, right = _coerce(left), _coerce(right)
    try:
        return op(left, right)
    except TypeError:
        return op(str(left), str(right))


_LITERALS = {"null": None, "true": True, "false": False}

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "eq": lambda a, b: a == b,
    "neq": lambda a, b: a != b,
    "gt": lambda a, b: a > b,
    "gte": lambda a, b: a >= b,
    "lt": lambda a, b: a < b,
    "lte": lambda a, b: a <= b,
}


def _parse_literal(raw: str) -> Any:
    if raw in _LITERALS:
        return _LITERALS[raw]
    try:
        return float(raw)
    except ValueError:
        return raw


def _parse_clause(clause: str) -> Callable[[Dict[str, Any]], bool]:
    column, op, raw = clause.strip().split(".", 2)
    value = _parse_literal(raw)
    if op == "is":
        return lambda r: r.get(column) is value
    return lambda r: _compare(r.get(column), value, _OPERATORS[op])


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.payload: Any = None
        self.on_conflict: Optional[str] = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.order_by: List[tuple] = []
        self._limit: Optional[int] = None
        self._offset = 0
        self._single = False
        self._maybe_single = False

    # Verbs

    def select(self, *_columns, **_kwargs):
        return self

    def insert(self, payload):
        self.action, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.action, self.payload = "update", payload
        return self

    def upsert(self, payload, on_conflict: str = "id", **_kwargs):
        self.action, self.payload, self.on_conflict = "upsert", payload, on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    # Filters

    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and r.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and r.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda r: r.get(column) in values)
        return self

    def is_(self, column, value):
        expected = None if value in (None, "null") else value
        self.filters.append(lambda r: r.get(column) is expected)
        return self

    def gt(self, column, value):
        self.filters.append(lambda r: _compare(r.get(column), value, lambda a, b: a > b))
        return self

    def gte(self, column, value):
        self.filters.append(lambda r: _compare(r.get(column), value, lambda a, b: a >= b))
        return self

    def lt(self, column, value):
        self.filters.append(lambda r: _compare(r.get(column), value, lambda a, b: a < b))
        return self

    def lte(self, column, value):
        self.filters.append(lambda r: _compare(r.get(column), value, lambda a, b: a <= b))
        return self

    def or_(self, filters: str):
        """PostgREST `or=(col.op.value,...)` for the eq/neq/gt/gte/lt/lte/is operators"""
        clauses = [_parse_clause(clause) for clause in filters.split(",")]
        self.filters.append(lambda r: any(clause(r) for clause in clauses))
        return self

    # Modifiers

    def order(self, column, desc: bool = False, **_kwargs):
        self.order_by.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def offset(self, count):
        self._offset = count
        return self

    def range(self, start, end):
        self._offset, self._limit = start, end - start + 1
        return self

    def single(self):
        self._single = True
        return self

    def maybe_single(self):
        self._maybe_single = True
        return self

    # Execution

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(f(row) for f in self.filters)

    def _new_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(row)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        return stored

    def execute(self) -> FakeResponse:
        if self.table_name in self.db.fail_tables:
            raise Exception(f"simulated failure on {self.table_name}")
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.action == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self._new_row(r) for r in payload]
            rows.extend(created)
            return FakeResponse(copy.deepcopy(created))

        if self.action == "upsert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
            result = []
            for item in payload:
                existing = next(
                    (r for r in rows if all(k in item and r.get(k) == item[k] for k in keys)), None
                )
                if existing is not None:
                    existing.update(copy.deepcopy(item))
                    result.append(copy.deepcopy(existing))
                else:
                    created = self._new_row(item)
                    rows.append(created)
                    result.append(copy.deepcopy(created))
            return FakeResponse(result)

        matched = [r for r in rows if self._matches(r)]

        if self.action == "update":
            for r in matched:
                r.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))

        if self.action == "delete":
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(matched))

        result = copy.deepcopy(matched)
        for column, desc in reversed(self.order_by):
            result.sort(key=lambda r: (r.get(column) is None, _coerce(r.get(column))), reverse=desc)
        result = result[self._offset:]
        if self._limit is not None:
            result = result[:self._limit]
        if self._single:
            if len(result) != 1:
                raise Exception("JSON object requested, multiple (or no) rows returned")
            return FakeResponse(result[0])
        if self._maybe_single:
            return FakeResponse(result[0] if result else None)
        return FakeResponse(result, count=len(result))


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]):
        self.db, self.name, self.params = db, name, params

    def execute(self) -> FakeResponse:
        self.db.rpc_calls.append((self.name, self.params))
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            return FakeResponse(None)
        return FakeResponse(handler(self.params))


class FakeAdminAuth:
    def __init__(self):
        self.users: Dict[str, Any] = {}
        self.deleted: List[str] = []

    def get_user_by_id(self, user_id):
        user = self.users.get(user_id)
        return SimpleNamespace(user=user)

    def delete_user(self, user_id):
        self.deleted.append(user_id)
        self.users.pop(user_id, None)

    def update_user_by_id(self, user_id, attributes):
        user = self.users.get(user_id)
        if user is not None:
            user.app_metadata = attributes.get("app_metadata", {})
        return SimpleNamespace(user=user)


class FakeFunctions:
    def __init__(self):
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None

    def invoke(self, function_name, invoke_options=None):
        self.calls.append((function_name, invoke_options))
        if self.error:
            raise self.error
        return b"{}"


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_tables = set()
        self.rpc_handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self.rpc_calls: List[tuple] = []
        self.auth = SimpleNamespace(admin=FakeAdminAuth())
        self.functions = FakeFunctions()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> FakeRpc:
        return FakeRpc(self, name, params or {})

    def seed(self, table: str, *rows: Dict[str, Any]) -> List[Dict[str, Any]]:
        stored = [FakeQuery(self, table)._new_row(r) for r in rows]
        self.tables.setdefault(table, []).extend(stored)
        return stored

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])


def make_user(user_id: str, user_type: str = "customer", admin: bool = False, email: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": user_id,
        "email": email or f"{user_id[:8]}@example.com",
        "user_metadata": {"user_type": user_type},
        "app_metadata": {"type": "admin"} if admin else {},
    }


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def verified_business(fake_db) -> Dict[str, Any]:
    return fake_db.seed("businesses", {
        "id": BUSINESS_ID,
        "owner_id": OWNER_ID,
        "business_name": "Harlem Books",
        "category": "retail",
        "city": "New York",
        "is_verified": True,
        "is_suspended": False,
        "updated_at": "2026-09-01T12:00:00+00:00",
    })[0]


@pytest.fixture
def loyalty_qr(fake_db, verified_business) -> Dict[str, Any]:
    return fake_db.seed("qr_codes", {
        "id": QR_ID,
        "business_id": BUSINESS_ID,
        "code_type": "loyalty",
        "points_value": 100,
        "is_active": True,
        "scan_limit": None,
        "current_scans": 0,
    })[0]


@pytest.fixture
def current_user() -> Dict[str, Any]:
    """Mutable holder; tests swap the dict contents to change who is calling"""
    return make_user(CUSTOMER_ID)


@pytest.fixture
def client(fake_db, current_user):
    from app.main import app

    app.dependency_overrides[get_supabase] = lambda: fake_db
    app.dependency_overrides[get_service_supabase] = lambda: fake_db
    app.dependency_overrides[get_current_user] = lambda: current_user
    clear_auth_cache()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


AUTH_HEADERS = {"Authorization": "Bearer test-token"}
