import copy
import os
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

# Pas de Redis pendant les tests: throttling désactivé, limiteur de connexion en mémoire
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from backend.app import app as fastapi_app
from backend.utils.security import require_user, require_admin

TEST_USER: Dict[str, Any] = {
    "id": "test-user",
    "email": "test@example.com",
    "username": "tester",
    "role": "user",
    "metadata": {},
    "token": "fake-token",
}
TEST_ADMIN: Dict[str, Any] = {
    "id": "admin-user-id",
    "email": "admin@example.com",
    "username": "admin",
    "role": "admin",
    "metadata": {},
    "token": "fake-admin-token",
}

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)


# --- Faux client Supabase (PostgREST) en mémoire ---

class _Resp:
    def __init__(self, data=None, count=None):
        self.data = data
        self.count = count


class _Query:
    """Sous-ensemble du query builder postgrest utilisé par les repositories."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[Callable[[dict], bool]] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._range: Optional[tuple] = None
        self._count: Optional[str] = None

    def select(self, columns: str = "*", count: Optional[str] = None):
        self.op = "select"
        self._count = count
        return self

    def insert(self, data):
        self.op, self.payload = "insert", data
        return self

    def update(self, data):
        self.op, self.payload = "update", data
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda r: r.get(column) == value)
        return self

    def lt(self, column, value):
        self.filters.append(lambda r: r.get(column) is not None and r.get(column) < value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda r: r.get(column) in values)
        return self

    def or_(self, expression: str):
        clauses = []
        for part in expression.split(","):
            column, _, pattern = part.split(".", 2)
            clauses.append((column, pattern.strip("%").lower()))
        self.filters.append(lambda r: any(term in str(r.get(col) or "").lower() for col, term in clauses))
        return self

    def order(self, column, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def range(self, start: int, end: int):
        self._range = (start, end)
        return self

    def execute(self):
        return self.db._execute(self)


class FakeSupabase:
    """Tables en mémoire; chaque execute() est atomique (verrou), comme une requête PostgREST."""

    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.auth = MagicMock()
        self.fail_on: set = set()
        self._lock = threading.Lock()
        self._tick = 0

    def table(self, name: str) -> _Query:
        return _Query(self, name)

    def rows(self, name: str) -> List[dict]:
        return self.tables.setdefault(name, [])

    def seed(self, _table: str, **row) -> dict:
        with self._lock:
            return copy.deepcopy(self._insert_row(_table, row))

    def _insert_row(self, name: str, row: dict) -> dict:
        self._tick += 1
        row = dict(row)
        row.setdefault("id", uuid.uuid4().hex)
        row.setdefault("created_at", (datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=self._tick)).isoformat())
        self.rows(name).append(row)
        return row

    def _execute(self, q: _Query) -> _Resp:
        if (q.table, q.op) in self.fail_on:
            raise RuntimeError(f"store failure on {q.table}.{q.op}")
        with self._lock:
            table = self.rows(q.table)
            matched = [r for r in table if all(f(r) for f in q.filters)]
            if q.op == "insert":
                payload = q.payload if isinstance(q.payload, list) else [q.payload]
                return _Resp([copy.deepcopy(self._insert_row(q.table, p)) for p in payload])
            if q.op == "update":
                for r in matched:
                    r.update(copy.deepcopy(q.payload))
                return _Resp(copy.deepcopy(matched))
            if q.op == "delete":
                ids = {id(r) for r in matched}
                self.tables[q.table] = [r for r in table if id(r) not in ids]
                return _Resp(copy.deepcopy(matched))
            if q._order:
                column, desc = q._order
                matched = sorted(matched, key=lambda r: str(r.get(column) or ""), reverse=desc)
            count = len(matched) if q._count else None
            if q._range:
                matched = matched[q._range[0]:q._range[1] + 1]
            if q._limit is not None:
                matched = matched[:q._limit]
            return _Resp(copy.deepcopy(matched), count)


@pytest.fixture(autouse=True)
def store(monkeypatch) -> FakeSupabase:
    """Remplace les clients Supabase (anon et service) par une base en mémoire."""
    db = FakeSupabase()
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: db)
    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", lambda: db)
    return db


@pytest.fixture
def make_product(store):
    def _make(name="Air Max", price=1000, stock=10, **extra) -> dict:
        row = {
            "name": name,
            "description": extra.pop("description", f"{name} description"),
            "price": price,
            "stock": stock,
            "category": extra.pop("category", "shoes"),
            "brand": extra.pop("brand", "Nike"),
            "image": extra.pop("image", f"/img/{name.lower().replace(' ', '-')}.png"),
            "is_active": extra.pop("is_active", True),
        }
        row.update(extra)
        return store.seed("products", **row)
    return _make


@pytest.fixture
def stock_of(store):
    def _stock(product_id: str) -> int:
        return next(p["stock"] for p in store.rows("products") if p["id"] == product_id)
    return _stock


@pytest.fixture
def shipping_address() -> Dict[str, Any]:
    return {
        "full_name": "Test User",
        "street": "1 Mall Road",
        "city": "Lahore",
        "state": "Punjab",
        "postal_code": "54000",
        "country": "PK",
        "phone": "+92 300 0000000",
    }


# --- Application / clients HTTP ---

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture(autouse=True)
def _override_require_user(app):
    app.dependency_overrides[require_user] = lambda: TEST_USER
    try:
        yield
    finally:
        app.dependency_overrides.pop(require_user, None)

@pytest.fixture
def admin_client(app, client):
    app.dependency_overrides[require_admin] = lambda: TEST_ADMIN
    try:
        yield client
    finally:
        app.dependency_overrides.pop(require_admin, None)

@pytest.fixture
def anonymous_client(app, client):
    """Client sans override: l'authentification réelle (Bearer) s'applique."""
    app.dependency_overrides.pop(require_user, None)
    yield client


# --- Webhook Stripe signé (HMAC réel, vérifié par le SDK) ---

WEBHOOK_SECRET = "whsec_test_secret"

@pytest.fixture
def sign_webhook(monkeypatch):
    """Configure le secret webhook et retourne une fonction payload -> en-tête Stripe-Signature."""
    import hashlib
    import hmac
    import time

    monkeypatch.setattr("backend.payments.stripe_client.STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)

    def _sign(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: Optional[int] = None) -> str:
        ts = int(time.time()) if timestamp is None else timestamp
        signed = f"{ts}.{payload.decode('utf-8')}".encode("utf-8")
        signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
        return f"t={ts},v1={signature}"
    return _sign
