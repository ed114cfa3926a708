"""Shared pytest fixtures for test suite"""
import json
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator
from unittest.mock import Mock, patch

import httpx
import pytest
from cryptography.fernet import Fernet

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Settings are read at import time; point them at throwaway values first
TEST_ENCRYPTION_KEY = Fernet.generate_key().decode()
os.environ.setdefault("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
os.environ.setdefault("SESSION_STORE_PATH", str(Path(tempfile.mkdtemp()) / "session.store"))
os.environ.setdefault("PURCHASE_VERIFY_DELAY", "0")

from fastapi.testclient import TestClient

from aura.core.cache import ProcessCache
from aura.core.config import settings
from aura.core.context import AppContext, get_context
from aura.db.remote_store import RemoteStore
from aura.main import app
from aura.services.credentials import CredentialProvider
from aura.services.session_service import EncryptedStore, SessionStore
from aura.services.stripe_service import StripeGateway


TEST_DATABASE_URL = "https://db.test"
TEST_ANON_KEY = "anon-test-key"
TEST_ACCESS_TOKEN = "access-test-token"
TEST_USER_ID = "user-1"

# Child table -> column referencing the parent row, for embedded selects like "*,package_prices(*)"
EMBED_FOREIGN_KEYS = {
    "package_prices": "package_id",
    "subscription_prices": "plan_id",
}

FILTER_OPERATORS = ("eq", "neq", "is")


def _encode(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class FakeRestBackend:
    """
    In-memory stand-in for the relational backend's /rest/v1 API.

    Understands the subset of PostgREST the app uses: eq/neq/is filters,
    order, limit, one level of embedding, Prefer return/resolution headers and
    on_conflict upserts. Failures can be scripted per method and table.
    """

    def __init__(self):
        self.tables = {}
        self.requests = []
        self.failures = []
        self._counter = 0
        self._epoch = datetime(2026, 1, 1, tzinfo=timezone.utc)

    # -- test helpers ------------------------------------------------------

    def _next_id(self, table):
        self._counter += 1
        return f"{table}-{self._counter}"

    def _timestamp(self):
        self._counter += 1
        return (self._epoch + timedelta(seconds=self._counter)).isoformat()

    def seed(self, table, **row):
        row.setdefault("id", self._next_id(table))
        row.setdefault("created_at", self._timestamp())
        self.tables.setdefault(table, []).append(row)
        return row

    def rows(self, table, **filters):
        return [
            r for r in self.tables.get(table, [])
            if all(r.get(k) == v for k, v in filters.items())
        ]

    def fail(self, method, table, status=500, body='{"message": "boom"}', when=None):
        """Make matching requests fail; `when(params)` narrows the match"""
        self.failures.append((method, table, status, body, when))

    def requests_to(self, method, table):
        return [r for r in self.requests if r[0] == method and r[1] == table]

    # -- request handling --------------------------------------------------

    def _matches(self, row, params):
        for column, expression in params.items():
            if column in ("select", "order", "limit", "on_conflict"):
                continue
            operator, _, expected = expression.partition(".")
            if operator not in FILTER_OPERATORS:
                raise AssertionError(f"Unsupported filter {column}={expression}")
            actual = _encode(row.get(column))
            if operator == "eq" and actual != expected:
                return False
            if operator == "neq" and actual == expected:
                return False
            if operator == "is" and actual != expected:
                return False
        return True

    def _order(self, rows, order):
        for part in reversed(order.split(",")):
            column, _, direction = part.partition(".")
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=(direction == "desc"))
            rows = present + missing
        return rows

    def _embed(self, table, rows, select):
        for part in select.split(","):
            if "(" not in part:
                continue
            child = part.split("(", 1)[0]
            foreign_key = EMBED_FOREIGN_KEYS[child]
            for row in rows:
                row[child] = [dict(c) for c in self.tables.get(child, []) if c.get(foreign_key) == row["id"]]
        return rows

    def _response(self, status, payload=None):
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        table = request.url.path.rsplit("/", 1)[-1]
        params = dict(request.url.params)
        prefer = request.headers.get("Prefer", "")
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, table, params, body, dict(request.headers)))

        for method, fail_table, status, fail_body, when in self.failures:
            if method == request.method and fail_table == table and (when is None or when(params)):
                return httpx.Response(status, text=fail_body)

        rows = self.tables.setdefault(table, [])
        representation = "return=representation" in prefer

        if request.method == "GET":
            result = [dict(r) for r in rows if self._matches(r, params)]
            if "order" in params:
                result = self._order(result, params["order"])
            if "limit" in params:
                result = result[:int(params["limit"])]
            return self._response(200, self._embed(table, result, params.get("select", "*")))

        if request.method == "POST":
            payload = body if isinstance(body, list) else [body]
            created = []
            conflict_column = params.get("on_conflict")
            for values in payload:
                existing = None
                if "resolution=merge-duplicates" in prefer and conflict_column:
                    existing = next((r for r in rows if r.get(conflict_column) == values.get(conflict_column)), None)
                if existing is not None:
                    existing.update(values)
                    created.append(dict(existing))
                    continue
                row = {"id": self._next_id(table), "created_at": self._timestamp(), **values}
                rows.append(row)
                created.append(dict(row))
            return self._response(201, created if representation else None)

        if request.method == "PATCH":
            updated = []
            for row in rows:
                if self._matches(row, params):
                    row.update(body)
                    updated.append(dict(row))
            return self._response(200, updated) if representation else self._response(204)

        if request.method == "DELETE":
            self.tables[table] = [r for r in rows if not self._matches(r, params)]
            return self._response(204)

        raise AssertionError(f"Unexpected {request.method}")


@pytest.fixture(scope="function")
def backend() -> FakeRestBackend:
    return FakeRestBackend()


@pytest.fixture(scope="function")
def http_client(backend: FakeRestBackend) -> Generator[httpx.Client, None, None]:
    client = httpx.Client(transport=httpx.MockTransport(backend.handler))
    try:
        yield client
    finally:
        client.close()


@pytest.fixture(scope="function")
def store(http_client: httpx.Client) -> RemoteStore:
    """RemoteStore talking to the in-memory backend"""
    return RemoteStore(TEST_DATABASE_URL, TEST_ANON_KEY, TEST_ACCESS_TOKEN, http_client)


@pytest.fixture(scope="function")
def credentials() -> CredentialProvider:
    return CredentialProvider(
        runtime_env={"STRIPE_SECRET_KEY": "sk_test_123", "STRIPE_PUBLISHABLE_KEY": "pk_test_123"},
        build_values={},
        platform="linux",
    )


@pytest.fixture(scope="function")
def gateway(credentials: CredentialProvider) -> StripeGateway:
    return StripeGateway(credentials, ProcessCache())


@pytest.fixture(scope="function", autouse=True)
def mock_stripe():
    """Automatically mock Stripe for all tests to prevent real API calls"""
    with patch('aura.services.stripe_service.stripe') as mock_stripe_module:
        mock_stripe_module.Customer.create = Mock(return_value={"id": "cus_test123", "email": "user@example.com"})
        mock_stripe_module.Customer.list = Mock(return_value={"data": []})
        mock_stripe_module.Customer.modify = Mock(return_value={"id": "cus_test123"})
        mock_stripe_module.PaymentMethod.attach = Mock(return_value={"id": "pm_attached"})
        mock_stripe_module.PaymentMethod.detach = Mock(return_value={"id": "pm_detached"})
        mock_stripe_module.SetupIntent.create = Mock(return_value={"id": "seti_123", "client_secret": "seti_123_secret"})
        yield mock_stripe_module


@pytest.fixture(scope="function")
def make_payment_method():
    """Factory for Stripe payment method payloads"""
    def _make(payment_method_id="pm_123", customer=None, brand="Visa", last4="4242", card=True):
        payment_method = {"id": payment_method_id, "object": "payment_method", "customer": customer}
        if card:
            payment_method["card"] = {"brand": brand, "last4": last4, "exp_month": 12, "exp_year": 2030}
        return payment_method
    return _make


@pytest.fixture(scope="function")
def user_profile(backend: FakeRestBackend):
    """Profile row for the test user with a Stripe customer"""
    return backend.seed("profiles", id=TEST_USER_ID, full_name="Test User", stripe_customer_id="cus_test123")


@pytest.fixture(scope="function")
def stored_method(backend: FakeRestBackend):
    """Factory that seeds payment_methods rows for the test user"""
    def _seed(payment_method_id, is_default=False, is_active=True, customer="cus_test123", user_id=TEST_USER_ID):
        return backend.seed(
            "payment_methods",
            user_id=user_id,
            stripe_customer_id=customer,
            stripe_payment_method_id=payment_method_id,
            card_brand="visa",
            card_last4="4242",
            card_exp_month=12,
            card_exp_year=2030,
            is_default=is_default,
            is_active=is_active,
        )
    return _seed


@pytest.fixture(scope="function")
def session_store(tmp_path) -> SessionStore:
    return SessionStore(
        EncryptedStore(tmp_path / "session.store", Fernet(Fernet.generate_key())),
        default_database_url=TEST_DATABASE_URL,
        default_anon_key=TEST_ANON_KEY,
    )


@pytest.fixture(scope="function")
def app_context(session_store, http_client, credentials, gateway) -> AppContext:
    return AppContext(
        settings=settings,
        cache=gateway.cache,
        credentials=credentials,
        session=session_store,
        http_client=http_client,
        gateway=gateway,
    )


@pytest.fixture(scope="function")
def client(app_context: AppContext) -> Generator[TestClient, None, None]:
    """FastAPI test client wired to the in-memory backend and mocked Stripe"""
    app.dependency_overrides[get_context] = lambda: app_context
    try:
        with patch('aura.core.otel.initialize_otel', return_value=False):
            with TestClient(app) as test_client:
                yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def authenticated_client(client: TestClient, session_store: SessionStore) -> TestClient:
    """Client whose session store holds tokens"""
    session_store.store_tokens(TEST_ACCESS_TOKEN, "refresh-test-token")
    return client
