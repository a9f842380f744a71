# tests/conftest.py
import json
import os
import tempfile

# settings are read at import time; point the backend at a throwaway database
_TMP = tempfile.mkdtemp(prefix="cartrules-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/cartrules.db"
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import httpx
import pytest

from cartrules.database import Base, get_engine, get_sessionmaker
from cartrules.engine.runtime import CartRulesEngine
from cartrules.engine.state import EngineState
from cartrules.workers.tasks import celery


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStorefront:
    """In-memory /cart.js, /cart/add.js and /cart/change.js."""

    def __init__(self, total_minor: int = 0, token: str = "cart-token-1"):
        self.total_minor = total_minor
        self.token = token
        self.items = {}
        self.add_calls = []
        self.remove_calls = []
        self.reads = 0
        self.reject_add = set()
        self.reject_remove = set()
        self.fail_reads = False

    def put(self, product_id: str, quantity: int = 1) -> None:
        self.items[str(product_id)] = self.items.get(str(product_id), 0) + quantity

    def cart_json(self) -> dict:
        return {
            "token": self.token,
            "total_price": self.total_minor,
            "item_count": sum(self.items.values()),
            "items": [{"id": int(pid) if pid.isdigit() else pid, "quantity": q}
                      for pid, q in self.items.items()],
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET" and path == "/cart.js":
            self.reads += 1
            if self.fail_reads:
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, json=self.cart_json())
        if request.method == "POST" and path == "/cart/add.js":
            body = json.loads(request.content)
            pid = str(body["id"])
            self.add_calls.append(pid)
            if pid in self.reject_add:
                return httpx.Response(422, json={"status": 422, "description": "sold out"})
            self.put(pid, int(body.get("quantity", 1)))
            return httpx.Response(200, json={"id": body["id"], "quantity": self.items[pid]})
        if request.method == "POST" and path == "/cart/change.js":
            body = json.loads(request.content)
            pid = str(body["id"])
            self.remove_calls.append(pid)
            if pid in self.reject_remove:
                return httpx.Response(400, json={"description": "cannot change"})
            if int(body.get("quantity", 0)) == 0:
                self.items.pop(pid, None)
            else:
                self.items[pid] = int(body["quantity"])
            return httpx.Response(200, json=self.cart_json())
        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler),
                                 base_url="https://demo.myshopify.com")


class FakeRuleBackend:
    """GET/POST /api/cart-rules."""

    def __init__(self, rules=None):
        self.rules = list(rules or [])
        self.rule_requests = 0
        self.fail_rules = False
        self.fail_tracking = False
        self.tracked = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path != "/api/cart-rules":
            return httpx.Response(404)
        if request.method == "GET":
            self.rule_requests += 1
            if self.fail_rules:
                return httpx.Response(500, json={"error": "boom"})
            return httpx.Response(200, json={"rules": self.rules})
        if self.fail_tracking:
            return httpx.Response(502)
        self.tracked.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler),
                                 base_url="https://rules.example.test")


def rule_json(rule_id="r1", **overrides) -> dict:
    data = {
        "id": rule_id,
        "name": f"rule {rule_id}",
        "minCartValue": 500,
        "hasUpperLimit": False,
        "maxCartValue": None,
        "productIds": ["111"],
        "worksInReverse": False,
        "allowMultipleTriggers": False,
        "executeOncePerSession": False,
        "preventQuantityChanges": False,
        "status": "active",
    }
    data.update(overrides)
    return data


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state(clock):
    return EngineState(session_id="session_test", clock=clock)


@pytest.fixture
def storefront():
    return FakeStorefront()


@pytest.fixture
def backend():
    return FakeRuleBackend()


@pytest.fixture
def engine(storefront, backend, state):
    return CartRulesEngine(
        "demo", backend.client(), storefront.client(), state=state,
        debounce_seconds=0.01, poll_interval_seconds=0, cooldown_seconds=1.0,
    )


@pytest.fixture
def db():
    Base.metadata.create_all(bind=get_engine())
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=get_engine())


@pytest.fixture
def eager_celery():
    celery.conf.task_always_eager = True
    celery.conf.task_eager_propagates = True
    yield celery
    celery.conf.task_always_eager = False
    celery.conf.task_eager_propagates = False


@pytest.fixture
def make_rule():
    return rule_json
