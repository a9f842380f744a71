# tests/test_executor.py
import httpx
import pytest

from cartrules.engine.cart import CartAccessor
from cartrules.engine.executor import ActionExecutor
from cartrules.engine.models import Decision, Rule
from cartrules.engine.telemetry import TelemetryReporter


@pytest.fixture
def executor(storefront, backend, state):
    telemetry = TelemetryReporter(backend.client(), "demo")
    return ActionExecutor(CartAccessor(storefront.client()), state, telemetry)


async def snapshot(storefront):
    return await CartAccessor(storefront.client()).read_cart()


@pytest.mark.asyncio
async def test_fire_adds_missing_products_in_order(executor, storefront, backend, state, make_rule):
    rule = Rule.model_validate(make_rule(productIds=["111", "222"]))
    storefront.total_minor = 60000

    outcome = await executor.apply(rule, Decision.FIRE, await snapshot(storefront))
    await executor.telemetry.drain()

    assert outcome.added == ["111", "222"]
    assert storefront.add_calls == ["111", "222"]
    assert state.tracked_added_products == {"111", "222"}
    assert state.has_fired(rule.id)
    assert backend.tracked == [{"ruleId": "r1", "sessionId": "session_test",
                                "cartId": "cart-token-1", "shop": "demo"}]


@pytest.mark.asyncio
async def test_fire_twice_adds_each_product_once(executor, storefront, make_rule):
    rule = Rule.model_validate(make_rule(productIds=["111"]))
    storefront.total_minor = 60000

    stale = await snapshot(storefront)
    await executor.fire(rule, stale)
    # same stale snapshot: tracking alone must stop the second add
    await executor.fire(rule, stale)

    assert storefront.add_calls == ["111"]
    assert storefront.items == {"111": 1}


@pytest.mark.asyncio
async def test_product_already_in_cart_is_tracked_not_added(executor, storefront, backend, state, make_rule):
    storefront.put("111")
    rule = Rule.model_validate(make_rule(productIds=["111"]))

    outcome = await executor.fire(rule, await snapshot(storefront))
    await executor.telemetry.drain()

    assert storefront.add_calls == []
    assert "111" in state.tracked_added_products
    assert not outcome.modified
    # nothing actually added: no firing recorded, no telemetry
    assert not state.has_fired(rule.id)
    assert backend.tracked == []


@pytest.mark.asyncio
async def test_failed_add_leaves_rule_retryable(executor, storefront, backend, state, make_rule):
    storefront.reject_add.add("111")
    rule = Rule.model_validate(make_rule(productIds=["111"], executeOncePerSession=True))

    outcome = await executor.fire(rule, await snapshot(storefront))
    await executor.telemetry.drain()

    assert outcome.failed == ["111"]
    assert not state.has_fired(rule.id)
    assert state.tracked_added_products == set()
    assert backend.tracked == []

    storefront.reject_add.clear()
    outcome = await executor.fire(rule, await snapshot(storefront))
    assert outcome.added == ["111"]


@pytest.mark.asyncio
async def test_reverse_removes_only_what_engine_added(executor, storefront, state, make_rule):
    storefront.put("222")  # customer's own item
    rule = Rule.model_validate(make_rule(productIds=["111", "222"], worksInReverse=True))
    state.tracked_added_products.add("111")
    storefront.put("111")

    outcome = await executor.apply(rule, Decision.REVERSE, await snapshot(storefront))

    assert outcome.removed == ["111"]
    assert storefront.remove_calls == ["111"]
    assert storefront.items == {"222": 1}
    assert state.tracked_added_products == set()


@pytest.mark.asyncio
async def test_reverse_keeps_fired_keys(executor, storefront, state, make_rule):
    rule = Rule.model_validate(make_rule(executeOncePerSession=True, worksInReverse=True))
    state.mark_fired(rule.id)
    state.tracked_added_products.add("111")
    storefront.put("111")

    await executor.reverse(rule, await snapshot(storefront))

    assert state.has_fired(rule.id)


@pytest.mark.asyncio
async def test_failed_removal_keeps_tracking(executor, storefront, state, make_rule):
    rule = Rule.model_validate(make_rule(worksInReverse=True))
    state.tracked_added_products.add("111")
    storefront.put("111")
    storefront.reject_remove.add("111")

    outcome = await executor.reverse(rule, await snapshot(storefront))

    assert outcome.failed == ["111"]
    assert "111" in state.tracked_added_products


@pytest.mark.asyncio
async def test_skip_does_nothing(executor, storefront, state, make_rule):
    rule = Rule.model_validate(make_rule())
    outcome = await executor.apply(rule, Decision.SKIP, await snapshot(storefront))
    assert not outcome.modified and not outcome.failed
    assert storefront.add_calls == [] and storefront.remove_calls == []


@pytest.mark.asyncio
async def test_telemetry_failure_does_not_affect_cart(executor, storefront, backend, state, make_rule):
    backend.fail_tracking = True
    rule = Rule.model_validate(make_rule())

    outcome = await executor.fire(rule, await snapshot(storefront))
    await executor.telemetry.drain()

    assert outcome.added == ["111"]
    assert state.has_fired(rule.id)
    assert executor.telemetry.failed == 1


@pytest.mark.asyncio
async def test_telemetry_swallows_non_http_errors():
    def explode(request):
        raise RuntimeError("transport misconfigured")

    client = httpx.AsyncClient(transport=httpx.MockTransport(explode),
                               base_url="https://rules.example.test")
    telemetry = TelemetryReporter(client, "demo")

    task = telemetry.report("r1", "session_test", "cart-token-1")
    await telemetry.drain()

    assert task.exception() is None
    assert telemetry.failed == 1
    assert telemetry.sent == 0
