import asyncio
import threading
from unittest.mock import patch

from location_requests.core.dispatch import MAIN, CallbackRegistry, DeliveryContext


def test_dispatch_only_reaches_handlers_of_that_kind():
    async def scenario():
        calls = []
        registry = CallbackRegistry()
        registry.register("on_enter", MAIN, lambda p: calls.append(("first", p)))
        registry.register("on_exit", MAIN, lambda p: calls.append(("exit", p)))
        registry.register("on_enter", MAIN, lambda p: calls.append(("second", p)))

        assert registry.dispatch("on_enter", "payload") == 2
        # handlers are scheduled, never run inline
        assert calls == []
        await asyncio.sleep(0)
        return calls

    assert asyncio.run(scenario()) == [("first", "payload"), ("second", "payload")]


def test_duplicate_registrations_are_all_invoked():
    async def scenario():
        calls = []
        registry = CallbackRegistry()
        handler = calls.append
        registry.register("on_visit", MAIN, handler)
        registry.register("on_visit", MAIN, handler)
        registry.dispatch("on_visit", 7)
        await asyncio.sleep(0)
        return calls

    assert asyncio.run(scenario()) == [7, 7]


def test_dispatch_without_handlers_is_a_no_op():
    registry = CallbackRegistry()
    assert registry.dispatch("on_error", RuntimeError("boom")) == 0


def test_on_change_runs_after_every_registration():
    seen = []
    registry = CallbackRegistry(on_change=lambda: seen.append(len(registry)))
    registry.register("on_enter", MAIN, print)
    registry.register("on_exit", MAIN, print)

    assert seen == [1, 2]
    assert registry.has("on_exit")
    assert not registry.has("on_visit")
    assert registry.count("on_enter") == 1


def test_background_context_keeps_registration_order():
    worker = DeliveryContext.background("geo-worker")
    calls = []
    registry = CallbackRegistry()
    for index in range(5):
        registry.register("on_visit", worker, lambda p, i=index: calls.append((i, p, threading.current_thread().name)))

    registry.dispatch("on_visit", "visit")
    worker.shutdown()

    assert [c[0] for c in calls] == [0, 1, 2, 3, 4]
    assert all(c[2].startswith("geo-worker") for c in calls)


def test_context_bound_to_a_loop_schedules_there():
    async def scenario():
        loop = asyncio.get_running_loop()
        context = DeliveryContext("ui", loop=loop)
        done = loop.create_future()
        context.schedule(done.set_result, "delivered")
        return await asyncio.wait_for(done, timeout=1)

    assert asyncio.run(scenario()) == "delivered"


def test_background_handler_failure_is_logged():
    worker = DeliveryContext.background("failing-worker")

    def explode(payload):
        raise ValueError(f"cannot handle {payload}")

    with patch("location_requests.core.dispatch.logs") as mock_logs:
        worker.schedule(explode, "visit")
        worker.shutdown()

    mock_logs.log.assert_called_once()
    message = mock_logs.log.call_args[0][1]
    assert "ValueError" in message
    assert "cannot handle visit" in message
