import asyncio

import pytest

from location_requests.core.dispatch import DeliveryContext
from location_requests.core.errors import ConfigurationError, LocationError
from location_requests.models.request_model import (
    TERMINAL_STATES,
    Authorization,
    RequestEvent,
    RequestState,
    next_state,
)
from location_requests.services.monitoring_service import VisitsRequest


def make_request(sensor, **kwargs):
    changes = []
    request = VisitsRequest(sensor, on_state_change=lambda old, new: changes.append((old, new)), **kwargs)
    return request, changes


def test_lifecycle_follows_the_transition_table(sensor):
    request, changes = make_request(sensor)
    assert request.state is RequestState.IDLE

    request.resume()
    request.pause()
    request.resume()
    request.cancel()

    assert request.state is RequestState.CANCELLED
    assert changes == [
        (RequestState.IDLE, RequestState.RUNNING),
        (RequestState.RUNNING, RequestState.PAUSED),
        (RequestState.PAUSED, RequestState.RUNNING),
        (RequestState.RUNNING, RequestState.CANCELLED),
    ]


def test_observer_does_not_fire_for_repeated_pause(sensor):
    request, changes = make_request(sensor)
    request.resume()
    request.pause()
    request.pause()

    assert changes.count((RequestState.RUNNING, RequestState.PAUSED)) == 1
    assert request.previous_state is RequestState.PAUSED


def test_transitions_outside_the_table_are_ignored(sensor):
    request, changes = make_request(sensor)

    assert request.on_pause() is False
    assert request.state is RequestState.IDLE
    assert changes == []


def test_terminal_states_have_no_outgoing_edges():
    for state in TERMINAL_STATES:
        for event in RequestEvent:
            assert next_state(state, event) is None


def test_second_cancel_is_harmless(sensor):
    request, changes = make_request(sensor)
    request.resume()
    request.cancel()
    request.cancel()

    assert request.state is RequestState.CANCELLED
    assert len(changes) == 2


def test_cancel_on_error_fails_request_and_resume_is_sticky(sensor, scheduler):
    async def scenario():
        errors = []
        request, changes = make_request(sensor, scheduler=scheduler, cancel_on_error=True)
        request.on_error(errors.append)
        request.resume()

        request.dispatch_error(LocationError("sensor lost"))
        request.resume()
        await asyncio.sleep(0)
        return request, changes, errors

    request, changes, errors = asyncio.run(scenario())
    assert request.state is RequestState.FAILED
    assert changes[-1] == (RequestState.RUNNING, RequestState.FAILED)
    assert [str(e) for e in errors] == ["sensor lost"]
    assert not scheduler.is_queued(request)


def test_error_without_cancel_on_error_keeps_running(sensor, scheduler):
    request, _ = make_request(sensor, scheduler=scheduler)
    request.resume()
    request.dispatch_error(LocationError("transient"))

    assert request.state is RequestState.RUNNING
    assert scheduler.is_queued(request)


def test_construction_requires_always_authorization(make_sensor):
    with pytest.raises(ConfigurationError):
        VisitsRequest(make_sensor(authorization=Authorization.WHEN_IN_USE))


def test_identity_equality(sensor):
    first, _ = make_request(sensor)
    second, _ = make_request(sensor)

    assert first == first
    assert first != second
    assert len({first, second, first}) == 2
    assert len(first.identifier) == 32


def test_authorization_ordering():
    assert Authorization.ALWAYS.satisfies(Authorization.WHEN_IN_USE)
    assert Authorization.WHEN_IN_USE.satisfies(Authorization.NONE)
    assert not Authorization.NONE.satisfies(Authorization.WHEN_IN_USE)


class FailingContext(DeliveryContext):
    def schedule(self, handler, *args, loop=None):
        raise RuntimeError("delivery queue closed")


def test_cancel_on_error_fails_even_when_delivery_breaks(sensor, scheduler):
    request, _ = make_request(sensor, scheduler=scheduler, cancel_on_error=True)
    request.on_error(lambda error: None, context=FailingContext("closed"))
    request.resume()

    with pytest.raises(RuntimeError):
        request.dispatch_error(LocationError("sensor lost"))

    assert request.state is RequestState.FAILED
    assert not scheduler.is_queued(request)


def test_cancel_on_error_fails_a_paused_request(sensor, scheduler):
    request, changes = make_request(sensor, scheduler=scheduler, cancel_on_error=True)
    request.resume()
    request.pause()

    request.dispatch_error(LocationError("authorization revoked"))

    assert request.state is RequestState.FAILED
    assert changes[-1] == (RequestState.PAUSED, RequestState.FAILED)
    assert not scheduler.is_queued(request)
