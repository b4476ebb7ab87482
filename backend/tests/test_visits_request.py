import asyncio
import threading
from datetime import datetime, timezone

from location_requests.core.dispatch import DeliveryContext
from location_requests.core.errors import LocationError
from location_requests.models.places_model import Coordinate, Visit
from location_requests.models.request_model import RequestState
from location_requests.services.monitoring_service import VisitsRequest


def make_visit():
    return Visit(
        coordinate=Coordinate(lat=45.4642, lon=9.19),
        horizontal_accuracy=25.0,
        arrival_date=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
    )


def test_visits_are_forwarded_verbatim(sensor, scheduler):
    async def scenario():
        visits = []
        request = VisitsRequest(sensor, on_visit=visits.append, scheduler=scheduler)
        request.resume()
        visit = make_visit()
        delivered = scheduler.deliver_visit(visit)
        await asyncio.sleep(0)
        return visit, delivered, visits

    visit, delivered, visits = asyncio.run(scenario())
    assert delivered == 1
    assert visits == [visit]
    assert visits[0] is visit


def test_paused_visits_request_receives_nothing(sensor, scheduler):
    request = VisitsRequest(sensor, on_visit=lambda visit: None, scheduler=scheduler)
    request.resume()
    request.pause()

    assert scheduler.deliver_visit(make_visit()) == 0
    assert request.state is RequestState.PAUSED


def test_visits_on_background_context(sensor):
    worker = DeliveryContext.background("visits")
    visits = []
    request = VisitsRequest(sensor)
    request.on_visit(visits.append, context=worker)
    request.resume()

    request.dispatch_visit("raw-visit-record")
    worker.shutdown()

    assert visits == ["raw-visit-record"]


def test_sensing_errors_reach_monitoring_requests(sensor, scheduler):
    async def scenario():
        errors = []
        keeps_running = VisitsRequest(sensor, on_error=errors.append, scheduler=scheduler)
        stops = VisitsRequest(sensor, on_error=errors.append, scheduler=scheduler, cancel_on_error=True)
        keeps_running.resume()
        stops.resume()

        delivered = scheduler.deliver_error(LocationError("location services off"))
        await asyncio.sleep(0)
        return keeps_running, stops, delivered, errors

    keeps_running, stops, delivered, errors = asyncio.run(scenario())
    assert delivered == 2
    assert len(errors) == 2
    assert keeps_running.state is RequestState.RUNNING
    assert stops.state is RequestState.FAILED
    assert scheduler.requests == [keeps_running]


def test_cancelled_request_leaves_the_scheduler(sensor, scheduler):
    request = VisitsRequest(sensor, scheduler=scheduler)
    request.resume()
    assert scheduler.is_queued(request)

    request.cancel()

    assert not scheduler.is_queued(request)
    assert request.state is RequestState.CANCELLED


def test_visit_pushed_from_another_thread_reaches_the_loop(sensor, scheduler):
    async def scenario():
        delivered = asyncio.get_running_loop().create_future()
        request = VisitsRequest(
            sensor,
            on_visit=lambda visit: delivered.set_result((visit, threading.current_thread())),
            scheduler=scheduler,
        )
        request.resume()

        pusher = threading.Thread(target=scheduler.deliver_visit, args=("visit",))
        pusher.start()
        pusher.join()
        return await asyncio.wait_for(delivered, timeout=1)

    visit, thread = asyncio.run(scenario())
    assert visit == "visit"
    assert thread is threading.main_thread()


def test_visit_without_any_event_loop_goes_to_a_worker(sensor, scheduler):
    received = threading.Event()
    visits, failures = [], []

    def record(visit):
        visits.append((visit, threading.current_thread().name))
        received.set()

    def push():
        try:
            scheduler.deliver_visit("visit")
        except Exception as e:
            failures.append(e)

    request = VisitsRequest(sensor, on_visit=record, scheduler=scheduler)
    request.resume()
    pusher = threading.Thread(target=push)
    pusher.start()
    pusher.join()

    assert received.wait(timeout=1)
    assert failures == []
    assert visits[0][0] == "visit"
    assert visits[0][1].startswith("main-fallback")
