"""
Collaborator interfaces consumed by requests, and an in-process scheduler.

The scheduler owns the live set of requests, drives their lifecycle hooks and
routes pushes from the sensing subsystem to the running requests.
"""
import logging
from typing import Dict, Protocol

from location_requests.core.logger import logs
from location_requests.models.places_model import RegionDescriptor, RegionEvent, RegionState
from location_requests.models.request_model import Authorization


class Scheduler(Protocol):
    def start(self, request) -> None: ...

    def pause(self, request) -> None: ...

    def cancel(self, request) -> None: ...

    def is_queued(self, request) -> bool: ...


class LocationSensor(Protocol):
    """Device sensing subsystem producing visits and region events."""

    def authorization_status(self) -> Authorization: ...

    def is_region_monitoring_available(self) -> bool: ...

    def request_region_state(self, region: RegionDescriptor) -> None: ...


class LocationScheduler:
    """
    Holds requests by identity and calls their lifecycle hooks.
    Pushes are only delivered to requests that are currently running.
    """

    def __init__(self):
        self._requests: Dict[str, object] = {}

    @property
    def requests(self) -> list:
        return list(self._requests.values())

    def start(self, request) -> None:
        if request.state.is_terminal:
            return
        self._requests.setdefault(request.identifier, request)
        if request.on_resume():
            logs.log(logging.INFO, f"Started {request!r}", extra={"live": len(self._requests)})

    def pause(self, request) -> None:
        if self.is_queued(request) and request.on_pause():
            logs.log(logging.INFO, f"Paused {request!r}")

    def cancel(self, request) -> None:
        self._requests.pop(request.identifier, None)
        request.on_cancel()
        logs.log(logging.INFO, f"Removed {request!r}", extra={"live": len(self._requests)})

    def is_queued(self, request) -> bool:
        return request.identifier in self._requests

    # ===== Sensing pushes =====

    def _running(self, entry_point: str) -> list:
        return [
            r for r in self._requests.values()
            if r.state.is_running and hasattr(r, entry_point)
        ]

    def _running_for_region(self, region_id: str, entry_point: str) -> list:
        return [r for r in self._running(entry_point) if r.region.identifier == region_id]

    def deliver_visit(self, visit) -> int:
        """Forward a visit record to every running visits request."""
        targets = self._running("dispatch_visit")
        for request in targets:
            request.dispatch_visit(visit)
        return len(targets)

    def deliver_region_event(self, region_id: str, event: RegionEvent) -> int:
        targets = self._running_for_region(region_id, "dispatch_event")
        for request in targets:
            request.dispatch_event(event)
        return len(targets)

    def deliver_region_state(self, region_id: str, state: RegionState) -> int:
        targets = self._running_for_region(region_id, "dispatch_state")
        for request in targets:
            request.dispatch_state(state)
        return len(targets)

    def deliver_error(self, error) -> int:
        """Forward a sensing failure to every running monitoring request."""
        targets = [r for r in self._running("dispatch_error") if r.is_background_capable]
        for request in targets:
            request.dispatch_error(error)
        return len(targets)
