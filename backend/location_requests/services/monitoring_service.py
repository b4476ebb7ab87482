"""
Continuous monitoring requests fed by the device sensing subsystem.

These requests never complete on their own: they stay running until paused or
cancelled, or until an error is dispatched while `cancel_on_error` is set.
"""
import logging
from typing import Callable, Optional

from location_requests.core.dispatch import MAIN, DeliveryContext
from location_requests.core.errors import ConfigurationError
from location_requests.core.logger import logs
from location_requests.models.places_model import (
    Coordinate,
    RegionDescriptor,
    RegionEvent,
    RegionState,
)
from location_requests.models.request_model import Authorization, CallbackKind, RequestState
from location_requests.services.base_request import Request
from location_requests.services.scheduler import LocationSensor

DetermineStateCallback = Callable[[RegionState], None]


class ContinuousMonitoringRequest(Request):
    required_authorization = Authorization.ALWAYS
    is_background_capable = True

    def __init__(self, sensor: LocationSensor, scheduler=None, cancel_on_error: bool = False, on_state_change=None):
        # Checked once; authorization changes later are not re-evaluated here
        self.validate_authorization(sensor.authorization_status())
        super().__init__(scheduler=scheduler, cancel_on_error=cancel_on_error, on_state_change=on_state_change)
        self.sensor = sensor


class VisitsRequest(ContinuousMonitoringRequest):
    """
    Receives visit records as the sensing subsystem produces them.
    A visit may carry only an arrival time, or both arrival and departure.
    """

    def __init__(
        self,
        sensor: LocationSensor,
        on_visit: Optional[Callable] = None,
        on_error: Optional[Callable] = None,
        scheduler=None,
        cancel_on_error: bool = False,
        on_state_change=None,
    ):
        super().__init__(sensor, scheduler=scheduler, cancel_on_error=cancel_on_error, on_state_change=on_state_change)
        if on_visit is not None:
            self.on_visit(on_visit)
        if on_error is not None:
            self.on_error(on_error)

    def on_visit(self, handler: Callable, context: DeliveryContext = MAIN):
        return self.register(CallbackKind.ON_VISIT, handler, context)

    def dispatch_visit(self, visit):
        self.registry.dispatch(CallbackKind.ON_VISIT.value, visit)


class RegionRequest(ContinuousMonitoringRequest):
    """Enter/exit monitoring of a circular region."""

    def __init__(
        self,
        sensor: LocationSensor,
        region: Optional[RegionDescriptor] = None,
        center: Optional[Coordinate] = None,
        radius: Optional[float] = None,
        on_enter: Optional[Callable] = None,
        on_exit: Optional[Callable] = None,
        on_error: Optional[Callable] = None,
        scheduler=None,
        cancel_on_error: bool = False,
        on_state_change=None,
        on_start_monitoring: Optional[Callable[[], None]] = None,
    ):
        if not sensor.is_region_monitoring_available():
            raise ConfigurationError("Region monitoring is not available on this device")
        super().__init__(sensor, scheduler=scheduler, cancel_on_error=cancel_on_error, on_state_change=on_state_change)

        if region is None:
            if center is None or radius is None:
                raise ConfigurationError("A region or a center and radius are required")
            region = RegionDescriptor(identifier=self.identifier, center=center, radius=radius)
        self._region = region
        self._state_callback: Optional[DetermineStateCallback] = None
        self.on_start_monitoring = on_start_monitoring

        if on_enter is not None:
            self.on_enter(on_enter)
        if on_exit is not None:
            self.on_exit(on_exit)
        if on_error is not None:
            self.on_error(on_error)
        self._callbacks_changed()

    @property
    def region(self) -> RegionDescriptor:
        return self._region

    def on_enter(self, handler: Callable, context: DeliveryContext = MAIN):
        return self.register(CallbackKind.ON_ENTER, handler, context)

    def on_exit(self, handler: Callable, context: DeliveryContext = MAIN):
        return self.register(CallbackKind.ON_EXIT, handler, context)

    def _callbacks_changed(self):
        """Enable enter/exit notifications only for kinds somebody listens to."""
        self._region = self._region.model_copy(update={
            "notify_on_entry": self.registry.has(CallbackKind.ON_ENTER.value),
            "notify_on_exit": self.registry.has(CallbackKind.ON_EXIT.value),
        })

    def on_resume(self) -> bool:
        starting = self.state is RequestState.IDLE
        resumed = super().on_resume()
        if resumed and starting and self.on_start_monitoring is not None:
            self.on_start_monitoring()
        return resumed

    @property
    def is_queued(self) -> bool:
        return self.scheduler is not None and self.scheduler.is_queued(self)

    def determine_state(self, callback: DetermineStateCallback) -> bool:
        """
        Ask the sensing subsystem for the current state of the region.

        Returns False when the request is not running or not queued. A second
        call before the first one resolves replaces the pending callback; the
        replaced one is never invoked.
        """
        if not (self.is_queued and self.state.is_running):
            return False
        if self._state_callback is not None:
            logs.request_log(logging.DEBUG, self, "Pending state query replaced")
        self._state_callback = callback
        self.sensor.request_region_state(self._region)
        return True

    def dispatch_event(self, event: RegionEvent):
        if event is RegionEvent.ENTERED:
            self.registry.dispatch(CallbackKind.ON_ENTER.value, event)
        elif event is RegionEvent.EXITED:
            self.registry.dispatch(CallbackKind.ON_EXIT.value, event)

    def dispatch_state(self, state: RegionState):
        callback, self._state_callback = self._state_callback, None
        if callback is not None:
            callback(state)
