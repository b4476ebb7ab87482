"""
Request contract shared by continuous monitoring and one-shot provider requests.
"""
import logging
import uuid
from abc import ABC
from typing import Callable, Optional

from location_requests.core.dispatch import MAIN, CallbackRegistry, DeliveryContext
from location_requests.core.errors import ConfigurationError, LocationError
from location_requests.core.logger import logs
from location_requests.models.request_model import (
    Authorization,
    CallbackKind,
    RequestEvent,
    RequestState,
    next_state,
)

StateObserver = Callable[[RequestState, RequestState], None]


class Request(ABC):
    """
    Base class for every request kind.

    `resume()`, `pause()` and `cancel()` go through the scheduler, which calls
    back into `on_resume()`, `on_pause()` and `on_cancel()`. A request built
    without a scheduler runs those hooks itself.
    """

    required_authorization: Authorization = Authorization.NONE
    is_background_capable: bool = False

    def __init__(
        self,
        scheduler=None,
        cancel_on_error: bool = False,
        on_state_change: Optional[StateObserver] = None,
    ):
        self._identifier = uuid.uuid4().hex
        self.scheduler = scheduler
        self.cancel_on_error = cancel_on_error
        self.on_state_change = on_state_change
        self._state = RequestState.IDLE
        self._previous_state = RequestState.IDLE
        self.registry = CallbackRegistry(on_change=self._callbacks_changed)

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def previous_state(self) -> RequestState:
        return self._previous_state

    # ===== Construction checks =====

    @classmethod
    def validate_authorization(cls, granted: Authorization):
        if not granted.satisfies(cls.required_authorization):
            raise ConfigurationError(
                f"{cls.__name__} requires '{cls.required_authorization.value}' authorization, "
                f"current authorization is '{granted.value}'"
            )

    # ===== State machine =====

    def _apply(self, event: RequestEvent) -> bool:
        """Run one transition; returns False when the table has no edge for it."""
        target = next_state(self._state, event)
        if target is None:
            return False
        self._state = target
        if self._previous_state != self._state:
            logs.request_log(logging.DEBUG, self, f"{self._previous_state.value} -> {self._state.value}")
            if self.on_state_change is not None:
                self.on_state_change(self._previous_state, self._state)
            self._previous_state = self._state
        return True

    # ===== Callbacks =====

    def register(self, kind: CallbackKind, handler: Callable, context: DeliveryContext = MAIN):
        self.registry.register(kind.value, context, handler)
        return self

    def on_error(self, handler: Callable, context: DeliveryContext = MAIN):
        return self.register(CallbackKind.ON_ERROR, handler, context)

    def _callbacks_changed(self):
        """Recompute anything derived from the registered callbacks."""

    def dispatch_error(self, error: LocationError):
        logs.request_log(logging.WARNING, self, f"Error dispatched: {error}")
        try:
            self.registry.dispatch(CallbackKind.ON_ERROR.value, error)
        finally:
            if self.cancel_on_error:
                self._apply(RequestEvent.FAIL)
                # Lets the scheduler drop the request from its live set
                self.cancel()

    # ===== Lifecycle =====

    def resume(self):
        if self.scheduler is not None:
            self.scheduler.start(self)
        else:
            self.on_resume()

    def pause(self):
        if self.scheduler is not None:
            self.scheduler.pause(self)
        else:
            self.on_pause()

    def cancel(self):
        if self.scheduler is not None:
            self.scheduler.cancel(self)
        else:
            self.on_cancel()

    def on_resume(self) -> bool:
        event = RequestEvent.START if self._state is RequestState.IDLE else RequestEvent.RESUME
        return self._apply(event)

    def on_pause(self) -> bool:
        return self._apply(RequestEvent.PAUSE)

    def on_cancel(self) -> bool:
        return self._apply(RequestEvent.CANCEL)

    # ===== Identity =====

    def __eq__(self, other) -> bool:
        if not isinstance(other, Request):
            return NotImplemented
        return self._identifier == other._identifier

    def __hash__(self) -> int:
        return hash(self._identifier)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._identifier[:8]}, state={self._state.value})"
