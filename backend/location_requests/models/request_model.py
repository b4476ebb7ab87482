from enum import Enum

# --- Enums ---
class RequestState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_running(self) -> bool:
        return self is RequestState.RUNNING

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


class RequestEvent(str, Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    CANCEL = "cancel"
    FAIL = "fail"
    COMPLETE = "complete"


class Authorization(str, Enum):
    NONE = "none"
    WHEN_IN_USE = "when_in_use"
    ALWAYS = "always"

    def satisfies(self, required: "Authorization") -> bool:
        """`always` covers `when_in_use`; anything covers `none`."""
        return _AUTH_RANK[self] >= _AUTH_RANK[required]


class CallbackKind(str, Enum):
    ON_VISIT = "on_visit"
    ON_ENTER = "on_enter"
    ON_EXIT = "on_exit"
    ON_ERROR = "on_error"
    ON_SUCCESS = "on_success"


_AUTH_RANK = {
    Authorization.NONE: 0,
    Authorization.WHEN_IN_USE: 1,
    Authorization.ALWAYS: 2,
}

TERMINAL_STATES = frozenset({
    RequestState.COMPLETED,
    RequestState.FAILED,
    RequestState.CANCELLED,
})

# (current state, event) -> next state. Anything missing is rejected.
TRANSITIONS = {
    (RequestState.IDLE, RequestEvent.START): RequestState.RUNNING,
    (RequestState.RUNNING, RequestEvent.PAUSE): RequestState.PAUSED,
    (RequestState.PAUSED, RequestEvent.RESUME): RequestState.RUNNING,
    (RequestState.RUNNING, RequestEvent.CANCEL): RequestState.CANCELLED,
    (RequestState.PAUSED, RequestEvent.CANCEL): RequestState.CANCELLED,
    (RequestState.RUNNING, RequestEvent.FAIL): RequestState.FAILED,
    (RequestState.PAUSED, RequestEvent.FAIL): RequestState.FAILED,
    (RequestState.RUNNING, RequestEvent.COMPLETE): RequestState.COMPLETED,
}


def next_state(state: RequestState, event: RequestEvent) -> RequestState | None:
    return TRANSITIONS.get((state, event))
