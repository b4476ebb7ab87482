"""
Delivery contexts and the per-request callback registry.

A handler is never run inline by the code that dispatches to it: it is
scheduled onto the delivery context it was registered with.
"""
import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional

from location_requests.core.logger import logs


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _log_handler_failure(context_name: str, handler: Callable[..., Any], future: Future):
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        name = getattr(handler, "__qualname__", repr(handler))
        logs.log(logging.ERROR, f"Handler {name} on '{context_name}' raised {type(error).__name__}: {error}")


class DeliveryContext:
    """
    Named execution queue a handler invocation is scheduled onto.

    Without an executor the context targets an asyncio event loop: the one
    bound at construction, else the loop that was running when the handler
    was registered, else the loop running at dispatch time. Dispatches may
    come from any thread. When no live loop is known at all, handlers go to a
    single-worker fallback thread owned by the context.

    With an executor the handler runs there; a single worker keeps FIFO order.
    """

    def __init__(
        self,
        name: str,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.name = name
        self._loop = loop
        self._executor = executor
        self._fallback: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    @classmethod
    def background(cls, name: str) -> "DeliveryContext":
        """A named background queue served by one worker thread."""
        return cls(name, executor=ThreadPoolExecutor(max_workers=1, thread_name_prefix=name))

    def bind(self) -> Optional[asyncio.AbstractEventLoop]:
        """The loop a handler registered right now should be delivered on."""
        if self._executor is not None:
            return None
        return self._loop or _running_loop()

    def schedule(
        self,
        handler: Callable[..., Any],
        *args: Any,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if self._executor is not None:
            self._submit(self._executor, handler, args)
            return
        target = self._loop or loop or _running_loop()
        if target is not None and not target.is_closed():
            target.call_soon_threadsafe(handler, *args)
            return
        self._submit(self._fallback_executor(), handler, args)

    def _submit(self, executor: ThreadPoolExecutor, handler: Callable[..., Any], args: tuple):
        future = executor.submit(handler, *args)
        future.add_done_callback(partial(_log_handler_failure, self.name, handler))

    def _fallback_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._fallback is None:
                logs.log(logging.WARNING, f"No event loop for '{self.name}', delivering on a worker thread")
                self._fallback = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{self.name}-fallback")
            return self._fallback

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        with self._lock:
            fallback, self._fallback = self._fallback, None
        if fallback is not None:
            fallback.shutdown(wait=True)

    def __repr__(self) -> str:
        return f"DeliveryContext({self.name!r})"


# The default target: the asyncio loop running when a handler is registered
MAIN = DeliveryContext("main")


@dataclass(frozen=True)
class Callback:
    kind: str
    context: DeliveryContext
    handler: Callable[..., Any]
    loop: Optional[asyncio.AbstractEventLoop] = None


class CallbackRegistry:
    """
    Ordered (context, handler) entries tagged by event kind.

    Registration is append-only; there is no removal API.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._callbacks: list[Callback] = []
        self._on_change = on_change

    def register(self, kind: str, context: DeliveryContext, handler: Callable[..., Any]) -> Callback:
        callback = Callback(kind=kind, context=context, handler=handler, loop=context.bind())
        self._callbacks.append(callback)
        if self._on_change is not None:
            self._on_change()
        return callback

    def dispatch(self, kind: str, payload: Any) -> int:
        """Schedule every handler registered for `kind`; returns how many were scheduled."""
        scheduled = 0
        for callback in self._callbacks:
            if callback.kind != kind:
                continue
            callback.context.schedule(callback.handler, payload, loop=callback.loop)
            scheduled += 1
        if scheduled:
            logs.log(logging.DEBUG, f"Dispatched '{kind}' to {scheduled} handler(s)")
        return scheduled

    def has(self, kind: str) -> bool:
        return any(callback.kind == kind for callback in self._callbacks)

    def count(self, kind: str) -> int:
        return sum(1 for callback in self._callbacks if callback.kind == kind)

    def __len__(self) -> int:
        return len(self._callbacks)
