import asyncio
import logging
from typing import Callable, List, Optional

from location_requests.core.config import settings
from location_requests.core.dispatch import MAIN, DeliveryContext
from location_requests.core.errors import (
    ConfigurationError,
    DataParserError,
    LocationError,
    MissingCredentials,
    TransportError,
)
from location_requests.core.geo_providers import BaseGeocoderStrategy, GoogleGeocoderStrategy, build_strategy
from location_requests.core.logger import logs
from location_requests.core.transport import (
    CredentialSource,
    HttpxTransport,
    SettingsCredentialSource,
    Transport,
)
from location_requests.models.places_model import (
    Coordinate,
    GeocoderOperation,
    GoogleLanguage,
    NormalizedPlace,
    PlaceDetail,
    ResolveAddress,
    ResolveCoordinate,
    SearchPlaces,
)
from location_requests.models.request_model import CallbackKind, RequestEvent
from location_requests.services.base_request import Request


class OneShotProviderRequest(Request):
    """
    Geocoding, place search or place detail lookup through one strategy.

    At most one provider call is in flight. The request finishes on the first
    success or failure; `execute()` after that is a no-op.
    """

    def __init__(
        self,
        operation: GeocoderOperation,
        strategy: BaseGeocoderStrategy,
        credentials: Optional[CredentialSource] = None,
        transport: Optional[Transport] = None,
        timeout: Optional[float] = None,
        on_success: Optional[Callable] = None,
        on_error: Optional[Callable] = None,
        scheduler=None,
        on_state_change=None,
    ):
        if not strategy.supports(operation):
            raise ConfigurationError(f"{strategy.get_provider_name()} does not support '{operation.kind}'")
        super().__init__(scheduler=scheduler, on_state_change=on_state_change)
        self.operation = operation
        self.strategy = strategy
        self.credentials = credentials or SettingsCredentialSource()
        self.transport = transport or HttpxTransport()
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self._task: Optional[asyncio.Task] = None

        if on_success is not None:
            self.on_success(on_success)
        if on_error is not None:
            self.on_error(on_error)

    @property
    def is_finished(self) -> bool:
        return self.state.is_terminal

    @property
    def is_in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_success(self, handler: Callable, context: DeliveryContext = MAIN):
        return self.register(CallbackKind.ON_SUCCESS, handler, context)

    def execute(self) -> Optional[asyncio.Task]:
        """
        Start the provider call; must be called from a running event loop.
        Returns the in-flight task, or None when nothing was started.
        """
        if self.is_finished:
            return None
        if self.is_in_flight:
            return self._task
        # Fails before any state change when no loop is running
        asyncio.get_running_loop()
        self.resume()
        return self._task

    # ===== Lifecycle hooks =====

    def on_resume(self) -> bool:
        loop = asyncio.get_running_loop()
        if not super().on_resume():
            return False
        self._launch(loop)
        return True

    def on_pause(self) -> bool:
        # A provider call cannot be suspended
        return False

    def on_cancel(self) -> bool:
        if not super().on_cancel():
            return False
        if self.is_in_flight:
            self._task.cancel()
        logs.request_log(logging.INFO, self, "Cancelled")
        return True

    # ===== Provider call =====

    def _launch(self, loop: asyncio.AbstractEventLoop):
        api_key = None
        if self.strategy.requires_credentials:
            api_key = self.credentials.get_api_key(self.strategy.name)
            if not api_key:
                self.dispatch_error(MissingCredentials(self.strategy.name))
                return
        self._task = loop.create_task(self._run(api_key))

    async def _run(self, api_key: Optional[str]):
        provider = self.strategy.get_provider_name()
        logs.request_log(logging.INFO, self, f"Calling {provider} for {self.operation.kind}")
        try:
            places = await asyncio.wait_for(
                self.strategy.perform(self.operation, api_key, self.transport, self.timeout),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            error = TransportError(f"{provider} did not answer within {self.timeout}s")
        except LocationError as e:
            error = e
        except Exception as e:
            logs.logger.exception(f"Unexpected {provider} failure")
            error = LocationError(f"Unexpected {provider} failure: {str(e)}")
        else:
            self._dispatch_success(places)
            return
        self.dispatch_error(error)

    def _dispatch_success(self, places: List[NormalizedPlace]):
        if self.is_finished:
            logs.request_log(logging.DEBUG, self, "Late result discarded")
            return
        try:
            self.registry.dispatch(CallbackKind.ON_SUCCESS.value, places)
        finally:
            self._apply(RequestEvent.COMPLETE)
            self._release()

    def dispatch_error(self, error: LocationError):
        """One-shot requests always finish on error, whatever `cancel_on_error` says."""
        if self.is_finished:
            logs.request_log(logging.DEBUG, self, f"Late error discarded: {error}")
            return
        logs.request_log(logging.WARNING, self, f"Failed: {error}")
        try:
            self.registry.dispatch(CallbackKind.ON_ERROR.value, error)
        finally:
            self._apply(RequestEvent.FAIL)
            self._release()

    def _release(self):
        if self.scheduler is not None and self.scheduler.is_queued(self):
            self.scheduler.cancel(self)


def request_place_detail(
    place: NormalizedPlace,
    on_success: Callable[[NormalizedPlace], None],
    on_error: Optional[Callable[[LocationError], None]] = None,
    strategy: Optional[BaseGeocoderStrategy] = None,
    credentials: Optional[CredentialSource] = None,
    transport: Optional[Transport] = None,
    timeout: Optional[float] = None,
    context: DeliveryContext = MAIN,
) -> Optional[OneShotProviderRequest]:
    """
    Fetch the full detail of a place found by a place search.

    The first detail obtained is cached on the place object itself; later calls
    are answered from that cache and return None instead of a request.
    """
    if place.detail is not None:
        context.schedule(on_success, place.detail)
        return None
    if not place.place_id:
        raise ConfigurationError("Place has no identifier to look up")

    def store(places: List[NormalizedPlace]):
        if not places:
            if on_error is not None:
                on_error(DataParserError(f"No detail returned for place {place.place_id}"))
            return
        on_success(place.cache_detail(places[0]))

    request = OneShotProviderRequest(
        PlaceDetail(place_id=place.place_id),
        strategy or GoogleGeocoderStrategy(),
        credentials=credentials,
        transport=transport,
        timeout=timeout,
    )
    request.on_success(store, context)
    if on_error is not None:
        request.on_error(on_error, context)
    request.execute()
    return request


class GeocodingService:
    """Awaitable wrapper around one-shot requests, used by the HTTP routes."""

    def __init__(
        self,
        strategy: Optional[BaseGeocoderStrategy] = None,
        credentials: Optional[CredentialSource] = None,
        transport: Optional[Transport] = None,
        timeout: Optional[float] = None,
    ):
        self.strategy = strategy or build_strategy()
        self.credentials = credentials or SettingsCredentialSource()
        self.transport = transport or HttpxTransport()
        self.timeout = timeout

    @property
    def provider(self) -> str:
        return self.strategy.name

    async def run(self, operation: GeocoderOperation) -> List[NormalizedPlace]:
        outcome = asyncio.get_running_loop().create_future()

        def succeed(places):
            if not outcome.done():
                outcome.set_result(places)

        def fail(error):
            if not outcome.done():
                outcome.set_exception(error)

        request = OneShotProviderRequest(
            operation,
            self.strategy,
            credentials=self.credentials,
            transport=self.transport,
            timeout=self.timeout,
            on_success=succeed,
            on_error=fail,
        )
        request.execute()
        try:
            return await outcome
        finally:
            # The caller went away before the provider answered
            if not request.is_finished:
                request.cancel()

    async def resolve_address(self, text: str) -> List[NormalizedPlace]:
        logs.log(logging.INFO, f"Resolving address with {self.provider}", extra={"address": text})
        return await self.run(ResolveAddress(text=text))

    async def resolve_coordinate(self, lat: float, lon: float, locale: Optional[str] = None) -> List[NormalizedPlace]:
        logs.log(logging.INFO, f"Reverse geocoding {lat:.5f}, {lon:.5f} with {self.provider}")
        return await self.run(ResolveCoordinate(coordinate=Coordinate(lat=lat, lon=lon), locale_hint=locale))

    async def search_places(self, text: str, language: Optional[GoogleLanguage] = None) -> List[NormalizedPlace]:
        return await self.run(SearchPlaces(text=text, language=language))

    async def place_detail(self, place_id: str) -> Optional[NormalizedPlace]:
        places = await self.run(PlaceDetail(place_id=place_id))
        return places[0] if places else None
