"""
Geocoder Strategy Implementations
Supports several geocoding backends behind one normalized contract.
"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Protocol

from location_requests.core.config import Settings, settings
from location_requests.core.errors import (
    ConfigurationError,
    DataParserError,
    LocationError,
    ProviderStatusError,
)
from location_requests.core.logger import logs
from location_requests.core.transport import ProviderQuery, Transport
from location_requests.models.places_model import (
    Coordinate,
    GeocoderOperation,
    GoogleLanguage,
    NormalizedPlace,
    PlaceDetail,
    RegionDescriptor,
    ResolveAddress,
    ResolveCoordinate,
    SearchPlaces,
)


class BaseGeocoderStrategy(ABC):
    """Base class for all geocoder strategies"""

    name: str = "base"
    requires_credentials: bool = False
    supported_operations: tuple = (ResolveAddress, ResolveCoordinate)

    def supports(self, operation: GeocoderOperation) -> bool:
        return isinstance(operation, self.supported_operations)

    @abstractmethod
    async def perform(
        self,
        operation: GeocoderOperation,
        api_key: Optional[str],
        transport: Optional[Transport],
        timeout: float,
    ) -> List[NormalizedPlace]:
        """Run one operation and return the normalized places"""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the display name of the provider"""
        pass


class HttpGeocoderStrategy(BaseGeocoderStrategy):
    """A strategy that talks to a provider's HTTP API: one GET per operation."""

    @abstractmethod
    def build_query(self, operation: GeocoderOperation, api_key: Optional[str]) -> ProviderQuery:
        pass

    @abstractmethod
    def parse_response(self, operation: GeocoderOperation, raw: bytes) -> List[NormalizedPlace]:
        pass

    async def perform(self, operation, api_key, transport, timeout) -> List[NormalizedPlace]:
        if transport is None:
            raise ConfigurationError(f"{self.get_provider_name()} needs a network transport")
        query = self.build_query(operation, api_key)
        raw = await transport.issue(query, timeout)
        places = self.parse_response(operation, raw)
        logs.log(logging.INFO, f"{self.get_provider_name()} returned {len(places)} place(s) for {operation.kind}")
        return places

    def _load_json(self, raw: bytes) -> Any:
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            raise DataParserError(f"{self.name} sent a payload that is not JSON") from e


class GoogleGeocoderStrategy(HttpGeocoderStrategy):
    """Google Geocoding, Places Autocomplete and Place Details"""

    name = "google"
    requires_credentials = True
    supported_operations = (ResolveAddress, ResolveCoordinate, SearchPlaces, PlaceDetail)

    def __init__(
        self,
        geocode_url: str = settings.GOOGLE_GEOCODE_URL,
        places_url: str = settings.GOOGLE_PLACES_URL,
        language: GoogleLanguage = GoogleLanguage.ENGLISH,
    ):
        self.geocode_url = geocode_url
        self.places_url = places_url.rstrip("/")
        self.language = language

    def build_query(self, operation, api_key) -> ProviderQuery:
        if isinstance(operation, ResolveAddress):
            return ProviderQuery(self.geocode_url, {"address": operation.text, "key": api_key})

        if isinstance(operation, ResolveCoordinate):
            c = operation.coordinate
            params = {"latlng": f"{c.lat},{c.lon}", "key": api_key}
            if operation.locale_hint:
                params["language"] = operation.locale_hint
            return ProviderQuery(self.geocode_url, params)

        if isinstance(operation, SearchPlaces):
            language = operation.language or self.language
            return ProviderQuery(
                f"{self.places_url}/autocomplete/json",
                {"input": operation.text, "language": language.value, "key": api_key},
            )

        if isinstance(operation, PlaceDetail):
            return ProviderQuery(
                f"{self.places_url}/details/json",
                {"placeid": operation.place_id, "key": api_key},
            )

        raise ConfigurationError(f"Google cannot run '{operation.kind}'")

    def parse_response(self, operation, raw) -> List[NormalizedPlace]:
        data = self._load_json(raw)
        if not isinstance(data, dict) or "status" not in data:
            raise DataParserError("Wrong google response")

        status = data["status"]
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise ProviderStatusError("google", str(status), data.get("error_message"))

        if isinstance(operation, SearchPlaces):
            predictions = data.get("predictions")
            if not isinstance(predictions, list):
                raise DataParserError("Google autocomplete response has no predictions")
            return [self._from_prediction(p) for p in predictions]

        if isinstance(operation, PlaceDetail):
            result = data.get("result")
            if not isinstance(result, dict):
                raise DataParserError("Google place details response has no result")
            return [self._from_result(result)]

        results = data.get("results")
        if not isinstance(results, list):
            raise DataParserError("Google geocoding response has no results")
        return [self._from_result(r) for r in results]

    def _from_result(self, result: dict) -> NormalizedPlace:
        try:
            components = {}
            for component in result.get("address_components", []):
                for kind in component.get("types", []):
                    components.setdefault(kind, component)

            def long_name(kind: str) -> Optional[str]:
                return components[kind]["long_name"] if kind in components else None

            location = (result.get("geometry") or {}).get("location")
            coordinate = None
            if location:
                coordinate = Coordinate(lat=float(location["lat"]), lon=float(location["lng"]))

            street = " ".join(p for p in (long_name("street_number"), long_name("route")) if p)
            return NormalizedPlace(
                provider=self.name,
                place_id=result.get("place_id"),
                name=result.get("name") or result.get("formatted_address"),
                coordinate=coordinate,
                formatted_address=result.get("formatted_address"),
                thoroughfare=street or None,
                locality=long_name("locality") or long_name("postal_town"),
                administrative_area=long_name("administrative_area_level_1"),
                postal_code=long_name("postal_code"),
                country=long_name("country"),
                country_code=components["country"]["short_name"] if "country" in components else None,
                types=list(result.get("types", [])),
                raw=result,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DataParserError(f"Unexpected google result: {str(e)}") from e

    def _from_prediction(self, prediction: dict) -> NormalizedPlace:
        try:
            formatting = prediction.get("structured_formatting") or {}
            return NormalizedPlace(
                provider=self.name,
                place_id=prediction["place_id"],
                name=prediction["description"],
                main_text=formatting.get("main_text"),
                secondary_text=formatting.get("secondary_text"),
                types=list(prediction.get("types", [])),
                raw=prediction,
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise DataParserError(f"Unexpected google prediction: {str(e)}") from e

    def get_provider_name(self) -> str:
        return "Google"


class NominatimGeocoderStrategy(HttpGeocoderStrategy):
    """OpenStreetMap Nominatim search and reverse geocoding"""

    name = "nominatim"

    def __init__(
        self,
        base_url: str = settings.NOMINATIM_BASE_URL,
        user_agent: str = settings.NOMINATIM_USER_AGENT,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent

    def build_query(self, operation, api_key) -> ProviderQuery:
        headers = {"User-Agent": self.user_agent}

        if isinstance(operation, ResolveAddress):
            params = {"q": operation.text, "format": "json", "addressdetails": "1", "limit": "1"}
            return ProviderQuery(f"{self.base_url}/search", params, headers)

        if isinstance(operation, ResolveCoordinate):
            params = {
                "format": "json",
                "lat": str(operation.coordinate.lat),
                "lon": str(operation.coordinate.lon),
                "addressdetails": "1",
            }
            if operation.locale_hint:
                params["accept-language"] = operation.locale_hint
            return ProviderQuery(f"{self.base_url}/reverse", params, headers)

        raise ConfigurationError(f"Nominatim cannot run '{operation.kind}'")

    def parse_response(self, operation, raw) -> List[NormalizedPlace]:
        data = self._load_json(raw)
        if isinstance(data, dict) and "error" in data:
            raise ProviderStatusError("nominatim", "error", str(data["error"]))

        if isinstance(operation, ResolveAddress):
            if not isinstance(data, list):
                raise DataParserError("Nominatim search response is not a list")
            return [self._from_item(item) for item in data]

        if not isinstance(data, dict):
            raise DataParserError("Nominatim reverse response is not an object")
        return [self._from_item(data)]

    def _from_item(self, item: dict) -> NormalizedPlace:
        try:
            address = item.get("address") or {}
            street = " ".join(p for p in (address.get("house_number"), address.get("road")) if p)
            country_code = address.get("country_code")
            return NormalizedPlace(
                provider=self.name,
                place_id=str(item["place_id"]) if "place_id" in item else None,
                name=item.get("name") or item.get("display_name"),
                coordinate=Coordinate(lat=float(item["lat"]), lon=float(item["lon"])),
                formatted_address=item.get("display_name"),
                thoroughfare=street or None,
                locality=address.get("city") or address.get("town") or address.get("village") or address.get("hamlet"),
                administrative_area=address.get("state"),
                postal_code=address.get("postcode"),
                country=address.get("country"),
                country_code=country_code.upper() if country_code else None,
                types=[t for t in (item.get("class"), item.get("type")) if t],
                raw=item,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DataParserError(f"Unexpected nominatim item: {str(e)}") from e

    def get_provider_name(self) -> str:
        return "OpenStreetMap Nominatim"


class DeviceGeocoder(Protocol):
    """On-device forward/reverse geocoder. Placemarks are plain mappings."""

    async def geocode_address(self, text: str, region_hint: Optional[RegionDescriptor]) -> List[Mapping]: ...

    async def reverse_geocode(self, coordinate: Coordinate, locale: Optional[str]) -> List[Mapping]: ...


class DeviceGeocoderStrategy(BaseGeocoderStrategy):
    """Geocoding through the platform geocoder: no network call, no API key"""

    name = "device"

    def __init__(self, geocoder: DeviceGeocoder):
        self.geocoder = geocoder

    async def perform(self, operation, api_key, transport, timeout) -> List[NormalizedPlace]:
        try:
            if isinstance(operation, ResolveAddress):
                placemarks = await self.geocoder.geocode_address(operation.text, operation.region_hint)
            elif isinstance(operation, ResolveCoordinate):
                placemarks = await self.geocoder.reverse_geocode(operation.coordinate, operation.locale_hint)
            else:
                raise ConfigurationError(f"The device geocoder cannot run '{operation.kind}'")
        except LocationError:
            raise
        except Exception as e:
            logs.log(logging.ERROR, f"Device geocoder error: {str(e)}")
            raise ProviderStatusError("device", "failed", str(e)) from e
        return [self._from_placemark(p) for p in placemarks or []]

    def _from_placemark(self, placemark: Mapping) -> NormalizedPlace:
        try:
            coordinate = None
            if placemark.get("latitude") is not None and placemark.get("longitude") is not None:
                coordinate = Coordinate(lat=float(placemark["latitude"]), lon=float(placemark["longitude"]))
            return NormalizedPlace(
                provider=self.name,
                name=placemark.get("name"),
                coordinate=coordinate,
                thoroughfare=placemark.get("thoroughfare"),
                locality=placemark.get("locality"),
                administrative_area=placemark.get("administrative_area"),
                postal_code=placemark.get("postal_code"),
                country=placemark.get("country"),
                country_code=placemark.get("iso_country_code"),
                raw=dict(placemark),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise DataParserError(f"Unexpected device placemark: {str(e)}") from e

    def get_provider_name(self) -> str:
        return "Device"


def build_strategy(
    name: Optional[str] = None,
    config: Settings = settings,
    device_geocoder: Optional[DeviceGeocoder] = None,
) -> BaseGeocoderStrategy:
    """Initialize the selected geocoder strategy based on settings"""
    provider = (name or config.GEOCODER_PROVIDER).lower()

    if provider == "google":
        try:
            language = GoogleLanguage(config.GOOGLE_LANGUAGE)
        except ValueError:
            logs.log(logging.WARNING, f"Unknown google language '{config.GOOGLE_LANGUAGE}', defaulting to English")
            language = GoogleLanguage.ENGLISH
        return GoogleGeocoderStrategy(
            geocode_url=config.GOOGLE_GEOCODE_URL,
            places_url=config.GOOGLE_PLACES_URL,
            language=language
        )
    elif provider == "nominatim":
        return NominatimGeocoderStrategy(
            base_url=config.NOMINATIM_BASE_URL,
            user_agent=config.NOMINATIM_USER_AGENT
        )
    elif provider == "device":
        if device_geocoder is None:
            raise ConfigurationError("The device strategy needs a device geocoder")
        return DeviceGeocoderStrategy(device_geocoder)
    else:
        logs.log(logging.WARNING, f"Unknown geocoder '{provider}', defaulting to Nominatim")
        return NominatimGeocoderStrategy(
            base_url=config.NOMINATIM_BASE_URL,
            user_agent=config.NOMINATIM_USER_AGENT
        )
