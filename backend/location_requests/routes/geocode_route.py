import logging
from fastapi import APIRouter, Depends, HTTPException

from location_requests.core.errors import (
    ConfigurationError,
    DataParserError,
    LocationError,
    MissingCredentials,
    ProviderStatusError,
    TransportError,
)
from location_requests.core.logger import logs
from location_requests.models.geocode_model import (
    GeocodeRequest,
    PlaceSearchRequest,
    PlacesResponse,
    ReverseGeocodeRequest,
)
from location_requests.services.geocoder_service import GeocodingService

router = APIRouter()

# Dispatched error type -> HTTP status returned to the client
ERROR_STATUS = {
    ConfigurationError: 400,
    MissingCredentials: 503,
    TransportError: 504,
    DataParserError: 502,
    ProviderStatusError: 502,
}

# --- Dependency Injection ---
def get_geocoding_service() -> GeocodingService:
    return GeocodingService()

def _http_error(error: LocationError) -> HTTPException:
    status = ERROR_STATUS.get(type(error), 500)
    logs.log(logging.ERROR, f"Geocoding failed with {type(error).__name__}: {error.message}")
    return HTTPException(status_code=status, detail=error.message)

@router.post("/geocode", response_model=PlacesResponse)
async def geocode_endpoint(
    request: GeocodeRequest,
    service: GeocodingService = Depends(get_geocoding_service)
):
    try:
        places = await service.resolve_address(request.address)
    except LocationError as e:
        raise _http_error(e)
    return PlacesResponse(places=places, provider=service.provider)

@router.post("/reverse", response_model=PlacesResponse)
async def reverse_endpoint(
    request: ReverseGeocodeRequest,
    service: GeocodingService = Depends(get_geocoding_service)
):
    try:
        places = await service.resolve_coordinate(request.lat, request.lon, request.locale)
    except LocationError as e:
        raise _http_error(e)
    return PlacesResponse(places=places, provider=service.provider)

@router.post("/places/search", response_model=PlacesResponse)
async def place_search_endpoint(
    request: PlaceSearchRequest,
    service: GeocodingService = Depends(get_geocoding_service)
):
    try:
        places = await service.search_places(request.input, request.language)
    except LocationError as e:
        raise _http_error(e)
    return PlacesResponse(places=places, provider=service.provider)

@router.get("/places/{place_id}", response_model=PlacesResponse)
async def place_detail_endpoint(
    place_id: str,
    service: GeocodingService = Depends(get_geocoding_service)
):
    try:
        place = await service.place_detail(place_id)
    except LocationError as e:
        raise _http_error(e)
    if place is None:
        raise HTTPException(status_code=404, detail=f"No place with id {place_id}")
    return PlacesResponse(places=[place], provider=service.provider)
