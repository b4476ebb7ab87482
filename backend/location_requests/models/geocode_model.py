from pydantic import BaseModel, Field
from typing import List, Optional

from location_requests.models.places_model import GoogleLanguage, NormalizedPlace

class GeocodeRequest(BaseModel):
    address: str = Field(..., min_length=1, description="Free-form address to resolve")

class ReverseGeocodeRequest(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)
    locale: Optional[str] = Field(None, description="Preferred language of the result, e.g. 'it'")

class PlaceSearchRequest(BaseModel):
    input: str = Field(..., min_length=1)
    language: Optional[GoogleLanguage] = None

class PlacesResponse(BaseModel):
    places: List[NormalizedPlace]
    provider: str  # "google", "nominatim" or "device"
