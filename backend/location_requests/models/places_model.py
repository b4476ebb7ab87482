from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from typing import Any, Dict, List, Literal, Optional, Union
from enum import Enum
from datetime import datetime

# --- Enums ---
class RegionEvent(str, Enum):
    ENTERED = "entered"
    EXITED = "exited"


class RegionState(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"
    UNKNOWN = "unknown"


class GoogleLanguage(str, Enum):
    """Languages accepted by the Google `language` query parameter."""
    ARABIC = "ar"
    BULGARIAN = "bg"
    BENGALI = "bn"
    CATALAN = "ca"
    CZECH = "cs"
    DANISH = "da"
    DUTCH = "nl"
    GERMAN = "de"
    GREEK = "el"
    ENGLISH = "en"
    ENGLISH_AU = "en-AU"
    ENGLISH_GB = "en-GB"
    SPANISH = "es"
    BASQUE = "eu"
    CHINESE_SIMPLIFIED = "zh-CN"
    CHINESE_TRADITIONAL = "zh-TW"
    FARSI = "fa"
    FINNISH = "fi"
    FILIPINO = "fil"
    FRENCH = "fr"
    GALICIAN = "gl"
    GUJARATI = "gu"
    HINDI = "hi"
    CROATIAN = "hr"
    HUNGARIAN = "hu"
    INDONESIAN = "id"
    ITALIAN = "it"
    HEBREW = "iw"
    JAPANESE = "ja"
    KANNADA = "kn"
    KOREAN = "ko"
    LITHUANIAN = "lt"
    LATVIAN = "lv"
    MALAYALAM = "ml"
    MARATHI = "mr"
    NORWEGIAN = "no"
    POLISH = "pl"
    PORTUGUESE = "pt"
    PORTUGUESE_BR = "pt-BR"
    PORTUGUESE_PT = "pt-PT"
    ROMANIAN = "ro"
    RUSSIAN = "ru"
    SLOVAK = "sk"
    SLOVENIAN = "sl"
    SERBIAN = "sr"
    SWEDISH = "sv"
    TAMIL = "ta"
    TELUGU = "te"
    THAI = "th"
    TAGALOG = "tl"
    TURKISH = "tr"
    UKRAINIAN = "uk"
    VIETNAMESE = "vi"

# --- Domain Models ---
class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)


class RegionDescriptor(BaseModel):
    """
    Circular region to monitor.
    The notify flags are derived from the registered callbacks, so the model is
    frozen and only rebuilt by the owning request.
    """
    model_config = ConfigDict(frozen=True)

    identifier: str
    center: Coordinate
    radius: float = Field(..., gt=0)  # metres
    notify_on_entry: bool = False
    notify_on_exit: bool = False


class Visit(BaseModel):
    coordinate: Coordinate
    horizontal_accuracy: Optional[float] = None
    arrival_date: Optional[datetime] = None
    departure_date: Optional[datetime] = None


class NormalizedPlace(BaseModel):
    """Provider-agnostic place produced by a geocoder strategy."""
    provider: str  # "device", "google", "nominatim"
    place_id: Optional[str] = None
    name: Optional[str] = None
    coordinate: Optional[Coordinate] = None
    formatted_address: Optional[str] = None
    thoroughfare: Optional[str] = None
    locality: Optional[str] = None
    administrative_area: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    types: List[str] = Field(default_factory=list)
    # Place search predictions only
    main_text: Optional[str] = None
    secondary_text: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None

    _detail: Optional["NormalizedPlace"] = PrivateAttr(default=None)

    @property
    def detail(self) -> Optional["NormalizedPlace"]:
        return self._detail

    def cache_detail(self, detail: "NormalizedPlace") -> "NormalizedPlace":
        """Keep the first detail obtained for this place; later ones are ignored."""
        if self._detail is None:
            self._detail = detail
        return self._detail

# --- One-shot operations ---
class ResolveAddress(BaseModel):
    kind: Literal["resolve_address"] = "resolve_address"
    text: str = Field(..., min_length=1)
    region_hint: Optional[RegionDescriptor] = None


class ResolveCoordinate(BaseModel):
    kind: Literal["resolve_coordinate"] = "resolve_coordinate"
    coordinate: Coordinate
    locale_hint: Optional[str] = None


class SearchPlaces(BaseModel):
    kind: Literal["search_places"] = "search_places"
    text: str = Field(..., min_length=1)
    language: Optional[GoogleLanguage] = None


class PlaceDetail(BaseModel):
    kind: Literal["place_detail"] = "place_detail"
    place_id: str = Field(..., min_length=1)


GeocoderOperation = Union[ResolveAddress, ResolveCoordinate, SearchPlaces, PlaceDetail]
