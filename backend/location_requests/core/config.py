from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    LOGGER: int = 20
    LOG_DIRECTORY: str = "logs"

    # Geocoder selection: "nominatim" or "google"
    GEOCODER_PROVIDER: str = "nominatim"

    # Seconds allowed for a single provider call
    REQUEST_TIMEOUT: float = 10.0

    # Google Configuration (geocoding, place autocomplete, place details)
    GOOGLE_API_KEY: str | None = None
    GOOGLE_LANGUAGE: str = "en"
    GOOGLE_GEOCODE_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    GOOGLE_PLACES_URL: str = "https://maps.googleapis.com/maps/api/place"

    # OpenStreetMap Nominatim Configuration
    NOMINATIM_BASE_URL: str = "https://nominatim.openstreetmap.org"
    NOMINATIM_USER_AGENT: str = "LocationRequests/1.0"

    model_config = SettingsConfigDict(
        # Look for .env in the current folder OR the parent folder
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore"
    )

settings = Settings()
