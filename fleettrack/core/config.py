# fleettrack/core/config.py
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    api_base_url: str = "http://localhost:8080/api"
    request_timeout: float = 20.0

    # session lifecycle
    verify_interval_seconds: float = 60.0
    slow_login_notice_seconds: float = 5.0
    storage_path: Path = Path.home() / ".fleettrack" / "session.json"

    # geocoding (Nominatim policy wants a UA with a contact)
    geocoder_url: str = "https://nominatim.openstreetmap.org"
    admin_contact: str = "mailto:admin@example.com"

    # map
    tile_url_template: str = "https://a.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}.png"
    map_center_lat: float = 13.0830
    map_center_lng: float = 80.2704
    map_zoom: float = 12

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="FLEETTRACK_", env_file=".env", extra="ignore")


settings = Settings()
