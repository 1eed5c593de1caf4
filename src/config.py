"""
Configuration Module
------------------
Settings for the event source, the geocoding service and the output file.
Values come from environment variables or a `.env` file in the working directory.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Geocoding service
    GOOGLE_GEOCODING_API_KEY: Optional[SecretStr] = None
    GOOGLE_GEOCODE_URL: str = "https://maps.googleapis.com/maps/api/geocode/json"
    GEOCODE_REGION: str = "se"
    GEOCODE_TIMEOUT: float = Field(default=10.0, gt=0)
    GEOCODE_RATE: float = Field(default=1.0, gt=0)

    # Event source
    PRIDE_API_URL: str = "https://event.stockholmpride.org/api/events"
    EVENTS_DATE: str = "upcoming"
    EVENTS_LANGUAGE: str = "sv"

    # Output and logging
    OUTPUT_FILE: Path = Path("eventsWithCoords.json")
    LOG_DIR: Path = Path("logs")
    LOG_LEVEL: str = "INFO"

    @property
    def api_key(self) -> Optional[str]:
        if self.GOOGLE_GEOCODING_API_KEY is None:
            return None
        return self.GOOGLE_GEOCODING_API_KEY.get_secret_value() or None


@lru_cache
def get_settings() -> Settings:
    return Settings()
