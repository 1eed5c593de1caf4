import math
from typing import Optional, Union, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventPlace(BaseModel):
    """A nested location or area block; only the address is used."""
    model_config = ConfigDict(extra="ignore")

    address: Optional[str] = None


class Event(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    title: Optional[str] = None
    location: Optional[EventPlace] = None
    area: Optional[EventPlace] = None

    @property
    def address(self) -> str:
        """
        Address used as the geocoding key.

        `location.address` wins when it is set (even if blank), then `area.address`,
        then an empty string.
        """
        if self.location is not None and self.location.address is not None:
            return self.location.address
        if self.area is not None and self.area.address is not None:
            return self.area.address
        return ""


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float

    @field_validator("lat", "lon")
    @classmethod
    def must_be_finite(cls, value):
        if not math.isfinite(value):
            raise ValueError("coordinate must be a finite number")
        return value


class EnrichedRecord(BaseModel):
    id: Union[int, str]
    title: Optional[str] = None
    address: str = ""
    lat: Optional[float] = None
    lon: Optional[float] = None
    error: Optional[str] = None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.lat is None or self.lon is None:
            return None
        return Coordinate(lat=self.lat, lon=self.lon)

    def to_output_dict(self) -> Dict[str, Any]:
        # Key order is the on-disk order: id, title, address, then lat/lon or error
        data = {"id": self.id, "title": self.title, "address": self.address}
        if self.lat is not None and self.lon is not None:
            data["lat"] = self.lat
            data["lon"] = self.lon
        if self.error is not None:
            data["error"] = self.error
        return data


class RunStatistics(BaseModel):
    total: int = 0
    success_count: int = 0
    error_count: int = 0
    cache_hits: int = 0
    geocode_calls: int = 0
    cache_size: int = 0
    cancelled: bool = False
    duration_seconds: float = Field(default=0.0, ge=0)
