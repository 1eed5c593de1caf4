import json
import logging
import math
from typing import Dict, Optional

from src.models.event import Coordinate

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def load_cached_coordinates(path) -> Dict[str, Optional[Coordinate]]:
    """
    Read coordinates already resolved by a previous run.

    Only records with a non-empty address and both `lat` and `lon` are used.
    A missing file gives an empty cache; an unreadable or corrupt file (for
    example one left unterminated by a crashed run) gives an empty cache and a warning.
    """
    cache = {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except FileNotFoundError:
        return cache
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read {path}: {e}")
        return cache

    if not isinstance(records, list):
        logger.warning(f"Could not read {path}: expected a JSON array")
        return cache

    for record in records:
        if not isinstance(record, dict):
            continue
        address = record.get("address")
        lat = record.get("lat")
        lon = record.get("lon")
        if isinstance(address, str) and address and _is_number(lat) and _is_number(lon):
            cache[address] = Coordinate(lat=lat, lon=lon)

    logger.info(f"Loaded {len(cache)} existing addresses from {path}")
    return cache


class CoordinateCache:
    """
    Address -> coordinate store for one run.

    `None` is a stored value meaning the address was looked up without a
    result; use `contains` to tell it apart from an address never looked up.
    """

    def __init__(self, entries=None):
        self._entries = dict(entries or {})

    @classmethod
    def from_file(cls, path):
        return cls(load_cached_coordinates(path))

    def contains(self, address: str) -> bool:
        return address in self._entries

    def lookup(self, address: str) -> Optional[Coordinate]:
        return self._entries.get(address)

    def store(self, address: str, coordinate: Optional[Coordinate]):
        self._entries[address] = coordinate

    def __contains__(self, address):
        return self.contains(address)

    def __len__(self):
        return len(self._entries)
