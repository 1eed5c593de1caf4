import logging
import time
from dataclasses import dataclass, field
from typing import List

from src.config import get_settings
from src.geocoding.cache import CoordinateCache
from src.geocoding.google import GoogleGeocoder, Resolved, NotFound, ServiceError
from src.geocoding.rate_limit import RateLimiter
from src.models.event import Event, EnrichedRecord, RunStatistics
from src.storage.json_writer import IncrementalJsonWriter

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_FILE = "eventsWithCoords.json"


@dataclass
class EnrichmentResult:
    records: List[EnrichedRecord] = field(default_factory=list)
    stats: RunStatistics = field(default_factory=RunStatistics)


class EventEnricher:
    """
    Adds coordinates to events, one event at a time and in input order.

    Each record is written to the output file as soon as it is built, so the
    file order always matches the input order. Every distinct address gets at
    most one geocoding call per run.
    """

    def __init__(self, geocoder, rate_limiter=None, cache=None):
        self.geocoder = geocoder
        self.rate_limiter = rate_limiter or RateLimiter()
        self.cache = cache if cache is not None else CoordinateCache()

    def enrich_events(self, events, output_file=DEFAULT_OUTPUT_FILE, should_stop=None):
        # Validate everything before the writer truncates the previous output
        events = [e if isinstance(e, Event) else Event.model_validate(e) for e in events]

        result = EnrichmentResult()
        stats = result.stats
        total = len(events)
        start_time = time.time()

        writer = IncrementalJsonWriter(output_file)
        writer.open()

        for i, event in enumerate(events):
            if should_stop is not None and should_stop():
                logger.warning(f"Run cancelled after {i}/{total} events")
                stats.cancelled = True
                break

            record = self._enrich_one(event, i, total, stats)

            writer.append(record, is_first=(i == 0))
            result.records.append(record)
            stats.total += 1

        writer.close()

        stats.cache_size = len(self.cache)
        stats.duration_seconds = time.time() - start_time

        logger.info(f"Summary: {stats.success_count} succeeded, {stats.error_count} failed of {total} total")
        logger.info(f"Cache: {stats.cache_size} unique addresses stored, {stats.cache_hits} cache hits, "
                    f"{stats.geocode_calls} geocoding calls")
        return result

    def _enrich_one(self, event, i, total, stats):
        address = event.address
        progress = f"Event {i + 1}/{total}: {event.title}"
        coordinate = None

        if address and self.cache.contains(address):
            coordinate = self.cache.lookup(address)
            logger.info(f'Cache hit for "{address}"')
            stats.cache_hits += 1
        elif address.strip():
            self.rate_limiter.wait()
            outcome = self.geocoder.resolve(address)
            stats.geocode_calls += 1

            if isinstance(outcome, Resolved):
                coordinate = outcome.coordinate
            # NotFound and ServiceError are both cached as no result for this run
            self.cache.store(address, coordinate)

            if isinstance(outcome, ServiceError):
                logger.error(f"{progress} - Error: {outcome.cause}")
                stats.error_count += 1
                return EnrichedRecord(id=event.id, title=event.title, address=address, error=outcome.cause)
            if isinstance(outcome, NotFound):
                logger.debug(f'No result for "{address}": {outcome.reason}')

        if coordinate is not None:
            logger.info(f"{progress} ({coordinate.lat}, {coordinate.lon})")
            stats.success_count += 1
            return EnrichedRecord(id=event.id, title=event.title, address=address,
                                  lat=coordinate.lat, lon=coordinate.lon)

        if not address.strip():
            logger.info(f"{progress} - No address given")
            # A missing address is not an error
            stats.success_count += 1
        else:
            logger.warning(f'{progress} - No coordinate found for "{address}"')
            stats.error_count += 1
        return EnrichedRecord(id=event.id, title=event.title, address=address)


def geocode_events(events, rps=1, output_file=DEFAULT_OUTPUT_FILE, geocoder=None, settings=None,
                   should_stop=None):
    """
    Geocode a list of events and stream the enriched records to `output_file`.

    Coordinates already present in an existing `output_file` are reused, so a
    second run only geocodes addresses that are new or were unresolved.

    Args:
        events: Event objects or raw event dicts from the event API
        rps: Geocoding requests per second
        output_file: Path of the JSON output, also read as the cache source
        geocoder: Object with a `resolve(address)` method, defaults to GoogleGeocoder
        settings: Settings used to build the default geocoder
        should_stop: Optional callable checked between events to cancel the run

    Returns:
        EnrichmentResult with the records in input order and the run statistics
    """
    if geocoder is None:
        geocoder = GoogleGeocoder.from_settings(settings or get_settings())

    # Read the cache before the writer truncates the file
    cache = CoordinateCache.from_file(output_file)
    enricher = EventEnricher(geocoder, RateLimiter(rps), cache)
    return enricher.enrich_events(events, output_file, should_stop=should_stop)
