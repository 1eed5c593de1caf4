from fastapi import FastAPI, HTTPException, Depends, BackgroundTasks, Query
import json
import logging
import threading
from typing import Optional

from src.config import Settings, get_settings
from src.enrichment.orchestrator import geocode_events
from src.exceptions import EventSourceError
from src.geocoding.google import GoogleGeocoder, Resolved, NotFound, ServiceError
from src.logging_setup import quiet_http_loggers
from src.scraper.pride_events import fetch_events

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
quiet_http_loggers()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Pride Event Geocoder API",
    description="Simple API for geocoding and retrieving Stockholm Pride events",
    version="1.0.0"
)


class RunState:
    """Tracks the single background enrichment run."""

    def __init__(self):
        self.lock = threading.Lock()
        self.running = False
        self.last_stats = None
        self.last_error = None

    def try_start(self):
        with self.lock:
            if self.running:
                return False
            self.running = True
            return True

    def finish(self, stats=None, error=None):
        with self.lock:
            self.running = False
            self.last_stats = stats
            self.last_error = error


run_state = RunState()


def get_geocoder(settings: Settings = Depends(get_settings)):
    return GoogleGeocoder.from_settings(settings)


def read_output_file(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return []
    except ValueError:
        # Unterminated while a run is writing, or left behind by a crashed run
        raise HTTPException(status_code=503, detail="Output file is incomplete, try again after the run finishes")


# Background task for enrichment
def enrich_events_task(settings, rate, output_file, geocoder=None):
    try:
        logger.info(f"Starting: enrichment run at {rate} requests/second -> {output_file}")
        events = fetch_events(settings=settings)
        result = geocode_events(events, rps=rate, output_file=output_file, geocoder=geocoder, settings=settings)
        stats = result.stats
        logger.info(f"Completed: {stats.total} events, {stats.success_count} succeeded, "
                    f"{stats.error_count} failed, {stats.cache_hits} cache hits")
        run_state.finish(stats=stats)
    except EventSourceError as e:
        logger.error(f"Could not fetch events: {str(e)}")
        run_state.finish(error=str(e))
    except Exception as e:
        logger.error(f"Error occurred: {str(e)}", exc_info=True)
        run_state.finish(error=str(e))


@app.get("/")
def read_root():
    return {"message": "Welcome to the Pride Event Geocoder API"}


@app.post("/enrich")
async def enrich_events(
    background_tasks: BackgroundTasks,
    rate: Optional[float] = None,
    settings: Settings = Depends(get_settings),
    geocoder: GoogleGeocoder = Depends(get_geocoder)
):
    rate = rate if rate is not None else settings.GEOCODE_RATE
    if rate <= 0:
        raise HTTPException(status_code=422, detail="rate must be positive")
    target = str(settings.OUTPUT_FILE)

    if not run_state.try_start():
        raise HTTPException(status_code=409, detail="An enrichment run is already in progress")

    background_tasks.add_task(enrich_events_task, settings, rate, target, geocoder)
    return {
        "message": "Enrichment started",
        "status": "processing",
        "rate": rate,
        "output_file": target
    }


@app.get("/status")
def get_status():
    stats = run_state.last_stats
    return {
        "running": run_state.running,
        "last_run": stats.model_dump() if stats is not None else None,
        "last_error": run_state.last_error
    }


@app.get("/events")
def get_events(
    limit: Optional[int] = Query(None, ge=0),
    with_coordinates: Optional[bool] = None,
    settings: Settings = Depends(get_settings)
):
    records = read_output_file(settings.OUTPUT_FILE)

    if with_coordinates is not None:
        records = [
            r for r in records
            if ("lat" in r and "lon" in r) == with_coordinates
        ]
    if limit is not None:
        records = records[:limit]
    return records


@app.get("/events/{event_id}")
def get_event(event_id: str, settings: Settings = Depends(get_settings)):
    for record in read_output_file(settings.OUTPUT_FILE):
        if str(record.get("id")) == event_id:
            return record
    raise HTTPException(status_code=404, detail="Event not found")


@app.get("/geocode")
def geocode_address(address: str, geocoder: GoogleGeocoder = Depends(get_geocoder)):
    """Geocode a single address without touching the output file"""
    outcome = geocoder.resolve(address)

    if isinstance(outcome, Resolved):
        return {"address": address, "lat": outcome.coordinate.lat, "lon": outcome.coordinate.lon}
    if isinstance(outcome, NotFound):
        raise HTTPException(status_code=404, detail=f"No coordinate found ({outcome.reason})")
    if isinstance(outcome, ServiceError):
        raise HTTPException(status_code=503, detail=outcome.cause)
    raise HTTPException(status_code=500, detail="Unexpected geocoding outcome")
