import logging

import requests
from pydantic import ValidationError

from src.config import get_settings
from src.exceptions import EventSourceError
from src.models.event import Event

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


def fetch_events(params=None, settings=None, session=None):
    """
    Fetch the current event listing.

    Args:
        params: Query parameters, defaults to upcoming events in Swedish
        settings: Settings instance, defaults to the environment settings
        session: Optional requests session

    Returns:
        List of validated Event objects. Items that fail validation are skipped.

    Raises:
        EventSourceError: if the request fails or the payload is not a list
    """
    settings = settings or get_settings()
    if params is None:
        params = {"date": settings.EVENTS_DATE, "language": settings.EVENTS_LANGUAGE}
    http = session or requests

    try:
        logger.info(f"API request: {settings.PRIDE_API_URL} {params}")
        response = http.get(settings.PRIDE_API_URL, params=params, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        logger.error(f"Failed to fetch events: {e}")
        raise EventSourceError(f"Failed to fetch events: {e}") from e
    except ValueError as e:
        logger.error(f"Event API returned invalid JSON: {e}")
        raise EventSourceError(f"Event API returned invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise EventSourceError(f"Expected a list of events, got {type(data).__name__}")

    events = []
    for item in data:
        try:
            events.append(Event.model_validate(item))
        except ValidationError as e:
            item_id = item.get("id", "unknown") if isinstance(item, dict) else "unknown"
            logger.warning(f"Skipping invalid event (ID: {item_id}): {e.errors()}")

    logger.info(f"Retrieved {len(events)} events")
    return events
