"""
Main entrypoint for the Stockholm Pride event geocoder.

Usage:
    Run directly (`python main.py`). Settings are read from the environment or a `.env` file;
    set GOOGLE_GEOCODING_API_KEY to enable geocoding.

Addresses that already have coordinates in the output file are not geocoded again.
"""
import logging

from src.config import get_settings
from src.enrichment.orchestrator import geocode_events
from src.logging_setup import setup_logging
from src.scraper.pride_events import fetch_events

logger = logging.getLogger(__name__)


def main():
    """
    Main function to fetch, geocode and save the events.
    """
    settings = get_settings()
    setup_logging(settings.LOG_DIR, settings.LOG_LEVEL)

    try:
        events = fetch_events(settings=settings)
        result = geocode_events(events, rps=settings.GEOCODE_RATE, output_file=settings.OUTPUT_FILE,
                                settings=settings)

        stats = result.stats
        print(f"\nEnrichment completed successfully")
        print(f"  Events saved: {len(result.records)} -> {settings.OUTPUT_FILE}")
        print(f"  Succeeded: {stats.success_count}")
        print(f"  Failed: {stats.error_count}")
        print(f"  Cache hits: {stats.cache_hits}")
        print(f"  Unique addresses cached: {stats.cache_size}")

        return 0
    except Exception as e:
        logger.error(f"An error occurred in the main function: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    exit_code = main()
    print(f"Exiting with code {exit_code}")
    raise SystemExit(exit_code)
