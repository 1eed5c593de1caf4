"""
Exceptions raised across the enrichment pipeline.
"""


class EnrichmentError(Exception):
    """Base class for run-level failures."""


class EventSourceError(EnrichmentError):
    """The event listing could not be fetched or was not a list of events."""
