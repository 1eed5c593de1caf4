"""
API Module
---------
Provides RESTful API endpoints for the geocoded event data using FastAPI.
Features include:
- Triggering an enrichment run in the background
- Retrieving enriched events from the output file
- Geocoding a single address
"""
