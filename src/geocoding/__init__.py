"""
Geocoding Module
--------------
Handles forward geocoding of event addresses to latitude/longitude coordinates.
Uses the Google Geocoding API with an address cache and a fixed-delay rate limiter.
"""
