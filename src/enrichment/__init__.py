"""
Enrichment Module
---------------
Drives the pipeline: cache lookup, rate-limited geocoding, incremental output and run statistics.
"""
