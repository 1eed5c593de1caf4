"""
Storage Module
-------------
Streams enriched event records to the JSON output file.
The output file is also the cache source for the next run.
"""
