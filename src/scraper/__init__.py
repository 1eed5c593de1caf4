"""
Event Source Module
-----------------
Fetches the event listing from the Stockholm Pride event API.
"""
