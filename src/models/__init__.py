"""
Data Models Module
----------------
Contains Pydantic models for data validation and serialization.
Defines the structure of Pride events, resolved coordinates and enriched output records.
"""
