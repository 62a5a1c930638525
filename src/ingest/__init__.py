"""Member data ingestion pipeline.

This module reads raw member sources and runs the cleaning stages.
It prepares immutable versions for the store layer.
"""
