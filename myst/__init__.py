"""Time-series metadata queries, filter trees, epoch bitmaps, result grouping and ingest records."""

__version__ = "0.1.0"