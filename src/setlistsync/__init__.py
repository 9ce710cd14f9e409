"""SetlistSync - multi-source concert catalog sync."""

__version__ = "0.3.0"
