"""Wallspot - wallpaper gallery content ingestion and delivery core."""

__version__ = "0.1.0"
