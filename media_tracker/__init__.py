"""Media Tracker: import, clean and enrich a personal media log."""

__version__ = "0.1.0"
