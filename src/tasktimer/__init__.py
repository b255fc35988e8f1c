"""Task timer: start, pause, resume and stop task timers recorded in a CSV log."""

__version__ = "0.3.0"
