"""Debug-id instrumentation and release pipeline for bundled JavaScript."""

__version__ = "0.1.0"
