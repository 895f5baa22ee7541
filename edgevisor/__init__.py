"""Container entrypoint supervisor for the edge agent."""

__version__ = "1.0.0"
