"""Estate access form generation service."""

__version__ = "1.0.0"
