"""Redis-backed distributed locking for stock decrements."""

__all__ = ["__version__"]

__version__ = "0.1.0"
