"""AITWY account service and API clients."""

__version__ = "1.0.0"
