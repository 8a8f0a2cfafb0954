"""Portfolio gallery backend and admin toolkit."""

__version__ = "0.1.0"
