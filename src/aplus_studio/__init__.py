"""aplus-studio: Amazon A+ marketing image sets from product photos."""

__version__ = "0.1.0"
