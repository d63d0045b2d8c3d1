"""Sold-listing comparables search for uncertain product descriptions."""

__version__ = "0.1.0"
