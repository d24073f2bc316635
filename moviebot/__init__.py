"""Telegram movie search over the OMDb API."""

__version__ = "0.1.0"
