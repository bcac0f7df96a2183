"""Hex AI service: board engine, search strategies and the HTTP worker."""

__version__ = "1.0.0"
