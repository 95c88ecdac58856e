"""Cycling and running form analysis service."""

__version__ = "1.0.0"
