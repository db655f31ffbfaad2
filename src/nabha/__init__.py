"""Nabha learning platform: offline-first progress sync."""

__version__ = "0.1.0"
