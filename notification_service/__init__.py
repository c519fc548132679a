"""Notification delivery engine for the social and dating platform."""

__version__ = "0.1.0"
