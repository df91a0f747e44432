"""Salon appointment scheduling and availability engine."""

__version__ = "1.0.0"
