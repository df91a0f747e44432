"""Core configuration, exceptions and shared helpers."""
