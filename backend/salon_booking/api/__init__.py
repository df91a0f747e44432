"""HTTP API dependencies."""
