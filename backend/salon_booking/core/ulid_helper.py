"""ULID generation for group, segment and series ids."""

import ulid


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.ULID())
