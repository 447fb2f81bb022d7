"""Opaque identifier generation for hotspots, events and rewards."""

import secrets

# 8 random bytes → 16 lowercase hex characters
_ID_BYTES: int = 8


def new_id() -> str:
    """Return a fresh random hex token. Participant ids are never generated here."""
    return secrets.token_hex(_ID_BYTES)
