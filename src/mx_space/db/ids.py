"""Identifier generation for persisted entities."""

import secrets


def generate_id() -> str:
    """Return a new 24 character hex identifier.

    Ids are produced client side so an entity knows its id before it is
    flushed; a comment's thread key is derived from it.
    """
    return secrets.token_hex(12)
