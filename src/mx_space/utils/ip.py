"""Client address helpers."""
from __future__ import annotations

from starlette.requests import HTTPConnection


def get_ip(connection: HTTPConnection) -> str | None:
    """Return the client IP: first ``X-Forwarded-For`` hop, else the socket peer."""
    forwarded = connection.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if connection.client is not None:
        return connection.client.host
    return None
