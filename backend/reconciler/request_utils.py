from __future__ import annotations

import re
import uuid

from fastapi import Request

# Accept caller-supplied ids only if they are short and log-safe.
_REQUEST_ID = re.compile(r"[A-Za-z0-9._-]{8,64}")


def get_request_id(request: Request) -> str:
    """Reuse the caller's ``x-request-id`` so logs correlate across services."""
    incoming = (request.headers.get("x-request-id") or "").strip()
    if _REQUEST_ID.fullmatch(incoming):
        return incoming
    return uuid.uuid4().hex


def get_client_ip(request: Request) -> str:
    """Best-effort caller address for request log lines."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # left-most entry is the original client
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"
