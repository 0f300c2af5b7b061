"""Redaction helpers for request/response log events."""

from __future__ import annotations

from typing import Any, Mapping

SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "x-auth-token",
}

SENSITIVE_OPTIONS = {"auth", "cookies"}

REDACTED = "[REDACTED]"


def sanitize_headers(headers: Mapping[str, Any]) -> dict[str, Any]:
    """Return headers with sensitive values redacted for logging/telemetry."""
    redacted: dict[str, Any] = {}
    for key, value in headers.items():
        if str(key).lower() in SENSITIVE_HEADERS:
            redacted[key] = REDACTED
        else:
            redacted[key] = value
    return redacted


def sanitize_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of request options that is safe to hand to a log sink."""
    clean = dict(options)
    headers = clean.get("headers")
    if isinstance(headers, Mapping):
        clean["headers"] = sanitize_headers(headers)
    for key in SENSITIVE_OPTIONS & set(clean):
        if clean[key] is not None:
            clean[key] = REDACTED
    return clean
