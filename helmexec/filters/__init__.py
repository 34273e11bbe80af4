"""Redaction filters for diagnostic and log output."""

from .redact import (
    SECRET_BEARING_FLAGS,
    STRIP_PLACEHOLDER,
    redacted_url,
    render_args,
)

__all__ = [
    "SECRET_BEARING_FLAGS",
    "STRIP_PLACEHOLDER",
    "redacted_url",
    "render_args",
]
