"""Secret payload redaction applied before any serialization."""

from __future__ import annotations

import copy
from typing import Any

REDACTED = "***REDACTED***"

_SECRET_FIELDS = ("data", "stringData")


def redact_secret(obj: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``obj`` with top-level ``data``/``stringData`` replaced.

    Only the top level is touched; nested structures (annotations included)
    pass through unchanged.  The input is never mutated.
    """
    redacted = copy.copy(obj)
    for key in _SECRET_FIELDS:
        if key in redacted:
            redacted[key] = REDACTED
    return redacted
