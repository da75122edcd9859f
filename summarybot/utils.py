import re
from typing import Optional

from fastapi import Request

LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_int_param(raw: Optional[str], default: int, floor: int = 1) -> int:
    """
    Lenient query-string integer.

    Uses the leading integer of ``raw`` ("5abc" -> 5). Missing, non-numeric and
    zero values fall back to ``default``; the result is never below ``floor``.
    """
    value = default
    if raw is not None:
        m = LEADING_INT_RE.match(raw)
        if m:
            value = int(m.group(1)) or default
    return max(value, floor)


def client_address(request: Request) -> str:
    """Best-effort caller address for rate limiting."""
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
