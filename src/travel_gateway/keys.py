"""Cache key fingerprints for remote operations."""

import hashlib
import json
from typing import Any

DEFAULT_MAX_PART_LENGTH = 50


def _normalize(part: Any, max_length: int) -> str:
    if part is None:
        text = "none"
    elif isinstance(part, bool):
        text = "true" if part else "false"
    elif isinstance(part, (str, int, float)):
        text = str(part)
    else:
        text = json.dumps(part, sort_keys=True, separators=(",", ":"), default=str)

    if len(text) > max_length:
        # Keep a readable prefix, disambiguate with a digest of the full payload
        digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:12]
        text = f"{text[:max_length]}#{digest}"
    return text


def build_cache_key(
    operation: str,
    *parts: Any,
    max_part_length: int = DEFAULT_MAX_PART_LENGTH,
) -> str:
    """
    Build a deterministic cache key for a remote operation.

    Args:
        operation: Operation name (e.g., 'flights', 'airlines')
        *parts: Request parameters in a fixed order
        max_part_length: Length above which a part is truncated

    Returns:
        Key like 'flights-JFK-LAX-2025-06-01-oneway-1'
    """
    if not operation:
        raise ValueError("operation name is required")
    segments = [operation] + [_normalize(p, max_part_length) for p in parts]
    return "-".join(segments)
