"""Canonical JSON serialization for CLI output.

Sorted keys and fixed separators, so the same decoded value always prints
the same bytes (stable diffs and test snapshots).
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Serialize ``obj`` to canonical JSON.

    Rules:
    - Sorted keys
    - Stable separators (",", ":")
    - Non-ASCII kept as UTF-8, not escaped

    Args:
        obj: JSON-compatible Python value (e.g. the output of Decoder.encode)

    Returns:
        Canonical JSON string
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
