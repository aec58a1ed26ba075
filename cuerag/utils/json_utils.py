"""
JSON utilities for turning cue payloads into embeddable text.
"""

import json
from typing import Any


def payload_to_text(payload: Any) -> str:
    """Flatten a cue payload into a single line of text.

    Strings pass through, mappings and sequences are serialized with sorted
    keys so the same payload always yields the same text.

    Args:
        payload: Opaque cue payload

    Returns:
        Text form of the payload, empty when there is none
    """
    if payload is None:
        return ''
    if isinstance(payload, str):
        return payload.strip()
    try:
        return json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)
