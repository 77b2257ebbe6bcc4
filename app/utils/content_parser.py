"""
Document body (de)serialization

The body is stored as a JSON string holding the editor's block list.
Reads never raise: anything unusable is treated as "no content".
"""

import json
from typing import Any, List, Optional

from app.core.logging import logger


def parse_content(value: Any) -> Optional[List[dict]]:
    """
    Parse a stored document body into a block list.

    Args:
        value: JSON string, already-decoded list, or None

    Returns:
        List of block dicts, or None when absent or malformed
    """
    if value is None or value == "":
        return None

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")

    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (TypeError, ValueError) as e:
            logger.warning(f"[CONTENT_PARSER] Failed to parse stored content: {e}")
            return None

    if not isinstance(value, list):
        logger.warning(
            "[CONTENT_PARSER] Stored content is not a block list",
            extra={"content_type": type(value).__name__},
        )
        return None

    return value


def serialize_content(blocks: Optional[List[dict]]) -> Optional[str]:
    """
    Serialize a block list to its stored string form.

    Args:
        blocks: Block list or None

    Returns:
        JSON string, or None when there is no content
    """
    if blocks is None:
        return None
    return json.dumps(blocks, ensure_ascii=False)
