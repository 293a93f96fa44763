"""
Helpers for reading JSON out of model replies.
"""

import re
import json
import hashlib
import logging
from typing import Optional, Any

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```json\n?([\s\S]*?)\n?```")
_BARE_FENCE = re.compile(r"```\n?([\s\S]*?)\n?```")
_OBJECT_BLOCK = re.compile(r"\{[\s\S]*\}")


def strip_code_fence(content: str) -> str:
    """
    Return the body of a ```json fence, else of a bare ``` fence,
    else the content unchanged.
    """
    match = _JSON_FENCE.search(content) or _BARE_FENCE.search(content)
    if match:
        return match.group(1)
    return content


# Failure marker for parse_fenced_json; distinct from a parsed JSON null
NOT_JSON = object()


def parse_fenced_json(content: str, default: Any = None) -> Any:
    """Parse JSON that may be wrapped in a markdown code fence; ``default`` on failure."""
    if not content:
        return default
    try:
        return json.loads(strip_code_fence(content).strip())
    except json.JSONDecodeError:
        return default


def extract_json_object(content: str) -> Optional[Any]:
    """
    Parse the span from the first ``{`` to the last ``}``.

    Returns None when there is no such span or it is not valid JSON.
    """
    if not content:
        return None
    match = _OBJECT_BLOCK.search(content)
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError:
        return None


def safe_log_content(content: str, max_chars: int = 120) -> str:
    """
    Create a safe log representation of content.

    Args:
        content: Content to log
        max_chars: Maximum characters to show

    Returns:
        Safe log string with length and hash
    """
    if not content:
        return "(empty)"

    content_hash = hashlib.sha256(content.encode()).hexdigest()[:12]
    preview = content[:max_chars].replace('\n', ' ')

    return f"len={len(content)} hash={content_hash} preview='{preview}...'"
