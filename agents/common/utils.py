"""Shared utility functions for agents."""

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def parse_json_response(response: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a JSON object out of model output.

    Tries, in order: the whole text, a fenced code block, then the outermost
    {...} span.

    Args:
        response: Raw model output

    Returns:
        Parsed dict, or None when no JSON object can be recovered
    """
    if not response or not response.strip():
        return None

    candidates = [response.strip()]
    fenced = _FENCED_BLOCK.search(response)
    if fenced:
        candidates.append(fenced.group(1).strip())
    span = _OBJECT_SPAN.search(response)
    if span:
        candidates.append(span.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.warning("Response is not valid JSON")
    return None


def format_section(title: str, data: Any) -> str:
    """Render a labelled prompt section, using 'Not provided' for empty values."""
    if data is None or data == "" or data == [] or data == {}:
        return f"{title}: Not provided"
    if isinstance(data, (dict, list)):
        return f"{title}: {json.dumps(data, indent=2, default=str)}"
    return f"{title}: {data}"


def or_default(value: Any, default: str = "Not specified") -> Any:
    return value if value not in (None, "") else default


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
