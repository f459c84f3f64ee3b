"""Salvage JSON out of free-form LLM responses.

Models are asked for "JSON only" but regularly answer with markdown fences,
a sentence of preamble, or literal newlines inside string values. These
helpers strip all of that and parse the first JSON object or array found.
"""

import json
from typing import Any


def fix_json_control_chars(json_text: str) -> str:
    """Escape raw control characters that appear inside JSON string values.

    Args:
        json_text: Raw JSON text that may have unescaped control chars

    Returns:
        JSON text with control characters escaped in string values
    """
    result: list[str] = []
    in_string = False
    escape_next = False

    for char in json_text:
        if escape_next:
            result.append(char)
            escape_next = False
            continue

        if char == "\\" and in_string:
            result.append(char)
            escape_next = True
            continue

        if char == '"':
            in_string = not in_string
            result.append(char)
            continue

        if in_string and ord(char) < 32:
            if char == "\n":
                result.append("\\n")
            elif char == "\r":
                result.append("\\r")
            elif char == "\t":
                result.append("\\t")
            else:
                result.append(f"\\u{ord(char):04x}")
            continue

        result.append(char)

    return "".join(result)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.split("\n")[1:]
    if lines and lines[-1].strip() == "```":
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _slice_between(text: str, opener: str, closer: str) -> str | None:
    first = text.find(opener)
    if first == -1:
        return None
    last = text.rfind(closer)
    if last <= first:
        return None
    return text[first : last + 1]


def extract_json_object(response_text: str) -> dict[str, Any]:
    """Parse the first JSON object embedded in an LLM response.

    Raises:
        ValueError: If no JSON object can be located or parsed.
            ``json.JSONDecodeError`` is a subclass and may surface directly.
    """
    candidate = _slice_between(strip_code_fences(response_text), "{", "}")
    if candidate is None:
        raise ValueError("No JSON object found in response")
    parsed = json.loads(fix_json_control_chars(candidate))
    if not isinstance(parsed, dict):
        raise ValueError("Response JSON is not an object")
    return parsed


def extract_json_array(response_text: str) -> list[Any]:
    """Parse the first JSON array embedded in an LLM response.

    Raises:
        ValueError: If no JSON array can be located or parsed.
    """
    candidate = _slice_between(strip_code_fences(response_text), "[", "]")
    if candidate is None:
        raise ValueError("No JSON array found in response")
    parsed = json.loads(fix_json_control_chars(candidate))
    if not isinstance(parsed, list):
        raise ValueError("Response JSON is not an array")
    return parsed


def parse_json_value(response_text: str) -> Any:
    """Parse a whole response as JSON after fence stripping.

    Unlike the extract helpers this does not hunt for an embedded value, so
    prose answers raise ``ValueError``.
    """
    return json.loads(fix_json_control_chars(strip_code_fences(response_text)))
