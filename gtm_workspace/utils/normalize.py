"""Small value normalizers shared by the shim, the reconciler and schemas."""

import re
from typing import Any


def clean_text(value: Any) -> str:
    """Return a trimmed string; non-strings become empty."""
    if isinstance(value, str):
        return value.strip()
    return ""


def clean_string_list(values: Any) -> list[str]:
    """Drop null, non-string and blank entries, trimming the survivors.

    Relative order of the surviving entries is preserved. Duplicates are
    kept. A bare string is treated as a one-item list.

    Args:
        values: Incoming list (or scalar) from a payload.

    Returns:
        List of non-blank trimmed strings.
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        return []
    return [item.strip() for item in values if isinstance(item, str) and item.strip()]


def natural_key(value: Any) -> str:
    """Case-insensitive, whitespace-collapsed key used for identity matching."""
    return re.sub(r"\s+", " ", clean_text(value)).lower()


def slugify(name: str, max_length: int = 60) -> str:
    """Convert a display name to a URL-safe slug.

    Lowercase, replaces spaces/special chars with hyphens, strips leading/
    trailing hyphens, collapses consecutive hyphens, truncates to max_length.

    Example:
        >>> slugify("Acme Corp")
        'acme-corp'
    """
    slug = name.strip().lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[\s-]+", "-", slug)
    slug = slug.strip("-")
    if len(slug) > max_length:
        slug = slug[:max_length].rstrip("-")
    return slug or "workspace"
