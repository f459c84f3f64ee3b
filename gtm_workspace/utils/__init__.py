"""Utility modules for the application.

This package contains shared utility functions and classes.
"""

from gtm_workspace.utils.llm_json import (
    extract_json_array,
    extract_json_object,
    fix_json_control_chars,
    parse_json_value,
    strip_code_fences,
)
from gtm_workspace.utils.normalize import (
    clean_string_list,
    clean_text,
    natural_key,
    slugify,
)

__all__ = [
    # LLM JSON salvage
    "extract_json_array",
    "extract_json_object",
    "fix_json_control_chars",
    "parse_json_value",
    "strip_code_fences",
    # Normalizers
    "clean_string_list",
    "clean_text",
    "natural_key",
    "slugify",
]
