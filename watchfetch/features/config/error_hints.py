"""Remediation hints shown next to watch configuration errors."""

from typing import Final


DEFAULT_HINT: Final = "See the watch file reference for accepted values."

# Keyed by pydantic error type, plus the loader's own file/yaml error types
ERROR_HINTS: Final[dict[str, str]] = {
    "missing": "Add this key; it has no default.",
    "extra_forbidden": "Remove this key or fix its spelling; unknown keys are rejected.",
    "float_type": "Use a number such as 10 or 2.5.",
    "float_parsing": "Use a number such as 10 or 2.5.",
    "int_type": "Use a whole number.",
    "int_parsing": "Use a whole number.",
    "string_type": (
        "Quote the value. Unquoted yes, no, on, off and numbers are not text in YAML."
    ),
    "bool_type": "Use true or false.",
    "bool_parsing": "Use true or false.",
    "list_type": "Use a YAML list (lines starting with '- ').",
    "dict_type": "Use a YAML mapping of names to values.",
    "greater_than": "Raise the value above the minimum.",
    "greater_than_equal": "Raise the value to at least the minimum.",
    "less_than_equal": "Lower the value to at most the maximum.",
    "string_too_short": "Provide a non-empty value.",
    "string_too_long": "Shorten the value.",
    "string_pattern_mismatch": "Only lowercase letters, digits, '-' and '_' are allowed.",
    "value_error": "Fix the value as described in the message.",
    "file_not_found": "Check the path passed to --config.",
    "encoding_error": "Save the file as UTF-8.",
    "yaml_parse_error": "Fix the YAML syntax; check indentation and unclosed brackets.",
}

# Wrong YAML type; reported with the error type hint even on hinted fields
_TYPE_ERRORS: Final = frozenset({"string_type", "bool_type", "int_type", "float_type"})

# Keyed by the last segment of the error location
FIELD_HINTS: Final[dict[str, str]] = {
    "id": "Source ids are slugs such as 'petstore-api' and must be unique.",
    "input": "Use an http(s) URL or a file path (e.g., 'https://example.com/openapi.json').",
    "headers": "Map header names to values; put credentials in the environment instead.",
    "timeout_seconds": "Must be greater than 0 and at most 300 seconds.",
    "default_timeout_seconds": "Must be greater than 0 and at most 300 seconds.",
    "max_response_size_bytes": "Must be between 1024 and 104857600 bytes.",
    "version": "Use a 'major.minor' string such as \"1.0\".",
}


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Pick the most specific hint for an error.

    Field hints win over error type hints, except for type errors.

    Args:
        error_type: Pydantic error type or loader error type.
        field_name: Dotted error location such as ``sources.0.id``.

    Returns:
        Hint text.
    """
    leaf = field_name.rsplit(".", 1)[-1] if field_name else None
    if leaf in FIELD_HINTS and error_type not in _TYPE_ERRORS:
        return FIELD_HINTS[leaf]
    return ERROR_HINTS.get(error_type, DEFAULT_HINT)


def format_validation_error(
    location: str,
    message: str,
    error_type: str,
    *,
    include_hint: bool = True,
) -> str:
    """Render one error as ``location: message`` with an indented hint line."""
    line = f"{location}: {message}"
    if not include_hint:
        return line
    return f"{line}\n    Hint: {get_error_hint(error_type, location)}"
