"""Key normalization for analytics payloads.

Analytics dashboards display property names as they are sent, so nested
event data is turned into a single-level mapping with readable keys:

    {"person": {"firstName": "John", "ETCHER_FLAG": True}}

becomes

    {"Person First Name": "John", "Person ETCHER_FLAG": True}
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

# Keys that look like environment variables are never reworded
ENVIRONMENT_VARIABLE_KEY = re.compile(r"^[A-Z_]+$")

# Splits on anything that is not a letter or digit, underscores included
_SEPARATORS = re.compile(r"[\W_]+")

# Words within a separator-free chunk: acronyms followed by a capitalized
# word, capitalized or lowercase words, bare acronyms, and digit runs
_WORDS = re.compile(r"[A-Z]+(?=[A-Z][^\W\d_A-Z])|[A-Z]?[^\W\d_A-Z]+|[A-Z]+|\d+")

KEY_DELIMITER = " "


def words(key: str) -> List[str]:
    """Split an identifier into its words.

    Examples:
        >>> words("firstName")
        ['first', 'Name']
        >>> words("XMLHttpRequest")
        ['XML', 'Http', 'Request']
        >>> words("1key")
        ['1', 'key']
    """
    result: List[str] = []
    for chunk in _SEPARATORS.split(key):
        result.extend(_WORDS.findall(chunk))
    return result


def start_case(key: str) -> str:
    """Convert an identifier to start case.

    Examples:
        >>> start_case("streetNumber")
        'Street Number'
        >>> start_case("snake_case_key")
        'Snake Case Key'
        >>> start_case("Start Case Key")
        'Start Case Key'
    """
    return " ".join(word[0].upper() + word[1:] for word in words(key))


def normalize_key(key: Any) -> str:
    """Start-case a key, keeping segments that look like environment variables.

    Each space-separated segment is handled on its own, so keys produced by
    flattening (``Foo FOO_BAR_BAZ``) normalize to themselves.

    Examples:
        >>> normalize_key("ETCHER_DISABLE_UPDATES")
        'ETCHER_DISABLE_UPDATES'
        >>> normalize_key("Foo FOO_BAR_BAZ")
        'Foo FOO_BAR_BAZ'
    """
    segments = []
    for segment in str(key).split(KEY_DELIMITER):
        if ENVIRONMENT_VARIABLE_KEY.match(segment):
            segments.append(segment)
        elif segment:
            segments.append(start_case(segment))
    return KEY_DELIMITER.join(segment for segment in segments if segment)


def _normalize_sequence(values: Any) -> List[Any]:
    return [
        normalize(value) if isinstance(value, Mapping) else value
        for value in values
    ]


def _flatten_into(
    result: Dict[str, Any],
    mapping: Mapping,
    prefix: Optional[str],
) -> None:
    for key, value in mapping.items():
        name = normalize_key(key)
        if prefix is not None:
            name = f"{prefix}{KEY_DELIMITER}{name}"

        if isinstance(value, Mapping) and value:
            _flatten_into(result, value, name)
        elif isinstance(value, (list, tuple)):
            result[name] = _normalize_sequence(value)
        else:
            result[name] = value


def normalize(value: Any) -> Any:
    """Prepare a value for the analytics backend.

    Rules:
    - Scalars, ``None`` included, are wrapped as ``{"Value": value}``
    - Lists keep their length and order; mapping elements are normalized on
      their own, everything else (nested lists included) is left as is
    - Mappings get every key start-cased (environment-variable-like keys are
      kept) and are flattened to one level, joining key paths with spaces

    Args:
        value: The data to normalize.

    Returns:
        The normalized data.

    Example:
        >>> normalize({"person": {"firstName": "John", "address": {"streetNumber": 13}}})
        {'Person First Name': 'John', 'Person Address Street Number': 13}
    """
    if isinstance(value, (list, tuple)):
        return _normalize_sequence(value)

    if not isinstance(value, Mapping):
        value = {"Value": value}

    result: Dict[str, Any] = {}
    _flatten_into(result, value, None)
    return result
