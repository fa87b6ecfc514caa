"""
Nested value lookup for integration responses.

API responses rarely put the interesting value at the top level; Open-Meteo,
for example, returns {"current_weather": {"temperature": 28.5, ...}}. The
integration node searches for each output variable a few levels down.
"""

from typing import Any, Dict, List


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


# Returned when a key is not found; None is a legitimate JSON value
MISSING = _Missing()


def is_number(value: Any) -> bool:
    """True for int and float, False for bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def collect_values(data: Dict[str, Any], key: str, max_depth: int = 2, depth: int = 0) -> List[Any]:
    """
    Collect every value stored under `key`, shallowest level first.

    Only nested dicts are descended into; lists are left alone.
    """
    candidates = []
    if key in data:
        candidates.append(data[key])

    if depth >= max_depth:
        return candidates

    for value in data.values():
        if isinstance(value, dict):
            candidates.extend(collect_values(value, key, max_depth, depth + 1))
    return candidates


def find_value(data: Dict[str, Any], key: str, max_depth: int = 2) -> Any:
    """
    Find a value for `key` in a nested mapping.

    When several levels hold the key, a numeric value wins over any other
    kind; otherwise the shallowest value is returned.

    Args:
        data: Decoded JSON object
        key: Field name to look for
        max_depth: How many nested levels below the top one to search

    Returns:
        The value found, or MISSING
    """
    candidates = collect_values(data, key, max_depth)
    for candidate in candidates:
        if is_number(candidate):
            return candidate
    if candidates:
        return candidates[0]
    return MISSING
