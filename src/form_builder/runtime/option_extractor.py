"""Option extraction from remote option-source responses.

Turns an arbitrary JSON payload into a list of ``FieldOption`` pairs. The
functions here are pure and total: malformed input degrades to an empty (or
shorter) list, never an exception.
"""

from typing import Any, List, Optional, Sequence

from form_builder.schemas.form import FieldOption

DEFAULT_LABEL_KEYS = ("label", "name", "title")
DEFAULT_VALUE_KEYS = ("value", "id", "code")

_MISSING = object()


def _step(node: Any, key: str) -> Any:
    """Resolve a single path segment, returning _MISSING when absent."""
    if isinstance(node, dict):
        value = node.get(key, _MISSING)
    elif isinstance(node, list):
        if not (key.isascii() and key.isdigit()):
            return _MISSING
        index = int(key)
        if index >= len(node):
            return _MISSING
        value = node[index]
    else:
        return _MISSING

    if value is None:
        return _MISSING
    return value


def _resolve(obj: Any, path: str) -> Any:
    node = obj
    for key in path.split("."):
        node = _step(node, key)
        if node is _MISSING:
            return _MISSING
    return node


def get_nested_value(obj: Any, path: str) -> Optional[Any]:
    """Look up a dot-separated path in nested dicts/lists.

    Args:
        obj: Nested structure to read from
        path: Dot-separated keys, e.g. ``"data.items"``; integer segments
            index into lists

    Returns:
        The resolved value, or None when any segment is absent
    """
    value = _resolve(obj, path)
    return None if value is _MISSING else value


def _first_present(item: dict, keys: Sequence[str]) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return _MISSING


def _to_text(value: Any) -> str:
    if value is _MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _map_item(item: Any, label_key: Optional[str], value_key: Optional[str]) -> Optional[FieldOption]:
    """Map one response element to an option, or None to skip it."""
    if isinstance(item, str):
        return FieldOption(label=item, value=item)

    if isinstance(item, (bool, int, float)):
        text = _to_text(item)
        return FieldOption(label=text, value=text)

    if not isinstance(item, dict):
        return None

    label = _resolve(item, label_key) if label_key else _first_present(item, DEFAULT_LABEL_KEYS)
    value = _resolve(item, value_key) if value_key else _first_present(item, DEFAULT_VALUE_KEYS)
    return FieldOption(label=_to_text(label), value=_to_text(value))


def extract_options(
    response: Any,
    path: Optional[str] = None,
    label_key: Optional[str] = None,
    value_key: Optional[str] = None,
) -> List[FieldOption]:
    """Extract ``{label, value}`` options from a remote response.

    Args:
        response: Parsed JSON payload (may be None)
        path: Optional dot path to the list of items inside the response
        label_key: Optional dot path to the label inside each item; defaults
            to the first present of ``label``, ``name``, ``title``
        value_key: Optional dot path to the value inside each item; defaults
            to the first present of ``value``, ``id``, ``code``

    Returns:
        Options in response order. Empty when the response is missing, the
        path does not resolve, or the resolved node is not a list.
    """
    if response is None:
        return []

    data = response
    if path:
        data = _resolve(response, path)
        if data is _MISSING:
            return []

    if not isinstance(data, list):
        return []

    options = []
    for item in data:
        option = _map_item(item, label_key, value_key)
        if option is not None:
            options.append(option)
    return options
