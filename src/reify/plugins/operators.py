"""
Apply deferred operators ($inc, $dec, $push, $pull, $addToSet, $default)
to stored values.

The engine leaves these operators in their wire shape; storage-backed
handlers call `apply_operators` to merge an update into an existing record.
"""

from typing import Any, Dict

from ..values import is_operator


def apply_operator(current: Any, operator: Dict[str, Any]) -> Any:
    """
    Apply one operator to the current value of a field.

    Example:
        >>> apply_operator(5, {"$inc": 2})
        7
        >>> apply_operator(["a"], {"$addToSet": ["a", "b"]})
        ['a', 'b']
    """
    (name, value), = operator.items()

    if name == "$inc":
        return (current or 0) + value
    if name == "$dec":
        return (current or 0) - value
    if name == "$default":
        return value if current is None else current

    items = current if isinstance(current, list) else []
    values = value if isinstance(value, list) else [value]

    if name == "$push":
        return items + values
    if name == "$pull":
        return [item for item in items if item not in values]
    if name == "$addToSet":
        result = list(items)
        for item in values:
            if item not in result:
                result.append(item)
        return result

    # Unknown operator: treat the payload as a plain value
    return value


def apply_operators(existing: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge `updates` into a copy of `existing`, applying operator markers.

    Example:
        >>> apply_operators({"id": "1", "count": 5, "name": "a"},
        ...                 {"count": {"$inc": 1}, "name": "b"})
        {'id': '1', 'count': 6, 'name': 'b'}
    """
    result = dict(existing)
    for key, value in updates.items():
        if is_operator(value):
            result[key] = apply_operator(existing.get(key), value)
        else:
            result[key] = value
    return result


def strip_operators(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply operators against an empty record, for create-style writes."""
    return apply_operators({}, data)
