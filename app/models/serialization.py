"""
app/models/serialization.py

Purpose: Make Mongo documents JSON friendly

- ObjectId -> str, recursively through dicts and lists
- Optional removal of sensitive keys
"""

from typing import Any, Iterable

from bson import ObjectId


def serialize_doc(value: Any, exclude: Iterable[str] = ()) -> Any:
    """
    Recursively converts ObjectIds to strings.

    Args:
        value: Document, list or scalar
        exclude: Top-level keys to drop from a document

    Returns:
        JSON-safe copy (datetimes are left for the response encoder)
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        excluded = set(exclude)
        return {k: serialize_doc(v) for k, v in value.items() if k not in excluded}
    if isinstance(value, (list, tuple)):
        return [serialize_doc(v) for v in value]
    return value


def to_object_id(value: Any):
    """Parses a string id, returning None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None
