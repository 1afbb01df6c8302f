"""Input validation shared by repositories and services."""
from typing import Optional

from bson import ObjectId

from matchday.core.errors import InvalidScope, NotFound


def validate_scope(scope: Optional[str]) -> Optional[str]:
    """
    Check that a scope can be used as a key in ``scoped_balances``.

    Rules:
    - None means unscoped
    - must be non-empty
    - no '.' and no leading '$' (Mongo field path rules)
    """
    if scope is None:
        return None
    if not isinstance(scope, str) or not scope.strip():
        raise InvalidScope("Scope must be a non-empty string")
    if "." in scope or scope.startswith("$") or "\x00" in scope:
        raise InvalidScope(f"Scope contains forbidden characters: {scope!r}")
    return scope


def object_id(value: str, kind: str) -> ObjectId:
    """Parse an id; malformed ids are reported as not found."""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise NotFound(kind, str(value))
    return ObjectId(value)
