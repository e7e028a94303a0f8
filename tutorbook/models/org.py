"""
Organization records.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from tutorbook.utils.errors import DocumentStoreError


def decode_value(value: Dict[str, Any]) -> Any:
    """
    Decode a Firestore REST ``Value`` into a plain Python value.

    Args:
        value: Firestore value, e.g. ``{"stringValue": "abc"}``

    Returns:
        Decoded value
    """
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return value["booleanValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    if "nullValue" in value:
        return None
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "referenceValue" in value:
        return value["referenceValue"]
    raise DocumentStoreError(f"Unsupported Firestore value: {list(value)}")


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Decode every field of a Firestore document."""
    return {key: decode_value(value) for key, value in fields.items()}


class Org(BaseModel):
    """An organization that users and appointments may belong to."""

    id: str
    name: str = ""
    members: List[str] = Field(default_factory=list)
    email: Optional[str] = None

    @classmethod
    def from_firestore(cls, document: Dict[str, Any]) -> "Org":
        """
        Build an organization from a Firestore REST document.

        Args:
            document: Document with ``name`` (full resource path) and ``fields``

        Returns:
            Organization whose ID is the last path segment
        """
        org_id = document["name"].rsplit("/", 1)[-1]
        fields = decode_fields(document.get("fields", {}))
        return cls(
            id=org_id,
            name=fields.get("name", ""),
            members=fields.get("members", []),
            email=fields.get("email"),
        )
