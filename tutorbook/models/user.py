"""
User records.

This module provides the full user record as stored in the document database
and mirrored (in part) by the search index.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tutorbook.models.base import TRUE_STRINGS, Aspect, Timeslot


class Subjects(BaseModel):
    """What a user can teach (``subjects``) and wants to learn (``searches``)."""

    subjects: List[str] = Field(default_factory=list)
    searches: List[str] = Field(default_factory=list)


class Social(BaseModel):
    """A link to one of the user's profiles elsewhere."""

    type: str
    url: str


class Verification(BaseModel):
    """A background check performed on a user by an organization."""

    model_config = ConfigDict(extra="allow")

    user: str = ""
    org: str = ""
    checks: List[str] = Field(default_factory=list)
    notes: str = ""


class User(BaseModel):
    """Full user record, including sensitive contact fields."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""
    photo: str = ""
    bio: str = ""
    orgs: List[str] = Field(default_factory=list)
    availability: List[Timeslot] = Field(default_factory=list)
    mentoring: Subjects = Field(default_factory=Subjects)
    tutoring: Subjects = Field(default_factory=Subjects)
    socials: List[Social] = Field(default_factory=list)
    langs: List[str] = Field(default_factory=list)
    parents: List[str] = Field(default_factory=list)
    verifications: List[Verification] = Field(default_factory=list)
    visible: bool = False
    featured: List[Aspect] = Field(default_factory=list)

    @field_validator("visible", mode="before")
    @classmethod
    def coerce_visible(cls, v: Any) -> bool:
        # The index stores visibility as a boolean, a number or a string.
        if isinstance(v, str):
            return v.strip().lower() in TRUE_STRINGS
        return bool(v)

    @classmethod
    def from_search_hit(cls, hit: Any) -> "User":
        """
        Hydrate a user from a search index hit.

        The index stores availability as epoch milliseconds and keys the
        record by ``objectID``.

        Args:
            hit: Search hit (model or raw dictionary)

        Returns:
            User record carrying whatever fields the index stores
        """
        data: Dict[str, Any] = hit.model_dump(by_alias=True) if hasattr(hit, "model_dump") else dict(hit)
        data["id"] = data.pop("objectID", None) or data.get("id", "")
        data.pop("_tags", None)
        data.pop("_highlightResult", None)
        return cls.model_validate(data)

    def to_json(self) -> Dict[str, Any]:
        """Serialize the whole record for an API response."""
        data = self.model_dump(mode="json")
        data["availability"] = [timeslot.to_json() for timeslot in self.availability]
        return data
