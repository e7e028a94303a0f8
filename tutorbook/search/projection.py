"""
Visibility and ownership projection of user records.

Users see the full record of anyone who is visible or who belongs to one of
their organizations. Everyone else is reduced to non-sensitive fields, with
the name cut down to a first name and last initial.
"""

from typing import Any, Collection, Dict, List, Union

from pydantic import BaseModel, Field

from tutorbook.models.base import Timeslot
from tutorbook.models.user import Social, Subjects, User


def only_first_name_and_last_initial(name: str) -> str:
    """
    Reduce a full name to its first token and the initial of its last token.

    A single-token name is both first and last name, so ``"Madonna"`` becomes
    ``"Madonna M."``. A blank name stays blank.

    Example:
        >>> only_first_name_and_last_initial("Nicholas Chiang")
        'Nicholas C.'
    """
    tokens = name.split()
    if not tokens:
        return ""
    return f"{tokens[0]} {tokens[-1][0]}."


class FullUserView(BaseModel):
    """The whole user record, contact fields included."""

    user: User

    def to_json(self) -> Dict[str, Any]:
        return self.user.to_json()


class TruncatedUserView(BaseModel):
    """The non-sensitive subset of a user record."""

    id: str
    name: str
    photo: str = ""
    bio: str = ""
    orgs: List[str] = Field(default_factory=list)
    availability: List[Timeslot] = Field(default_factory=list)
    mentoring: Subjects = Field(default_factory=Subjects)
    tutoring: Subjects = Field(default_factory=Subjects)
    socials: List[Social] = Field(default_factory=list)
    langs: List[str] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user: User) -> "TruncatedUserView":
        return cls(
            id=user.id,
            name=only_first_name_and_last_initial(user.name),
            photo=user.photo,
            bio=user.bio,
            orgs=list(user.orgs),
            availability=list(user.availability),
            mentoring=user.mentoring,
            tutoring=user.tutoring,
            socials=list(user.socials),
            langs=list(user.langs),
        )

    def to_json(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["availability"] = [timeslot.to_json() for timeslot in self.availability]
        return data


UserView = Union[FullUserView, TruncatedUserView]


def is_member(user: User, org_ids: Collection[str]) -> bool:
    """Whether any organization the user lists is one of ``org_ids``."""
    return any(org in org_ids for org in user.orgs)


def project_user(user: User, org_ids: Collection[str]) -> UserView:
    """
    Project a user record for a caller belonging to ``org_ids``.

    Args:
        user: Full user record
        org_ids: IDs of the organizations the caller is a member of

    Returns:
        Full view when the user is visible or shares an organization with the
        caller, truncated view otherwise
    """
    if user.visible or is_member(user, org_ids):
        return FullUserView(user=user)
    return TruncatedUserView.from_user(user)
