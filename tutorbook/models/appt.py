"""
Appointment records.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tutorbook.models.base import Timeslot


class Attendee(BaseModel):
    """A user taking part in an appointment."""

    model_config = ConfigDict(extra="allow")

    id: str
    handle: str = ""
    roles: List[str] = Field(default_factory=list)


class Appt(BaseModel):
    """A tutoring or mentoring appointment."""

    model_config = ConfigDict(extra="allow")

    id: str = ""
    subjects: List[str] = Field(default_factory=list)
    attendees: List[Attendee] = Field(default_factory=list)
    creator: Attendee
    message: str = ""
    time: Optional[Timeslot] = None

    def handles(self) -> List[str]:
        """The creator's handle followed by every attendee's handle."""
        return [self.creator.handle] + [attendee.handle for attendee in self.attendees]
