"""
Domain records shared by the search and indexing pipelines.
"""

from tutorbook.models.appt import Appt, Attendee
from tutorbook.models.base import Aspect, Option, Timeslot
from tutorbook.models.org import Org, decode_fields, decode_value
from tutorbook.models.user import Social, Subjects, User, Verification

__all__ = [
    "Appt",
    "Aspect",
    "Option",
    "Timeslot",
    "Attendee",
    "Org",
    "Social",
    "Subjects",
    "User",
    "Verification",
    "decode_fields",
    "decode_value",
]
