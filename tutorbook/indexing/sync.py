"""
Search index synchronization.

This module mirrors user and appointment documents into the search index.
Availability is stored as epoch milliseconds so the index can compare it
numerically, and derived attributes (tags, handles, orgs) are computed here,
at indexing time, so they can be filtered on at search time.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional, Set

from tutorbook.clients.algolia import AlgoliaClient
from tutorbook.clients.firestore import FirestoreClient
from tutorbook.models.appt import Appt
from tutorbook.models.base import Timeslot
from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)

NOT_VETTED = "not-vetted"

# Visibility is a boolean, which the index filters on without faceting.
USER_FILTERABLE_ATTRIBUTES = [
    "orgs",
    "parents",
    "availability",
    "mentoring.subjects",
    "mentoring.searches",
    "tutoring.subjects",
    "tutoring.searches",
    "verifications.checks",
    "langs",
    "featured",
]

APPT_FILTERABLE_ATTRIBUTES = ["handles", "orgs"]


def timeslot_to_index(value: Any) -> Dict[str, int]:
    """Convert a timeslot (model or raw mapping) to its epoch-millisecond form."""
    timeslot = value if isinstance(value, Timeslot) else Timeslot.model_validate(value)
    return timeslot.to_index()


def user_tags(data: Dict[str, Any]) -> List[str]:
    """Tags computed at indexing time for otherwise impossible queries."""
    tags: List[str] = []
    if not data.get("verifications"):
        tags.append(NOT_VETTED)
    return tags


def user_index_object(uid: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the search index record for a user document.

    Args:
        uid: User ID (becomes the ``objectID``)
        data: User document fields

    Returns:
        Index record
    """
    return {
        **data,
        "availability": [timeslot_to_index(t) for t in data.get("availability") or []],
        "visible": bool(data.get("visible")),
        "_tags": user_tags(data),
        "objectID": uid,
    }


def appt_index_object(appt_id: str, data: Dict[str, Any], orgs: Iterable[str]) -> Dict[str, Any]:
    """
    Build the search index record for an appointment document.

    Args:
        appt_id: Appointment ID (becomes the ``objectID``)
        data: Appointment document fields
        orgs: Organization IDs of every attendee

    Returns:
        Index record
    """
    appt = Appt.model_validate({**data, "id": appt_id})
    return {
        **data,
        "time": timeslot_to_index(data["time"]) if data.get("time") else None,
        "handles": appt.handles(),
        "orgs": sorted(set(orgs)),
        "objectID": appt_id,
    }


class Indexer:
    """Shared save/delete/settings flow; backend errors are logged, never raised."""

    filterable_attributes: List[str] = []

    def __init__(self, client: AlgoliaClient):
        self.client = client

    async def _delete(self, object_id: str) -> None:
        logger.debug(f"Deleting {object_id} from {self.client.index_name}...")
        try:
            await self.client.delete_object(object_id)
        except Exception as e:
            logger.error(f"{type(e).__name__} while deleting {object_id}: {e}")
        else:
            logger.debug(f"Deleted {object_id}.")

    async def _save(self, obj: Dict[str, Any]) -> None:
        logger.debug(f"Updating {obj['objectID']} in {self.client.index_name}...")
        try:
            await self.client.save_object(obj)
        except Exception as e:
            logger.error(f"{type(e).__name__} while updating {obj['objectID']}: {e}")
        else:
            logger.debug(f"Updated {obj['objectID']}.")

    async def update_settings(self) -> None:
        """Mark every filterable attribute as filter-only in the index settings."""
        settings = {
            "attributesForFaceting": [f"filterOnly({attr})" for attr in self.filterable_attributes]
        }
        try:
            await self.client.set_settings(settings)
        except Exception as e:
            logger.error(f"{type(e).__name__} while updating {self.client.index_name} settings: {e}")
        else:
            logger.debug(f"Updated search index ({self.client.index_name}) settings.")


class UserIndexer(Indexer):
    """Mirrors user documents into the users index."""

    filterable_attributes = USER_FILTERABLE_ATTRIBUTES

    async def update(
        self, uid: str, data: Optional[Dict[str, Any]], push_settings: bool = True
    ) -> None:
        """
        Sync one user document.

        Args:
            uid: User ID
            data: Document fields, or None when the document was deleted
            push_settings: Push the index settings afterwards; backfills
                pass False and call ``update_settings`` once at the end
        """
        if data is None:
            await self._delete(uid)
        else:
            await self._save(user_index_object(uid, data))
        if push_settings:
            await self.update_settings()


class ApptIndexer(Indexer):
    """Mirrors appointment documents into the appointments index."""

    filterable_attributes = APPT_FILTERABLE_ATTRIBUTES

    def __init__(self, client: AlgoliaClient, store: FirestoreClient, partition: str = "default"):
        super().__init__(client)
        self.store = store
        self.partition = partition

    async def attendee_orgs(self, data: Dict[str, Any]) -> Set[str]:
        """
        Collect the organizations of every attendee.

        Missing attendees are logged and skipped; lookup errors are logged and
        the orgs collected so far are kept.
        """
        ids: Set[str] = set()

        async def collect(attendee_id: str) -> None:
            try:
                doc = await self.store.get_document(
                    f"partitions/{self.partition}/users/{attendee_id}"
                )
            except Exception as e:
                logger.warning(f"Could not fetch attendee ({attendee_id}): {e}")
                return
            if doc is None:
                logger.warning(f"Attendee ({attendee_id}) doesn't exist.")
                return
            ids.update(doc.get("orgs") or [])

        await asyncio.gather(*(collect(a["id"]) for a in data.get("attendees") or []))
        return ids

    async def update(
        self, appt_id: str, data: Optional[Dict[str, Any]], push_settings: bool = True
    ) -> None:
        """
        Sync one appointment document.

        Args:
            appt_id: Appointment ID
            data: Document fields, or None when the document was deleted
            push_settings: Push the index settings afterwards
        """
        if data is None:
            await self._delete(appt_id)
        else:
            orgs = await self.attendee_orgs(data)
            logger.debug(f"Got orgs for appt ({appt_id}): {sorted(orgs)}")
            await self._save(appt_index_object(appt_id, data, orgs))
        if push_settings:
            await self.update_settings()
