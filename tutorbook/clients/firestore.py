"""
Firestore REST client.

This module provides read-only access to the document database: the
organization-membership lookup used by user search and single-document
fetches used by the indexing pipeline.
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp
import backoff

from tutorbook.config.config import FirebaseConfig
from tutorbook.models.org import Org, decode_fields
from tutorbook.search.users import MembershipStore
from tutorbook.utils.errors import DocumentStoreError
from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)

FIRESTORE_URL = "https://firestore.googleapis.com/v1"


class FirestoreClient(MembershipStore):
    """Client for the Firestore REST API."""

    def __init__(self, config: FirebaseConfig):
        """
        Initialize the Firestore client.

        Args:
            config: Firebase configuration
        """
        if not config.project_id:
            raise ValueError("Firebase project_id is required")

        self.config = config
        self.documents_url = (
            f"{FIRESTORE_URL}/projects/{config.project_id}/databases/(default)/documents"
        )
        logger.info(f"Firestore client initialized for project: {config.project_id}")

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.access_token:
            headers["Authorization"] = f"Bearer {self.config.access_token}"
        return headers

    @backoff.on_exception(
        backoff.expo,
        aiohttp.ClientError,
        max_tries=3,
        jitter=backoff.full_jitter,
    )
    async def _request(
        self, method: str, url: str, payload: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make a request to the Firestore REST API.

        Returns:
            Decoded JSON body, or None for a missing document

        Raises:
            DocumentStoreError: If the request fails
        """
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(
                method, url, json=payload, headers=self._get_headers()
            ) as response:
                if response.status == 404:
                    return None

                if response.status >= 400:
                    body = await response.text()
                    logger.error(f"Firestore error: HTTP {response.status}: {body}")
                    raise DocumentStoreError(f"Firestore error: HTTP {response.status}")

                return await response.json()

    async def orgs_for_member(self, uid: str) -> List[Org]:
        """
        Fetch every organization whose ``members`` array contains ``uid``.

        Args:
            uid: User ID

        Returns:
            Organizations the user is a member of

        Raises:
            DocumentStoreError: If the query fails
        """
        structured_query = {
            "structuredQuery": {
                "from": [{"collectionId": self.config.orgs_collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": "members"},
                        "op": "ARRAY_CONTAINS",
                        "value": {"stringValue": uid},
                    }
                },
            }
        }

        try:
            rows = await self._request("POST", f"{self.documents_url}:runQuery", structured_query)
        except aiohttp.ClientError as e:
            raise DocumentStoreError(f"HTTP error: {e}")
        except asyncio.TimeoutError:
            raise DocumentStoreError("Request timed out")

        # Rows without a document only carry read metadata.
        orgs = [Org.from_firestore(row["document"]) for row in rows or [] if "document" in row]
        logger.debug(f"Got {len(orgs)} orgs for member {uid}")
        return orgs

    async def get_document(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a single document.

        Args:
            path: Document path relative to the database root, e.g. ``users/abc``

        Returns:
            Decoded document fields, or None when the document does not exist

        Raises:
            DocumentStoreError: If the request fails
        """
        try:
            document = await self._request("GET", f"{self.documents_url}/{path}")
        except aiohttp.ClientError as e:
            raise DocumentStoreError(f"HTTP error: {e}")
        except asyncio.TimeoutError:
            raise DocumentStoreError("Request timed out")

        if document is None:
            return None
        return decode_fields(document.get("fields", {}))
