"""
Algolia REST client.

This module provides the client for querying and updating the hosted search
index over Algolia's REST API.
"""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp
import backoff

from tutorbook.config.config import AlgoliaConfig
from tutorbook.search.engine import SearchHit, SearchIndex
from tutorbook.utils.errors import ErrorCode, SearchIndexError
from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)


class AlgoliaClient(SearchIndex):
    """
    Client for a single Algolia index.

    Searches go to the read-optimized DSN host with the search-only key;
    writes (used by the indexing pipeline) go to the main host with the
    admin key.
    """

    def __init__(self, config: AlgoliaConfig, index_name: Optional[str] = None):
        """
        Initialize the Algolia client.

        Args:
            config: Algolia configuration
            index_name: Index to target (defaults to the configured users index)
        """
        if not config.app_id or not config.search_key:
            raise ValueError("Algolia app_id and search_key are required")

        self.config = config
        self.index_name = index_name or config.index_name
        if not self.index_name:
            raise ValueError("Algolia index name is required")

        self.read_url = f"https://{config.app_id}-dsn.algolia.net/1/indexes/{quote(self.index_name)}"
        self.write_url = f"https://{config.app_id}.algolia.net/1/indexes/{quote(self.index_name)}"
        self._request = backoff.on_exception(
            backoff.expo,
            aiohttp.ClientError,
            max_tries=max(config.max_retries, 1),
            jitter=backoff.full_jitter,
        )(self._request)
        logger.info(f"Algolia client initialized for index: {self.index_name}")

    def for_index(self, index_name: str) -> "AlgoliaClient":
        """A client for another index of the same application."""
        return AlgoliaClient(self.config, index_name=index_name)

    def _get_headers(self, write: bool = False) -> Dict[str, str]:
        if write and not self.config.admin_key:
            raise SearchIndexError("An Algolia admin key is required to update the index")
        return {
            "Content-Type": "application/json",
            "X-Algolia-Application-Id": self.config.app_id,
            "X-Algolia-API-Key": self.config.admin_key if write else self.config.search_key,
        }

    async def _request(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        write: bool = False,
    ) -> Dict[str, Any]:
        """
        Make a request to the Algolia REST API.

        Raises:
            SearchIndexError: If the request fails or the API key is rejected
        """
        headers = self._get_headers(write=write)

        # Unset search_timeout means no deadline at all, not aiohttp's 300 s default.
        timeout = aiohttp.ClientTimeout(total=self.config.search_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(method, url, json=payload, headers=headers) as response:
                if response.status in (401, 403):
                    logger.error(f"Algolia rejected the API key: HTTP {response.status}")
                    raise SearchIndexError(
                        "Invalid Algolia credentials", code=ErrorCode.SEARCH_INDEX_UNAUTHORIZED
                    )

                if response.status >= 400:
                    body = await response.text()
                    logger.error(f"Algolia error: HTTP {response.status}: {body}")
                    raise SearchIndexError(f"Algolia error: HTTP {response.status}: {body}")

                return await response.json()

    async def search(
        self,
        query: str,
        filters: Optional[str] = None,
        optional_filters: Optional[List[str]] = None,
    ) -> List[SearchHit]:
        """
        Query the index.

        Args:
            query: Free-text query
            filters: Filter string, omitted when None
            optional_filters: Ranking hints

        Returns:
            Hits in index order
        """
        payload: Dict[str, Any] = {"query": query}
        if filters:
            payload["filters"] = filters
        if optional_filters:
            payload["optionalFilters"] = optional_filters

        try:
            data = await self._request("POST", f"{self.read_url}/query", payload)
        except aiohttp.ClientError as e:
            raise SearchIndexError(f"HTTP error: {e}")
        except asyncio.TimeoutError:
            raise SearchIndexError("Request timed out")

        return [SearchHit.model_validate(hit) for hit in data.get("hits", [])]

    async def save_object(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Create or replace the record keyed by ``obj["objectID"]``."""
        object_id = obj["objectID"]
        return await self._request(
            "PUT", f"{self.write_url}/{quote(str(object_id), safe='')}", obj, write=True
        )

    async def delete_object(self, object_id: str) -> Dict[str, Any]:
        """Delete the record keyed by ``object_id``."""
        return await self._request(
            "DELETE", f"{self.write_url}/{quote(object_id, safe='')}", write=True
        )

    async def set_settings(self, settings: Dict[str, Any]) -> Dict[str, Any]:
        """Update index settings (e.g. ``attributesForFaceting``)."""
        return await self._request("PUT", f"{self.write_url}/settings", settings, write=True)
