"""
Search engine for users.

This module runs one index query per compiled filter string, concurrently,
and merges the hits into a single list.
"""

import abc
import asyncio
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from tutorbook.models.user import User
from tutorbook.search.filter import get_filter_strings, get_optional_filter_strings
from tutorbook.search.query import UsersQuery
from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)


class SearchHit(BaseModel):
    """A search index record: its object ID plus whatever fields the index stores."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    object_id: str = Field(..., alias="objectID")


class SearchIndex(abc.ABC):
    """Read side of the hosted search index."""

    @abc.abstractmethod
    async def search(
        self,
        query: str,
        filters: Optional[str] = None,
        optional_filters: Optional[List[str]] = None,
    ) -> List[SearchHit]:
        """
        Search the index.

        Args:
            query: Free-text query (empty for pure filtering)
            filters: Filter string, omitted when None
            optional_filters: Ranking hints that never exclude hits

        Returns:
            Matching hits in index order
        """


@dataclass
class QueryOutcome:
    """Result of one index query: its hits, or the error that ended it."""

    filter_string: str
    hits: List[SearchHit] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def merge_hits(results: Iterable[Union[QueryOutcome, Sequence[SearchHit]]]) -> List[SearchHit]:
    """
    Merge per-query hit lists into one list, unique by object ID.

    Order is first-seen across the lists in the order given; later duplicates
    are dropped. Hits are not re-ranked across queries.

    Args:
        results: Query outcomes or plain hit lists, in issue order

    Returns:
        Merged hits
    """
    seen = set()
    merged: List[SearchHit] = []
    for result in results:
        hits = result.hits if isinstance(result, QueryOutcome) else result
        for hit in hits:
            if hit.object_id in seen:
                continue
            seen.add(hit.object_id)
            merged.append(hit)
    return merged


class SearchEngine:
    """
    Search engine for users.

    Failed queries are logged and contribute no hits; they never fail the
    search as a whole.
    """

    def __init__(self, index: SearchIndex, timeout: Optional[float] = None):
        """
        Initialize the search engine.

        Args:
            index: Search index to query
            timeout: Per-query timeout in seconds; None waits indefinitely
        """
        self.index = index
        self.timeout = timeout
        logger.info("Search engine initialized")

    async def _run_query(self, filter_string: str, optional_filters: List[str]) -> QueryOutcome:
        try:
            call = self.index.search("", filter_string or None, optional_filters)
            if self.timeout is not None:
                hits = await asyncio.wait_for(call, timeout=self.timeout)
            else:
                hits = await call
        except asyncio.TimeoutError as e:
            logger.error(f"Search timed out after {self.timeout} seconds (filters: {filter_string!r})")
            return QueryOutcome(filter_string=filter_string, error=e)
        except Exception as e:
            logger.error(f"Error while searching {filter_string!r}: {e}")
            return QueryOutcome(filter_string=filter_string, error=e)
        return QueryOutcome(filter_string=filter_string, hits=list(hits))

    async def execute(
        self, filter_strings: Sequence[str], optional_filters: List[str]
    ) -> List[QueryOutcome]:
        """
        Run one query per filter string concurrently.

        Every query completes (or fails) before this returns.

        Args:
            filter_strings: Compiled filter strings
            optional_filters: Ranking hints shared by every query

        Returns:
            One outcome per filter string, in the same order
        """
        return list(
            await asyncio.gather(
                *(self._run_query(filter_string, optional_filters) for filter_string in filter_strings)
            )
        )

    async def search_hits(self, query: UsersQuery) -> List[SearchHit]:
        """Compile, execute and merge ``query`` into a deduplicated hit list."""
        start_time = time.time()
        filter_strings = get_filter_strings(query)
        optional_filters = get_optional_filter_strings(query)
        logger.debug(
            "Filtering by: %s (optional: %s)", filter_strings, optional_filters
        )

        outcomes = await self.execute(filter_strings, optional_filters)
        failures = sum(1 for outcome in outcomes if outcome.failed)
        if failures:
            logger.warning("%d of %d search queries failed", failures, len(outcomes))

        hits = merge_hits(outcomes)
        logger.info(
            "Search completed with %d hits from %d queries in %.2f seconds",
            len(hits),
            len(outcomes),
            time.time() - start_time,
        )
        return hits

    async def search_users(self, query: UsersQuery) -> List[User]:
        """
        Search users matching ``query``.

        Args:
            query: Users search query

        Returns:
            Users hydrated from the merged hits, in merged order
        """
        users: List[User] = []
        for hit in await self.search_hits(query):
            try:
                users.append(User.from_search_hit(hit))
            except Exception as e:
                logger.error(f"Error converting hit {hit.object_id} to a user: {e}")
        return users
