"""
List-users service.

This module ties the search engine to caller identity: it searches users,
resolves which organizations the caller belongs to, and projects every
result accordingly.
"""

import abc
import asyncio
from typing import List, Optional, Set

from tutorbook.models.org import Org
from tutorbook.search.engine import SearchEngine
from tutorbook.search.projection import UserView, project_user
from tutorbook.search.query import UsersQuery
from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


class IdentityVerifier(abc.ABC):
    """Verifies bearer identity tokens."""

    @abc.abstractmethod
    async def verify(self, token: str) -> str:
        """
        Verify ``token`` and return the subject (user) ID.

        Raises:
            UnauthorizedError: If the token is invalid
        """


class MembershipStore(abc.ABC):
    """Read-only lookup of organization membership."""

    @abc.abstractmethod
    async def orgs_for_member(self, uid: str) -> List[Org]:
        """Return every organization that lists ``uid`` as a member."""


class UserSearchService:
    """Searches users and projects them for the calling user."""

    def __init__(
        self,
        engine: SearchEngine,
        verifier: IdentityVerifier,
        memberships: MembershipStore,
    ):
        self.engine = engine
        self.verifier = verifier
        self.memberships = memberships

    async def member_org_ids(self, authorization: Optional[str]) -> Set[str]:
        """
        Resolve the IDs of the organizations the caller is a member of.

        An absent or invalid token, or a failed lookup, yields an empty set:
        the caller is then treated as anonymous.

        Args:
            authorization: Value of the ``Authorization`` header, if any

        Returns:
            Organization IDs
        """
        if not authorization:
            return set()

        token = authorization
        if token.startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):]
        token = token.strip()

        try:
            uid = await self.verifier.verify(token)
        except Exception as e:
            logger.warning(f"Authorization token invalid: {e}")
            return set()

        try:
            orgs = await self.memberships.orgs_for_member(uid)
        except Exception as e:
            logger.warning(f"Could not fetch orgs for {uid}: {e}")
            return set()

        return {org.id for org in orgs}

    async def list_users(
        self, query: UsersQuery, authorization: Optional[str] = None
    ) -> List[UserView]:
        """
        Search users matching ``query`` and project them for the caller.

        Args:
            query: Users search query
            authorization: Value of the ``Authorization`` header, if any

        Returns:
            Projected users in merged search order
        """
        users, org_ids = await asyncio.gather(
            self.engine.search_users(query),
            self.member_org_ids(authorization),
        )
        logger.debug(f"Got {len(users)} users for a caller in {len(org_ids)} orgs")
        return [project_user(user, org_ids) for user in users]
