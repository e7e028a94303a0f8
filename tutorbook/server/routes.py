"""
User search routes.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Header, Request

from tutorbook.search.query import UsersQuery
from tutorbook.search.users import UserSearchService
from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["users"])


def get_search_service(request: Request) -> UserSearchService:
    return request.app.state.search_service


@router.get("/users", summary="Search users")
async def list_users(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> List[Dict[str, Any]]:
    """
    Search users matching the filters in the query string.

    Only non-sensitive fields are returned for users who are neither visible
    nor members of one of the caller's organizations.
    """
    query = UsersQuery.from_url_params(request.query_params.multi_items())
    logger.debug("Getting search results...")
    users = await get_search_service(request).list_users(query, authorization)
    logger.debug(f"Got {len(users)} results.")
    return [user.to_json() for user in users]
