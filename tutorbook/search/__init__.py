"""
Search functionality for Tutorbook users.

This package provides the users search query model, filter-string
compilation, concurrent query execution with result merging, and the
visibility projection applied to results.
"""

from tutorbook.search.engine import (
    QueryOutcome,
    SearchEngine,
    SearchHit,
    SearchIndex,
    merge_hits,
)
from tutorbook.search.filter import (
    add_filters,
    availability_filter,
    get_filter_strings,
    get_optional_filter_strings,
)
from tutorbook.search.projection import (
    FullUserView,
    TruncatedUserView,
    UserView,
    is_member,
    only_first_name_and_last_initial,
    project_user,
)
from tutorbook.search.query import UsersQuery
from tutorbook.search.users import IdentityVerifier, MembershipStore, UserSearchService

__all__ = [
    "UsersQuery",
    "add_filters",
    "availability_filter",
    "get_filter_strings",
    "get_optional_filter_strings",
    "SearchEngine",
    "SearchHit",
    "SearchIndex",
    "QueryOutcome",
    "merge_hits",
    "FullUserView",
    "TruncatedUserView",
    "UserView",
    "is_member",
    "only_first_name_and_last_initial",
    "project_user",
    "IdentityVerifier",
    "MembershipStore",
    "UserSearchService",
]
