"""
Test configuration and fixtures for Tutorbook Search.

This module provides pytest fixtures and configuration for testing.
"""

import sys
from pathlib import Path
from typing import Dict, Generator, List, Optional

import pytest

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tutorbook.config.config import (
    AlgoliaConfig,
    Config,
    FirebaseConfig,
    LoggingConfig,
    ServerConfig,
)
from tutorbook.models.org import Org
from tutorbook.search.engine import SearchHit, SearchIndex
from tutorbook.search.users import IdentityVerifier, MembershipStore
from tutorbook.utils.errors import UnauthorizedError


class FakeIndex(SearchIndex):
    """In-memory search index mapping filter strings to hits or errors."""

    def __init__(self, results: Optional[Dict[Optional[str], object]] = None):
        self.results = results or {}
        self.calls: List[Dict[str, object]] = []

    async def search(self, query, filters=None, optional_filters=None):
        self.calls.append(
            {"query": query, "filters": filters, "optional_filters": optional_filters}
        )
        result = self.results.get(filters, [])
        if isinstance(result, BaseException):
            raise result
        return [SearchHit.model_validate(hit) for hit in result]


class FakeVerifier(IdentityVerifier):
    """Accepts tokens of the form ``valid:<uid>``."""

    async def verify(self, token):
        if not token.startswith("valid:"):
            raise UnauthorizedError("Invalid token")
        return token.split(":", 1)[1]


class FakeMemberships(MembershipStore):
    """Organization membership keyed by user ID."""

    def __init__(self, orgs: Optional[Dict[str, List[str]]] = None, error: Optional[Exception] = None):
        self.orgs = orgs or {}
        self.error = error

    async def orgs_for_member(self, uid):
        if self.error:
            raise self.error
        return [Org(id=org_id, members=[uid]) for org_id in self.orgs.get(uid, [])]


@pytest.fixture
def test_config() -> Config:
    """Provide a test configuration."""
    return Config(
        algolia=AlgoliaConfig(
            app_id="TESTAPP",
            search_key="test_search_key",
            admin_key="test_admin_key",
        ),
        firebase=FirebaseConfig(project_id="tutorbook-test"),
        server=ServerConfig(
            host="127.0.0.1",
            port=8000,
            workers=1,
            reload=False,
            cors_origins=["*"],
            request_timeout=10,
        ),
        logging=LoggingConfig(
            level="DEBUG",
            config_file=None,
            log_file=None,
        ),
        debug=True,
        environment="test",
    )


@pytest.fixture
def test_env_vars(monkeypatch: pytest.MonkeyPatch) -> Generator[Dict[str, str], None, None]:
    """Set up test environment variables."""
    env_vars = {
        "TUTORBOOK_ALGOLIA_APP_ID": "ENVAPP",
        "TUTORBOOK_ALGOLIA_SEARCH_KEY": "env_search_key",
        "TUTORBOOK_FIREBASE_PROJECT_ID": "tutorbook-env",
        "TUTORBOOK_SERVER_PORT": "9000",
        "TUTORBOOK_LOGGING_LEVEL": "DEBUG",
        "TUTORBOOK_DEBUG": "true",
        "TUTORBOOK_ENVIRONMENT": "development",
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    yield env_vars


@pytest.fixture
def user_hits() -> Dict[str, dict]:
    """Index records for a few users."""
    return {
        "nick": {
            "objectID": "nick",
            "name": "Nicholas Chiang",
            "email": "nick@example.com",
            "phone": "+16505550100",
            "bio": "Math tutor",
            "orgs": ["gunn"],
            "availability": [{"from": 1000, "to": 9000}],
            "tutoring": {"subjects": ["Algebra"], "searches": []},
            "langs": ["en"],
            "visible": False,
        },
        "madonna": {
            "objectID": "madonna",
            "name": "Madonna",
            "email": "madonna@example.com",
            "phone": "+16505550101",
            "orgs": ["default"],
            "tutoring": {"subjects": ["Algebra", "Music"], "searches": []},
            "visible": True,
        },
        "julia": {
            "objectID": "julia",
            "name": "Julia Lee",
            "email": "julia@example.com",
            "phone": "+16505550102",
            "orgs": ["paly"],
            "tutoring": {"subjects": ["Algebra"], "searches": []},
            "visible": False,
        },
    }
