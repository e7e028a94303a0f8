"""
Server module for the Tutorbook search service.

This module assembles the FastAPI application: hosted-service clients are
built once here and handed to the search service, which the routes read from
``app.state``.
"""

import time
import uuid
from typing import Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from tutorbook.auth.firebase import FirebaseTokenVerifier
from tutorbook.clients.algolia import AlgoliaClient
from tutorbook.clients.firestore import FirestoreClient
from tutorbook.config.config import Config
from tutorbook.search.engine import SearchEngine
from tutorbook.search.users import UserSearchService
from tutorbook.server.routes import router as users_router
from tutorbook.utils.errors import setup_error_handlers
from tutorbook.utils.logging import get_logger

logger = get_logger(__name__)

VERSION = "0.1.0"
SERVER_NAME = "Tutorbook Search"
REQUEST_ID_HEADER = "X-Request-ID"


class ServerStatus(BaseModel):
    status: str
    version: str
    uptime: float
    environment: str
    users_index: Optional[str] = None


def create_search_service(config: Config) -> UserSearchService:
    """
    Build the user search service and its hosted-service clients.

    Args:
        config: Service configuration

    Returns:
        Search service wired to Algolia, Firestore and Firebase Authentication
    """
    engine = SearchEngine(AlgoliaClient(config.algolia), timeout=config.algolia.search_timeout)
    return UserSearchService(
        engine=engine,
        verifier=FirebaseTokenVerifier(config.firebase),
        memberships=FirestoreClient(config.firebase),
    )


class SearchServer:
    """
    HTTP server for user search.

    The search service is injected so tests can substitute fakes for the
    hosted clients.
    """

    def __init__(self, config: Config, search_service: Optional[UserSearchService] = None):
        self.config = config
        self.started_at = time.monotonic()
        self.app = FastAPI(
            title=SERVER_NAME,
            description="User search for the Tutorbook tutoring and mentoring marketplace",
            version=VERSION,
            debug=config.debug,
        )
        self.app.state.search_service = search_service or create_search_service(config)

        self._add_middleware()
        self._add_routes()
        setup_error_handlers(self.app)
        logger.info(f"{SERVER_NAME} initialized ({config.environment})")

    def _add_middleware(self) -> None:
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.server.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
            expose_headers=[REQUEST_ID_HEADER],
        )

        @self.app.middleware("http")
        async def request_context(request: Request, call_next: Callable) -> Response:
            """Tag the request with a correlation ID and log how it went."""
            request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
            request.state.request_id = request_id
            started = time.perf_counter()
            logger.debug(f"[{request_id}] {request.method} {request.url.path}")

            response = await call_next(request)

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.debug(f"[{request_id}] {response.status_code} in {elapsed_ms:.1f} ms")
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

    def _add_routes(self) -> None:
        @self.app.get("/")
        async def root() -> Dict[str, str]:
            return {"server": SERVER_NAME, "version": VERSION, "status": "running"}

        @self.app.get("/health")
        async def health() -> Dict[str, str]:
            return {"status": "healthy"}

        @self.app.get("/status")
        async def server_status() -> ServerStatus:
            return ServerStatus(
                status="running",
                version=VERSION,
                uptime=time.monotonic() - self.started_at,
                environment=self.config.environment,
                users_index=self.config.algolia.index_name,
            )

        self.app.include_router(users_router)

    def run(self) -> None:
        """Serve the app with uvicorn until interrupted."""
        server = self.config.server
        if server.workers > 1 or server.reload:
            # uvicorn only honours these for an import-string app, not an app object.
            logger.warning("workers and reload are ignored; serving from a single process")
        uvicorn.run(
            self.app,
            host=server.host,
            port=server.port,
            log_level=self.config.logging.level.lower(),
            timeout_keep_alive=server.request_timeout,
        )


def create_server(
    config: Config, search_service: Optional[UserSearchService] = None
) -> SearchServer:
    """
    Create a new server instance.

    Args:
        config: Service configuration
        search_service: Optional pre-built search service

    Returns:
        Configured SearchServer instance
    """
    return SearchServer(config, search_service)
