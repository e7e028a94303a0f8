#!/usr/bin/env python3
"""
Tutorbook Search - Main Entry Point

This module serves as the entry point for the search service: it either
starts the HTTP server or backfills the users or appointments search index.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from tutorbook.clients.algolia import AlgoliaClient
from tutorbook.clients.firestore import FirestoreClient
from tutorbook.config.config import Config, load_config, load_config_from_env
from tutorbook.indexing.sync import ApptIndexer, Indexer, UserIndexer
from tutorbook.server.server import create_server
from tutorbook.utils.environment import load_env_file
from tutorbook.utils.logging import configure_logging, get_logger


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Tutorbook Search")
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file (environment variables are used if it is missing)",
        default="config/config.yaml"
    )
    parser.add_argument(
        "--log-level", "-l",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None
    )
    parser.add_argument(
        "--env-file", "-e",
        help="Path to .env file",
        default=None
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Run the HTTP server (default)")
    sync = subparsers.add_parser("sync-index", help="Backfill the users search index")
    sync.add_argument(
        "users_file",
        help="JSON file mapping user IDs to user documents",
    )
    sync_appts_parser = subparsers.add_parser(
        "sync-appts", help="Backfill the appointments search index"
    )
    sync_appts_parser.add_argument(
        "appts_file",
        help="JSON file mapping appointment IDs to appointment documents",
    )
    return parser.parse_args(argv)


def get_config(config_path: Path) -> Config:
    if config_path.exists():
        return load_config(config_path)
    return load_config_from_env()


async def backfill(indexer: Indexer, documents: Dict[str, Any]) -> None:
    """Sync every document, then push the index settings once."""
    for doc_id, data in documents.items():
        await indexer.update(doc_id, data, push_settings=False)
    await indexer.update_settings()


async def sync_users(config: Config, users: Dict[str, Any]) -> None:
    """Push every user document in ``users`` to the users index."""
    await backfill(UserIndexer(AlgoliaClient(config.algolia)), users)


async def sync_appts(config: Config, appts: Dict[str, Any]) -> None:
    """Push every appointment document in ``appts`` to the appointments index."""
    client = AlgoliaClient(config.algolia).for_index(config.algolia.appts_index_name)
    indexer = ApptIndexer(client, FirestoreClient(config.firebase), config.firebase.partition)
    await backfill(indexer, appts)


def main(argv: Optional[list] = None) -> None:
    """Application entry point."""
    args = parse_arguments(argv)

    load_env_file(args.env_file)

    configure_logging(log_level=args.log_level)
    logger = get_logger(__name__)

    try:
        config_path = Path(args.config)
        config = get_config(config_path)
        configure_logging(
            config_path=config.logging.config_file,
            log_level=args.log_level or config.logging.level,
            log_file=config.logging.log_file,
        )

        if args.command == "sync-index":
            with open(args.users_file, "r") as file:
                users = json.load(file)
            logger.info(f"Syncing {len(users)} users to {config.algolia.index_name}")
            asyncio.run(sync_users(config, users))
            return

        if args.command == "sync-appts":
            with open(args.appts_file, "r") as file:
                appts = json.load(file)
            logger.info(f"Syncing {len(appts)} appointments to {config.algolia.appts_index_name}")
            asyncio.run(sync_appts(config, appts))
            return

        logger.info("Starting Tutorbook Search")
        server = create_server(config)
        logger.info(f"Server created, listening on {config.server.host}:{config.server.port}")
        server.run()

    except Exception as e:
        logger.exception(f"Error running Tutorbook Search: {e}")
        sys.exit(1)

    logger.info("Tutorbook Search stopped")


if __name__ == "__main__":
    main()
