"""
Tests for the command line entry point.
"""

import json
from unittest.mock import AsyncMock, call, patch

import pytest

from tutorbook.main import get_config, main, parse_arguments, sync_appts, sync_users


def test_parse_arguments_defaults():
    args = parse_arguments([])

    assert args.config == "config/config.yaml"
    assert args.log_level is None
    assert args.command is None


def test_parse_arguments_sync_index():
    args = parse_arguments(["--log-level", "DEBUG", "sync-index", "users.json"])

    assert args.log_level == "DEBUG"
    assert args.command == "sync-index"
    assert args.users_file == "users.json"


def test_parse_arguments_sync_appts():
    args = parse_arguments(["sync-appts", "appts.json"])

    assert args.command == "sync-appts"
    assert args.appts_file == "appts.json"


def test_get_config_falls_back_to_env(tmp_path, test_env_vars):
    config = get_config(tmp_path / "missing.yaml")
    assert config.algolia.app_id == "ENVAPP"


@pytest.mark.asyncio
async def test_sync_users_pushes_settings_once(test_config):
    users = {"nick": {"name": "Nicholas Chiang"}, "julia": {"name": "Julia Lee"}}

    with patch("tutorbook.main.UserIndexer") as indexer_class:
        indexer = indexer_class.return_value
        indexer.update = AsyncMock()
        indexer.update_settings = AsyncMock()
        await sync_users(test_config, users)

    assert indexer.update.call_args_list == [
        call("nick", users["nick"], push_settings=False),
        call("julia", users["julia"], push_settings=False),
    ]
    indexer.update_settings.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_sync_appts_uses_appts_index_and_partition(test_config):
    appts = {"appt": {"creator": {"id": "nick"}, "attendees": []}}

    with patch("tutorbook.main.ApptIndexer") as indexer_class, patch(
        "tutorbook.main.FirestoreClient"
    ) as store_class:
        indexer = indexer_class.return_value
        indexer.update = AsyncMock()
        indexer.update_settings = AsyncMock()
        await sync_appts(test_config, appts)

    client, store, partition = indexer_class.call_args.args
    assert client.index_name == "default-appts"
    assert store is store_class.return_value
    store_class.assert_called_once_with(test_config.firebase)
    assert partition == "default"
    indexer.update.assert_awaited_once_with("appt", appts["appt"], push_settings=False)
    indexer.update_settings.assert_awaited_once_with()


def test_main_sync_appts(tmp_path, test_env_vars):
    appts_file = tmp_path / "appts.json"
    appts_file.write_text(json.dumps({"appt": {"creator": {"id": "nick"}}}))

    with patch("tutorbook.main.configure_logging"), patch(
        "tutorbook.main.load_env_file"
    ), patch("tutorbook.main.sync_appts", new_callable=AsyncMock) as sync:
        main(["--config", str(tmp_path / "missing.yaml"), "sync-appts", str(appts_file)])

    config, appts = sync.call_args.args
    assert config.algolia.appts_index_name == "default-appts"
    assert appts == {"appt": {"creator": {"id": "nick"}}}
