"""
Tests for the configuration management module.
"""

import tempfile

import pytest
import yaml

from tutorbook.clients.algolia import AlgoliaClient
from tutorbook.config.config import Config, _deep_merge, load_config, load_config_from_env


def write_yaml(data) -> "tempfile._TemporaryFileWrapper":
    temp_file = tempfile.NamedTemporaryFile(suffix=".yaml", mode="w+")
    yaml.dump(data, temp_file)
    temp_file.flush()
    return temp_file


def test_load_config_valid_file():
    """Test loading a valid configuration file."""
    with write_yaml(
        {
            "algolia": {"app_id": "APP", "search_key": "key", "search_timeout": 2.5},
            "firebase": {"project_id": "tutorbook"},
            "server": {"port": 9000},
            "logging": {"level": "DEBUG"},
            "debug": True,
        }
    ) as temp_file:
        config = load_config(temp_file.name)

    assert isinstance(config, Config)
    assert config.algolia.app_id == "APP"
    assert config.algolia.search_timeout == 2.5
    assert config.firebase.project_id == "tutorbook"
    assert config.server.port == 9000
    assert config.logging.level == "DEBUG"
    assert config.debug is True


def test_load_config_file_not_found():
    """Test error handling when configuration file doesn't exist."""
    with pytest.raises(FileNotFoundError):
        load_config("nonexistent_config.yaml")


def test_load_config_invalid_yaml():
    """Test error handling for invalid YAML."""
    with tempfile.NamedTemporaryFile(suffix=".yaml", mode="w+") as temp_file:
        temp_file.write("invalid: yaml: file:")
        temp_file.flush()

        with pytest.raises(ValueError):
            load_config(temp_file.name)


def test_load_config_missing_required_field():
    """Test error handling when required field is missing."""
    with write_yaml({"server": {"port": 9000}}) as temp_file:
        with pytest.raises(ValueError):
            load_config(temp_file.name)


def test_index_names_follow_environment(test_config):
    assert test_config.algolia.index_name == "default-users"
    assert test_config.algolia.appts_index_name == "default-appts"
    assert test_config.algolia.search_timeout is None

    development = Config(
        algolia={"app_id": "APP", "search_key": "key"},
        firebase={"project_id": "tutorbook", "partition": "test"},
        environment="development",
    )
    assert development.algolia.index_name == "test-users"
    assert development.algolia.appts_index_name == "test-appts"


def test_explicit_index_name_is_kept():
    config = Config(
        algolia={"app_id": "APP", "search_key": "key", "index_name": "custom"},
        firebase={"project_id": "tutorbook"},
    )
    assert config.algolia.index_name == "custom"


def test_load_config_from_env(test_env_vars):
    """Test loading configuration from environment variables."""
    config = load_config_from_env()

    assert isinstance(config, Config)
    assert config.algolia.app_id == "ENVAPP"
    assert config.algolia.search_key == "env_search_key"
    assert config.algolia.index_name == "test-users"
    assert config.firebase.project_id == "tutorbook-env"
    assert config.server.port == 9000
    assert config.logging.level == "DEBUG"
    assert config.debug is True
    assert config.environment == "development"


def test_deep_merge():
    base = {"algolia": {"app_id": "A", "search_key": "k"}, "debug": False}
    override = {"algolia": {"search_key": "override"}, "debug": True}

    assert _deep_merge(base, override) == {
        "algolia": {"app_id": "A", "search_key": "override"},
        "debug": True,
    }


def test_load_config_from_env_optional_settings(test_env_vars, monkeypatch):
    monkeypatch.setenv("TUTORBOOK_ALGOLIA_SEARCH_TIMEOUT", "2.5")
    monkeypatch.setenv("TUTORBOOK_ALGOLIA_ADMIN_KEY", "env_admin_key")
    monkeypatch.setenv("TUTORBOOK_FIREBASE_PARTITION", "test")
    monkeypatch.setenv("TUTORBOOK_SERVER_CORS_ORIGINS", "https://tutorbook.org")

    config = load_config_from_env()

    assert config.algolia.search_timeout == 2.5
    assert config.algolia.admin_key == "env_admin_key"
    assert config.algolia.appts_index_name == "test-appts"
    assert config.server.cors_origins == ["https://tutorbook.org"]


def test_load_config_from_env_blank_credentials(monkeypatch):
    monkeypatch.delenv("TUTORBOOK_ALGOLIA_APP_ID", raising=False)
    monkeypatch.delenv("TUTORBOOK_ALGOLIA_SEARCH_KEY", raising=False)
    monkeypatch.delenv("TUTORBOOK_FIREBASE_PROJECT_ID", raising=False)

    config = load_config_from_env()
    assert config.algolia.app_id == ""

    # Blank credentials are rejected when the client is built.
    with pytest.raises(ValueError):
        AlgoliaClient(config.algolia)
