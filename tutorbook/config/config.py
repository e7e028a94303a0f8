"""
Configuration management for the Tutorbook search service.

This module handles loading and validating configuration from configuration
files and environment variables.
"""

import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, model_validator

from tutorbook.utils.environment import (
    get_env,
    get_env_bool,
    get_env_float,
    get_env_int,
    get_env_list,
)


class AlgoliaConfig(BaseModel):
    """Configuration for the hosted search index."""

    app_id: str = Field(..., description="Algolia application ID")
    search_key: str = Field(..., description="Search-only API key")
    admin_key: Optional[str] = Field(
        None, description="Admin API key, only needed by the indexing pipeline"
    )
    index_name: Optional[str] = Field(
        None, description="Users index name (derived from the environment if unset)"
    )
    appts_index_name: Optional[str] = Field(
        None, description="Appointments index name (derived from the partition if unset)"
    )
    search_timeout: Optional[float] = Field(
        None, description="Per-query timeout in seconds; unset waits indefinitely"
    )
    max_retries: int = Field(3, description="Maximum number of HTTP retries")


class FirebaseConfig(BaseModel):
    """Configuration for Firebase Authentication and Firestore."""

    project_id: str = Field(..., description="Firebase project ID")
    access_token: Optional[str] = Field(
        None, description="OAuth2 access token used for Firestore REST calls"
    )
    orgs_collection: str = Field("orgs", description="Organizations collection")
    partition: str = Field("default", description="Database partition")
    timeout: int = Field(30, description="Firestore request timeout in seconds")


class ServerConfig(BaseModel):
    """Configuration for the HTTP server."""

    host: str = Field("127.0.0.1", description="Server host")
    port: int = Field(8000, description="Server port")
    workers: int = Field(1, description="Number of worker processes")
    reload: bool = Field(False, description="Enable auto-reload for development")
    cors_origins: List[str] = Field(
        ["*"], description="CORS allowed origins for API endpoints"
    )
    request_timeout: int = Field(60, description="Keep-alive timeout in seconds")


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field("INFO", description="Default logging level")
    config_file: Optional[str] = Field(
        None, description="Path to logging configuration file"
    )
    log_file: Optional[str] = Field(None, description="Path to log file")


class Config(BaseModel):
    """Main configuration for the Tutorbook search service."""

    algolia: AlgoliaConfig
    firebase: FirebaseConfig
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    debug: bool = Field(False, description="Enable debug mode")
    environment: str = Field("production", description="Deployment environment")

    @model_validator(mode="after")
    def default_index_names(self) -> "Config":
        """Fill in index names the same way the indexing pipeline names them."""
        if not self.algolia.index_name:
            prefix = "test" if self.environment == "development" else "default"
            self.algolia.index_name = f"{prefix}-users"
        if not self.algolia.appts_index_name:
            self.algolia.appts_index_name = f"{self.firebase.partition}-appts"
        return self


def load_config(config_path: Union[str, Path]) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to configuration YAML file

    Returns:
        Validated configuration object

    Raises:
        FileNotFoundError: If the configuration file does not exist
        ValueError: If the configuration is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as file:
            config_data: Dict[str, Any] = yaml.safe_load(file) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid configuration file: {e}")

    # Environment-specific overlay, e.g. config.development.yaml
    env_config_path = config_path.parent / f"{config_path.stem}.{os.getenv('ENV', 'local')}.yaml"
    if env_config_path.exists():
        with open(env_config_path, "r") as file:
            env_config_data: Dict[str, Any] = yaml.safe_load(file) or {}
            config_data = _deep_merge(config_data, env_config_data)

    try:
        return Config(**config_data)
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}")


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary with values to override in base

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# (section, key, environment name, parser); unset variables are left to the model defaults
ENV_SETTINGS: List[Tuple[Optional[str], str, str, Callable[[str], Any]]] = [
    ("algolia", "app_id", "ALGOLIA_APP_ID", get_env),
    ("algolia", "search_key", "ALGOLIA_SEARCH_KEY", get_env),
    ("algolia", "admin_key", "ALGOLIA_ADMIN_KEY", get_env),
    ("algolia", "index_name", "ALGOLIA_INDEX_NAME", get_env),
    ("algolia", "appts_index_name", "ALGOLIA_APPTS_INDEX_NAME", get_env),
    ("algolia", "search_timeout", "ALGOLIA_SEARCH_TIMEOUT", get_env_float),
    ("algolia", "max_retries", "ALGOLIA_MAX_RETRIES", get_env_int),
    ("firebase", "project_id", "FIREBASE_PROJECT_ID", get_env),
    ("firebase", "access_token", "FIREBASE_ACCESS_TOKEN", get_env),
    ("firebase", "orgs_collection", "FIREBASE_ORGS_COLLECTION", get_env),
    ("firebase", "partition", "FIREBASE_PARTITION", get_env),
    ("firebase", "timeout", "FIREBASE_TIMEOUT", get_env_int),
    ("server", "host", "SERVER_HOST", get_env),
    ("server", "port", "SERVER_PORT", get_env_int),
    ("server", "workers", "SERVER_WORKERS", get_env_int),
    ("server", "cors_origins", "SERVER_CORS_ORIGINS", get_env_list),
    ("logging", "level", "LOGGING_LEVEL", get_env),
    ("logging", "config_file", "LOGGING_CONFIG_FILE", get_env),
    ("logging", "log_file", "LOGGING_LOG_FILE", get_env),
    (None, "debug", "DEBUG", get_env_bool),
    (None, "environment", "ENVIRONMENT", get_env),
]


def load_config_from_env() -> Config:
    """
    Load configuration from ``TUTORBOOK_*`` environment variables.

    Examples:
        TUTORBOOK_ALGOLIA_APP_ID=xxx
        TUTORBOOK_FIREBASE_PROJECT_ID=tutorbook
        TUTORBOOK_SERVER_PORT=8080

    Returns:
        Validated configuration object

    Raises:
        ValueError: If a required setting is missing or invalid
    """
    config_data: Dict[str, Any] = {
        "algolia": {"app_id": "", "search_key": ""},
        "firebase": {"project_id": ""},
        "server": {},
        "logging": {},
    }

    for section, key, name, parse in ENV_SETTINGS:
        if get_env(name) is None:
            continue
        target = config_data[section] if section else config_data
        target[key] = parse(name)

    try:
        return Config(**config_data)
    except Exception as e:
        raise ValueError(f"Invalid environment configuration: {e}")
