"""
Environment variable access for the Tutorbook search service.

Every setting the service reads from the environment is named
``TUTORBOOK_<SECTION>_<KEY>``; the helpers here take the unprefixed name
(``ALGOLIA_APP_ID``) and parse the raw string into the type the caller needs.
Unparseable values fall back to the caller's default.
"""

import os
from pathlib import Path
from typing import Callable, List, Optional, TypeVar, Union

from dotenv import load_dotenv

ENV_PREFIX = "TUTORBOOK_"
TRUTHY = frozenset(("1", "true", "yes", "y", "on"))

T = TypeVar("T")


def load_env_file(env_file: Optional[Union[str, Path]] = None) -> bool:
    """
    Load a ``.env`` file into the process environment.

    Args:
        env_file: Explicit file to load; when omitted, python-dotenv searches
                  the working directory and its parents and overrides
                  variables already set.

    Returns:
        Whether any file was loaded
    """
    if env_file:
        return load_dotenv(env_file)
    return load_dotenv(dotenv_path=None, override=True)


def env_key(name: str) -> str:
    """``ALGOLIA_APP_ID`` -> ``TUTORBOOK_ALGOLIA_APP_ID``; prefixed names pass through."""
    return name if name.startswith(ENV_PREFIX) else f"{ENV_PREFIX}{name}"


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Raw value of a service setting, or ``default`` when unset."""
    return os.getenv(env_key(name), default)


def _parse(name: str, convert: Callable[[str], T], default: T) -> T:
    raw = get_env(name)
    if raw is None:
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        return default


def get_env_bool(name: str, default: bool = False) -> bool:
    return _parse(name, lambda raw: raw.lower() in TRUTHY, default)


def get_env_int(name: str, default: int = 0) -> int:
    return _parse(name, int, default)


def get_env_float(name: str, default: Optional[float] = None) -> Optional[float]:
    return _parse(name, float, default)


def get_env_list(name: str, default: Optional[List[str]] = None) -> List[str]:
    """Comma-separated setting, e.g. ``TUTORBOOK_SERVER_CORS_ORIGINS=a.com,b.com``."""
    raw = get_env(name)
    if raw is None:
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]
