"""Configuration for the job tracker.

Loads from YAML config file with environment variable overrides.
Pattern: TRACKER__{SECTION}__{KEY} overrides nested YAML keys.
Example: TRACKER__SESSION__AUTH_TIMEOUT_S=2.5
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = "config/jobtracker.yml"
ENV_PREFIX = "TRACKER"


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///data/jobtracker.db"
    echo: bool = False


class LocalStorageConfig(BaseModel):
    directory: str = "data/local"
    key_prefix: str = "jobTracker"


class SessionConfig(BaseModel):
    auth_timeout_s: float = Field(default=5.0, gt=0, description="Bound on session lookup at startup")
    load_timeout_s: float = Field(default=10.0, gt=0, description="Bound on the initial remote load")


class TrackerConfig(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    local_storage: LocalStorageConfig = LocalStorageConfig()
    session: SessionConfig = SessionConfig()
    log_level: str = "INFO"


def _apply_env_overrides(config_dict: dict, prefix: str = ENV_PREFIX) -> dict:
    """Apply environment variable overrides to config dict.

    Pattern: TRACKER__SECTION__KEY=value maps to config[section][key] = value
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}__"):
            continue
        parts = key[len(prefix) + 2:].lower().split("__")
        target = config_dict
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        # values stay strings; pydantic coerces them to the field types
        target[parts[-1]] = value
    return config_dict


def normalize_database_url(url: str) -> str:
    """Heroku/Cloud SQL style postgres:// → async driver URL."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def load_config(config_path: Optional[str] = None) -> TrackerConfig:
    """Load configuration from YAML file with env overrides.

    Priority: env vars > YAML file > defaults
    """
    config_dict = {}

    # 1. Load YAML if exists
    if config_path is None:
        config_path = os.getenv("JOBTRACKER_CONFIG", DEFAULT_CONFIG_PATH)
    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            config_dict = yaml.safe_load(f) or {}

    # 2. DATABASE_URL from dedicated env var (common pattern)
    if os.getenv("DATABASE_URL"):
        config_dict.setdefault("database", {})["url"] = os.environ["DATABASE_URL"]

    # 3. Apply TRACKER__ env overrides
    config_dict = _apply_env_overrides(config_dict)

    database = config_dict.get("database") or {}
    if "url" in database:
        database["url"] = normalize_database_url(str(database["url"]))

    return TrackerConfig(**config_dict)
