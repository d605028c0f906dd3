"""
Configuration loader for the catalog engine (remote source, local store, sync, auth).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "catalog_config.yml"


class SheetColumnsConfig(BaseModel):
    """Column indexes used when the source returns spreadsheet rows."""

    code: int = Field(default=0, ge=0)
    name: int = Field(default=4, ge=0)
    stock_quantity: int = Field(default=19, ge=0)
    unit_price: int = Field(default=24, ge=0)


class SourceConfig(BaseModel):
    """Remote catalog source"""

    url: str = ""
    mode: Literal["single", "paged", "sheet"] = "single"
    data_field: str = "data"
    page_size: int = Field(default=500, ge=1, le=10000)
    limit_param: str = "limit"
    offset_param: str = "offset"
    timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0)
    max_retries: int = Field(default=2, ge=0, le=10)
    columns: SheetColumnsConfig = Field(default_factory=SheetColumnsConfig)


class StoreConfig(BaseModel):
    database_url: str = "sqlite:///data/catalog.db"


class SyncConfig(BaseModel):
    revalidate_after_minutes: float = Field(default=30.0, gt=0.0)
    connectivity_probe_url: Optional[str] = None


class AuthConfig(BaseModel):
    """Bearer credential settings. Secrets are read from the named env vars."""

    mode: Literal["static", "oauth_refresh"] = "static"
    api_token_env: str = "CATALOG_API_TOKEN"
    token_url: str = "https://oauth2.googleapis.com/token"
    client_id_env: str = "CATALOG_CLIENT_ID"
    client_secret_env: str = "CATALOG_CLIENT_SECRET"
    refresh_token_env: str = "CATALOG_REFRESH_TOKEN"


class CatalogConfig(BaseModel):
    source: SourceConfig = Field(default_factory=SourceConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)


def _apply_env_overrides(data: Dict, env: Dict[str, str]) -> Dict:
    if env.get("CATALOG_SOURCE_URL"):
        data.setdefault("source", {})["url"] = env["CATALOG_SOURCE_URL"]
    if env.get("CATALOG_DATABASE_URL"):
        data.setdefault("store", {})["database_url"] = env["CATALOG_DATABASE_URL"]
    return data


def load_catalog_config(config_path: Optional[Path] = None, env: Optional[Dict[str, str]] = None) -> CatalogConfig:
    """
    Load and validate the catalog configuration from a YAML file

    Args:
        config_path: Path to config file. Defaults to config/catalog_config.yml
        env: Environment mapping used for overrides. Defaults to os.environ

    Returns:
        Validated CatalogConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(f"Catalog config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    data = _apply_env_overrides(data, dict(os.environ) if env is None else env)

    try:
        cfg = CatalogConfig(**data)
        logger.info("Successfully loaded catalog config from %s", config_path)
        return cfg
    except ValidationError as e:
        logger.error("Catalog config validation failed: %s", e)
        raise
