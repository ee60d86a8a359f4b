"""
Trade Journal Settings

Pydantic settings models loaded from ``config/tradejournal.yaml`` with
environment variable overrides.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, model_validator

from ..journal.forms import PnlMode, ValidationPolicy

logger = logging.getLogger(__name__)

CONFIG_FILE = Path(__file__).parent.parent.parent / "config" / "tradejournal.yaml"

# env var -> (section, key)
ENV_OVERRIDES: Dict[str, tuple] = {
    "TRADEJOURNAL_STORE_BACKEND": ("store", "backend"),
    "TRADEJOURNAL_DATABASE_URL": ("store", "database_url"),
    "TRADEJOURNAL_CREDENTIALS": ("store", "credentials_path"),
    "TRADEJOURNAL_COLLECTION": ("store", "collection"),
    "TRADEJOURNAL_VALIDATION_POLICY": ("forms", "validation_policy"),
    "TRADEJOURNAL_PNL_MODE": ("forms", "pnl_mode"),
    "TRADEJOURNAL_LOG_LEVEL": ("logging", "level"),
    "TRADEJOURNAL_LOG_JSON": ("logging", "json_format"),
    "TRADEJOURNAL_LOG_FILE": ("logging", "log_file"),
}


# =============================================================================
# Pydantic Models - Settings Types
# =============================================================================


class StoreSettings(BaseModel):
    """Document store connection."""

    backend: str = Field(default="memory", pattern="^(memory|firebase)$", description="Store backend")
    database_url: Optional[str] = Field(default=None, description="Realtime Database URL")
    credentials_path: Optional[str] = Field(default=None, description="Service-account JSON file")
    collection: str = Field(default="trades", min_length=1, description="Collection path of trade records")

    @model_validator(mode="after")
    def _firebase_needs_url(self) -> "StoreSettings":
        if self.backend == "firebase" and not self.database_url:
            raise ValueError("store.database_url is required for the firebase backend")
        return self


class FormSettings(BaseModel):
    """Trade form behaviour."""

    validation_policy: ValidationPolicy = Field(default=ValidationPolicy.BASIC)
    pnl_mode: PnlMode = Field(default=PnlMode.AUTO)


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_format: bool = Field(default=False)
    log_file: Optional[str] = Field(default=None)


class JournalSettings(BaseModel):
    """Complete application settings."""

    store: StoreSettings = Field(default_factory=StoreSettings)
    forms: FormSettings = Field(default_factory=FormSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# =============================================================================
# Loading
# =============================================================================


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s. Using defaults.", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not a mapping", path)
        return {}
    return data


def load_settings(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> JournalSettings:
    """
    Load settings from YAML, then apply ``TRADEJOURNAL_*`` overrides.

    Raises:
        pydantic.ValidationError: if a value is invalid
    """
    config_path = Path(path) if path else Path(os.environ.get("TRADEJOURNAL_CONFIG", CONFIG_FILE))
    data = _read_yaml(config_path)
    env = os.environ if environ is None else environ

    for var, (section, key) in ENV_OVERRIDES.items():
        if var in env:
            section_data = data.get(section)
            if not isinstance(section_data, dict):
                section_data = {}
                data[section] = section_data
            section_data[key] = env[var]

    settings = JournalSettings.model_validate(data)
    logger.info(
        "Loaded settings from %s (store=%s, policy=%s)",
        config_path,
        settings.store.backend,
        settings.forms.validation_policy.value,
    )
    return settings
