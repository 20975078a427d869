"""Configuration: behaviour in config.yaml, secrets in .env.

``settings`` is the raw YAML mapping. The typed accessors below read it on
every call, so tests can patch ``settings`` or the environment in place.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"


def _find_project_root() -> Path:
    """Nearest ancestor of this package holding config.yaml, else the working directory."""
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return Path.cwd()


PROJECT_ROOT = _find_project_root()


def load_yaml_config(path: Path | None = None) -> dict[str, Any]:
    config_path = path or PROJECT_ROOT / CONFIG_FILENAME
    if not config_path.exists():
        logger.warning("%s not found, using built-in defaults", config_path)
        return {}
    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def _section(name: str) -> dict[str, Any]:
    return settings.get(name) or {}


def get_database_url() -> str:
    """DATABASE_URL from the environment, defaulting to propdesk.db beside config.yaml."""
    return os.environ.get("DATABASE_URL") or f"sqlite:///{PROJECT_ROOT / 'propdesk.db'}"


@dataclass(frozen=True)
class SmoobuConfig:
    api_key: str = ""
    base_url: str = "https://login.smoobu.com/api"
    booking_url: str = "https://login.smoobu.com/booking"
    page_size: int = 100
    timeout: float = 30.0
    block_note: str = "Blocked via PropDesk"
    default_message_subject: str = "Message from host"


def smoobu_config() -> SmoobuConfig:
    """The ``smoobu:`` section merged with SMOOBU_API_KEY from the environment."""
    section = _section("smoobu")
    defaults = SmoobuConfig()
    return SmoobuConfig(
        api_key=os.environ.get("SMOOBU_API_KEY", ""),
        base_url=section.get("base_url") or defaults.base_url,
        booking_url=section.get("booking_url") or defaults.booking_url,
        page_size=int(section.get("page_size") or defaults.page_size),
        timeout=float(section.get("timeout") or defaults.timeout),
        block_note=section.get("block_note") or defaults.block_note,
        default_message_subject=section.get("default_message_subject") or defaults.default_message_subject,
    )


@dataclass(frozen=True)
class CleaningConfig:
    default_priority: str = "normal"
    turnover_priority: str = "high"

    def priority_for(self, is_turnover: bool) -> str:
        return self.turnover_priority if is_turnover else self.default_priority


def cleaning_config() -> CleaningConfig:
    section = _section("cleaning")
    defaults = CleaningConfig()
    return CleaningConfig(
        default_priority=section.get("default_priority") or defaults.default_priority,
        turnover_priority=section.get("turnover_priority") or defaults.turnover_priority,
    )


def log_level() -> str:
    return str(_section("logging").get("level") or "INFO").upper()


def seed_properties() -> list[dict[str, Any]]:
    """Properties listed under ``properties:`` to create on first start."""
    return list(settings.get("properties") or [])


load_dotenv(PROJECT_ROOT / ".env")
settings: dict[str, Any] = load_yaml_config()
