"""
Token Event Configuration - Indexer endpoint, paging limits and contract addresses.

Values come from environment variables (a local .env file is loaded
first). Everything has a default so tests and scripts run without setup.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from token_events.exceptions import ConfigurationError


DEFAULT_TZKT_API_URL = "https://api.tzkt.io/v1"

# Marketplace contracts
OBJKT_CONTRACT_MARKETPLACE_V3 = "KT1CePTyk6fk4cFr6fasY5YXPGks6ttjSLp4"
EIGHTBIDOU_24X24_MONOCHROME_CONTRACT_MARKETPLACE = "KT1AHBvSo828QwscsjDjeUuep7MgApi8hXqA"

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(
            message=f"{name} must be an integer, got {raw!r}",
            config_key=name,
            original_error=e,
        )
    if value < 1:
        raise ConfigurationError(message=f"{name} must be >= 1", config_key=name)
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            message=f"{name} must be a number, got {raw!r}",
            config_key=name,
            original_error=e,
        )


@dataclass
class Settings:
    """Runtime settings for the event producer."""
    
    # Indexer
    tzkt_api_url: str = DEFAULT_TZKT_API_URL
    per_page: int = 2000
    max_pages: int = 20
    request_timeout: float = 30.0
    
    # Worker naming
    task_name_prefix: Optional[str] = None
    
    # Contracts
    objkt_marketplace_v3: str = OBJKT_CONTRACT_MARKETPLACE_V3
    eightbidou_24x24_monochrome_marketplace: str = EIGHTBIDOU_24X24_MONOCHROME_CONTRACT_MARKETPLACE
    
    # fa12 token address -> currency symbol
    currency_mappings: dict[str, str] = field(default_factory=dict)
    
    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from the environment (and .env when present)."""
        if dotenv:
            load_dotenv()
        
        return cls(
            tzkt_api_url=os.environ.get("TZKT_API_URL", DEFAULT_TZKT_API_URL).rstrip("/"),
            per_page=_env_int("TZKT_PER_PAGE", 2000),
            max_pages=_env_int("TZKT_MAX_PAGES", 20),
            request_timeout=_env_float("TZKT_TIMEOUT", 30.0),
            task_name_prefix=os.environ.get("TASK_NAME_PREFIX") or None,
            objkt_marketplace_v3=os.environ.get(
                "OBJKT_CONTRACT_MARKETPLACE_V3", OBJKT_CONTRACT_MARKETPLACE_V3
            ),
            eightbidou_24x24_monochrome_marketplace=os.environ.get(
                "EIGHTBIDOU_24X24_MONOCHROME_CONTRACT_MARKETPLACE",
                EIGHTBIDOU_24X24_MONOCHROME_CONTRACT_MARKETPLACE,
            ),
        )
    
    def get_task_name(self, name: str) -> str:
        """Prefix a worker task name when TASK_NAME_PREFIX is set."""
        if self.task_name_prefix:
            return f"{self.task_name_prefix}_{name}"
        return name
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "tzkt_api_url": self.tzkt_api_url,
            "per_page": self.per_page,
            "max_pages": self.max_pages,
            "request_timeout": self.request_timeout,
            "task_name_prefix": self.task_name_prefix,
            "objkt_marketplace_v3": self.objkt_marketplace_v3,
            "eightbidou_24x24_monochrome_marketplace": self.eightbidou_24x24_monochrome_marketplace,
            "currency_mappings": dict(self.currency_mappings),
        }


def configure_logging(level: int = logging.INFO) -> None:
    """Console logging for scripts. Library modules never call this."""
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
