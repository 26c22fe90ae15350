"""
Keygate Configuration
=====================
Process settings read from the environment, and the access configuration
(API keys, their permissions and rate limits) read from a JSON document.

Both are loaded once at startup and never mutated afterwards.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from .api_keys import mask_api_key
from .exceptions import ConfigError

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_SECONDS = 60
DEFAULT_MAX_REQUESTS = 60


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class Settings:
    """Process-level settings for the HTTP service."""
    config_file: str = "config/config.json"
    data_file: str = "storage/data.json"
    rate_limit_dir: str = "storage/ratelimit"
    access_log_file: str = "logs/api.log"
    service_name: str = "keygate"
    log_level: str = "INFO"
    json_logs: bool = True
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    host: str = "127.0.0.1"
    port: int = 8000
    mask_storage_errors: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from ``KEYGATE_*`` environment variables.

        Example:
            KEYGATE_CONFIG_FILE=/etc/keygate/config.json
            KEYGATE_DATA_FILE=/var/lib/keygate/data.json
            KEYGATE_CORS_ORIGINS=https://app.example.com,https://admin.example.com
        """
        return cls(
            config_file=os.getenv("KEYGATE_CONFIG_FILE", cls.config_file),
            data_file=os.getenv("KEYGATE_DATA_FILE", cls.data_file),
            rate_limit_dir=os.getenv("KEYGATE_RATE_LIMIT_DIR", cls.rate_limit_dir),
            access_log_file=os.getenv("KEYGATE_ACCESS_LOG", cls.access_log_file),
            service_name=os.getenv("KEYGATE_SERVICE_NAME", cls.service_name),
            log_level=os.getenv("KEYGATE_LOG_LEVEL", cls.log_level),
            json_logs=_env_bool("KEYGATE_JSON_LOGS", cls.json_logs),
            cors_origins=_env_list("KEYGATE_CORS_ORIGINS", "*"),
            host=os.getenv("KEYGATE_HOST", cls.host),
            port=int(os.getenv("KEYGATE_PORT", str(cls.port))),
            mask_storage_errors=_env_bool("KEYGATE_MASK_STORAGE_ERRORS", cls.mask_storage_errors),
        )


# =============================================================================
# Access configuration
# =============================================================================

class RateLimitOverride(BaseModel):
    """Per-key rate limit; each field falls back to the global default on its own."""
    model_config = ConfigDict(frozen=True)

    window_seconds: Optional[int] = None
    max_requests: Optional[int] = None


class RateLimitDefaults(BaseModel):
    model_config = ConfigDict(frozen=True)

    window_seconds: int = DEFAULT_WINDOW_SECONDS
    max_requests: int = DEFAULT_MAX_REQUESTS

    @field_validator("window_seconds", "max_requests", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            if info.field_name == "window_seconds":
                return DEFAULT_WINDOW_SECONDS
            return DEFAULT_MAX_REQUESTS
        return value


class RateLimitSection(BaseModel):
    model_config = ConfigDict(frozen=True)

    default: RateLimitDefaults = RateLimitDefaults()

    @field_validator("default", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class KeyDefinition(BaseModel):
    """Authorization policy bound to one API key."""
    model_config = ConfigDict(frozen=True)

    routes: Tuple[str, ...] = ()
    scopes: FrozenSet[str] = frozenset()
    rate_limit: Optional[RateLimitOverride] = None

    @field_validator("routes", mode="before")
    @classmethod
    def _string_rules_only(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            return ()
        return tuple(rule for rule in value if isinstance(rule, str))

    @field_validator("scopes", mode="before")
    @classmethod
    def _scopes_as_strings(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        return frozenset(str(scope) for scope in value)


class AccessConfig(BaseModel):
    """API keys and global rate limit defaults."""
    model_config = ConfigDict(frozen=True)

    rate_limit: RateLimitSection = RateLimitSection()
    keys: Dict[str, KeyDefinition] = {}

    @field_validator("rate_limit", mode="before")
    @classmethod
    def _rate_limit_section(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("keys", mode="before")
    @classmethod
    def _mapping_definitions_only(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        kept = {}
        for key, definition in value.items():
            if isinstance(definition, dict):
                kept[str(key)] = definition
            else:
                # Unknown shape: the key is treated as unregistered
                logger.warning("key_definition_ignored", key=mask_api_key(str(key)))
        return kept

    def definition_for(self, key: str) -> Optional[KeyDefinition]:
        return self.keys.get(key)


def parse_access_config(data: Any) -> AccessConfig:
    """
    Validate a decoded configuration document.

    Raises:
        ConfigError: if the document has the right outline but invalid values
    """
    if not isinstance(data, dict):
        logger.warning("access_config_not_an_object", type=type(data).__name__)
        return AccessConfig()
    try:
        return AccessConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid access configuration: {e}") from e


def load_access_config(path: Union[str, Path]) -> AccessConfig:
    """
    Load the access configuration from a JSON file.

    A missing or unparsable file yields the default configuration
    (60 requests per 60 seconds, no keys).
    """
    path = Path(path)
    if not path.is_file():
        logger.warning("access_config_missing", path=str(path))
        return AccessConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8") or "null")
    except (OSError, ValueError) as e:
        logger.warning("access_config_unreadable", path=str(path), error=str(e))
        return AccessConfig()

    config = parse_access_config(data)
    logger.info("access_config_loaded", path=str(path), keys=len(config.keys))
    return config
