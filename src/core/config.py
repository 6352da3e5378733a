"""Runtime configuration model for the catalog cache.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Mapping, cast

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_FETCH_LIMIT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PROBE_HOST,
    DEFAULT_PROBE_PORT,
    DEFAULT_REMOTE_TIMEOUT_SECONDS,
    OFFLINE_DIR_NAME,
)
from core.errors import CacheConfigError, CacheDependencyError
from core.logging_config import parse_log_level

_FILE_KEYS = (
    "data_root",
    "remote_url",
    "remote_timeout",
    "fetch_limit",
    "probe_host",
    "probe_port",
    "log_level",
)


@dataclass(frozen=True)
class CatalogCacheConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory for the offline stores.
        remote_url: Base URL of the hosted catalog backend, if any.
        remote_timeout: HTTP timeout in seconds for remote queries.
        fetch_limit: Row limit passed to the equipment and accessory queries.
        probe_host: Address used by the connectivity route probe.
        probe_port: Port used by the connectivity route probe.
        log_level: Minimum structured log level.
    """

    data_root: Path
    remote_url: str | None
    remote_timeout: float
    fetch_limit: int
    probe_host: str
    probe_port: int
    log_level: str

    @property
    def offline_dir(self) -> Path:
        """Directory holding both the primary and the fallback store."""
        return self.data_root / OFFLINE_DIR_NAME

    @classmethod
    def from_env(cls) -> "CatalogCacheConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            CacheConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("CATALOG_CACHE_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        remote_url = os.getenv("CATALOG_CACHE_REMOTE_URL") or None
        log_level = os.getenv("CATALOG_CACHE_LOG_LEVEL", DEFAULT_LOG_LEVEL)
        parse_log_level(log_level)
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            remote_url=remote_url.rstrip("/") if remote_url else None,
            remote_timeout=_parse_float(
                "CATALOG_CACHE_REMOTE_TIMEOUT",
                os.getenv("CATALOG_CACHE_REMOTE_TIMEOUT", str(DEFAULT_REMOTE_TIMEOUT_SECONDS)),
            ),
            fetch_limit=_parse_positive_int(
                "CATALOG_CACHE_FETCH_LIMIT",
                os.getenv("CATALOG_CACHE_FETCH_LIMIT", str(DEFAULT_FETCH_LIMIT)),
            ),
            probe_host=os.getenv("CATALOG_CACHE_PROBE_HOST", DEFAULT_PROBE_HOST),
            probe_port=_parse_positive_int(
                "CATALOG_CACHE_PROBE_PORT",
                os.getenv("CATALOG_CACHE_PROBE_PORT", str(DEFAULT_PROBE_PORT)),
            ),
            log_level=log_level,
        )

    @classmethod
    def from_file(cls, config_path: str) -> "CatalogCacheConfig":
        """Build config from environment, then overlay a YAML config file.

        Args:
            config_path: Path to a YAML mapping with config keys.

        Returns:
            A validated config object.

        Raises:
            CacheConfigError: If the file is missing, malformed, or invalid.
            CacheDependencyError: If PyYAML is unavailable.
        """
        payload = _load_yaml_mapping(config_path)
        return cls.from_env().with_overrides(payload)

    def with_overrides(self, values: Mapping[str, object]) -> "CatalogCacheConfig":
        """Return a copy with validated overrides applied.

        Args:
            values: Mapping of config keys to raw values.

        Returns:
            Updated config object.

        Raises:
            CacheConfigError: If keys are unknown or values invalid.
        """
        unknown_keys = sorted(set(values) - set(_FILE_KEYS))
        if unknown_keys:
            raise CacheConfigError(
                f"Unknown config keys: {', '.join(unknown_keys)}. "
                f"Supported keys: {', '.join(_FILE_KEYS)}."
            )
        updates: dict[str, object] = {}
        if "data_root" in values:
            updates["data_root"] = Path(str(values["data_root"])).expanduser().resolve()
        if "remote_url" in values:
            raw_url = values["remote_url"]
            updates["remote_url"] = str(raw_url).rstrip("/") if raw_url else None
        if "remote_timeout" in values:
            updates["remote_timeout"] = _parse_float(
                "remote_timeout", str(values["remote_timeout"])
            )
        if "fetch_limit" in values:
            updates["fetch_limit"] = _parse_positive_int("fetch_limit", str(values["fetch_limit"]))
        if "probe_host" in values:
            updates["probe_host"] = str(values["probe_host"])
        if "probe_port" in values:
            updates["probe_port"] = _parse_positive_int("probe_port", str(values["probe_port"]))
        if "log_level" in values:
            log_level = str(values["log_level"])
            parse_log_level(log_level)
            updates["log_level"] = log_level
        return replace(self, **updates)


def _parse_float(name: str, raw_value: str) -> float:
    """Parse a positive float config value.

    Raises:
        CacheConfigError: If value is not a positive number.
    """
    try:
        value = float(raw_value)
    except ValueError as error:
        raise CacheConfigError(
            f"Invalid {name} value: expected number, got '{raw_value}'. "
            f"Set {name} to a positive number of seconds."
        ) from error
    if value <= 0:
        raise CacheConfigError(f"Invalid {name} value: expected a positive number, got {value}.")
    return value


def _parse_positive_int(name: str, raw_value: str) -> int:
    """Parse a positive integer config value.

    Raises:
        CacheConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise CacheConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a positive integer."
        ) from error
    if value <= 0:
        raise CacheConfigError(f"Invalid {name} value: expected a positive integer, got {value}.")
    return value


def _load_yaml_mapping(config_path: str) -> Mapping[str, object]:
    try:
        import yaml
    except ImportError as error:  # pragma: no cover - dependency failure
        raise CacheDependencyError(
            "YAML config support requires PyYAML. Install with 'pip install pyyaml'."
        ) from error
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise CacheConfigError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise CacheConfigError(
            f"Failed to read config file at {config_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise CacheConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise CacheConfigError(
            f"Invalid config file at {config_file}: expected a mapping at top level."
        )
    return {str(key): value for key, value in payload.items()}
