"""
Configuration Management for Trackarr

This module centralizes all application configuration. Operational settings
(host, port, logging) are read from environment variables on the Config class,
while everything the tracker pipeline consumes is resolved once into an
immutable PipelineConfig that is passed explicitly into the pipeline.

Tracker sources can be given inline (TRACKER_SOURCES) or through a YAML file
(TRACKER_SOURCES_FILE) using the layout:

    trackers:
      - https://raw.githubusercontent.com/ngosang/trackerslist/master/trackers_best.txt
      - udp://tracker.opentrackr.org:1337/announce

Entries ending with "announce" are literal trackers; everything else is a
source URL whose body is fetched on every run.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)


DEFAULT_SCHEMES: Tuple[str, ...] = ("http", "https", "udp", "ws", "wss")
RPC_DIALECTS: Tuple[str, ...] = ("aria2", "generic")


class ConfigError(Exception):
    """Raised when configuration values cannot be resolved."""
    pass


def _env_bool(env: Mapping[str, str], name: str, default: str = "false") -> bool:
    return env.get(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def split_list_value(value: str) -> List[str]:
    """Split a comma or newline separated value into trimmed, non-empty items."""
    items = []
    for chunk in value.replace(",", "\n").splitlines():
        chunk = chunk.strip()
        if chunk:
            items.append(chunk)
    return items


class Config:
    """
    Application-level settings read from environment variables.

    All settings have sensible defaults and can be overridden via environment
    variables for production deployment.
    """

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    APP_VERSION = "1.0.0"
    APP_TITLE = "Trackarr"
    APP_DESCRIPTION = "BitTorrent tracker list aggregation and aria2 delivery"
    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8000"))

    # =============================================================================
    # LOGGING
    # =============================================================================
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"

    # "text" for human-readable lines, "json" for machine-parseable output
    LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()

    @classmethod
    def validate(cls) -> bool:
        """
        Validate critical configuration values.

        Returns:
            True if configuration is valid, False otherwise
        """
        if cls.APP_PORT < 1 or cls.APP_PORT > 65535:
            return False

        if cls.LOG_FORMAT not in ("text", "json"):
            return False

        return True


@dataclass(frozen=True)
class PipelineConfig:
    """
    Resolved configuration consumed by the tracker pipeline.

    Attributes:
        sources: Source URLs to fetch tracker lists from, in merge order
        static_trackers: Literal trackers merged ahead of every fetched source
        fetch_timeout: Per-source timeout in seconds
        rpc_url: aria2 JSON-RPC endpoint (http(s):// or ws(s)://), empty if unset
        rpc_secret: aria2 --rpc-secret value, sent as "token:<secret>"
        rpc_dialect: "aria2" (changeGlobalOption) or "generic" (array parameter)
        rpc_method: Method name used by the generic dialect
        rpc_timeout: RPC call timeout in seconds
        push_token: Shared secret required for request-triggered pushes
        push_interval: Seconds between scheduled pushes (0 disables the schedule)
        push_on_startup: Run one scheduled push as soon as the worker starts
        allowed_schemes: URL schemes accepted by the normalizer
    """

    sources: Tuple[str, ...] = ()
    static_trackers: Tuple[str, ...] = ()
    fetch_timeout: float = 15.0
    rpc_url: str = ""
    rpc_secret: str = ""
    rpc_dialect: str = "aria2"
    rpc_method: str = "addTrackers"
    rpc_timeout: float = 10.0
    push_token: str = ""
    push_interval: float = 86400.0
    push_on_startup: bool = False
    allowed_schemes: Tuple[str, ...] = field(default=DEFAULT_SCHEMES)

    def __post_init__(self):
        if self.rpc_dialect not in RPC_DIALECTS:
            raise ConfigError(
                f"Unknown RPC dialect {self.rpc_dialect!r}. Available: {list(RPC_DIALECTS)}"
            )
        if self.fetch_timeout <= 0:
            raise ConfigError("Source fetch timeout must be positive")
        if self.rpc_timeout <= 0:
            raise ConfigError("RPC timeout must be positive")
        if self.push_interval < 0:
            raise ConfigError("Push interval cannot be negative")

    @property
    def rpc_configured(self) -> bool:
        return bool(self.rpc_url)

    @property
    def push_path_enabled(self) -> bool:
        return bool(self.push_token)

    @property
    def schedule_enabled(self) -> bool:
        return self.rpc_configured and self.push_interval > 0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineConfig":
        """
        Build a PipelineConfig from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            Resolved PipelineConfig

        Raises:
            ConfigError: If a value is malformed or the sources file is invalid
        """
        env = os.environ if environ is None else environ

        sources = split_list_value(env.get("TRACKER_SOURCES", ""))
        static_trackers: List[str] = []

        sources_file = env.get("TRACKER_SOURCES_FILE", "").strip()
        if sources_file:
            file_sources, file_trackers = load_sources_file(sources_file)
            sources.extend(file_sources)
            static_trackers.extend(file_trackers)

        return cls(
            sources=tuple(_dedupe(sources)),
            static_trackers=tuple(_dedupe(static_trackers)),
            fetch_timeout=_env_float(env, "SOURCE_FETCH_TIMEOUT", 15.0),
            rpc_url=env.get("ARIA2_RPC_URL", "").strip(),
            rpc_secret=env.get("ARIA2_RPC_SECRET", ""),
            rpc_dialect=env.get("RPC_DIALECT", "aria2").strip().lower() or "aria2",
            rpc_method=env.get("RPC_METHOD", "addTrackers").strip() or "addTrackers",
            rpc_timeout=_env_float(env, "RPC_TIMEOUT", 10.0),
            push_token=env.get("PUSH_TOKEN", ""),
            push_interval=_env_float(env, "PUSH_INTERVAL_SECONDS", 86400.0),
            push_on_startup=_env_bool(env, "PUSH_ON_STARTUP"),
        )

    def get_summary(self) -> dict:
        """
        Get configuration summary for logging/debugging.

        Returns:
            Dictionary with non-sensitive configuration values
        """
        return {
            "sources_configured": len(self.sources),
            "static_trackers": len(self.static_trackers),
            "fetch_timeout": self.fetch_timeout,
            "rpc_configured": self.rpc_configured,
            "rpc_dialect": self.rpc_dialect,
            "rpc_secret_configured": bool(self.rpc_secret),
            "push_path_enabled": self.push_path_enabled,
            "schedule_enabled": self.schedule_enabled,
            "push_interval": self.push_interval,
        }


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    ordered = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def load_sources_file(path: str) -> Tuple[List[str], List[str]]:
    """
    Load a YAML sources file.

    Args:
        path: Path to a YAML file holding a top-level "trackers" list

    Returns:
        Tuple of (source_urls, static_trackers)

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    file_path = Path(path)
    if not file_path.exists():
        raise ConfigError(f"Tracker sources file not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("trackers", []), list):
        raise ConfigError(f"{file_path} must contain a 'trackers' list")

    sources: List[str] = []
    static_trackers: List[str] = []
    for entry in data.get("trackers") or []:
        if not isinstance(entry, str) or not entry.strip():
            continue
        entry = entry.strip()
        if entry.endswith("announce"):
            static_trackers.append(entry)
        else:
            sources.append(entry)

    logger.info(
        f"Loaded {len(sources)} source(s) and {len(static_trackers)} static tracker(s) "
        f"from {file_path}"
    )
    return sources, static_trackers
