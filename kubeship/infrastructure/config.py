"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to cluster, timeout, registry and telemetry settings
- Falls back to sensible defaults when the config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Per-run deployment inputs (image, name, port...) come from the CLI, not from here
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import dataclasses
import json
import logging
import os

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes")


@dataclass(frozen=True)
class ClusterConfig:
    """Target cluster selection."""
    type: str = "kubernetes"
    name: str = ""
    tool_path: str = ""


@dataclass(frozen=True)
class TimeoutsConfig:
    """Polling ceilings and settle delays, in seconds unless noted."""
    rollout_seconds: int = 300
    rollout_reissue_interval: float = 2.0
    load_balancer_attempts: int = 60
    load_balancer_interval: float = 5.0
    health_check_seconds: int = 300
    health_check_interval: float = 5.0
    service_settle_seconds: float = 5.0
    ingress_settle_seconds: float = 5.0


@dataclass(frozen=True)
class RegistryConfig:
    """Image registry credentials."""
    ibm_cloud_api_key: str = field(default="", repr=False)
    pull_secret_name: str = "icr-secret"


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False


@dataclass(frozen=True)
class KubeshipConfig:
    """Root configuration for kubeship."""
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    log_level: str = "WARNING"


_TOP_LEVEL_KEYS = {"log_level"}


def _env_override(data: dict, prefix: str = "KUBESHIP") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern KUBESHIP_SECTION_KEY.
    For example: KUBESHIP_TIMEOUTS_ROLLOUT_SECONDS=600, KUBESHIP_CLUSTER_TYPE=openshift
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower()
        if name in _TOP_LEVEL_KEYS:
            data[name] = value
            continue
        parts = name.split("_", 1)
        if len(parts) == 2:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
        elif len(parts) == 1:
            data[parts[0]] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            return json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}


def _coerce(value: str, type_name: str):
    if type_name == "int":
        return int(value)
    if type_name == "float":
        return float(value)
    if type_name == "bool":
        return value.lower() in _TRUE_VALUES
    if type_name == "tuple[str, ...]":
        return tuple(v.strip() for v in value.split(",") if v.strip())
    return value


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    if not isinstance(data, dict):
        logger.warning("Ignoring non-object config section for %s", cls.__name__)
        return cls()
    valid_fields = {f.name: f for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    for name, val in filtered.items():
        type_name = str(valid_fields[name].type)
        if isinstance(val, str):
            try:
                filtered[name] = _coerce(val, type_name)
            except ValueError:
                logger.warning(
                    "Invalid value for %s.%s: %r, using default", cls.__name__, name, val
                )
                filtered[name] = valid_fields[name].default
        elif isinstance(val, list) and type_name == "tuple[str, ...]":
            filtered[name] = tuple(val)
        elif isinstance(val, int) and not isinstance(val, bool) and type_name == "float":
            filtered[name] = float(val)

    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "KUBESHIP",
) -> KubeshipConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (KUBESHIP_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to kubeship.json in CWD.
        env_prefix: Environment variable prefix. Defaults to KUBESHIP.
    """
    config_path = Path(path) if path else Path("kubeship.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    return KubeshipConfig(
        cluster=_build_sub_config(ClusterConfig, data.get("cluster", {})),
        timeouts=_build_sub_config(TimeoutsConfig, data.get("timeouts", {})),
        registry=_build_sub_config(RegistryConfig, data.get("registry", {})),
        telemetry=_build_sub_config(TelemetryConfig, data.get("telemetry", {})),
        log_level=data.get("log_level", "WARNING"),
    )
