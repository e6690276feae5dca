"""
Configuration loading and merge utilities.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .graph_client import DEFAULT_BASE_URL

RUN_TYPES = ("device", "user", "useranddevice")


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""


@dataclass
class Config:
    tenant_id: Optional[str] = None
    client_id: Optional[str] = None
    graph_base_url: str = DEFAULT_BASE_URL
    run_type: str = "useranddevice"
    output_dir: Path = Path(".")
    formats: List[str] = field(default_factory=lambda: ["csv", "html"])
    group_expansion_depth: int = 1  # Nested group levels expanded when counting assigned users
    max_workers: int = 1  # Applications processed concurrently (1 = sequential)
    config_path: Optional[Path] = None


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {config_path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file {config_path}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError("Configuration file must contain a mapping.")
    return loaded


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def load_config(
    config_file: Optional[str] = None,
    *,
    tenant_id: Optional[str] = None,
    client_id: Optional[str] = None,
    graph_base_url: Optional[str] = None,
    run_type: Optional[str] = None,
    output_dir: Optional[str] = None,
    formats: Optional[List[str]] = None,
    group_expansion_depth: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> Config:
    """
    Load configuration from CLI, environment, and optional YAML file.

    Precedence: CLI > environment > config file > defaults.
    """
    env_config = os.environ.get("INTUNE_APP_STATUS_CONFIG")
    config_path = Path(config_file or env_config or Path.home() / ".intune_app_status.yml").expanduser()
    file_data = _read_config_file(config_path)

    concurrency_config = file_data.get("concurrency", {})
    if not isinstance(concurrency_config, dict):
        concurrency_config = {}

    file_formats = file_data.get("formats")
    if isinstance(file_formats, str):
        file_formats = [file_formats]

    defaults = Config()
    config = Config(
        tenant_id=tenant_id or os.environ.get("AZURE_TENANT_ID") or file_data.get("tenant_id"),
        client_id=client_id or os.environ.get("AZURE_CLIENT_ID") or file_data.get("client_id"),
        graph_base_url=graph_base_url or os.environ.get("GRAPH_BASE_URL") or file_data.get("graph_base_url") or defaults.graph_base_url,
        run_type=str(run_type or os.environ.get("INTUNE_APP_STATUS_RUN_TYPE") or file_data.get("run_type") or defaults.run_type).lower(),
        output_dir=Path(output_dir or file_data.get("output_dir") or defaults.output_dir).expanduser(),
        formats=[str(f).lower() for f in (formats or file_formats or defaults.formats)],
        group_expansion_depth=_as_int(
            "group_expansion_depth",
            group_expansion_depth if group_expansion_depth is not None else file_data.get("group_expansion_depth", defaults.group_expansion_depth),
        ),
        max_workers=_as_int(
            "max_workers",
            max_workers if max_workers is not None else concurrency_config.get("max_workers", defaults.max_workers),
        ),
        config_path=config_path if config_path.exists() else None,
    )

    if config.run_type not in RUN_TYPES:
        raise ConfigError(f"Unknown run type '{config.run_type}'. Choose from {', '.join(RUN_TYPES)}")
    if config.group_expansion_depth < 0:
        raise ConfigError("group_expansion_depth must be zero or greater")
    if config.max_workers < 1:
        raise ConfigError("max_workers must be at least 1")
    unknown_formats = [f for f in config.formats if f not in ("csv", "html")]
    if unknown_formats:
        raise ConfigError(f"Unsupported report format(s): {', '.join(unknown_formats)}")

    return config
