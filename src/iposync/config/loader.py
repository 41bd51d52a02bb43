from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from iposync.config.schema import AppConfig


CONFIG_ENV_VAR = "IPOSYNC_CONFIG"


def find_project_root(start_path: Optional[Path] = None) -> Path:
    start = (start_path or Path.cwd()).resolve()
    for path in [start] + list(start.parents):
        if (path / "config.yaml").exists() or (path / "config" / "config.yaml").exists():
            return path
    raise FileNotFoundError("Could not find config.yaml in parent directories")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data or {}


def _default_config_path() -> Path:
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    root = find_project_root()
    nested_config = root / "config" / "config.yaml"
    return nested_config if nested_config.exists() else root / "config.yaml"


def load_config(
    config_path: Optional[Path] = None,
    local_path: Optional[Path] = None,
) -> AppConfig:
    config_path = Path(config_path) if config_path is not None else _default_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    root = config_path.parent

    if local_path is not None:
        local_path = Path(local_path)
    else:
        local_path = config_path.with_name("config.local.yaml")

    load_dotenv(root / ".env", override=False)

    base_cfg = _read_yaml(config_path)
    local_cfg = _read_yaml(local_path)
    merged = _deep_merge(base_cfg, local_cfg)

    return AppConfig.from_dict(merged)
