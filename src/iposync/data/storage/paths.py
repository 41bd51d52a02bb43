from __future__ import annotations

from pathlib import Path
from typing import Optional

from iposync.config.loader import find_project_root
from iposync.config.schema import AppConfig


def project_root(start_path: Optional[Path] = None) -> Path:
    return find_project_root(start_path)


def resolve_path(path_value: str, root: Optional[Path] = None) -> Path:
    path = Path(path_value)
    if path.is_absolute():
        return path
    base = root or project_root()
    return base / path


def data_dir(cfg: AppConfig, root: Optional[Path] = None) -> Path:
    return resolve_path(cfg.paths.data_dir, root)


def artifacts_dir(cfg: AppConfig, root: Optional[Path] = None) -> Path:
    return resolve_path(cfg.paths.artifacts_dir, root)


def tasks_store_path(cfg: AppConfig, root: Optional[Path] = None) -> Path:
    return resolve_path(cfg.store.tasks_path, root)


def artifacts_state_dir(cfg: AppConfig, root: Optional[Path] = None) -> Path:
    return artifacts_dir(cfg, root) / "state"


def sync_state_path(cfg: AppConfig, job_name: str, root: Optional[Path] = None) -> Path:
    return artifacts_state_dir(cfg, root) / f"{job_name}.json"
