from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def _full_key(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _require(mapping: Dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(mapping, dict) or key not in mapping:
        raise ValueError(f"Missing config key: {_full_key(path, key)}")
    return mapping[key]


def _get_typed(
    mapping: Dict[str, Any],
    key: str,
    path: str,
    kinds: Tuple[type, ...],
    label: str,
) -> Any:
    value = _require(mapping, key, path)
    if bool not in kinds and isinstance(value, bool):
        raise ValueError(f"Config key must be {label}: {_full_key(path, key)}")
    if not isinstance(value, kinds):
        raise ValueError(f"Config key must be {label}: {_full_key(path, key)}")
    return value


def _get_str(mapping: Dict[str, Any], key: str, path: str) -> str:
    return _get_typed(mapping, key, path, (str,), "string")


def _get_bool(mapping: Dict[str, Any], key: str, path: str) -> bool:
    return _get_typed(mapping, key, path, (bool,), "bool")


def _get_int(mapping: Dict[str, Any], key: str, path: str) -> int:
    return _get_typed(mapping, key, path, (int,), "int")


def _get_positive_int(mapping: Dict[str, Any], key: str, path: str) -> int:
    value = _get_int(mapping, key, path)
    if value <= 0:
        raise ValueError(f"Config key must be positive: {_full_key(path, key)}")
    return value


def _get_float(mapping: Dict[str, Any], key: str, path: str) -> float:
    return float(_get_typed(mapping, key, path, (int, float), "float"))


def _get_timezone(mapping: Dict[str, Any], key: str, path: str) -> str:
    value = _get_str(mapping, key, path)
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone for {_full_key(path, key)}: {value}") from exc
    return value


@dataclass(frozen=True)
class ProjectConfig:
    timezone: str


@dataclass(frozen=True)
class BenzingaConfig:
    base_url: str
    page_size: int
    importance: int
    window_months: int
    timeout_seconds: float


@dataclass(frozen=True)
class PathsConfig:
    data_dir: str
    artifacts_dir: str


@dataclass(frozen=True)
class StoreConfig:
    tasks_path: str


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    jsonl: bool


@dataclass(frozen=True)
class AppConfig:
    project: ProjectConfig
    benzinga: BenzingaConfig
    paths: PathsConfig
    store: StoreConfig
    logging: LoggingConfig

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "AppConfig":
        project = _require(data, "project", "")
        benzinga = _require(data, "benzinga", "")
        paths = _require(data, "paths", "")
        store = _require(data, "store", "")
        logging = _require(data, "logging", "")

        project_cfg = ProjectConfig(
            timezone=_get_timezone(project, "timezone", "project"),
        )
        benzinga_cfg = BenzingaConfig(
            base_url=_get_str(benzinga, "base_url", "benzinga"),
            page_size=_get_positive_int(benzinga, "page_size", "benzinga"),
            importance=_get_int(benzinga, "importance", "benzinga"),
            window_months=_get_positive_int(benzinga, "window_months", "benzinga"),
            timeout_seconds=_get_float(benzinga, "timeout_seconds", "benzinga"),
        )
        paths_cfg = PathsConfig(
            data_dir=_get_str(paths, "data_dir", "paths"),
            artifacts_dir=_get_str(paths, "artifacts_dir", "paths"),
        )
        store_cfg = StoreConfig(
            tasks_path=_get_str(store, "tasks_path", "store"),
        )
        logging_cfg = LoggingConfig(
            level=_get_str(logging, "level", "logging"),
            jsonl=_get_bool(logging, "jsonl", "logging"),
        )

        return AppConfig(
            project=project_cfg,
            benzinga=benzinga_cfg,
            paths=paths_cfg,
            store=store_cfg,
            logging=logging_cfg,
        )
