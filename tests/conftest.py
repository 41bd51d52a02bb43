from __future__ import annotations

from pathlib import Path

import pytest

from iposync.config.loader import load_config
from iposync.config.schema import AppConfig


def write_config(path: Path, data_dir: Path, artifacts_dir: Path, jsonl: bool = True) -> None:
    def _p(value: Path) -> str:
        return value.as_posix()

    content = f"""
project:
  timezone: "America/New_York"

benzinga:
  base_url: "https://www.benzinga.com"
  page_size: 500
  importance: 0
  window_months: 1
  timeout_seconds: 30

paths:
  data_dir: "{_p(data_dir)}"
  artifacts_dir: "{_p(artifacts_dir)}"

store:
  tasks_path: "{_p(data_dir / "tasks" / "sample_tasks.parquet")}"

logging:
  level: "INFO"
  jsonl: {"true" if jsonl else "false"}
"""
    path.write_text(content.strip())


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    config_path = tmp_path / "config.yaml"
    write_config(config_path, tmp_path / "data", tmp_path / "artifacts")
    return load_config(config_path=config_path)
