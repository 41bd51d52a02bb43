from __future__ import annotations

import json
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd


def _tmp_sibling(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    return path.with_suffix(path.suffix + f".{uuid.uuid4().hex}.tmp")


def write_parquet_atomic(df: pd.DataFrame, path: Path) -> None:
    path = Path(path)
    tmp_path = _tmp_sibling(path)
    df.to_parquet(tmp_path, index=False)
    os.replace(tmp_path, path)


def read_parquet(path: Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        return pd.DataFrame(columns=columns or [])
    return pd.read_parquet(path)


def read_state(path: Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def write_state(state: Dict[str, Any], path: Path) -> None:
    path = Path(path)
    tmp_path = _tmp_sibling(path)
    with tmp_path.open("w", encoding="utf-8") as handle:
        json.dump(state, handle, ensure_ascii=True, indent=2, default=str)
    os.replace(tmp_path, path)
