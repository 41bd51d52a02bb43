from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd


TASKS_REQUIRED_COLUMNS = [
    "id",
    "uid",
    "name",
    "metadata",
    "raw",
    "due_date",
    "due_time",
    "time_zone",
    "available_before",
    "pending",
    "refreshable",
    "created_at",
    "updated_at",
]

_FLAG_COLUMNS = ["pending", "refreshable"]


def _missing_columns(df: pd.DataFrame, required: List[str]) -> List[str]:
    return [col for col in required if col not in df.columns]


def validate_tasks_df(df: pd.DataFrame) -> Dict[str, Any]:
    errors: List[str] = []
    warnings: List[str] = []

    missing = _missing_columns(df, TASKS_REQUIRED_COLUMNS)
    if missing:
        errors.append(f"Missing columns: {missing}")

    if df.empty:
        warnings.append("Task table is empty")

    if "uid" in df.columns:
        if df["uid"].isna().any() or (df["uid"].astype(str).str.len() == 0).any():
            errors.append("Empty uid found")
        dupes = df["uid"].duplicated().sum()
        if dupes:
            errors.append(f"Duplicate uids: {dupes}")

    if "id" in df.columns and not df.empty:
        if df["id"].isna().any() or (df["id"].fillna(0) <= 0).any():
            errors.append("Task ids must be positive")
        elif df["id"].duplicated().any():
            errors.append("Duplicate task ids")

    for column in _FLAG_COLUMNS:
        if column not in df.columns:
            continue
        is_bool = df[column].dropna().apply(lambda value: isinstance(value, (bool, np.bool_)))
        if not is_bool.all():
            errors.append(f"{column} contains non-bool values")

    if "available_before" in df.columns and not df.empty:
        unparsed = int(df["available_before"].isna().sum())
        if unparsed:
            warnings.append(f"Tasks without available_before: {unparsed}")

    return {
        "pass": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
        "stats": {
            "rows": int(len(df)),
        },
    }


def validate_tasks_file(path: Path) -> Dict[str, Any]:
    df = pd.read_parquet(path)
    return validate_tasks_df(df)
