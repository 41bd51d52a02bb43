from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

import pandas as pd

from iposync.data.storage.atomic import read_parquet, write_parquet_atomic
from iposync.validate.tasks import validate_tasks_df


@dataclass(frozen=True)
class SampleTask:
    """A time-bound item surfaced to users, unique by ``uid``."""

    uid: str
    name: str
    metadata: str
    raw: str
    due_date: str
    due_time: str
    time_zone: str
    available_before: Optional[datetime] = None
    pending: bool = True
    refreshable: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: Optional[int] = None


TASK_COLUMNS = [f.name for f in fields(SampleTask)]


class TaskStore(Protocol):
    def upsert(self, task: SampleTask) -> Tuple[int, bool]:
        ...

    def get(self, uid: str) -> Optional[SampleTask]:
        ...


class InMemoryTaskStore:
    """Upserts keyed by uid; the stored id and created_at survive updates."""

    def __init__(self, tasks: Optional[List[SampleTask]] = None) -> None:
        self._tasks: Dict[str, SampleTask] = {}
        self._next_id = 1
        for task in tasks or []:
            self._tasks[task.uid] = task
            if task.id is not None and task.id >= self._next_id:
                self._next_id = task.id + 1

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, uid: str) -> Optional[SampleTask]:
        return self._tasks.get(uid)

    def all(self) -> List[SampleTask]:
        return sorted(self._tasks.values(), key=lambda task: task.id or 0)

    def upsert(self, task: SampleTask) -> Tuple[int, bool]:
        if not task.uid:
            raise ValueError("Task uid must not be empty")
        now = datetime.now(timezone.utc)
        existing = self._tasks.get(task.uid)
        if existing is None:
            stored = replace(
                task,
                id=self._next_id,
                created_at=task.created_at or now,
                updated_at=task.updated_at or now,
            )
            self._next_id += 1
            self._tasks[task.uid] = stored
            return stored.id, True

        stored = replace(
            task,
            id=existing.id,
            created_at=existing.created_at,
            updated_at=task.updated_at or now,
        )
        self._tasks[task.uid] = stored
        return stored.id, False


def _optional_datetime(value: Any) -> Optional[datetime]:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    return None


def _row_to_task(row: Dict[str, Any]) -> SampleTask:
    task_id = row.get("id")
    return SampleTask(
        uid=str(row["uid"]),
        name=str(row.get("name") or ""),
        metadata=str(row.get("metadata") or ""),
        raw=str(row.get("raw") or ""),
        due_date=str(row.get("due_date") or ""),
        due_time=str(row.get("due_time") or ""),
        time_zone=str(row.get("time_zone") or ""),
        available_before=_optional_datetime(row.get("available_before")),
        pending=bool(row.get("pending")),
        refreshable=bool(row.get("refreshable")),
        created_at=_optional_datetime(row.get("created_at")),
        updated_at=_optional_datetime(row.get("updated_at")),
        id=None if task_id is None or pd.isna(task_id) else int(task_id),
    )


def tasks_to_frame(tasks: List[SampleTask]) -> pd.DataFrame:
    df = pd.DataFrame([asdict(task) for task in tasks], columns=TASK_COLUMNS)
    for column in ("available_before", "created_at", "updated_at"):
        df[column] = pd.to_datetime(df[column], utc=True)
    return df


class ParquetTaskStore(InMemoryTaskStore):
    """Task store persisted as one parquet table; call ``flush`` to write."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        df = read_parquet(self.path, columns=TASK_COLUMNS)
        tasks = [_row_to_task(row) for row in df.to_dict(orient="records")]
        super().__init__(tasks)
        self._dirty = False

    def upsert(self, task: SampleTask) -> Tuple[int, bool]:
        result = super().upsert(task)
        self._dirty = True
        return result

    def flush(self) -> bool:
        if not self._dirty:
            return False
        df = tasks_to_frame(self.all())
        report = validate_tasks_df(df)
        if not report["pass"]:
            raise ValueError(f"Task store validation failed: {report['errors']}")
        write_parquet_atomic(df, self.path)
        self._dirty = False
        return True
