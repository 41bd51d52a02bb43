from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from iposync.data.benzinga.client import BenzingaClient
from iposync.data.storage.tasks import TaskStore


@dataclass(frozen=True)
class RecordFailure:
    ticker: str
    uid: str
    error: str


@dataclass
class SyncResult:
    created: List[int] = field(default_factory=list)
    modified: List[int] = field(default_factory=list)
    failed: List[RecordFailure] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.created) + len(self.modified) + len(self.failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created": list(self.created),
            "modified": list(self.modified),
            "failed": [asdict(failure) for failure in self.failed],
        }


class SyncClient(Protocol):
    def fetch_data(self) -> Any:
        ...

    def send_data(self, data: Any = None) -> SyncResult:
        ...


class BaseTemplateClient:
    """Shared collaborators for clients that fetch remote records and upsert them as tasks."""

    def __init__(
        self,
        rest_client: BenzingaClient,
        task_store: TaskStore,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.rest_client = rest_client
        self.task_store = task_store
        self.logger = logger or logging.getLogger("iposync.clients")


class TemplateClient:
    def __init__(self, client: SyncClient) -> None:
        self.client = client

    def run(self) -> SyncResult:
        data = self.client.fetch_data()
        return self.client.send_data(data)
