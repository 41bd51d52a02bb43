from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from iposync.clients.base import SyncResult, TemplateClient
from iposync.clients.ipo import IPOClient
from iposync.config.schema import AppConfig
from iposync.data.benzinga.client import BenzingaClient
from iposync.data.storage.atomic import write_state
from iposync.data.storage.paths import sync_state_path, tasks_store_path
from iposync.data.storage.tasks import InMemoryTaskStore, ParquetTaskStore, TaskStore
from iposync.logging.logger import build_log_path, log_event, setup_logger


JOB_NAME = "sync_ipos"


def run(
    cfg: AppConfig,
    dry_run: bool = False,
    rest_client: Optional[BenzingaClient] = None,
    task_store: Optional[TaskStore] = None,
) -> SyncResult:
    log_path = build_log_path(cfg, JOB_NAME)
    logger = setup_logger(JOB_NAME, log_path, cfg.logging.level, jsonl=cfg.logging.jsonl)

    log_event(logger, "start", dry_run=dry_run)
    started_at = datetime.now(timezone.utc)

    if rest_client is None:
        rest_client = BenzingaClient.from_env(
            cfg.benzinga.base_url,
            timeout=cfg.benzinga.timeout_seconds,
        )
    if task_store is None:
        task_store = InMemoryTaskStore() if dry_run else ParquetTaskStore(tasks_store_path(cfg))

    client = IPOClient(
        rest_client,
        task_store,
        logger=logger,
        timezone_name=cfg.project.timezone,
        window_months=cfg.benzinga.window_months,
        page_size=cfg.benzinga.page_size,
        importance=cfg.benzinga.importance,
    )
    result = TemplateClient(client).run()

    if isinstance(task_store, ParquetTaskStore) and task_store.flush():
        log_event(logger, "flushed", path=str(task_store.path), rows=len(task_store))

    if not dry_run:
        state = {
            "job": JOB_NAME,
            "started_at_utc": started_at.isoformat(),
            "finished_at_utc": datetime.now(timezone.utc).isoformat(),
            **result.to_dict(),
        }
        write_state(state, sync_state_path(cfg, JOB_NAME))

    log_event(
        logger,
        "complete",
        created=len(result.created),
        modified=len(result.modified),
        failed=len(result.failed),
    )
    return result
