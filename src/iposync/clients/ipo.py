from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

import pandas as pd
import requests

from iposync.clients.base import BaseTemplateClient, RecordFailure, SyncResult
from iposync.data.benzinga import endpoints
from iposync.data.benzinga.client import BenzingaClient
from iposync.data.storage.tasks import SampleTask, TaskStore
from iposync.logging.logger import log_event, log_warning


INVESTMENT_IPO_RECORD = "INVESTMENT_IPO_RECORD"
TASK_TIME_ZONE = "America/New_York"
LAYOUT_ISO = "%Y-%m-%d"


class IPOClientError(RuntimeError):
    pass


class IPOFetchError(IPOClientError):
    pass


class IPOParseError(IPOClientError, ValueError):
    pass


class EmptyIPODataError(IPOClientError):
    pass


def _as_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else 0
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if isinstance(value, int):
        return value == 1
    return False


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [_as_str(item) for item in value if item is not None]
    if isinstance(value, str) and value:
        return [value]
    return []


_CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    "str": _as_str,
    "int": _as_int,
    "bool": _as_bool,
    "List[str]": _as_str_list,
}


@dataclass(frozen=True)
class IPO:
    """One upcoming listing as returned by the Benzinga IPO calendar.

    Decoding ignores unknown keys; missing, null or unconvertible values
    fall back to the zero value of the field type.
    """

    id: str = ""
    date: str = ""
    time: str = ""
    ticker: str = ""
    exchange: str = ""
    name: str = ""
    open_date_verified: bool = False
    pricing_date: str = ""
    currency: str = ""
    price_min: str = ""
    price_max: str = ""
    deal_status: str = ""
    insider_lockup_days: str = ""
    insider_lockup_date: str = ""
    offering_value: int = 0
    offering_shares: int = 0
    lead_underwriters: List[str] = field(default_factory=list)
    shares_outstanding: int = 0
    underwriter_quiet_expiration_date: str = ""
    notes: str = ""
    updated: int = 0

    @classmethod
    def from_dict(cls, item: Dict[str, Any]) -> "IPO":
        values = {}
        for spec in fields(cls):
            if spec.name in item:
                values[spec.name] = _CONVERTERS[spec.type](item[spec.name])
        return cls(**values)

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"), sort_keys=True)


@dataclass(frozen=True)
class IPOData:
    ipos: List[IPO] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "IPOData":
        if not isinstance(payload, dict):
            raise ValueError("IPO response must be a JSON object")
        items = payload.get("ipos")
        if items is None:
            return cls()
        if not isinstance(items, list):
            raise ValueError("IPO response field 'ipos' must be a list")
        if any(not isinstance(item, dict) for item in items):
            raise ValueError("IPO response entries must be JSON objects")
        return cls(ipos=[IPO.from_dict(item) for item in items])

    def __len__(self) -> int:
        return len(self.ipos)


def parse_ipo_response(body: str) -> IPOData:
    try:
        return IPOData.from_payload(json.loads(body))
    except ValueError as exc:
        raise IPOParseError(f"Unmarshal IPO response failed: {body}") from exc


def task_uid(ticker: str) -> str:
    return f"{INVESTMENT_IPO_RECORD}_{ticker}"


def parse_available_before(date_str: str, tz: ZoneInfo) -> Optional[datetime]:
    try:
        return datetime.strptime(date_str, LAYOUT_ISO).replace(tzinfo=tz)
    except ValueError:
        return None


def build_task(target: IPO, now: Optional[datetime] = None) -> SampleTask:
    now = now or datetime.now(timezone.utc)
    # upstream occasionally appends a time or seconds to these fields
    due_date = target.date[:10]
    due_time = target.time[:5]
    return SampleTask(
        uid=task_uid(target.ticker),
        name=f"{target.name} ({target.ticker}) goes public on {due_date}",
        metadata=INVESTMENT_IPO_RECORD,
        raw=target.to_json(),
        due_date=due_date,
        due_time=due_time,
        time_zone=TASK_TIME_ZONE,
        available_before=parse_available_before(target.date, ZoneInfo(TASK_TIME_ZONE)),
        pending=True,
        refreshable=True,
        created_at=now,
        updated_at=now,
    )


class IPOClient(BaseTemplateClient):
    def __init__(
        self,
        rest_client: BenzingaClient,
        task_store: TaskStore,
        logger: Optional[logging.Logger] = None,
        timezone_name: str = TASK_TIME_ZONE,
        window_months: int = 1,
        page_size: int = endpoints.DEFAULT_PAGE_SIZE,
        importance: int = endpoints.DEFAULT_IMPORTANCE,
    ) -> None:
        super().__init__(rest_client, task_store, logger)
        self.tz = ZoneInfo(timezone_name)
        self.window_months = window_months
        self.page_size = page_size
        self.importance = importance
        self.data: Optional[IPOData] = None

    def fetch_window(self, today: Optional[date] = None) -> Tuple[str, str]:
        start = today or datetime.now(self.tz).date()
        end = (pd.Timestamp(start) + pd.DateOffset(months=self.window_months)).date()
        return start.isoformat(), end.isoformat()

    def fetch_data(self, today: Optional[date] = None) -> IPOData:
        date_from, date_to = self.fetch_window(today)
        log_event(self.logger, "fetching", source="ipo", date_from=date_from, date_to=date_to)
        try:
            body = self.rest_client.get_ipos(
                date_from,
                date_to,
                page_size=self.page_size,
                importance=self.importance,
            )
        except requests.RequestException as exc:
            raise IPOFetchError("IPO client sending request failed!") from exc

        data = parse_ipo_response(body)
        self.data = data
        log_event(self.logger, "fetched", source="ipo", count=len(data))
        return data

    def send_data(self, data: Optional[IPOData] = None) -> SyncResult:
        data = data if data is not None else self.data
        if data is None:
            raise EmptyIPODataError("Empty IPO data, please fetch data first.")

        result = SyncResult()
        for target in data.ipos:
            task = build_task(target)
            try:
                entity_id, new_record = self.task_store.upsert(task)
            except Exception as exc:
                log_warning(self.logger, "upsert_failed", uid=task.uid, error=str(exc))
                result.failed.append(RecordFailure(ticker=target.ticker, uid=task.uid, error=str(exc)))
                continue
            if new_record and entity_id > 0:
                result.created.append(entity_id)
            elif not new_record and entity_id > 0:
                result.modified.append(entity_id)

        log_event(
            self.logger,
            "sent",
            source="ipo",
            created=len(result.created),
            modified=len(result.modified),
            failed=len(result.failed),
        )
        return result
