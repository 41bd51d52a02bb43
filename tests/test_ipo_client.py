from __future__ import annotations

import json
from datetime import date

import pytest
import requests

from iposync.clients.ipo import (
    EmptyIPODataError,
    IPOClient,
    IPOFetchError,
    IPOParseError,
    build_task,
    parse_ipo_response,
    IPO,
)
from iposync.data.storage.tasks import InMemoryTaskStore


class FakeBenzinga:
    def __init__(self, body: str = "", error: Exception = None) -> None:
        self.body = body
        self.error = error
        self.calls = []

    def get_ipos(self, date_from, date_to, page_size=500, importance=0):
        self.calls.append((date_from, date_to, page_size, importance))
        if self.error is not None:
            raise self.error
        return self.body


SCENARIO_BODY = '{"ipos":[{"ticker":"XYZ","name":"Acme","date":"2024-06-10","time":"09:30:00"}]}'


def _body(*items: dict) -> str:
    return json.dumps({"ipos": list(items)})


def test_fetch_window_is_one_month() -> None:
    rest = FakeBenzinga(body=_body())
    client = IPOClient(rest, InMemoryTaskStore())
    client.fetch_data(today=date(2024, 5, 1))
    assert rest.calls == [("2024-05-01", "2024-06-01", 500, 0)]


def test_fetch_window_clamps_month_end() -> None:
    client = IPOClient(FakeBenzinga(), InMemoryTaskStore())
    assert client.fetch_window(date(2024, 1, 31)) == ("2024-01-31", "2024-02-29")


def test_scenario_creates_one_task() -> None:
    store = InMemoryTaskStore()
    client = IPOClient(FakeBenzinga(body=SCENARIO_BODY), store)
    client.fetch_data(today=date(2024, 6, 1))
    result = client.send_data()

    assert result.created == [1]
    assert result.modified == []
    task = store.get("INVESTMENT_IPO_RECORD_XYZ")
    assert task is not None
    assert task.name == "Acme (XYZ) goes public on 2024-06-10"
    assert task.due_time == "09:30"
    assert task.due_date == "2024-06-10"
    assert task.metadata == "INVESTMENT_IPO_RECORD"
    assert task.time_zone == "America/New_York"
    assert task.pending and task.refreshable
    assert task.available_before is not None
    assert task.available_before.date() == date(2024, 6, 10)
    assert json.loads(task.raw)["ticker"] == "XYZ"


def test_send_twice_is_idempotent() -> None:
    body = _body(
        {"ticker": "AAA", "name": "A", "date": "2024-06-10"},
        {"ticker": "BBB", "name": "B", "date": "2024-06-11"},
    )
    store = InMemoryTaskStore()
    client = IPOClient(FakeBenzinga(body=body), store)
    client.fetch_data(today=date(2024, 6, 1))

    first = client.send_data()
    second = client.send_data()

    assert first.created == [1, 2]
    assert first.modified == []
    assert second.created == []
    assert second.modified == [1, 2]
    assert len(store) == 2


def test_send_before_fetch_fails() -> None:
    store = InMemoryTaskStore()
    client = IPOClient(FakeBenzinga(), store)
    with pytest.raises(EmptyIPODataError):
        client.send_data()
    assert len(store) == 0


def test_send_accepts_explicit_data() -> None:
    store = InMemoryTaskStore()
    client = IPOClient(FakeBenzinga(), store)
    result = client.send_data(parse_ipo_response(SCENARIO_BODY))
    assert result.created == [1]
    assert client.data is None


def test_malformed_json_keeps_previous_data() -> None:
    rest = FakeBenzinga(body=SCENARIO_BODY)
    client = IPOClient(rest, InMemoryTaskStore())
    previous = client.fetch_data(today=date(2024, 6, 1))

    rest.body = "<html>oops</html>"
    with pytest.raises(IPOParseError) as excinfo:
        client.fetch_data(today=date(2024, 6, 1))

    assert "<html>oops</html>" in str(excinfo.value)
    assert client.data is previous


def test_transport_error_is_wrapped() -> None:
    client = IPOClient(FakeBenzinga(error=requests.ConnectionError("down")), InMemoryTaskStore())
    with pytest.raises(IPOFetchError) as excinfo:
        client.fetch_data(today=date(2024, 6, 1))
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)
    assert client.data is None


def test_processes_every_fetched_record() -> None:
    items = [{"ticker": f"T{idx}", "date": "2024-06-10"} for idx in range(7)]
    client = IPOClient(FakeBenzinga(body=_body(*items)), InMemoryTaskStore())
    client.fetch_data(today=date(2024, 6, 1))
    result = client.send_data()
    assert result.processed == 7


class FlakyStore(InMemoryTaskStore):
    def upsert(self, task):
        if task.uid.endswith("_BAD"):
            raise RuntimeError("constraint violated")
        return super().upsert(task)


class ZeroIdStore(InMemoryTaskStore):
    def upsert(self, task):
        super().upsert(task)
        return 0, True


def test_upsert_failure_does_not_abort_batch() -> None:
    body = _body({"ticker": "BAD"}, {"ticker": "GOOD"})
    client = IPOClient(FakeBenzinga(body=body), FlakyStore())
    client.fetch_data(today=date(2024, 6, 1))
    result = client.send_data()

    assert result.created == [1]
    assert len(result.failed) == 1
    assert result.failed[0].uid == "INVESTMENT_IPO_RECORD_BAD"
    assert "constraint violated" in result.failed[0].error


def test_zero_ids_are_dropped() -> None:
    client = IPOClient(FakeBenzinga(), ZeroIdStore())
    result = client.send_data(parse_ipo_response(SCENARIO_BODY))
    assert result.created == []
    assert result.modified == []
    assert result.failed == []


def test_build_task_truncates_date_and_time() -> None:
    task = build_task(IPO(ticker="ABC", name="Abc", date="2024-05-01T00:00:00Z", time="09:30:00"))
    assert task.due_date == "2024-05-01"
    assert task.due_time == "09:30"
    assert task.uid == "INVESTMENT_IPO_RECORD_ABC"
    assert task.available_before is None


def test_decoding_defaults_and_coercion() -> None:
    data = parse_ipo_response(
        _body(
            {
                "ticker": "XYZ",
                "offering_value": "1500000",
                "offering_shares": None,
                "price_min": 12,
                "lead_underwriters": ["Goldman Sachs", None],
                "open_date_verified": True,
                "unknown_field": "ignored",
            }
        )
    )
    ipo = data.ipos[0]
    assert ipo.offering_value == 1500000
    assert ipo.offering_shares == 0
    assert ipo.price_min == "12"
    assert ipo.lead_underwriters == ["Goldman Sachs"]
    assert ipo.open_date_verified is True
    assert ipo.exchange == ""


def test_missing_ipos_key_is_empty() -> None:
    assert len(parse_ipo_response("{}")) == 0


def test_non_list_ipos_is_parse_error() -> None:
    with pytest.raises(IPOParseError):
        parse_ipo_response('{"ipos": "nope"}')
