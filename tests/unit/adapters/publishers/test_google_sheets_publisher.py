# tests/unit/adapters/publishers/test_google_sheets_publisher.py
from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from tariff_sync.adapters.publishers.google_sheets_publisher import GoogleSheetsPublisher
from tariff_sync.domain.entities.tariffs import RATE_FIELDS, CurrentRate, RateVector
from tariff_sync.domain.exceptions.tariffs import PublishError


class FakeSheetsClient:
    def __init__(self, titles: dict[str, list[str]], failing: set[str] | None = None) -> None:
        self.titles = titles
        self.failing = failing or set()
        self.calls: list[tuple[str, ...]] = []
        self.written: dict[str, list[list[str]]] = {}

    async def sheet_titles(self, spreadsheet_id: str) -> list[str]:
        self.calls.append(("titles", spreadsheet_id))
        if spreadsheet_id in self.failing:
            raise PublishError(
                "sheets_api_error", details={"spreadsheet_id": spreadsheet_id, "status": 403}
            )
        return self.titles.get(spreadsheet_id, [])

    async def add_sheet(self, spreadsheet_id: str, title: str) -> None:
        self.calls.append(("add", spreadsheet_id, title))

    async def clear_values(self, spreadsheet_id: str, a1_range: str) -> None:
        self.calls.append(("clear", spreadsheet_id, a1_range))

    async def update_values(
        self, spreadsheet_id: str, a1_range: str, values: Sequence[Sequence[str]]
    ) -> None:
        self.calls.append(("update", spreadsheet_id, a1_range))
        self.written[spreadsheet_id] = [list(row) for row in values]


def _ids(*ids: str):
    async def _source() -> list[str]:
        return list(ids)

    return _source


def _rates() -> list[CurrentRate]:
    return [
        CurrentRate(
            region_name="Москва",
            warehouse_name="Коледино",
            start_date=datetime(2025, 9, 19, 12, tzinfo=UTC),
            end_date=None,
            rates=RateVector(**{name: Decimal("1") for name in RATE_FIELDS}),
        )
    ]


@pytest.mark.anyio
async def test_publish_creates_missing_page_then_clears_and_writes() -> None:
    client = FakeSheetsClient({"s1": ["Sheet1"]})
    publisher = GoogleSheetsPublisher(
        client=client, spreadsheet_ids=_ids("s1"), page_name="stocks_coefs"
    )

    assert await publisher.publish(_rates()) == 1

    assert client.calls == [
        ("titles", "s1"),
        ("add", "s1", "stocks_coefs"),
        ("clear", "s1", "stocks_coefs!A1:Z1000"),
        ("update", "s1", "stocks_coefs!A1"),
    ]
    assert client.written["s1"][1][:2] == ["Москва", "Коледино"]


@pytest.mark.anyio
async def test_existing_page_is_reused() -> None:
    client = FakeSheetsClient({"s1": ["stocks_coefs"]})
    publisher = GoogleSheetsPublisher(
        client=client, spreadsheet_ids=_ids("s1"), page_name="stocks_coefs"
    )

    await publisher.publish(_rates())

    assert not any(call[0] == "add" for call in client.calls)


@pytest.mark.anyio
async def test_one_failing_target_does_not_stop_the_others() -> None:
    client = FakeSheetsClient({"s2": ["stocks_coefs"]}, failing={"s1"})
    publisher = GoogleSheetsPublisher(
        client=client, spreadsheet_ids=_ids("s1", "s2"), page_name="stocks_coefs"
    )

    with pytest.raises(PublishError) as exc_info:
        await publisher.publish(_rates())

    assert "s2" in client.written
    assert exc_info.value.details == {"failed": {"s1": "403"}, "attempted": 2}


@pytest.mark.anyio
async def test_no_targets_publishes_nothing() -> None:
    client = FakeSheetsClient({})
    publisher = GoogleSheetsPublisher(client=client, spreadsheet_ids=_ids(), page_name="p")

    assert await publisher.publish(_rates()) == 0
    assert client.calls == []


@pytest.mark.anyio
async def test_empty_projection_writes_message_row() -> None:
    client = FakeSheetsClient({"s1": ["p"]})
    publisher = GoogleSheetsPublisher(client=client, spreadsheet_ids=_ids("s1"), page_name="p")

    await publisher.publish([])

    assert client.written["s1"] == [["No current rates"]]


@pytest.mark.anyio
async def test_unreadable_spreadsheet_registry_raises_publish_error() -> None:
    async def _broken() -> list[str]:
        raise OSError("database unreachable")

    client = FakeSheetsClient({"s1": ["stocks_coefs"]})
    publisher = GoogleSheetsPublisher(
        client=client, spreadsheet_ids=_broken, page_name="stocks_coefs"
    )

    with pytest.raises(PublishError, match="targets_unavailable") as exc_info:
        await publisher.publish(_rates())

    assert exc_info.value.details == {"error": "OSError"}
    assert client.calls == []


@pytest.mark.anyio
async def test_unknown_timezone_raises_publish_error_before_any_write() -> None:
    client = FakeSheetsClient({"s1": ["stocks_coefs"]})
    publisher = GoogleSheetsPublisher(
        client=client,
        spreadsheet_ids=_ids("s1"),
        page_name="stocks_coefs",
        timezone="Nowhere/Zone",
    )

    with pytest.raises(PublishError, match="render_failed"):
        await publisher.publish(_rates())

    assert client.calls == []
