# tests/unit/infrastructure/external_apis/wildberries/test_wildberries_client.py
from __future__ import annotations

from datetime import date

import httpx
import pytest
import respx

from tariff_sync.domain.exceptions.tariffs import (
    UpstreamAuthError,
    UpstreamUnavailable,
    UpstreamValidationError,
)
from tariff_sync.infrastructure.external_apis.wildberries.client import WildberriesClient
from tariff_sync.infrastructure.external_apis.wildberries.settings import WildberriesSettings
from tariff_sync.infrastructure.logging.logger import set_run_id
from tariff_sync.infrastructure.resilience.retry import RetryPolicy

BASE = "https://wb.test"
PATH = "/api/v1/tariffs/box"
AS_OF = date(2025, 9, 19)
BODY = {"response": {"data": {"dtTillMax": "2025-09-30", "warehouseList": []}}}


class _Sleeps:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _client(
    http: httpx.AsyncClient, sleeps: _Sleeps, retries: int = 2, cap: float = 0.0
) -> WildberriesClient:
    cfg = WildberriesSettings(base_url=BASE, token="secret-token")  # type: ignore[arg-type]
    return WildberriesClient(
        cfg,
        http=http,
        retry_policy=RetryPolicy(total=retries, base=0.0, cap=cap, jitter=False),
        sleep=sleeps,
    )


@pytest.mark.anyio
async def test_box_tariffs_returns_data_and_sends_headers() -> None:
    set_run_id("run-123")
    try:
        async with httpx.AsyncClient() as http:
            with respx.mock(assert_all_called=False) as router:
                route = router.get(host="wb.test", path=PATH).mock(
                    return_value=httpx.Response(200, json=BODY)
                )
                data = await _client(http, _Sleeps()).box_tariffs(as_of=AS_OF)
    finally:
        set_run_id(None)

    assert data == BODY["response"]["data"]
    request = route.calls.last.request
    assert request.url.params["date"] == "2025-09-19"
    assert request.headers["Authorization"] == "Bearer secret-token"
    assert request.headers["X-Request-ID"] == "run-123"


@pytest.mark.anyio
async def test_auth_failure_is_not_retried() -> None:
    async with httpx.AsyncClient() as http:
        with respx.mock(assert_all_called=False) as router:
            route = router.get(host="wb.test", path=PATH).mock(
                return_value=httpx.Response(401, json={})
            )
            with pytest.raises(UpstreamAuthError):
                await _client(http, _Sleeps()).box_tariffs(as_of=AS_OF)

    assert route.call_count == 1


@pytest.mark.anyio
async def test_server_error_is_retried_then_succeeds() -> None:
    sleeps = _Sleeps()
    async with httpx.AsyncClient() as http:
        with respx.mock(assert_all_called=False) as router:
            route = router.get(host="wb.test", path=PATH).mock(
                side_effect=[httpx.Response(503), httpx.Response(200, json=BODY)]
            )
            data = await _client(http, sleeps).box_tariffs(as_of=AS_OF)

    assert route.call_count == 2
    assert data["dtTillMax"] == "2025-09-30"
    assert sleeps.calls == [0.0]


@pytest.mark.anyio
async def test_retry_after_is_honored_for_throttling() -> None:
    sleeps = _Sleeps()
    async with httpx.AsyncClient() as http:
        with respx.mock(assert_all_called=False) as router:
            router.get(host="wb.test", path=PATH).mock(
                side_effect=[
                    httpx.Response(429, headers={"Retry-After": "5"}),
                    httpx.Response(200, json=BODY),
                ]
            )
            await _client(http, sleeps, retries=1, cap=10.0).box_tariffs(as_of=AS_OF)

    assert sleeps.calls == [5.0]


@pytest.mark.anyio
async def test_retry_after_is_capped_by_retry_policy() -> None:
    sleeps = _Sleeps()
    async with httpx.AsyncClient() as http:
        with respx.mock(assert_all_called=False) as router:
            router.get(host="wb.test", path=PATH).mock(
                side_effect=[
                    httpx.Response(429, headers={"Retry-After": "3600"}),
                    httpx.Response(200, json=BODY),
                ]
            )
            await _client(http, sleeps, retries=1, cap=2.0).box_tariffs(as_of=AS_OF)

    assert sleeps.calls == [2.0]


@pytest.mark.anyio
async def test_retry_after_is_not_slept_when_no_retry_remains() -> None:
    sleeps = _Sleeps()
    async with httpx.AsyncClient() as http:
        with respx.mock(assert_all_called=False) as router:
            router.get(host="wb.test", path=PATH).mock(
                return_value=httpx.Response(429, headers={"Retry-After": "30"})
            )
            with pytest.raises(UpstreamUnavailable) as exc_info:
                await _client(http, sleeps, retries=0, cap=60.0).box_tariffs(as_of=AS_OF)

    assert sleeps.calls == []
    assert exc_info.value.details == {"status": 429, "retry_after": 30.0}


@pytest.mark.anyio
async def test_exhausted_retries_raise_unavailable() -> None:
    async with httpx.AsyncClient() as http:
        with respx.mock(assert_all_called=False) as router:
            route = router.get(host="wb.test", path=PATH).mock(
                return_value=httpx.Response(500)
            )
            with pytest.raises(UpstreamUnavailable) as exc_info:
                await _client(http, _Sleeps(), retries=2).box_tariffs(as_of=AS_OF)

    assert route.call_count == 3
    assert exc_info.value.details == {"status": 500}


@pytest.mark.anyio
async def test_transport_error_maps_to_unavailable() -> None:
    async with httpx.AsyncClient() as http:
        with respx.mock(assert_all_called=False) as router:
            router.get(host="wb.test", path=PATH).mock(side_effect=httpx.ConnectError("down"))
            with pytest.raises(UpstreamUnavailable, match="transport_error"):
                await _client(http, _Sleeps(), retries=0).box_tariffs(as_of=AS_OF)


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("response", "message"),
    [
        (httpx.Response(404, json={}), "unexpected_status"),
        (httpx.Response(200, text="<html>"), "non_json"),
        (httpx.Response(200, json={"response": {}}), "bad_shape"),
        (httpx.Response(200, json=[1, 2]), "bad_shape"),
    ],
)
async def test_invalid_responses_raise_validation_error(
    response: httpx.Response, message: str
) -> None:
    async with httpx.AsyncClient() as http:
        with respx.mock(assert_all_called=False) as router:
            route = router.get(host="wb.test", path=PATH).mock(return_value=response)
            with pytest.raises(UpstreamValidationError, match=message):
                await _client(http, _Sleeps()).box_tariffs(as_of=AS_OF)

    assert route.call_count == 1
