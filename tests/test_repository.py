"""Tests for the outage repository, its Result type and the HTTP data source."""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import httpx
import pytest

from kesinti_radar.config import Settings
from kesinti_radar.errors import DecodingError, NoConnectionError, ServerError
from kesinti_radar.schemas.outage import Address, Outage, Provider, ProviderType, UserReport
from kesinti_radar.services.data_source import OutageDataSource, build_data_source
from kesinti_radar.services.geo import haversine_km
from kesinti_radar.services.http_data_source import HttpOutageDataSource
from kesinti_radar.services.mock_data_source import MockOutageDataSource, seed_outages, seed_providers
from kesinti_radar.services.repository import OutageRepository, Result

NOW = datetime.now(timezone.utc)

_HOME = Address(label="Ev", full_text="Karabağlar, İzmir", latitude=38.384, longitude=27.128, is_primary=True)


def _mock_source(**kwargs) -> AsyncMock:
    source = AsyncMock(spec=OutageDataSource)
    source.name = "test"
    for attr, value in kwargs.items():
        setattr(source, attr, value)
    return source


# --- Result ---

def test_result_success_and_unwrap():
    result = Result.success([1, 2])
    assert result.ok
    assert result.unwrap() == [1, 2]


def test_result_failure_unwrap_raises():
    result = Result.failure(ServerError("boom"))
    assert not result.ok
    with pytest.raises(ServerError):
        result.unwrap()


# --- Repository ---

@pytest.mark.asyncio
async def test_outages_success_wrapped():
    repo = OutageRepository(MockOutageDataSource(latency=0, failure_probability=0.0))
    result = await repo.get_outages_for_current_location(38.42, 27.14)
    assert result.ok
    assert len(result.value) == 4


@pytest.mark.asyncio
async def test_data_source_error_becomes_failure():
    error = NoConnectionError("offline")
    source = _mock_source(fetch_outages_for_address=AsyncMock(side_effect=error))
    repo = OutageRepository(source)
    result = await repo.get_outages(_HOME)
    assert not result.ok
    assert result.error is error


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_server_error():
    source = _mock_source(fetch_outage_history=AsyncMock(side_effect=RuntimeError("kaboom")))
    repo = OutageRepository(source)
    result = await repo.get_outage_history(_HOME)
    assert isinstance(result.error, ServerError)
    assert "kaboom" in str(result.error)


@pytest.mark.asyncio
async def test_history_through_repository():
    repo = OutageRepository(MockOutageDataSource(latency=0, failure_probability=0.0))
    result = await repo.get_outage_history(_HOME)
    assert [o.title for o in result.value] == ["Bornova modem kesintisi"]


@pytest.mark.asyncio
async def test_timeout_becomes_no_connection():
    repo = OutageRepository(MockOutageDataSource(latency=5, failure_probability=0.0), timeout=0.05)
    result = await repo.get_outages_for_current_location(38.42, 27.14)
    assert isinstance(result.error, NoConnectionError)
    assert "timed out" in str(result.error)


@pytest.mark.asyncio
async def test_per_call_timeout_overrides_default():
    repo = OutageRepository(MockOutageDataSource(latency=5, failure_probability=0.0))
    result = await repo.get_outages(_HOME, timeout=0.05)
    assert isinstance(result.error, NoConnectionError)


@pytest.mark.asyncio
async def test_cancel_event_becomes_no_connection():
    repo = OutageRepository(MockOutageDataSource(latency=5, failure_probability=0.0))
    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(0.05, cancel.set)
    result = await repo.get_outages_for_current_location(38.42, 27.14, cancel=cancel)
    assert isinstance(result.error, NoConnectionError)
    assert "cancelled" in str(result.error)


@pytest.mark.asyncio
async def test_unset_cancel_event_does_not_interfere():
    repo = OutageRepository(MockOutageDataSource(latency=0, failure_probability=0.0))
    result = await repo.get_outages(_HOME, cancel=asyncio.Event())
    assert result.ok


@pytest.mark.asyncio
async def test_load_initial_data_publishes_providers():
    repo = OutageRepository(MockOutageDataSource(latency=0, failure_probability=0.0))
    assert repo.providers == []
    assert await repo.load_initial_data() is True
    assert len(repo.providers) == 4


@pytest.mark.asyncio
async def test_load_initial_data_failure_keeps_state():
    providers = seed_providers()
    source = _mock_source(fetch_providers=AsyncMock(side_effect=[providers, NoConnectionError()]))
    repo = OutageRepository(source)
    assert await repo.load_initial_data() is True
    assert await repo.load_initial_data() is False
    assert repo.providers == providers


@pytest.mark.asyncio
async def test_load_initial_data_retries():
    providers = seed_providers()
    fetch = AsyncMock(side_effect=[NoConnectionError(), ServerError(), providers])
    repo = OutageRepository(
        _mock_source(fetch_providers=fetch),
        initial_load_retries=2,
        retry_backoff_seconds=0,
    )
    assert await repo.load_initial_data() is True
    assert fetch.await_count == 3
    assert repo.providers == providers


@pytest.mark.asyncio
async def test_load_initial_data_gives_up_after_retries():
    fetch = AsyncMock(side_effect=NoConnectionError())
    repo = OutageRepository(_mock_source(fetch_providers=fetch), initial_load_retries=1, retry_backoff_seconds=0)
    assert await repo.load_initial_data() is False
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_load_initial_data_logs_each_failed_attempt(caplog):
    fetch = AsyncMock(side_effect=[NoConnectionError(), ServerError(), NoConnectionError()])
    repo = OutageRepository(_mock_source(fetch_providers=fetch), initial_load_retries=2, retry_backoff_seconds=0)
    with caplog.at_level(logging.WARNING):
        assert await repo.load_initial_data() is False
    assert "attempt 1/3" in caplog.text
    assert "attempt 2/3" in caplog.text
    assert "Provider load failed after 3 attempts" in caplog.text
    assert repo.providers == []


@pytest.mark.asyncio
async def test_load_initial_data_backs_off_exponentially():
    fetch = AsyncMock(side_effect=[NoConnectionError(), NoConnectionError(), seed_providers()])
    repo = OutageRepository(_mock_source(fetch_providers=fetch), initial_load_retries=2, retry_backoff_seconds=0.01)
    loop = asyncio.get_running_loop()
    started = loop.time()
    assert await repo.load_initial_data() is True
    # 0.01s after the first failure, 0.02s after the second
    assert loop.time() - started >= 0.025


# --- Outage lookup ---

@pytest.mark.asyncio
async def test_known_outage_after_fetch():
    repo = OutageRepository(MockOutageDataSource(latency=0, failure_probability=0.0))
    outages = (await repo.get_outages_for_current_location(38.42, 27.14)).value
    assert repo.known_outage(outages[1].id).title == outages[1].title
    assert repo.known_outage(uuid4()) is None


@pytest.mark.asyncio
async def test_find_outage_refreshes_on_miss():
    source = MockOutageDataSource(latency=0, failure_probability=0.0)
    repo = OutageRepository(source)
    outage_id = (await source.fetch_outages_around(38.42, 27.14))[0].id
    assert repo.known_outage(outage_id) is None

    result = await repo.find_outage(outage_id, 38.42, 27.14)
    assert result.ok
    assert result.value.id == outage_id

    missing = await repo.find_outage(uuid4(), 38.42, 27.14)
    assert missing.ok
    assert missing.value is None


@pytest.mark.asyncio
async def test_find_outage_failure():
    repo = OutageRepository(MockOutageDataSource(latency=0, failure_probability=1.0))
    result = await repo.find_outage(uuid4(), 38.42, 27.14)
    assert isinstance(result.error, NoConnectionError)


@pytest.mark.asyncio
async def test_send_failure_is_logged_not_raised(caplog):
    source = _mock_source(send_user_report=AsyncMock(side_effect=ServerError("down")))
    repo = OutageRepository(source)
    report = UserReport(outage_id=seed_outages(seed_providers(), NOW)[0].id)
    with caplog.at_level(logging.WARNING):
        await repo.send(report)
    assert "Report send failed" in caplog.text


@pytest.mark.asyncio
async def test_concurrent_calls_are_independent():
    repo = OutageRepository(MockOutageDataSource(latency=0.01, failure_probability=0.0))
    results = await asyncio.gather(*[repo.get_outages_for_current_location(38.4, 27.1) for _ in range(10)])
    assert all(r.ok and len(r.value) == 4 for r in results)


# --- Data source selection ---

def test_build_mock_data_source():
    source = build_data_source(Settings(data_source="mock", mock_latency_seconds=0))
    assert isinstance(source, MockOutageDataSource)


def test_build_http_data_source():
    source = build_data_source(Settings(data_source="http", outage_api_url="http://outages.test/api"))
    assert isinstance(source, HttpOutageDataSource)


# --- Distance ---

def test_haversine_same_point_is_zero():
    assert haversine_km(38.4237, 27.1428, 38.4237, 27.1428) == 0.0


def test_haversine_izmir_to_ankara():
    distance = haversine_km(38.4237, 27.1428, 39.92, 32.85)
    assert 500 < distance < 540
    assert haversine_km(39.92, 32.85, 38.4237, 27.1428) == pytest.approx(distance)


# --- HTTP data source ---

def _outage_payload() -> list[dict]:
    outages = seed_outages(seed_providers(), NOW)
    ankara = Outage(
        provider=Provider(name="SüperNet", type=ProviderType.INTERNET),
        type=ProviderType.INTERNET,
        title="Çankaya fiber kesintisi",
        status="unplanned",
        start_date=NOW - timedelta(hours=1),
        affected_areas=["Çankaya"],
        latitude=39.92,
        longitude=32.85,
    )
    return [o.model_dump(mode="json") for o in outages + [ankara]]


def _http_source(handler) -> HttpOutageDataSource:
    return HttpOutageDataSource(
        base_url="http://outages.test/api",
        radius_km=25,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_http_fetch_outages_around_filters_by_distance():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/outages"
        assert request.url.params["latitude"] == "38.4237"
        return httpx.Response(200, json=_outage_payload())

    outages = await _http_source(handler).fetch_outages_around(38.4237, 27.1428)
    titles = {o.title for o in outages}
    assert len(outages) == 4
    assert "Çankaya fiber kesintisi" not in titles


@pytest.mark.asyncio
async def test_http_fetch_for_address_matches_area_name():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"items": _outage_payload()})

    far_address = Address(label="İş", full_text="Çankaya, Ankara", latitude=0.0, longitude=0.0)
    outages = await _http_source(handler).fetch_outages_for_address(far_address)
    assert [o.title for o in outages] == ["Çankaya fiber kesintisi"]


@pytest.mark.asyncio
async def test_http_history_only_past():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_outage_payload())

    history = await _http_source(handler).fetch_outage_history(_HOME)
    assert [o.title for o in history] == ["Bornova modem kesintisi"]


@pytest.mark.asyncio
async def test_http_fetch_providers():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[p.model_dump(mode="json") for p in seed_providers()])

    providers = await _http_source(handler).fetch_providers()
    assert len(providers) == 4


@pytest.mark.asyncio
async def test_http_server_error():
    source = _http_source(lambda request: httpx.Response(502))
    with pytest.raises(ServerError):
        await source.fetch_providers()


@pytest.mark.asyncio
async def test_http_connect_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NoConnectionError):
        await _http_source(handler).fetch_outages_around(38.4, 27.1)


@pytest.mark.asyncio
async def test_http_malformed_payload():
    source = _http_source(lambda request: httpx.Response(200, content=b"<html>not json</html>"))
    with pytest.raises(DecodingError):
        await source.fetch_providers()


@pytest.mark.asyncio
async def test_http_invalid_outage_payload():
    source = _http_source(lambda request: httpx.Response(200, json=[{"title": "missing fields"}]))
    with pytest.raises(DecodingError):
        await source.fetch_outages_around(38.4, 27.1)


@pytest.mark.asyncio
async def test_http_send_report_posts_json():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    report = UserReport(outage_id=seed_outages(seed_providers(), NOW)[1].id, comment="Su yok", is_power_back=False)
    await _http_source(handler).send_user_report(report)
    assert seen["method"] == "POST"
    assert seen["path"] == "/api/reports"
    assert seen["body"]["comment"] == "Su yok"
    assert seen["body"]["outage_id"] == str(report.outage_id)


@pytest.mark.asyncio
async def test_repository_over_http_converts_errors():
    repo = OutageRepository(_http_source(lambda request: httpx.Response(503)))
    result = await repo.get_outages_for_current_location(38.4, 27.1)
    assert isinstance(result.error, ServerError)
