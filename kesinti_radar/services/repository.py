"""Outage repository: the only entry point presentation code uses for outage data.

Wraps an ``OutageDataSource`` and converts every failure, timeout or
cancellation into a ``Result`` so nothing raises past this module.
"""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Generic, TypeVar
from uuid import UUID

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kesinti_radar.errors import NoConnectionError, OutageDataError, ServerError
from kesinti_radar.schemas.outage import Address, Outage, Provider, UserReport
from kesinti_radar.services.data_source import OutageDataSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

_OUTAGE_OPERATIONS = ("fetch_outages_around", "fetch_outages_for_address", "fetch_outage_history")


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: OutageDataError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: OutageDataError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value


class OutageRepository:
    def __init__(
        self,
        data_source: OutageDataSource,
        *,
        timeout: float | None = None,
        initial_load_retries: int = 0,
        retry_backoff_seconds: float = 0.5,
    ):
        self._data_source = data_source
        self._timeout = timeout or None
        self._initial_load_retries = max(0, initial_load_retries)
        self._retry_backoff_seconds = retry_backoff_seconds
        # Replaced wholesale by load_initial_data, never mutated in place
        self._providers: tuple[Provider, ...] = ()
        # Latest successful result per outage operation
        self._snapshots: dict[str, tuple[Outage, ...]] = {}

    @property
    def providers(self) -> list[Provider]:
        return list(self._providers)

    @property
    def data_source(self) -> OutageDataSource:
        return self._data_source

    async def load_initial_data(self) -> bool:
        """Fetch and publish providers, retrying with exponential backoff.

        Returns False (and leaves the published list untouched) when every
        attempt fails.
        """
        attempts = self._initial_load_retries + 1
        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self._retry_backoff_seconds),
            retry=retry_if_exception_type(OutageDataError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            providers = await retrying(self._fetch_providers)
        except OutageDataError as e:
            logger.warning("Provider load failed after %d attempts: %s", attempts, e)
            return False

        self._providers = tuple(providers)
        logger.info("Loaded %d providers from %s data source",
                    len(self._providers), self._data_source.name)
        return True

    async def _fetch_providers(self) -> list[Provider]:
        result = await self._call("fetch_providers", self._data_source.fetch_providers())
        return result.unwrap()

    def _log_retry(self, retry_state: RetryCallState):
        logger.warning("Provider load error (attempt %d/%d): %s",
                       retry_state.attempt_number, self._initial_load_retries + 1,
                       retry_state.outcome.exception())

    def known_outage(self, outage_id: UUID) -> Outage | None:
        """Look up an outage among the results of the most recent fetches."""
        for outages in self._snapshots.values():
            for outage in outages:
                if outage.id == outage_id:
                    return outage
        return None

    async def find_outage(self, outage_id: UUID, latitude: float, longitude: float) -> Result[Outage | None]:
        """Known outage by id, refreshing the outages around a location once on a miss."""
        outage = self.known_outage(outage_id)
        if outage is not None:
            return Result.success(outage)
        result = await self.get_outages_for_current_location(latitude, longitude)
        if not result.ok:
            return Result.failure(result.error)
        return Result.success(self.known_outage(outage_id))

    async def get_outages_for_current_location(
        self,
        latitude: float,
        longitude: float,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Result[list[Outage]]:
        return await self._call(
            "fetch_outages_around",
            self._data_source.fetch_outages_around(latitude, longitude),
            timeout=timeout,
            cancel=cancel,
        )

    async def get_outages(
        self,
        address: Address,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Result[list[Outage]]:
        return await self._call(
            "fetch_outages_for_address",
            self._data_source.fetch_outages_for_address(address),
            timeout=timeout,
            cancel=cancel,
        )

    async def get_outage_history(
        self,
        address: Address,
        *,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Result[list[Outage]]:
        return await self._call(
            "fetch_outage_history",
            self._data_source.fetch_outage_history(address),
            timeout=timeout,
            cancel=cancel,
        )

    async def send(self, report: UserReport) -> None:
        """Submit a report. Failures are logged only."""
        result = await self._call("send_user_report", self._data_source.send_user_report(report))
        if not result.ok:
            logger.warning("Report send failed for outage %s: %s", report.outage_id, result.error)

    async def _call(
        self,
        operation: str,
        call: Awaitable[T],
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Result[T]:
        timeout = (timeout if timeout is not None else self._timeout) or None
        fetch = asyncio.ensure_future(call)
        waiters = {fetch}
        cancel_waiter = None
        if cancel is not None:
            cancel_waiter = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            fetch.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if fetch not in done:
            fetch.cancel()
            reason = "cancelled" if cancel is not None and cancel.is_set() else f"timed out after {timeout}s"
            logger.warning("%s %s", operation, reason)
            return Result.failure(NoConnectionError(f"{operation} {reason}"))

        try:
            value = fetch.result()
        except OutageDataError as e:
            logger.warning("%s failed: %s", operation, e)
            return Result.failure(e)
        except Exception as e:
            logger.error("%s failed unexpectedly: %s", operation, e)
            return Result.failure(ServerError(str(e)))

        if operation in _OUTAGE_OPERATIONS:
            self._snapshots[operation] = tuple(value)
        return Result.success(value)
