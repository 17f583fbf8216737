"""Periodic and on-demand recomputation of the compliance report."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Union

from pydantic import BaseModel, Field

from tierguard.catalog.loader import load_catalog
from tierguard.catalog.models import CatalogSnapshot
from tierguard.compliance.engine import build_report
from tierguard.compliance.models import ComplianceReport, Observation
from tierguard.settings import MonitorSettings
from tierguard.signals.probe import collect_observations

logger = logging.getLogger(__name__)

CatalogProvider = Callable[[], Union[CatalogSnapshot, Awaitable[CatalogSnapshot]]]
Collector = Callable[[CatalogSnapshot], Awaitable[List[Observation]]]
Subscriber = Callable[[ComplianceReport], Union[None, Awaitable[None]]]


class ComplianceEvaluationError(Exception):
    """A refresh cycle failed; the previously published report is still current."""


class MonitorStatus(BaseModel):
    running: bool = False
    refreshing: bool = False
    auto_refresh: bool = True
    refresh_interval_s: float = 30.0
    last_updated: Optional[datetime] = None
    last_error: Optional[str] = None
    cycles: int = Field(default=0, description="Completed refresh cycles, failed ones included")


class ComplianceMonitor:
    """
    Owns the published ComplianceReport and the cycle that rebuilds it.

    A cycle loads the catalog snapshot, probes every instance, builds a fresh
    report and swaps it in with a single assignment, so readers only ever see
    a complete report. At most one cycle runs at a time: ``refresh()`` called
    while a cycle is in flight waits for that cycle instead of starting
    another one. When a cycle fails the old report stays published and the
    error is kept on ``last_error``.
    """

    def __init__(
        self,
        catalog: Union[CatalogSnapshot, CatalogProvider],
        collector: Optional[Collector] = None,
        refresh_interval_s: float = 30.0,
        auto_refresh: bool = True,
        probe_timeout_s: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if refresh_interval_s <= 0:
            raise ValueError("refresh_interval_s must be positive")
        self._catalog = catalog
        self._collector = collector or functools.partial(collect_observations, timeout_s=probe_timeout_s)
        self.refresh_interval_s = refresh_interval_s
        self._auto_refresh = auto_refresh
        self._sleep = sleep

        self._report: Optional[ComplianceReport] = None
        self._last_error: Optional[str] = None
        self._last_updated: Optional[datetime] = None
        self._cycles = 0

        self._inflight: Optional[asyncio.Task] = None
        self._notifying: Optional[asyncio.Task] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._subscribers: List[Subscriber] = []

    @classmethod
    def from_settings(cls, settings: MonitorSettings) -> "ComplianceMonitor":
        # catalog file is re-read every cycle
        return cls(
            catalog=functools.partial(load_catalog, settings.catalog_path),
            refresh_interval_s=settings.refresh_interval_s,
            auto_refresh=settings.auto_refresh,
            probe_timeout_s=settings.probe_timeout_s,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def report(self) -> Optional[ComplianceReport]:
        return self._report

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._last_updated

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def auto_refresh(self) -> bool:
        return self._auto_refresh

    def set_auto_refresh(self, enabled: bool) -> None:
        if enabled != self._auto_refresh:
            logger.info(f"Auto-refresh {'enabled' if enabled else 'disabled'}")
        self._auto_refresh = enabled

    def status(self) -> MonitorStatus:
        return MonitorStatus(
            running=self.running,
            refreshing=self.refreshing,
            auto_refresh=self._auto_refresh,
            refresh_interval_s=self.refresh_interval_s,
            last_updated=self._last_updated,
            last_error=self._last_error,
            cycles=self._cycles,
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Call ``callback(report)`` after every successful publish. Returns an unsubscribe function.

        Callbacks run after the cycle has finished, so a callback that awaits
        refresh() starts a new cycle.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    async def refresh(self) -> ComplianceReport:
        """
        Run a cycle now, or join the one already running.

        Raises ComplianceEvaluationError when the cycle fails.
        """
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(self._cycle())
        else:
            logger.debug("Refresh requested while a cycle is running; joining it")
        # shield: a cancelled waiter must not cancel the shared cycle
        report = await asyncio.shield(self._inflight)
        await self._wait_notified()
        return report

    async def _load_catalog(self) -> CatalogSnapshot:
        if isinstance(self._catalog, CatalogSnapshot):
            return self._catalog
        snapshot = self._catalog()
        if inspect.isawaitable(snapshot):
            snapshot = await snapshot
        return snapshot

    async def _cycle(self) -> ComplianceReport:
        t0 = time.monotonic()
        try:
            snapshot = await self._load_catalog()
            observations = await self._collector(snapshot)
            report = build_report(observations)
        except Exception as e:
            self._cycles += 1
            self._last_error = str(e) or type(e).__name__
            logger.error(f"Compliance cycle failed, keeping previous report: {e}", exc_info=True)
            raise ComplianceEvaluationError(self._last_error) from e

        self._cycles += 1
        self._report = report
        self._last_updated = report.generated_at
        self._last_error = None
        logger.info(
            f"Compliance report published: score {report.score}, "
            f"{report.total_violations} violations across {report.total_group_count} services "
            f"({int((time.monotonic() - t0) * 1000)} ms)"
        )
        # subscribers run outside the cycle task so they may call refresh()
        self._notifying = asyncio.create_task(self._notify(report))
        return report

    async def _notify(self, report: ComplianceReport) -> None:
        for callback in list(self._subscribers):
            try:
                result = callback(report)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Report subscriber {callback!r} failed: {e}", exc_info=True)

    async def _wait_notified(self) -> None:
        task = self._notifying
        if task is not None and not task.done() and task is not asyncio.current_task():
            await asyncio.shield(task)

    # ------------------------------------------------------------------
    # Periodic loop
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        first = True
        while True:
            if first or self._auto_refresh:
                try:
                    await self.refresh()
                except ComplianceEvaluationError:
                    pass  # recorded on last_error and logged by _cycle
            first = False
            await self._sleep(self.refresh_interval_s)

    async def start(self) -> None:
        """Start the periodic loop. The first cycle runs immediately."""
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the periodic loop; a cycle already in flight is allowed to finish."""
        task, self._loop_task = self._loop_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        inflight = self._inflight
        if inflight is not None and not inflight.done():
            try:
                await inflight
            except ComplianceEvaluationError:
                pass  # already recorded on last_error
        await self._wait_notified()
