"""Concurrent fan-out of one chart payload to every chart endpoint.

The two critical calls (core planets, almanac) gate the whole run. Every
other call is optional: a failure, timeout or malformed reply only means
"no data" for that slot. One attempt per endpoint, no retries.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Dict, Optional

from ..errors import CriticalDependencyError
from ..schemas.profile import ChartRequestPayload
from . import endpoints
from .astro_client import AstrologyApiClient

logger = logging.getLogger(__name__)

# Added to the per-request timeout so the transport's own timeout fires first
TIMEOUT_GRACE_SECONDS = 5.0


@dataclass
class ChartBundle:
    """Raw replies gathered by one fan-out. Slots are absent, never ``None``-valued."""

    core: Any
    almanac: Any
    optional: Dict[str, Any] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def extended(self) -> Optional[Any]:
        return self.optional.get(endpoints.EXTENDED_PLANETS)

    def divisional(self) -> Dict[str, Any]:
        return {
            variant: self.optional[endpoint]
            for variant, endpoint in endpoints.DIVISIONAL_CHARTS.items()
            if endpoint in self.optional
        }


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timed out"
    return str(exc) or type(exc).__name__


def _consume_result(task: "asyncio.Task[Any]") -> None:
    # Stragglers abandoned after a critical failure must not warn about unretrieved errors
    if not task.cancelled():
        task.exception()


async def fetch_chart_bundle(
    client: AstrologyApiClient,
    payload: ChartRequestPayload,
    *,
    timeout: float,
) -> ChartBundle:
    names = endpoints.all_chart_endpoints()
    body = payload.to_body()
    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=len(names), thread_name_prefix="chart-fetch")
    started = time.perf_counter()

    async def _call(endpoint: str) -> Any:
        fn = partial(client.post, endpoint, body, timeout)
        return await asyncio.wait_for(
            loop.run_in_executor(executor, fn), timeout + TIMEOUT_GRACE_SECONDS
        )

    tasks: Dict[str, "asyncio.Task[Any]"] = {}
    try:
        for name in names:
            task = asyncio.ensure_future(_call(name))
            task.add_done_callback(_consume_result)
            tasks[name] = task

        critical = [tasks[name] for name in endpoints.CRITICAL]
        await asyncio.wait(critical, return_when=asyncio.FIRST_EXCEPTION)

        for name in endpoints.CRITICAL:
            task = tasks[name]
            if task.done() and task.exception() is not None:
                reason = _describe(task.exception())
                for pending in tasks.values():
                    if not pending.done():
                        pending.cancel()
                logger.error(
                    "chart_fetch_critical_failed",
                    extra={"endpoint": name, "reason": reason},
                )
                raise CriticalDependencyError(name, reason)

        optional_names = [name for name in names if name not in endpoints.CRITICAL]
        results = await asyncio.gather(
            *(tasks[name] for name in optional_names), return_exceptions=True
        )
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    bundle = ChartBundle(
        core=tasks[endpoints.CORE_PLANETS].result(),
        almanac=tasks[endpoints.ALMANAC].result(),
    )
    for name, result in zip(optional_names, results):
        if isinstance(result, BaseException):
            bundle.failures[name] = _describe(result)
            logger.warning(
                "chart_fetch_optional_failed",
                extra={"endpoint": name, "reason": bundle.failures[name]},
            )
        else:
            bundle.optional[name] = result

    logger.info(
        "chart_fetch_complete",
        extra={
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
            "ok": len(bundle.optional) + len(endpoints.CRITICAL),
            "failed": len(bundle.failures),
        },
    )
    return bundle
