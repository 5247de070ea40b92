from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Optional

from .estimator import compute_equity, fallback_result, validate_request
from .models import EquityConfig, EquityRequest, EquityResult

LOGGER = logging.getLogger("equity_worker")

# EquityWorker keeps estimation off the event loop. A single-slot executor
# processes requests strictly in arrival order; only immutable request and
# result values cross the boundary.


class EquityWorker:
    def __init__(self, config: Optional[EquityConfig] = None) -> None:
        self.config = config or EquityConfig()
        self._executor: Executor
        if self.config.use_processes:
            self._executor = ProcessPoolExecutor(max_workers=1)
        else:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="equity")
        # Held from hand-off until the executor job actually finishes, so the
        # timeout only measures a request's own run and never its queueing.
        self._slot = asyncio.Lock()
        self.completed = 0
        self.degraded = 0

    async def submit(self, request: EquityRequest, rng_seed: Optional[int] = None) -> EquityResult:
        # Invalid input is reported to the caller directly and never queued.
        validate_request(request)
        loop = asyncio.get_running_loop()
        await self._slot.acquire()
        try:
            future = loop.run_in_executor(self._executor, compute_equity, request, rng_seed, self.config)
        except BaseException:
            self._slot.release()
            raise
        future.add_done_callback(self._job_finished)
        try:
            # shield keeps a timed-out job holding the slot until it really ends.
            result = await asyncio.wait_for(asyncio.shield(future), timeout=self.config.timeout_s or None)
        except asyncio.TimeoutError:
            LOGGER.warning(
                "Request %s exceeded %.1fs; answering with uniform odds",
                request.request_id,
                self.config.timeout_s,
            )
            result = fallback_result(request, "Equity computation timed out")
        except Exception as exc:
            LOGGER.exception("Worker failed on request %s", request.request_id)
            result = fallback_result(request, str(exc) or exc.__class__.__name__)

        self.completed += 1
        if result.is_error:
            self.degraded += 1
        LOGGER.debug(
            "Request %s finished outcome=%s mode=%s trials=%s",
            request.request_id,
            result.outcome.value,
            result.mode.value if result.mode else None,
            result.trials,
        )
        return result

    def _job_finished(self, future: "asyncio.Future[EquityResult]") -> None:
        self._slot.release()
        if not future.cancelled() and future.exception() is not None:
            LOGGER.debug("Executor job ended with %r", future.exception())

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    async def __aenter__(self) -> "EquityWorker":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()
