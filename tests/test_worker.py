import asyncio
import time

import pytest

from equity import worker as worker_module
from equity.errors import InvalidRequestError
from equity.estimator import compute_equity
from equity.models import EquityConfig, EstimateMode, Outcome
from equity.worker import EquityWorker

from .helpers import make_request


def run_with_worker(config, body):
    async def scenario():
        async with EquityWorker(config) as worker:
            return await body(worker)

    return asyncio.run(scenario())


def test_submit_returns_exact_result():
    async def body(worker):
        return await worker.submit(make_request(["AhKh", "2c2d"], "AdKd2h7s9c", request_id=5))

    result = run_with_worker(EquityConfig(), body)
    assert result.request_id == 5
    assert result.outcome == Outcome.RESULT
    assert result.by_player()["B"].win_percentage == 100.0


def test_queued_requests_complete_in_arrival_order():
    finished = []

    async def body(worker):
        async def one(request_id, board):
            result = await worker.submit(make_request(["AhKh", "2c2d"], board, request_id=request_id))
            finished.append(result.request_id)
            return result

        return await asyncio.gather(
            one(1, "AdKd2h"),
            one(2, "AdKd2h7s"),
            one(3, "AdKd2h7s9c"),
        )

    results = run_with_worker(EquityConfig(), body)
    assert [result.request_id for result in results] == [1, 2, 3]
    assert [result.mode for result in results] == [EstimateMode.EXACT, EstimateMode.EXACT, EstimateMode.SHOWDOWN]
    assert finished == [1, 2, 3]


def test_invalid_request_raises_before_queueing():
    async def body(worker):
        with pytest.raises(InvalidRequestError):
            await worker.submit(make_request(["AhKh", "AhQd"]))
        return worker.completed

    assert run_with_worker(EquityConfig(), body) == 0


def test_slow_computation_times_out_to_uniform_odds(monkeypatch):
    def slow(request, rng_seed, config):
        time.sleep(0.3)
        return compute_equity(request, rng_seed, config)

    monkeypatch.setattr(worker_module, "compute_equity", slow)

    async def body(worker):
        result = await worker.submit(make_request(["AhKh", "2c2d"], "AdKd2h7s9c", request_id=9))
        return result, worker.degraded

    result, degraded = run_with_worker(EquityConfig(timeout_s=0.05), body)
    assert result.outcome == Outcome.ERROR
    assert result.request_id == 9
    assert "timed out" in result.error
    assert [entry.win_percentage for entry in result.players] == [50.0, 50.0]
    assert degraded == 1


def test_executor_failure_degrades(monkeypatch):
    def broken(request, rng_seed, config):
        raise RuntimeError("worker crashed")

    monkeypatch.setattr(worker_module, "compute_equity", broken)

    async def body(worker):
        return await worker.submit(make_request(["AhKh", "2c2d"], "AdKd2h7s9c"))

    result = run_with_worker(EquityConfig(), body)
    assert result.is_error
    assert result.error == "worker crashed"


def test_queueing_time_does_not_count_against_timeout(monkeypatch):
    def steady(request, rng_seed, config):
        time.sleep(0.2)
        return compute_equity(request, rng_seed, config)

    monkeypatch.setattr(worker_module, "compute_equity", steady)

    async def body(worker):
        results = await asyncio.gather(
            worker.submit(make_request(["AhKh", "2c2d"], "AdKd2h7s9c", request_id=1)),
            worker.submit(make_request(["AhKh", "2c2d"], "AdKd2h7s9c", request_id=2)),
        )
        return results, worker.degraded

    # Together the two runs exceed the limit; each alone stays well inside it.
    results, degraded = run_with_worker(EquityConfig(timeout_s=0.35), body)
    assert [result.outcome for result in results] == [Outcome.RESULT, Outcome.RESULT]
    assert [result.request_id for result in results] == [1, 2]
    assert degraded == 0


def test_process_pool_worker_computes_exact_odds():
    async def body(worker):
        return await worker.submit(make_request(["AhKd", "AsKc"], "QhJdTc", request_id=4))

    result = run_with_worker(EquityConfig(use_processes=True), body)
    assert result.outcome == Outcome.RESULT
    assert result.mode == EstimateMode.EXACT
    assert result.trials == 990
    assert [entry.win_percentage for entry in result.players] == pytest.approx([50.0, 50.0])
