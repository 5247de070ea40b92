import asyncio

import pytest

from equity.errors import InvalidRequestError
from equity.estimator import compute_equity
from equity.models import EquityConfig, EquityResult, PlayerEquity
from equity.supersession import OddsTracker, SupersessionController
from equity.worker import EquityWorker

from .helpers import hand, make_request


def result_for(request_id: int) -> EquityResult:
    return EquityResult(
        request_id=request_id,
        players=(PlayerEquity("A", 60.0, 0.0), PlayerEquity("B", 40.0, 0.0)),
    )


def test_issue_assigns_increasing_ids():
    controller = SupersessionController()
    players = make_request(["AhKh", "2c2d"]).players
    first = controller.issue(players, [])
    second = controller.issue(players, hand("AdKd2h"))
    assert (first.request_id, second.request_id) == (1, 2)
    assert controller.latest_issued_id == 2
    assert len(second.community_cards) == 3


def test_out_of_order_results_only_apply_latest():
    applied = []
    controller = SupersessionController(on_apply=applied.append)
    players = make_request(["AhKh", "2c2d"]).players
    for _ in range(3):
        controller.issue(players, [])

    outcomes = [controller.receive(result_for(request_id)) for request_id in (3, 1, 2)]

    assert outcomes == [True, False, False]
    assert [result.request_id for result in applied] == [3]
    assert controller.last_applied_id == 3
    assert controller.applied.request_id == 3
    assert controller.discarded == 2


def test_result_arriving_after_newer_issue_is_dropped():
    controller = SupersessionController()
    players = make_request(["AhKh", "2c2d"]).players
    controller.issue(players, [])
    controller.issue(players, hand("AdKd2h"))
    assert controller.receive(result_for(1)) is False
    assert controller.applied is None
    assert controller.last_applied_id is None


def test_track_requires_strictly_newer_ids():
    controller = SupersessionController()
    controller.track(4)
    assert controller.is_current(4)
    with pytest.raises(InvalidRequestError) as info:
        controller.track(4)
    assert info.value.code == "STALE_REQUEST_ID"
    with pytest.raises(InvalidRequestError) as info:
        controller.track("5")  # type: ignore[arg-type]
    assert info.value.code == "BAD_SCHEMA"


class GatedWorker:
    """Finishes each request only when the test releases it."""

    def __init__(self) -> None:
        self.gates = {}

    def gate(self, request_id: int) -> asyncio.Event:
        return self.gates.setdefault(request_id, asyncio.Event())

    async def submit(self, request):
        await self.gate(request.request_id).wait()
        return compute_equity(request)


def test_tracker_shows_only_latest_board_when_results_arrive_out_of_order():
    holes = make_request(["AhKh", "2c2d"]).players
    boards = [hand("AdKd2h"), hand("AdKd2h7s"), hand("AdKd2h7s9c")]

    async def scenario():
        worker = GatedWorker()
        tracker = OddsTracker(worker)  # type: ignore[arg-type]
        updates = [asyncio.create_task(tracker.update(holes, board)) for board in boards]
        await asyncio.sleep(0)
        for request_id in (3, 1, 2):
            worker.gate(request_id).set()
            await asyncio.sleep(0)
        return await asyncio.gather(*updates), tracker

    applied, tracker = asyncio.run(scenario())
    assert applied == [False, False, True]
    assert tracker.controller.last_applied_id == 3
    assert tracker.odds["B"].win_percentage == 100.0


def test_tracker_with_real_worker_and_lone_player():
    async def scenario():
        async with EquityWorker(EquityConfig()) as worker:
            tracker = OddsTracker(worker)
            assert await tracker.update(make_request(["AhKh", "2c2d"]).players, hand("AdKd2h7s9c"))
            river = dict(tracker.odds)
            assert await tracker.update(make_request(["AhKh"]).players, hand("AdKd2h7s9c"))
            return river, dict(tracker.odds)

    river, lone = asyncio.run(scenario())
    assert river["A"].win_percentage == 0.0
    assert list(lone) == ["A"]
    assert lone["A"].win_percentage == 100.0


def test_tracker_keeps_previous_odds_when_update_is_invalid():
    async def scenario():
        async with EquityWorker(EquityConfig()) as worker:
            tracker = OddsTracker(worker)
            await tracker.update(make_request(["AhKh", "2c2d"]).players, hand("AdKd2h7s9c"))
            accepted = await tracker.update(make_request(["AhKh", "AhQd"]).players, hand("2c3d4s"))
            return accepted, tracker

    accepted, tracker = asyncio.run(scenario())
    assert accepted is False
    assert tracker.controller.last_applied_id == 1
    assert tracker.odds["B"].win_percentage == 100.0
