from __future__ import annotations

import logging
from typing import Callable, Dict, Hashable, Iterable, Optional, Sequence

from .cards import Card
from .errors import InvalidRequestError
from .models import EquityRequest, EquityResult, PlayerEquity, PlayerHand
from .worker import EquityWorker

LOGGER = logging.getLogger("equity_supersession")


class SupersessionController:
    """Applies a result only when it answers the most recently issued request.

    Nothing is cancelled in flight; stale results are dropped on arrival.
    """

    def __init__(self, on_apply: Optional[Callable[[EquityResult], None]] = None) -> None:
        self.latest_issued_id = 0
        self.last_applied_id: Optional[int] = None
        self.applied: Optional[EquityResult] = None
        self.discarded = 0
        self._on_apply = on_apply

    def issue(self, players: Iterable[PlayerHand], community_cards: Iterable[Card]) -> EquityRequest:
        self.latest_issued_id += 1
        return EquityRequest(
            request_id=self.latest_issued_id,
            players=tuple(PlayerHand(p.player_id, tuple(p.hole_cards)) for p in players),
            community_cards=tuple(community_cards),
        )

    def track(self, request_id: int) -> None:
        """Record an id issued elsewhere (e.g. by a remote client)."""
        if isinstance(request_id, bool) or not isinstance(request_id, int):
            raise InvalidRequestError("request_id must be an integer", code="BAD_SCHEMA")
        if request_id <= self.latest_issued_id:
            raise InvalidRequestError(
                f"request_id {request_id} is not newer than {self.latest_issued_id}",
                code="STALE_REQUEST_ID",
            )
        self.latest_issued_id = request_id

    def is_current(self, request_id: int) -> bool:
        return request_id == self.latest_issued_id

    def receive(self, result: EquityResult) -> bool:
        if not self.is_current(result.request_id):
            self.discarded += 1
            LOGGER.debug(
                "Discarding result %s; latest issued is %s",
                result.request_id,
                self.latest_issued_id,
            )
            return False
        self.last_applied_id = result.request_id
        self.applied = result
        if self._on_apply is not None:
            self._on_apply(result)
        return True


class OddsTracker:
    """Keeps the displayed odds in step with the latest board state."""

    def __init__(self, worker: EquityWorker, controller: Optional[SupersessionController] = None) -> None:
        self.worker = worker
        self.controller = controller or SupersessionController()

    @property
    def odds(self) -> Dict[Hashable, PlayerEquity]:
        applied = self.controller.applied
        return applied.by_player() if applied else {}

    async def update(self, players: Sequence[PlayerHand], community_cards: Sequence[Card]) -> bool:
        """Issue a request for this board state; True if its result was applied."""
        request = self.controller.issue(players, community_cards)
        if len(request.players) < 2:
            # Nothing to simulate; a lone player holds the whole pot.
            entries = tuple(
                PlayerEquity(player_id=p.player_id, win_percentage=100.0, tie_percentage=0.0)
                for p in request.players
            )
            return self.controller.receive(
                EquityResult(request_id=request.request_id, players=entries, board=request.community_cards)
            )
        try:
            result = await self.worker.submit(request)
        except InvalidRequestError as exc:
            LOGGER.warning("Dropping board update %s: %s", request.request_id, exc)
            return False
        return self.controller.receive(result)
