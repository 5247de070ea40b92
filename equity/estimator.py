"""Win/tie equity for known hole cards against a partially revealed board.

Runouts are enumerated exhaustively while few board cards are unknown and
sampled (Monte Carlo, without replacement inside a trial) otherwise. The
entry point used across the execution boundary is :func:`compute_equity`,
which never raises for internal failures and degrades to uniform odds.
"""

from __future__ import annotations

import itertools
import logging
import random
from typing import Iterable, List, Optional, Sequence

from .cards import Card, remaining_deck
from .errors import InvalidCardError, InvalidRequestError
from .evaluator import best_hand
from .models import (
    EquityConfig,
    EquityRequest,
    EquityResult,
    EstimateMode,
    Outcome,
    PlayerEquity,
)

LOGGER = logging.getLogger("equity_engine")

VALID_BOARD_SIZES = (0, 3, 4, 5)


def validate_request(request: EquityRequest) -> List[Card]:
    """Check the request shape and return the deck left after removing every known card."""
    if len(request.players) < 2:
        raise InvalidRequestError("At least two players required")
    seen_ids = set()
    known: List[Card] = []
    for player in request.players:
        if player.player_id in seen_ids:
            raise InvalidRequestError(f"Duplicate player id: {player.player_id}")
        seen_ids.add(player.player_id)
        if len(player.hole_cards) != 2:
            raise InvalidRequestError(
                f"Player {player.player_id} has {len(player.hole_cards)} hole cards, expected 2"
            )
        known.extend(player.hole_cards)
    if len(request.community_cards) not in VALID_BOARD_SIZES:
        raise InvalidRequestError(
            f"Invalid community card count: {len(request.community_cards)}"
        )
    known.extend(request.community_cards)
    try:
        return remaining_deck(known)
    except InvalidCardError as exc:
        raise InvalidCardError(f"Request {request.request_id}: {exc.msg}") from exc


def select_mode(unknown: int, config: EquityConfig) -> EstimateMode:
    if unknown == 0:
        return EstimateMode.SHOWDOWN
    if unknown <= config.exact_max_unknown:
        return EstimateMode.EXACT
    return EstimateMode.MONTE_CARLO


class _Tally:
    def __init__(self, players: int) -> None:
        self.wins = [0] * players
        self.tie_shares = [0.0] * players
        self.trials = 0

    def score(self, holes: Sequence[Sequence[Card]], board: Sequence[Card]) -> None:
        hands = [best_hand(list(hole) + list(board)) for hole in holes]
        top = max(hands)
        winners = [idx for idx, hand in enumerate(hands) if hand == top]
        if len(winners) == 1:
            self.wins[winners[0]] += 1
        else:
            share = 1.0 / len(winners)
            for idx in winners:
                self.tie_shares[idx] += share
        self.trials += 1


def estimate(
    request: EquityRequest,
    rng_seed: Optional[int] = None,
    config: Optional[EquityConfig] = None,
) -> EquityResult:
    config = config or EquityConfig()
    deck = validate_request(request)
    unknown = request.unknown_cards
    mode = select_mode(unknown, config)
    board = list(request.community_cards)
    holes = [player.hole_cards for player in request.players]

    completions: Iterable[Sequence[Card]]
    if mode == EstimateMode.SHOWDOWN:
        completions = [()]
    elif mode == EstimateMode.EXACT:
        completions = itertools.combinations(deck, unknown)
    else:
        if config.monte_carlo_trials <= 0:
            raise ValueError("monte_carlo_trials must be positive")
        rng = random.Random(rng_seed)
        completions = (rng.sample(deck, unknown) for _ in range(config.monte_carlo_trials))

    tally = _Tally(len(holes))
    for completion in completions:
        tally.score(holes, board + list(completion))

    LOGGER.debug(
        "Request %s: mode=%s trials=%s players=%s board=%s",
        request.request_id,
        mode.value,
        tally.trials,
        len(holes),
        [card.label for card in board],
    )

    per_player = []
    for idx, player in enumerate(request.players):
        tie_credit = tally.tie_shares[idx]
        per_player.append(
            PlayerEquity(
                player_id=player.player_id,
                win_percentage=100.0 * (tally.wins[idx] + tie_credit) / tally.trials,
                tie_percentage=100.0 * tie_credit / tally.trials,
            )
        )
    return EquityResult(
        request_id=request.request_id,
        players=tuple(per_player),
        outcome=Outcome.RESULT,
        mode=mode,
        trials=tally.trials,
        board=tuple(board),
    )


def fallback_result(request: EquityRequest, error: str) -> EquityResult:
    """Uniform odds, tagged as an error outcome."""
    share = 100.0 / max(len(request.players), 1)
    return EquityResult(
        request_id=request.request_id,
        players=tuple(
            PlayerEquity(player_id=player.player_id, win_percentage=share, tie_percentage=0.0)
            for player in request.players
        ),
        outcome=Outcome.ERROR,
        error=error,
        board=tuple(request.community_cards),
    )


def compute_equity(
    request: EquityRequest,
    rng_seed: Optional[int] = None,
    config: Optional[EquityConfig] = None,
) -> EquityResult:
    try:
        return estimate(request, rng_seed=rng_seed, config=config)
    except InvalidRequestError:
        raise
    except Exception as exc:
        LOGGER.exception("Equity computation failed for request %s", request.request_id)
        return fallback_result(request, str(exc) or exc.__class__.__name__)


def strength_label(win_percentage: float) -> str:
    if win_percentage >= 80:
        return "Dominant"
    if win_percentage >= 60:
        return "Strong"
    if win_percentage >= 40:
        return "Competitive"
    if win_percentage >= 25:
        return "Underdog"
    return "Weak"
