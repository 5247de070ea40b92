from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional, Tuple

from .cards import Card, cards_to_labels, parse_cards
from .errors import InvalidRequestError


class Outcome(str, Enum):
    RESULT = "result"
    ERROR = "error"


class EstimateMode(str, Enum):
    SHOWDOWN = "showdown"
    EXACT = "exact"
    MONTE_CARLO = "monte_carlo"


@dataclass
class EquityConfig:
    monte_carlo_trials: int = 5_000
    exact_max_unknown: int = 2
    timeout_s: float = 10.0
    use_processes: bool = False


@dataclass(frozen=True)
class PlayerHand:
    player_id: Hashable
    hole_cards: Tuple[Card, ...]


@dataclass(frozen=True)
class EquityRequest:
    request_id: int
    players: Tuple[PlayerHand, ...]
    community_cards: Tuple[Card, ...] = ()

    @property
    def unknown_cards(self) -> int:
        return 5 - len(self.community_cards)

    @classmethod
    def from_payload(cls, message: Dict[str, Any]) -> "EquityRequest":
        """Build a request from its JSON form; shape problems raise InvalidRequestError(BAD_SCHEMA)."""
        request_id = message.get("request_id")
        if isinstance(request_id, bool) or not isinstance(request_id, int):
            raise InvalidRequestError("request_id must be an integer", code="BAD_SCHEMA")
        players_raw = message.get("players")
        if not isinstance(players_raw, list):
            raise InvalidRequestError("players must be a list", code="BAD_SCHEMA")
        players: List[PlayerHand] = []
        for entry in players_raw:
            if not isinstance(entry, dict):
                raise InvalidRequestError("player entries must be objects", code="BAD_SCHEMA")
            player_id = entry.get("player_id")
            hole_cards = entry.get("hole_cards")
            if not isinstance(player_id, (str, int)) or not isinstance(hole_cards, list):
                raise InvalidRequestError("player_id and hole_cards required", code="BAD_SCHEMA")
            players.append(PlayerHand(player_id, tuple(parse_cards(hole_cards))))
        board_raw = message.get("community_cards", [])
        if not isinstance(board_raw, list):
            raise InvalidRequestError("community_cards must be a list", code="BAD_SCHEMA")
        return cls(request_id=request_id, players=tuple(players), community_cards=tuple(parse_cards(board_raw)))


@dataclass(frozen=True)
class PlayerEquity:
    player_id: Hashable
    win_percentage: float
    tie_percentage: float

    @property
    def outright_percentage(self) -> float:
        """Share of runouts won alone, without split-pot credit."""
        return self.win_percentage - self.tie_percentage

    def to_payload(self) -> Dict[str, object]:
        return {
            "player_id": self.player_id,
            "win_percentage": self.win_percentage,
            "tie_percentage": self.tie_percentage,
        }


@dataclass(frozen=True)
class EquityResult:
    request_id: int
    players: Tuple[PlayerEquity, ...]
    outcome: Outcome = Outcome.RESULT
    mode: Optional[EstimateMode] = None
    trials: int = 0
    error: Optional[str] = None
    board: Tuple[Card, ...] = field(default=(), compare=False)

    @property
    def is_error(self) -> bool:
        return self.outcome == Outcome.ERROR

    def by_player(self) -> Dict[Hashable, PlayerEquity]:
        return {entry.player_id: entry for entry in self.players}

    def to_payload(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "request_id": self.request_id,
            "mode": self.mode.value if self.mode else None,
            "trials": self.trials,
            "community_cards": cards_to_labels(self.board),
            "results": [entry.to_payload() for entry in self.players],
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload
