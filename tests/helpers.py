from __future__ import annotations

from typing import Optional, Sequence

from equity.cards import parse_cards
from equity.models import EquityRequest, PlayerHand


def hand(text: str) -> list:
    """Parse concatenated labels such as ``"AhKd"`` or ``"Ad Kd 2h"``."""
    compact = text.replace(" ", "")
    return parse_cards([compact[i : i + 2] for i in range(0, len(compact), 2)])


def make_request(
    holes: Sequence[str],
    board: str = "",
    *,
    request_id: int = 1,
    player_ids: Optional[Sequence[str]] = None,
) -> EquityRequest:
    """Build a request with players named A, B, C... unless ids are given."""
    ids = list(player_ids) if player_ids else [chr(ord("A") + idx) for idx in range(len(holes))]
    players = tuple(PlayerHand(player_id, tuple(hand(cards))) for player_id, cards in zip(ids, holes))
    return EquityRequest(request_id=request_id, players=players, community_cards=tuple(hand(board)))


def calculate_message(request_id: int, holes: Sequence[str], board: str = "") -> dict:
    return {
        "type": "calculate",
        "request_id": request_id,
        "players": [
            {"player_id": chr(ord("A") + idx), "hole_cards": [cards[:2], cards[2:]]}
            for idx, cards in enumerate(holes)
        ],
        "community_cards": [board.replace(" ", "")[i : i + 2] for i in range(0, len(board.replace(" ", "")), 2)],
    }
