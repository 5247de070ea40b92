from __future__ import annotations

import itertools
from collections import Counter
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

from .cards import Card
from .errors import InvalidCardError

PlayerKey = TypeVar("PlayerKey")

RANK_NAMES = {
    2: "Two",
    3: "Three",
    4: "Four",
    5: "Five",
    6: "Six",
    7: "Seven",
    8: "Eight",
    9: "Nine",
    10: "Ten",
    11: "Jack",
    12: "Queen",
    13: "King",
    14: "Ace",
}


class HandCategory(IntEnum):
    HIGH_CARD = 0
    PAIR = 1
    TWO_PAIR = 2
    THREE_OF_A_KIND = 3
    STRAIGHT = 4
    FLUSH = 5
    FULL_HOUSE = 6
    FOUR_OF_A_KIND = 7
    STRAIGHT_FLUSH = 8

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS = {
    HandCategory.HIGH_CARD: "High Card",
    HandCategory.PAIR: "Pair",
    HandCategory.TWO_PAIR: "Two Pair",
    HandCategory.THREE_OF_A_KIND: "Three of a Kind",
    HandCategory.STRAIGHT: "Straight",
    HandCategory.FLUSH: "Flush",
    HandCategory.FULL_HOUSE: "Full House",
    HandCategory.FOUR_OF_A_KIND: "Four of a Kind",
    HandCategory.STRAIGHT_FLUSH: "Straight Flush",
}


@dataclass(frozen=True, order=True)
class EvaluatedHand:
    """Best five-card strength. Ordering is category first, then tiebreakers in sequence."""

    category: HandCategory
    tiebreakers: Tuple[int, ...]

    @property
    def is_royal(self) -> bool:
        return self.category == HandCategory.STRAIGHT_FLUSH and self.tiebreakers[0] == 14

    def describe(self) -> str:
        primary = self.tiebreakers[0]
        if self.is_royal:
            return "Royal Flush"
        if self.category == HandCategory.STRAIGHT_FLUSH:
            return f"Straight Flush, {RANK_NAMES[primary]} high"
        if self.category == HandCategory.FOUR_OF_A_KIND:
            return f"Four of a Kind, {_plural(primary)}"
        if self.category == HandCategory.FULL_HOUSE:
            return f"Full House, {_plural(primary)} over {_plural(self.tiebreakers[1])}"
        if self.category == HandCategory.FLUSH:
            return f"Flush, {RANK_NAMES[primary]} high"
        if self.category == HandCategory.STRAIGHT:
            return f"Straight, {RANK_NAMES[primary]} high"
        if self.category == HandCategory.THREE_OF_A_KIND:
            return f"Three of a Kind, {_plural(primary)}"
        if self.category == HandCategory.TWO_PAIR:
            return f"Two Pair, {_plural(primary)} and {_plural(self.tiebreakers[1])}"
        if self.category == HandCategory.PAIR:
            return f"Pair of {_plural(primary)}"
        return f"{RANK_NAMES[primary]} high"


def _plural(value: int) -> str:
    name = RANK_NAMES[value]
    return f"{name}es" if name == "Six" else f"{name}s"


def evaluate(cards: Sequence[Card]) -> EvaluatedHand:
    """Return the best five-card hand out of 5, 6 or 7 cards."""
    if not 5 <= len(cards) <= 7:
        raise InvalidCardError(f"Expected 5 to 7 cards, got {len(cards)}")
    if len(set(cards)) != len(cards):
        raise InvalidCardError("Duplicate card in hand")
    return best_hand(cards)


def best_hand(cards: Sequence[Card]) -> EvaluatedHand:
    # Unchecked variant for hot loops whose inputs were validated upstream.
    if len(cards) == 5:
        return _evaluate_five(cards)
    return max(_evaluate_five(combo) for combo in itertools.combinations(cards, 5))


def evaluate_hand(hole_cards: Sequence[Card], community_cards: Sequence[Card]) -> EvaluatedHand:
    if len(hole_cards) != 2:
        raise InvalidCardError("Must provide exactly 2 hole cards")
    if not 3 <= len(community_cards) <= 5:
        raise InvalidCardError("Must provide 3-5 community cards")
    return evaluate(list(hole_cards) + list(community_cards))


def determine_winners(hands: Mapping[PlayerKey, EvaluatedHand]) -> List[PlayerKey]:
    """Players holding the strongest hand; several on a split pot."""
    if not hands:
        return []
    top = max(hands.values())
    return [player for player, hand in hands.items() if hand == top]


def _evaluate_five(cards: Sequence[Card]) -> EvaluatedHand:
    ranks = sorted((card.value for card in cards), reverse=True)
    is_flush = len({card.suit for card in cards}) == 1
    straight_high = _straight_high(ranks)

    counts: Dict[int, int] = Counter(ranks)
    # Most copies first, then higher rank.
    ordered = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    count_values = [count for _, count in ordered]

    if straight_high and is_flush:
        return EvaluatedHand(HandCategory.STRAIGHT_FLUSH, (straight_high,))
    if count_values[0] == 4:
        return EvaluatedHand(HandCategory.FOUR_OF_A_KIND, (ordered[0][0], ordered[1][0]))
    if count_values[0] == 3 and count_values[1] == 2:
        return EvaluatedHand(HandCategory.FULL_HOUSE, (ordered[0][0], ordered[1][0]))
    if is_flush:
        return EvaluatedHand(HandCategory.FLUSH, tuple(ranks))
    if straight_high:
        return EvaluatedHand(HandCategory.STRAIGHT, (straight_high,))
    if count_values[0] == 3:
        kickers = tuple(rank for rank, _ in ordered[1:])
        return EvaluatedHand(HandCategory.THREE_OF_A_KIND, (ordered[0][0],) + kickers)
    if count_values[0] == 2 and count_values[1] == 2:
        return EvaluatedHand(HandCategory.TWO_PAIR, (ordered[0][0], ordered[1][0], ordered[2][0]))
    if count_values[0] == 2:
        kickers = tuple(rank for rank, _ in ordered[1:])
        return EvaluatedHand(HandCategory.PAIR, (ordered[0][0],) + kickers)
    return EvaluatedHand(HandCategory.HIGH_CARD, tuple(ranks))


def _straight_high(ranks: Sequence[int]) -> Optional[int]:
    """High card of a five-card straight; the wheel (A-2-3-4-5) plays five high."""
    if len(set(ranks)) != 5:
        return None
    if ranks[0] - ranks[4] == 4:
        return ranks[0]
    if list(ranks) == [14, 5, 4, 3, 2]:
        return 5
    return None
