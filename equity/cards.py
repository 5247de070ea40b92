from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .errors import InvalidCardError

RANKS = "23456789TJQKA"
SUITS = "hdcs"
RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise InvalidCardError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise InvalidCardError(f"Invalid suit: {self.suit}")

    @property
    def label(self) -> str:
        return f"{self.rank}{self.suit}"

    @property
    def value(self) -> int:
        return RANK_VALUE[self.rank]

    def __str__(self) -> str:
        return self.label


def full_deck() -> List[Card]:
    """All 52 cards, rank-major (2 first) then suit."""
    return [Card(rank, suit) for rank in RANKS for suit in SUITS]


_CANONICAL_DECK = tuple(full_deck())


def remaining_deck(excluded: Iterable[Card]) -> List[Card]:
    seen = set()
    for card in excluded:
        if not isinstance(card, Card):
            raise InvalidCardError(f"Not a card: {card!r}")
        if card in seen:
            raise InvalidCardError(f"Duplicate card: {card.label}")
        seen.add(card)
    return [card for card in _CANONICAL_DECK if card not in seen]


def build_deck(seed: Optional[int] = None) -> List[Card]:
    rng = random.Random(seed)
    deck = full_deck()
    rng.shuffle(deck)
    return deck


def deal(deck: List[Card], count: int) -> List[Card]:
    """Pop ``count`` cards off the top of a shuffled deck."""
    if count > len(deck):
        raise ValueError(f"Not enough cards to deal {count}; {len(deck)} left")
    dealt, deck[:] = deck[:count], deck[count:]
    return dealt


def cards_to_labels(cards: Iterable[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    if not isinstance(label, str):
        raise InvalidCardError(f"Invalid card label: {label!r}")
    text = label.strip()
    if len(text) == 3 and text[:2] == "10":
        text = "T" + text[2]
    if len(text) != 2:
        raise InvalidCardError(f"Invalid card label: {label}")
    return Card(text[0].upper(), text[1].lower())


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
