"""Hand evaluation and equity estimation shared by the odds host and its clients."""

from .cards import Card, RANKS, SUITS, full_deck, parse_cards, parse_label, remaining_deck
from .errors import InvalidCardError, InvalidRequestError
from .estimator import compute_equity, estimate, fallback_result, strength_label, validate_request
from .evaluator import EvaluatedHand, HandCategory, determine_winners, evaluate, evaluate_hand
from .models import (
    EquityConfig,
    EquityRequest,
    EquityResult,
    EstimateMode,
    Outcome,
    PlayerEquity,
    PlayerHand,
)
from .supersession import OddsTracker, SupersessionController
from .worker import EquityWorker

__all__ = [
    "Card",
    "RANKS",
    "SUITS",
    "full_deck",
    "parse_cards",
    "parse_label",
    "remaining_deck",
    "InvalidCardError",
    "InvalidRequestError",
    "compute_equity",
    "estimate",
    "fallback_result",
    "strength_label",
    "validate_request",
    "EvaluatedHand",
    "HandCategory",
    "determine_winners",
    "evaluate",
    "evaluate_hand",
    "EquityConfig",
    "EquityRequest",
    "EquityResult",
    "EstimateMode",
    "Outcome",
    "PlayerEquity",
    "PlayerHand",
    "OddsTracker",
    "SupersessionController",
    "EquityWorker",
]
