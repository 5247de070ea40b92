from __future__ import annotations


class InvalidRequestError(ValueError):
    """Structurally invalid equity request; raised before any evaluation work."""

    def __init__(self, msg: str, code: str = "INVALID_REQUEST") -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


class InvalidCardError(InvalidRequestError):
    """Malformed card, or the same card supplied twice."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg, code="INVALID_CARD")
