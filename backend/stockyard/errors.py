# Overview: Error kinds raised by the service layer and rendered by the routes.

from __future__ import annotations


class StockyardError(Exception):
    """Base for every expected, user-facing failure."""

    status_code = 400
    kind = "error"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind, **self.details}


class NotFoundError(StockyardError):
    """Referenced SKU, location, project, transfer or pick does not exist."""

    status_code = 404
    kind = "not_found"


class InsufficientStockError(StockyardError):
    """
    Requested quantity exceeds what is on hand, available or in transit.

    Carries both numbers so callers can render
    "Available: 10, Requested: 20".
    """

    kind = "insufficient_stock"

    def __init__(self, message: str, *, available: int, requested: int):
        super().__init__(message, available=available, requested=requested)
        self.available = available
        self.requested = requested


class InvalidStateError(StockyardError):
    """Operation is not allowed from the entity's current state."""

    status_code = 409
    kind = "invalid_state"


class NoReservationsError(InvalidStateError):
    kind = "no_reservations"
