"""
errors.py – Domain error taxonomy shared by every aggregate.

Creation and redemption operations raise these so the caller can show
user-visible feedback.  Lookup misses on mutation paths (toggle attendance,
set level, award points) never raise; they are silent no-ops.
"""


class WaterwayError(Exception):
    """Base class for all domain errors."""


class ValidationError(WaterwayError):
    """A required field (name, date, id) is empty or malformed."""


class ConflictError(WaterwayError):
    """An entity with the same caller-supplied id already exists."""


class NotFoundError(WaterwayError):
    """An operation referenced an unknown entity id."""


class RedemptionError(WaterwayError):
    """A reward could not be redeemed."""


class InsufficientPointsError(RedemptionError):
    """The participant's balance is lower than the amount to debit."""

    def __init__(self, participant_id: str, balance: int, required: int) -> None:
        super().__init__(
            f"participant {participant_id!r} has {balance} points, {required} required"
        )
        self.participant_id = participant_id
        self.balance = balance
        self.required = required


class UnknownRedemptionTargetError(NotFoundError, RedemptionError):
    """The participant or reward named in a redemption does not exist."""
