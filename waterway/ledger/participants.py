"""
participants.py – ParticipantLedger aggregate.

Holds every participant and their cumulative point balance, persisted under
the ``people`` key.  Balances change only through ``credit`` (event awards)
and ``debit`` (reward redemption).

Thread safety
-------------
All balance reads-then-writes run under ``self.lock`` (a re-entrant lock).
``RewardCatalog.redeem`` holds the same lock across its balance check and
the debit, so no other credit or debit can slip in between.
"""

import logging
import threading
from typing import Callable, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from waterway.common.config import settings
from waterway.common.errors import (
    ConflictError,
    InsufficientPointsError,
    NotFoundError,
    ValidationError,
)
from waterway.common.models import Participant
from waterway.common.store import KeyValueStore, load_or_default, save_snapshot

logger = logging.getLogger(__name__)

PARTICIPANTS_KEY = "people"

_ADAPTER = TypeAdapter(list[Participant])


def default_participants() -> list[Participant]:
    """Sample volunteers used when nothing has been stored yet."""
    return [
        Participant(id="sv01", name="Nguyen Minh Anh", points=40),
        Participant(id="sv02", name="Tran Bao", points=15),
    ]


class ParticipantLedger:
    """Participants in insertion order with their point balances."""

    def __init__(
        self,
        store: KeyValueStore,
        participants: Optional[list[Participant]] = None,
    ) -> None:
        self._store = store
        self._participants: list[Participant] = list(participants or [])
        self.lock = threading.RLock()

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        default: Callable[[], list[Participant]] = list,
    ) -> "ParticipantLedger":
        return cls(store, load_or_default(store, PARTICIPANTS_KEY, _ADAPTER, default))

    @property
    def participants(self) -> list[Participant]:
        return list(self._participants)

    def get(self, participant_id: str) -> Optional[Participant]:
        return next((p for p in self._participants if p.id == participant_id), None)

    def balance(self, participant_id: str) -> Optional[int]:
        participant = self.get(participant_id)
        return None if participant is None else participant.points

    def __contains__(self, participant_id: object) -> bool:
        return any(p.id == participant_id for p in self._participants)

    def add_participant(self, participant_id: str, name: str) -> Participant:
        """
        Register a participant with a caller-chosen id and zero points.

        Raises
        ------
        ValidationError: id or name is empty.
        ConflictError:   a participant with ``participant_id`` already exists.
        """
        if not participant_id or not participant_id.strip() or not name or not name.strip():
            raise ValidationError("participant id and name are required")
        try:
            participant = Participant(id=participant_id, name=name, points=0)
        except PydanticValidationError as exc:
            raise ValidationError(f"invalid participant: {exc}") from exc

        with self.lock:
            if participant.id in self:
                raise ConflictError(f"participant {participant.id!r} already exists")
            self._participants.append(participant)
            self._persist()

        logger.info("Participant added", extra={"participant_id": participant.id})
        return participant

    def credit(self, participant_id: str, amount: int) -> None:
        """Add ``amount`` (any integer) to the balance. No-op for unknown ids."""
        with self.lock:
            index = self._index_of(participant_id)
            if index is None:
                logger.debug("credit ignored for unknown participant %s", participant_id)
                return
            current = self._participants[index]
            self._participants[index] = current.model_copy(
                update={"points": current.points + amount}
            )
            self._persist()

    def debit(self, participant_id: str, amount: int) -> None:
        """
        Subtract ``amount`` from the balance.

        Raises
        ------
        NotFoundError:           unknown participant.
        InsufficientPointsError: balance is lower than ``amount``.
        """
        with self.lock:
            index = self._index_of(participant_id)
            if index is None:
                raise NotFoundError(f"unknown participant {participant_id!r}")
            current = self._participants[index]
            if current.points < amount:
                raise InsufficientPointsError(participant_id, current.points, amount)
            self._participants[index] = current.model_copy(
                update={"points": current.points - amount}
            )
            self._persist()

    def leaderboard(self, limit: Optional[int] = None) -> list[Participant]:
        """
        Participants sorted by descending balance, truncated to ``limit``.

        ``sorted`` is stable, so equal balances keep insertion order.
        """
        if limit is None:
            limit = settings.leaderboard_size
        ranked = sorted(self._participants, key=lambda p: p.points, reverse=True)
        return ranked[: max(limit, 0)]

    def _index_of(self, participant_id: str) -> Optional[int]:
        for index, participant in enumerate(self._participants):
            if participant.id == participant_id:
                return index
        return None

    def _persist(self) -> None:
        save_snapshot(
            self._store, PARTICIPANTS_KEY, _ADAPTER.dump_python(self._participants, mode="json")
        )
