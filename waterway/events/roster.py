"""
roster.py – EventRoster aggregate and point awarding.

Owns cleanup events (persisted under ``events``).  Each event keeps a roster
of attendee *ids*; participants themselves live in the ``ParticipantLedger``.

Referential looseness
---------------------
``toggle_attendance`` does not check the id against the ledger, and
``award_points`` simply skips attendee ids the ledger does not know.  Keeping
the roster consistent with the ledger is the caller's job.

Repeat awards
-------------
``award_points`` credits every attendee each time it is called.  Calling it
twice for the same event double-credits.  Setting
``settings.events_block_repeat_award`` turns a second award into a logged
no-op; the event's ``awarded`` flag is recorded either way.
"""

import datetime as dt
import logging
from typing import Callable, Optional

from prometheus_client import Counter
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from waterway.common.config import settings
from waterway.common.errors import ValidationError
from waterway.common.models import Event
from waterway.common.store import KeyValueStore, load_or_default, save_snapshot
from waterway.ledger.participants import ParticipantLedger

logger = logging.getLogger(__name__)

EVENTS_KEY = "events"

_ADAPTER = TypeAdapter(list[Event])

POINTS_AWARDED = Counter(
    "waterway_points_awarded_total",
    "Total points credited to attendees by event awards.",
)


def next_sunday(today: Optional[dt.date] = None) -> dt.date:
    """The coming Sunday, or ``today`` itself when it is a Sunday."""
    today = today or dt.date.today()
    # weekday(): Monday=0 … Sunday=6
    return today + dt.timedelta(days=(6 - today.weekday()) % 7)


def default_events() -> list[Event]:
    """A single upcoming "Green Sunday" cleanup used when nothing is stored."""
    return [
        Event(
            name=f"Green Sunday {next_sunday():%d/%m}",
            date=next_sunday(),
            description="Pick up trash along both banks and sort it on site",
            points_per_attendance=settings.default_points_per_attendance,
        )
    ]


class EventRoster:
    """Cleanup events with their attendee rosters."""

    def __init__(
        self,
        store: KeyValueStore,
        events: Optional[list[Event]] = None,
    ) -> None:
        self._store = store
        self._events: list[Event] = list(events or [])

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        default: Callable[[], list[Event]] = list,
    ) -> "EventRoster":
        return cls(store, load_or_default(store, EVENTS_KEY, _ADAPTER, default))

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    def get(self, event_id: str) -> Optional[Event]:
        return next((e for e in self._events if e.id == event_id), None)

    def create_event(
        self,
        name: str,
        date: dt.date | str | None,
        description: str = "",
        points_per_attendance: Optional[int] = None,
    ) -> str:
        """
        Schedule an event with an empty roster and return its id.

        ``date`` may be a ``datetime.date`` or an ISO ``YYYY-MM-DD`` string.
        Raises ``ValidationError`` when the name or date is empty or malformed,
        or when ``points_per_attendance`` is negative.
        """
        if not name or not name.strip():
            raise ValidationError("event name is required")
        if date is None or (isinstance(date, str) and not date.strip()):
            raise ValidationError("event date is required")
        if points_per_attendance is None:
            points_per_attendance = settings.default_points_per_attendance
        try:
            event = Event(
                name=name,
                date=date,
                description=description or "",
                points_per_attendance=points_per_attendance,
            )
        except PydanticValidationError as exc:
            raise ValidationError(f"invalid event: {exc}") from exc

        self._events.append(event)
        self._persist()
        logger.info(
            "Event created",
            extra={"event_id": event.id, "date": event.date.isoformat()},
        )
        return event.id

    def toggle_attendance(self, event_id: str, participant_id: str) -> None:
        """Add ``participant_id`` to the roster, or remove it if already present."""
        index = self._index_of(event_id)
        if index is None:
            logger.debug("toggle_attendance ignored for unknown event %s", event_id)
            return

        event = self._events[index]
        if participant_id in event.attendees:
            attendees = tuple(a for a in event.attendees if a != participant_id)
        else:
            attendees = event.attendees + (participant_id,)
        self._events[index] = event.model_copy(update={"attendees": attendees})
        self._persist()

    def award_points(self, event_id: str, ledger: ParticipantLedger) -> int:
        """
        Credit ``points_per_attendance`` to every attendee known to ``ledger``.

        Returns the number of participants credited (0 for an unknown event).
        """
        index = self._index_of(event_id)
        if index is None:
            logger.debug("award_points ignored for unknown event %s", event_id)
            return 0

        event = self._events[index]
        if event.awarded and settings.events_block_repeat_award:
            logger.warning("Event %s already awarded, skipping", event_id)
            return 0

        credited = 0
        with ledger.lock:
            for participant_id in event.attendees:
                if participant_id not in ledger:
                    logger.debug(
                        "Skipping unknown attendee %s for event %s",
                        participant_id,
                        event_id,
                    )
                    continue
                ledger.credit(participant_id, event.points_per_attendance)
                credited += 1

        if not event.awarded:
            self._events[index] = event.model_copy(update={"awarded": True})
            self._persist()

        POINTS_AWARDED.inc(credited * event.points_per_attendance)
        logger.info(
            "Points awarded",
            extra={
                "event_id": event_id,
                "attendees_credited": credited,
                "points_each": event.points_per_attendance,
            },
        )
        return credited

    def _index_of(self, event_id: str) -> Optional[int]:
        for index, event in enumerate(self._events):
            if event.id == event_id:
                return index
        return None

    def _persist(self) -> None:
        save_snapshot(
            self._store, EVENTS_KEY, _ADAPTER.dump_python(self._events, mode="json")
        )
