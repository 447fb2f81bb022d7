"""
test_event_roster.py – Unit tests for EventRoster and point awarding.

Coverage
--------
* create_event: validation of name, date and points.
* toggle_attendance: add/remove symmetry, unknown event.
* award_points: crediting, unknown attendees, repeat awards, optional guard.
* next_sunday helper.
"""

import datetime as dt

import pytest
from prometheus_client import REGISTRY

from waterway.common.config import settings
from waterway.common.errors import ValidationError
from waterway.events.roster import EVENTS_KEY, EventRoster, next_sunday


def _points_awarded() -> float:
    return REGISTRY.get_sample_value("waterway_points_awarded_total") or 0.0


# ── create_event ───────────────────────────────────────────────────────────────

class TestCreateEvent:

    def test_new_event_has_empty_roster(self, roster):
        """A created event starts with no attendees and is not awarded."""
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18), "north bank", 20)
        event = roster.get(event_id)
        assert event.attendees == ()
        assert event.awarded is False
        assert event.points_per_attendance == 20

    def test_iso_string_date_accepted(self, roster):
        event_id = roster.create_event("River sweep", "2026-10-18")
        assert roster.get(event_id).date == dt.date(2026, 10, 18)

    def test_points_default_from_settings(self, roster):
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18))
        assert roster.get(event_id).points_per_attendance == settings.default_points_per_attendance

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, roster, name):
        with pytest.raises(ValidationError):
            roster.create_event(name, dt.date(2026, 10, 18))
        assert roster.events == []

    @pytest.mark.parametrize("date", [None, "", "  "])
    def test_missing_date_rejected(self, roster, date):
        with pytest.raises(ValidationError):
            roster.create_event("River sweep", date)

    def test_malformed_date_rejected(self, roster):
        with pytest.raises(ValidationError):
            roster.create_event("River sweep", "not-a-date")

    def test_negative_points_rejected(self, roster):
        with pytest.raises(ValidationError):
            roster.create_event("River sweep", dt.date(2026, 10, 18), points_per_attendance=-1)

    def test_event_persisted(self, roster, store):
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18))
        stored = store.load(EVENTS_KEY)
        assert stored[0]["id"] == event_id
        assert stored[0]["date"] == "2026-10-18"


# ── toggle_attendance ──────────────────────────────────────────────────────────

class TestToggleAttendance:

    def test_toggle_adds_then_removes(self, roster):
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18))
        roster.toggle_attendance(event_id, "sv01")
        assert roster.get(event_id).attendees == ("sv01",)
        roster.toggle_attendance(event_id, "sv01")
        assert roster.get(event_id).attendees == ()

    def test_even_number_of_toggles_restores_roster(self, roster):
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18))
        roster.toggle_attendance(event_id, "sv02")
        for _ in range(4):
            roster.toggle_attendance(event_id, "sv01")
        assert roster.get(event_id).attendees == ("sv02",)

    def test_unknown_participant_id_is_recorded(self, roster):
        """Roster ids are not checked against the ledger."""
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18))
        roster.toggle_attendance(event_id, "ghost")
        assert roster.get(event_id).attendees == ("ghost",)

    def test_unknown_event_is_noop(self, roster):
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18))
        roster.toggle_attendance("missing", "sv01")
        assert roster.get(event_id).attendees == ()


# ── award_points ───────────────────────────────────────────────────────────────

class TestAwardPoints:

    @pytest.fixture()
    def event_id(self, roster):
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18), points_per_attendance=20)
        roster.toggle_attendance(event_id, "sv01")
        return event_id

    def test_attendees_credited_others_unchanged(self, roster, ledger, event_id):
        ledger.add_participant("sv03", "Le Hoa")
        roster.toggle_attendance(event_id, "sv02")
        credited = roster.award_points(event_id, ledger)
        assert credited == 2
        assert ledger.balance("sv01") == 60
        assert ledger.balance("sv02") == 35
        assert ledger.balance("sv03") == 0

    def test_unknown_attendee_skipped(self, roster, ledger, event_id):
        roster.toggle_attendance(event_id, "ghost")
        assert roster.award_points(event_id, ledger) == 1
        assert ledger.balance("sv01") == 60
        assert "ghost" not in ledger

    def test_marks_event_awarded(self, roster, ledger, event_id, store):
        roster.award_points(event_id, ledger)
        assert roster.get(event_id).awarded is True
        assert store.load(EVENTS_KEY)[0]["awarded"] is True

    def test_repeat_award_credits_again(self, roster, ledger, event_id):
        roster.award_points(event_id, ledger)
        roster.award_points(event_id, ledger)
        assert ledger.balance("sv01") == 80

    def test_repeat_award_blocked_when_configured(self, roster, ledger, event_id, monkeypatch):
        monkeypatch.setattr(settings, "events_block_repeat_award", True)
        assert roster.award_points(event_id, ledger) == 1
        assert roster.award_points(event_id, ledger) == 0
        assert ledger.balance("sv01") == 60

    def test_unknown_event_returns_zero(self, roster, ledger):
        assert roster.award_points("missing", ledger) == 0
        assert ledger.balance("sv01") == 40

    def test_empty_roster_credits_nobody(self, roster, ledger):
        event_id = roster.create_event("Empty", dt.date(2026, 10, 18))
        assert roster.award_points(event_id, ledger) == 0

    def test_points_counter_incremented(self, roster, ledger, event_id):
        before = _points_awarded()
        roster.award_points(event_id, ledger)
        assert _points_awarded() - before == 20


# ── next_sunday ────────────────────────────────────────────────────────────────

class TestNextSunday:

    def test_weekday_moves_forward(self):
        # 2026-10-14 is a Wednesday
        assert next_sunday(dt.date(2026, 10, 14)) == dt.date(2026, 10, 18)

    def test_sunday_is_itself(self):
        assert next_sunday(dt.date(2026, 10, 18)) == dt.date(2026, 10, 18)


class TestLoad:

    def test_load_restores_events(self, store):
        roster = EventRoster(store)
        event_id = roster.create_event("River sweep", dt.date(2026, 10, 18))
        assert EventRoster.load(store).get(event_id).name == "River sweep"
