"""
trend_log.py – TrendLog aggregate: rolling collection metrics plus weather alert.

The log keeps at most ``settings.trend_window_size`` daily entries (oldest
first).  Appending past the window evicts from the front, so the log always
holds the most recent entries in their original order.

The manually edited ``WeatherAlertState`` is persisted together with the
trend window under the single ``alerts`` key; it is never derived from the
trend data.
"""

import datetime as dt
import logging
import random
from collections import deque
from typing import Callable, Optional

from prometheus_client import Counter
from pydantic import TypeAdapter

from waterway.common.config import settings
from waterway.common.models import AlertSnapshot, TrendPoint, WeatherAlertState
from waterway.common.simulator import seed_history, simulate_day
from waterway.common.store import KeyValueStore, load_or_default, save_snapshot

logger = logging.getLogger(__name__)

ALERTS_KEY = "alerts"

_ADAPTER = TypeAdapter(AlertSnapshot)

DAYS_SIMULATED = Counter(
    "waterway_trend_days_simulated_total",
    "Total simulated days appended to the trend log.",
)


def default_alerts() -> AlertSnapshot:
    """No weather risk and a freshly seeded history."""
    return AlertSnapshot(trash_history=seed_history())


class TrendLog:
    """Fixed-window series of daily bag counts and rainfall."""

    def __init__(
        self,
        store: KeyValueStore,
        snapshot: Optional[AlertSnapshot] = None,
        window: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        snapshot = snapshot or AlertSnapshot()
        self._store = store
        self._window = window or settings.trend_window_size
        self._rng = rng or random.Random()
        self._alert = WeatherAlertState(
            bad_weather_risk=snapshot.bad_weather_risk,
            weather_note=snapshot.weather_note,
        )
        # maxlen makes deque drop from the left once the window is full
        self._entries: deque[TrendPoint] = deque(snapshot.trash_history, maxlen=self._window)

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        default: Callable[[], AlertSnapshot] = AlertSnapshot,
        rng: Optional[random.Random] = None,
    ) -> "TrendLog":
        snapshot = load_or_default(store, ALERTS_KEY, _ADAPTER, default)
        return cls(store, snapshot, rng=rng)

    @property
    def entries(self) -> list[TrendPoint]:
        return list(self._entries)

    @property
    def window(self) -> int:
        return self._window

    @property
    def alert(self) -> WeatherAlertState:
        return self._alert

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, point: TrendPoint) -> None:
        """Append a recorded day, evicting the oldest entry past the window."""
        self._entries.append(point)
        self._persist()

    def append_simulated_day(self, day: Optional[dt.date] = None) -> TrendPoint:
        """Generate one day with the live-simulation policy and append it."""
        point = simulate_day(
            day=day,
            rain_probability=settings.sim_rain_probability_daily,
            rng=self._rng,
        )
        self.append(point)
        DAYS_SIMULATED.inc()
        logger.debug(
            "Simulated trend day",
            extra={"label": point.label, "bags": point.bags, "rainfall": point.rainfall},
        )
        return point

    def seed_history(self, today: Optional[dt.date] = None) -> None:
        """Replace the window with a freshly seeded history."""
        self._entries = deque(
            seed_history(
                days=self._window,
                today=today,
                rain_probability=settings.sim_rain_probability_seed,
                rng=self._rng,
            ),
            maxlen=self._window,
        )
        self._persist()

    def total_bags(self) -> int:
        """Sum of bags over the entries currently in the window."""
        return sum(point.bags for point in self._entries)

    def set_weather_risk(self, bad_weather_risk: bool) -> None:
        self._alert = self._alert.model_copy(update={"bad_weather_risk": bool(bad_weather_risk)})
        self._persist()
        logger.info("Weather risk updated", extra={"bad_weather_risk": bool(bad_weather_risk)})

    def set_weather_note(self, note: str) -> None:
        self._alert = self._alert.model_copy(update={"weather_note": note or ""})
        self._persist()

    def snapshot(self) -> AlertSnapshot:
        return AlertSnapshot(
            bad_weather_risk=self._alert.bad_weather_risk,
            weather_note=self._alert.weather_note,
            trash_history=list(self._entries),
        )

    def _persist(self) -> None:
        save_snapshot(self._store, ALERTS_KEY, self.snapshot().model_dump(mode="json"))
