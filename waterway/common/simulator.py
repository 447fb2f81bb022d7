"""
simulator.py – Synthetic daily trash-collection metrics.

Design
------
The trend log has no real data feed yet, so each day is drawn from a simple
policy:

* **bags** – uniform integer in ``[sim_bags_min, sim_bags_max)``.
* **rainfall** – ``0`` (dry day) unless a rain roll succeeds, in which case a
  uniform integer in ``[sim_rainfall_min, sim_rainfall_max)``.

Two rain probabilities are configured: ``sim_rain_probability_seed`` for
back-filled history at start-up and ``sim_rain_probability_daily`` for live
"simulate one more day" entries.  They are kept distinct on purpose.

Every function accepts an optional ``random.Random`` so tests can seed it.

Usage
-----
>>> history = seed_history(days=15)
>>> today = simulate_day()
>>> print(today.label, today.bags, today.rainfall)
"""

import datetime as dt
import random
from typing import Optional

from waterway.common.config import settings
from waterway.common.models import TrendPoint

# Day labels follow the month-day form shown on the trend chart
_LABEL_FORMAT: str = "%m-%d"


def day_label(day: dt.date) -> str:
    """Render a calendar day as an ``MM-DD`` label."""
    return day.strftime(_LABEL_FORMAT)


def _sample_bags(rng: random.Random) -> int:
    """Bag count drawn uniformly from [sim_bags_min, sim_bags_max)."""
    return rng.randrange(settings.sim_bags_min, settings.sim_bags_max)


def _sample_rainfall(rng: random.Random, rain_probability: float) -> int:
    """
    Rainfall for one day.

    Returns 0 with probability ``1 - rain_probability``, otherwise a uniform
    integer in [sim_rainfall_min, sim_rainfall_max).
    """
    if rng.random() < rain_probability:
        return rng.randrange(settings.sim_rainfall_min, settings.sim_rainfall_max)
    return 0


def simulate_day(
    day: Optional[dt.date] = None,
    rain_probability: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> TrendPoint:
    """
    Generate one ``TrendPoint`` with the live-simulation policy.

    Parameters
    ----------
    day:
        Calendar day to label the entry with. Defaults to today.
    rain_probability:
        Chance of rain. Defaults to ``settings.sim_rain_probability_daily``.
    rng:
        Random source. Defaults to a fresh, unseeded ``random.Random``.
    """
    rng = rng or random.Random()
    if day is None:
        day = dt.date.today()
    if rain_probability is None:
        rain_probability = settings.sim_rain_probability_daily
    if not (0.0 <= rain_probability <= 1.0):
        raise ValueError("rain_probability must be in [0.0, 1.0]")

    return TrendPoint(
        label=day_label(day),
        bags=_sample_bags(rng),
        rainfall=_sample_rainfall(rng, rain_probability),
    )


def seed_history(
    days: Optional[int] = None,
    today: Optional[dt.date] = None,
    rain_probability: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> list[TrendPoint]:
    """
    Back-fill ``days`` consecutive entries ending at ``today`` (oldest first).

    Uses ``settings.sim_rain_probability_seed`` unless overridden, and
    ``settings.trend_window_size`` as the default length.
    """
    if days is None:
        days = settings.trend_window_size
    if today is None:
        today = dt.date.today()
    if rain_probability is None:
        rain_probability = settings.sim_rain_probability_seed
    rng = rng or random.Random()

    return [
        simulate_day(
            day=today - dt.timedelta(days=offset),
            rain_probability=rain_probability,
            rng=rng,
        )
        for offset in range(days - 1, -1, -1)
    ]
