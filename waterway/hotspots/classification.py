"""
classification.py – Pure, stateless pollution severity classification.

This module has no I/O and no dependency on any aggregate, so the colour and
label shown next to a hotspot can be unit-tested on its own.

Severity bands
--------------
===========  =========  ========
Level        Severity   Colour
===========  =========  ========
0 – 20       GOOD       green
21 – 50      CAUTION    yellow
51 – 80      BAD        orange
81 – 100     HAZARD     red
===========  =========  ========

Boundaries are inclusive on the upper edge: ``classify(20)`` is GOOD and
``classify(21)`` is CAUTION.
"""

from enum import Enum


class Severity(str, Enum):
    GOOD = "good"
    CAUTION = "caution"
    BAD = "bad"
    HAZARD = "hazard"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def color(self) -> str:
        return _COLORS[self]

    @property
    def rank(self) -> int:
        """0 for GOOD up to 3 for HAZARD."""
        return _ORDER.index(self)


_ORDER: list[Severity] = [Severity.GOOD, Severity.CAUTION, Severity.BAD, Severity.HAZARD]

_LABELS: dict[Severity, str] = {
    Severity.GOOD: "Good",
    Severity.CAUTION: "Caution",
    Severity.BAD: "Bad",
    Severity.HAZARD: "Hazard",
}

_COLORS: dict[Severity, str] = {
    Severity.GOOD: "green",
    Severity.CAUTION: "yellow",
    Severity.BAD: "orange",
    Severity.HAZARD: "red",
}

# Upper bound (inclusive) of each band, checked in order
_BANDS: list[tuple[int, Severity]] = [
    (20, Severity.GOOD),
    (50, Severity.CAUTION),
    (80, Severity.BAD),
]

_ACTIONS: dict[Severity, tuple[str, ...]] = {
    Severity.GOOD: (
        "Keep up the regular cleanup schedule",
        "Remind residents to sort waste at the source",
    ),
    Severity.CAUTION: (
        "Inspect the spot more often",
        "Place additional trash bins nearby",
    ),
    Severity.BAD: (
        "Mobilise the rapid response team",
        "Install a temporary trash barrier",
    ),
    Severity.HAZARD: (
        "Warn the community",
        "Notify local authorities and pause activities near the bank",
    ),
}


def classify(level: int) -> Severity:
    """
    Map a pollution level to its severity band.

    Levels above 80 (including any value past 100) are HAZARD; levels at or
    below 20 (including negatives) are GOOD.
    """
    for upper, severity in _BANDS:
        if level <= upper:
            return severity
    return Severity.HAZARD


def recommended_actions(severity: Severity) -> tuple[str, ...]:
    """Suggested community response for a severity band."""
    return _ACTIONS[severity]
