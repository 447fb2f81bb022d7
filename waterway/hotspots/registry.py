"""
registry.py – HotspotRegistry aggregate.

Owns the list of tracked pollution hotspots and persists it under the
``hotspots`` key after every mutation.  Unknown ids on ``set_level`` and
``remove_hotspot`` are silent no-ops.
"""

import logging
import math
from typing import Callable, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from waterway.common.errors import ValidationError
from waterway.common.models import Hotspot
from waterway.common.store import KeyValueStore, load_or_default, save_snapshot
from waterway.hotspots.classification import Severity, classify

logger = logging.getLogger(__name__)

HOTSPOTS_KEY = "hotspots"

_ADAPTER = TypeAdapter(list[Hotspot])


def default_hotspots() -> list[Hotspot]:
    """Sample hotspots used when nothing has been stored yet."""
    return [
        Hotspot(id="Cau1", name="Bridge No. 1", pollution_level=42, note="Floating trash after rain"),
        Hotspot(id="Cau2", name="Bridge No. 2", pollution_level=73, note="Foul smell, murky water"),
        Hotspot(id="Cong3", name="Culvert No. 3", pollution_level=15, note="Stable"),
    ]


class HotspotRegistry:
    """Tracked pollution observation points, classified by severity."""

    def __init__(
        self,
        store: KeyValueStore,
        hotspots: Optional[list[Hotspot]] = None,
    ) -> None:
        self._store = store
        self._hotspots: list[Hotspot] = list(hotspots or [])

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        default: Callable[[], list[Hotspot]] = list,
    ) -> "HotspotRegistry":
        """Restore the registry from ``store``, falling back to ``default()``."""
        return cls(store, load_or_default(store, HOTSPOTS_KEY, _ADAPTER, default))

    @property
    def hotspots(self) -> list[Hotspot]:
        return list(self._hotspots)

    def get(self, hotspot_id: str) -> Optional[Hotspot]:
        return next((h for h in self._hotspots if h.id == hotspot_id), None)

    def add_hotspot(self, name: str, level: int, note: Optional[str] = None) -> str:
        """Create a hotspot with a fresh id and return that id."""
        if not name or not name.strip():
            raise ValidationError("hotspot name is required")
        try:
            hotspot = Hotspot(name=name, pollution_level=level, note=note or None)
        except PydanticValidationError as exc:
            raise ValidationError(f"invalid hotspot: {exc}") from exc

        self._hotspots.append(hotspot)
        self._persist()
        logger.info(
            "Hotspot added",
            extra={"hotspot_id": hotspot.id, "level": hotspot.pollution_level},
        )
        return hotspot.id

    def set_level(self, hotspot_id: str, level: int) -> None:
        """Replace the level (clamped). Raises ValidationError when ``level`` is not an integer."""
        for index, hotspot in enumerate(self._hotspots):
            if hotspot.id == hotspot_id:
                try:
                    updated = Hotspot.model_validate(
                        {**hotspot.model_dump(), "pollution_level": level}
                    )
                except PydanticValidationError as exc:
                    raise ValidationError(f"invalid pollution level: {exc}") from exc
                self._hotspots[index] = updated
                self._persist()
                return
        logger.debug("set_level ignored for unknown hotspot %s", hotspot_id)

    def remove_hotspot(self, hotspot_id: str) -> None:
        remaining = [h for h in self._hotspots if h.id != hotspot_id]
        if len(remaining) == len(self._hotspots):
            logger.debug("remove_hotspot ignored for unknown hotspot %s", hotspot_id)
            return
        self._hotspots = remaining
        self._persist()

    def severity_of(self, hotspot_id: str) -> Optional[Severity]:
        hotspot = self.get(hotspot_id)
        return None if hotspot is None else classify(hotspot.pollution_level)

    def average_level(self) -> int:
        """Mean pollution level rounded half up; 0 when empty."""
        total = sum(h.pollution_level for h in self._hotspots)
        return math.floor(total / (len(self._hotspots) or 1) + 0.5)

    def overall_severity(self) -> Severity:
        return classify(self.average_level())

    def _persist(self) -> None:
        save_snapshot(
            self._store, HOTSPOTS_KEY, _ADAPTER.dump_python(self._hotspots, mode="json")
        )
