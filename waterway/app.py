"""
app.py – Composition root for the waterway cleanup engine.

``CleanupProgram`` loads the five aggregates from one key-value store and
exposes the two cross-aggregate operations (award points, redeem reward) as
convenience methods.  Everything else is called on the aggregate directly:

>>> program = CleanupProgram.from_settings()
>>> spot_id = program.hotspots.add_hotspot("Pier 4", 64)
>>> program.hotspots.overall_severity()
<Severity.CAUTION: 'caution'>

Each aggregate persists itself after every mutation; there is no transaction
spanning two aggregates.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from waterway.common.config import Settings, settings
from waterway.common.store import KeyValueStore, build_store
from waterway.events.roster import EventRoster, default_events
from waterway.hotspots.registry import HotspotRegistry, default_hotspots
from waterway.ledger.participants import ParticipantLedger, default_participants
from waterway.ledger.rewards import RewardCatalog, default_rewards
from waterway.trends.trend_log import TrendLog, default_alerts

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the project-wide format."""
    logging.basicConfig(
        level=level or settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@dataclass
class CleanupProgram:
    """The five aggregates of one cleanup program, sharing one store."""

    store: KeyValueStore
    hotspots: HotspotRegistry
    events: EventRoster
    participants: ParticipantLedger
    rewards: RewardCatalog
    trends: TrendLog

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        seed_defaults: bool = True,
        rng: Optional[random.Random] = None,
    ) -> "CleanupProgram":
        """
        Restore every aggregate from ``store``.

        Absent or corrupt keys fall back to the built-in sample collections
        when ``seed_defaults`` is true, otherwise to empty collections.
        """
        if seed_defaults:
            program = cls(
                store=store,
                hotspots=HotspotRegistry.load(store, default_hotspots),
                events=EventRoster.load(store, default_events),
                participants=ParticipantLedger.load(store, default_participants),
                rewards=RewardCatalog.load(store, default_rewards),
                trends=TrendLog.load(store, default_alerts, rng=rng),
            )
        else:
            program = cls(
                store=store,
                hotspots=HotspotRegistry.load(store),
                events=EventRoster.load(store),
                participants=ParticipantLedger.load(store),
                rewards=RewardCatalog.load(store),
                trends=TrendLog.load(store, rng=rng),
            )
        logger.info(
            "Cleanup program loaded",
            extra={
                "hotspots": len(program.hotspots.hotspots),
                "events": len(program.events.events),
                "participants": len(program.participants.participants),
                "rewards": len(program.rewards.rewards),
                "trend_days": len(program.trends),
            },
        )
        return program

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "CleanupProgram":
        """Build the configured store backend and load every aggregate from it."""
        return cls.load(build_store(config), seed_defaults=config.seed_defaults)

    def award_points(self, event_id: str) -> int:
        return self.events.award_points(event_id, self.participants)

    def redeem(self, participant_id: str, reward_id: str) -> str:
        return self.rewards.redeem(participant_id, reward_id, self.participants)
