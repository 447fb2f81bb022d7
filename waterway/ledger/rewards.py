"""
rewards.py – RewardCatalog aggregate and point redemption.

The catalog owns the list of redeemable rewards (persisted under ``rewards``).
Rewards are immutable once created; there is no edit path.

Redemption is the one cross-aggregate operation that both reads and writes
the ledger: the participant's balance is checked against the reward cost and
debited as a single unit while holding ``ledger.lock``.

Observability
-------------
``waterway_redemptions_total`` is labelled by ``outcome`` (``success``,
``insufficient_points``, ``not_found``) for a per-outcome breakdown.
"""

import logging
from typing import Callable, Optional

from prometheus_client import Counter
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from waterway.common.errors import (
    InsufficientPointsError,
    UnknownRedemptionTargetError,
    ValidationError,
)
from waterway.common.models import Reward
from waterway.common.store import KeyValueStore, load_or_default, save_snapshot
from waterway.ledger.participants import ParticipantLedger

logger = logging.getLogger(__name__)

REWARDS_KEY = "rewards"

_ADAPTER = TypeAdapter(list[Reward])

REDEMPTIONS = Counter(
    "waterway_redemptions_total",
    "Reward redemption attempts, labelled by outcome.",
    ["outcome"],
)


def default_rewards() -> list[Reward]:
    """Sample catalog used when nothing has been stored yet."""
    return [
        Reward(id="rw01", name="Reusable water bottle", cost=50),
        Reward(id="rw02", name="Volunteer T-shirt", cost=120),
        Reward(id="rw03", name="Green keychain", cost=20),
    ]


class RewardCatalog:
    """Redeemable items and their point cost."""

    def __init__(
        self,
        store: KeyValueStore,
        rewards: Optional[list[Reward]] = None,
    ) -> None:
        self._store = store
        self._rewards: list[Reward] = list(rewards or [])

    @classmethod
    def load(
        cls,
        store: KeyValueStore,
        default: Callable[[], list[Reward]] = list,
    ) -> "RewardCatalog":
        return cls(store, load_or_default(store, REWARDS_KEY, _ADAPTER, default))

    @property
    def rewards(self) -> list[Reward]:
        return list(self._rewards)

    def get(self, reward_id: str) -> Optional[Reward]:
        return next((r for r in self._rewards if r.id == reward_id), None)

    def add_reward(self, name: str, cost: int) -> str:
        """Add a reward with a fresh id. Raises ValidationError unless cost is a positive integer and the name is set."""
        try:
            reward = Reward(name=name, cost=cost)
        except PydanticValidationError as exc:
            raise ValidationError(f"invalid reward: {exc}") from exc

        self._rewards.append(reward)
        self._persist()
        logger.info("Reward added", extra={"reward_id": reward.id, "cost": reward.cost})
        return reward.id

    def redeem(self, participant_id: str, reward_id: str, ledger: ParticipantLedger) -> str:
        """
        Exchange a participant's points for a reward and return the reward name.

        Raises
        ------
        UnknownRedemptionTargetError:
            The participant or the reward does not exist (a ``NotFoundError``).
        InsufficientPointsError:
            The participant's balance is lower than the reward cost.
        """
        reward = self.get(reward_id)
        with ledger.lock:
            balance = ledger.balance(participant_id)
            if reward is None or balance is None:
                REDEMPTIONS.labels(outcome="not_found").inc()
                raise UnknownRedemptionTargetError(
                    f"cannot redeem {reward_id!r} for {participant_id!r}: unknown "
                    f"{'reward' if reward is None else 'participant'}"
                )
            if balance < reward.cost:
                REDEMPTIONS.labels(outcome="insufficient_points").inc()
                logger.warning(
                    "Redemption rejected: insufficient points",
                    extra={
                        "participant_id": participant_id,
                        "reward_id": reward_id,
                        "balance": balance,
                        "cost": reward.cost,
                    },
                )
                raise InsufficientPointsError(participant_id, balance, reward.cost)
            ledger.debit(participant_id, reward.cost)

        REDEMPTIONS.labels(outcome="success").inc()
        logger.info(
            "Reward redeemed",
            extra={
                "participant_id": participant_id,
                "reward_id": reward_id,
                "cost": reward.cost,
            },
        )
        return reward.name

    def _persist(self) -> None:
        save_snapshot(
            self._store, REWARDS_KEY, _ADAPTER.dump_python(self._rewards, mode="json")
        )
