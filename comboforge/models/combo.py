from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from comboforge.config import HIGH_RELIABILITY_MAX_MANA, MEDIUM_RELIABILITY_MAX_MANA
from comboforge.models.card import CardFingerprint


class SynergyType(str, Enum):
    """How a combo produces its advantage."""

    INFINITE = "infinite"
    ENGINE = "engine"
    PROTECTION = "protection"
    ACCELERATION = "acceleration"
    WIN_CONDITION = "win_condition"


class Reliability(str, Enum):
    """Coarse rating of how cheaply a combo comes together."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ComboSource(str, Enum):
    """Where a combo came from. Local results outrank external ones on ties."""

    LOCAL = "local"
    EXTERNAL = "external"


@dataclass(frozen=True)
class SynergyPattern:
    """
    A named synergy archetype.

    Attributes:
        name: Display name (e.g., "Sacrifice Engine")
        category: Machine category used in combo ids
        power_level: Baseline power 1-10
        target_keywords: Substrings looked for in the target card's text
        partner_keywords: Substrings looked for in partner cards' text
        synergy_type: Classification of the interaction
        explanation: Human-readable summary
    """

    name: str
    category: str
    power_level: int
    target_keywords: tuple[str, ...]
    partner_keywords: tuple[str, ...]
    synergy_type: SynergyType
    explanation: str


@dataclass(frozen=True)
class ComboMatch:
    """
    A discovered combination of cards.

    Cards are ordered with the target card (when there is one) first.
    """

    id: str
    cards: tuple[CardFingerprint, ...]
    category: str
    synergy_type: SynergyType
    power_level: int
    reliability: Reliability
    mana_cost_total: int
    explanation: tuple[str, ...] = ()
    keywords_matched: tuple[str, ...] = ()
    description: str = ""
    setup_turns: int | None = None
    source: ComboSource = ComboSource.LOCAL

    def __post_init__(self) -> None:
        if len(self.cards) < 2:
            raise ValueError(f"Combo {self.id!r} needs at least 2 cards, got {len(self.cards)}")
        if self.power_level < 1:
            raise ValueError(f"Combo {self.id!r} has power level {self.power_level} (minimum 1)")

    @property
    def card_names(self) -> tuple[str, ...]:
        return tuple(card.name for card in self.cards)


def reliability_for_mana(total_mana: int) -> Reliability:
    """Bucket a combined mana value: <=4 high, <=7 medium, else low."""
    if total_mana <= HIGH_RELIABILITY_MAX_MANA:
        return Reliability.HIGH
    if total_mana <= MEDIUM_RELIABILITY_MAX_MANA:
        return Reliability.MEDIUM
    return Reliability.LOW


def combo_id(cards: Iterable[CardFingerprint], category: str) -> str:
    """Deterministic id from participating card ids and the category."""
    return "_".join([*(card.id for card in cards), category])
