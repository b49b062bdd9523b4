from dataclasses import dataclass
from enum import Enum


class AbilityType(str, Enum):
    """Kind of rules clause."""

    TRIGGERED = "triggered"
    ACTIVATED = "activated"
    STATIC = "static"
    REPLACEMENT = "replacement"


@dataclass(frozen=True, slots=True)
class Ability:
    """
    One parsed rules clause.

    Attributes:
        type: Which kind of clause this is
        effect: What the clause does (text after trigger/cost)
        trigger: Trigger event for triggered abilities
        condition: "if ..." clause, when present
        cost: Bracketed activation cost for activated abilities
        optional: True when the controller may choose not to apply it
    """

    type: AbilityType
    effect: str
    trigger: str | None = None
    condition: str | None = None
    cost: str | None = None
    optional: bool = False


@dataclass(frozen=True, slots=True)
class CardPattern:
    """Structured signals derived from a card's oracle text."""

    card_id: str
    abilities: tuple[Ability, ...] = ()
    keywords: tuple[str, ...] = ()
    mechanics: tuple[str, ...] = ()
    synergy_tags: tuple[str, ...] = ()
    interaction_potential: int = 0

    def abilities_of(self, ability_type: AbilityType) -> list[Ability]:
        return [a for a in self.abilities if a.type is ability_type]
