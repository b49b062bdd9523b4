"""
Synergy pattern library.

Static, read-only tables of named synergy archetypes used by combo
discovery:

- SYNERGY_PATTERNS: target-card patterns (target keywords -> partner keywords)
- TYPE_SYNERGIES: card-type pairings the keyword patterns miss
- POOL_PATTERNS: keyword co-occurrence patterns for pool-wide scans

Nothing writes to these tables after import.
"""

from dataclasses import dataclass

from comboforge.models.combo import SynergyPattern, SynergyType

SYNERGY_PATTERNS: tuple[SynergyPattern, ...] = (
    SynergyPattern(
        name="Infinite Mana",
        category="infinite_mana",
        power_level=9,
        target_keywords=("untap", "add", "mana"),
        partner_keywords=("untap", "cost reduction", "free spell"),
        synergy_type=SynergyType.INFINITE,
        explanation="generating unbounded mana through an untap loop",
    ),
    SynergyPattern(
        name="Infinite Tokens",
        category="infinite_tokens",
        power_level=8,
        target_keywords=("create", "token", "copy"),
        partner_keywords=("create", "populate", "double", "copy"),
        synergy_type=SynergyType.INFINITE,
        explanation="creating unbounded tokens through a copy loop",
    ),
    SynergyPattern(
        name="Sacrifice Engine",
        category="sacrifice_engine",
        power_level=7,
        target_keywords=("sacrifice", "death", "dies"),
        partner_keywords=("death", "dies", "sacrifice", "enters", "create"),
        synergy_type=SynergyType.ENGINE,
        explanation="turning repeated sacrifices into value",
    ),
    SynergyPattern(
        name="Proliferate Combo",
        category="proliferate",
        power_level=7,
        target_keywords=("counter", "charge", "+1/+1", "loyalty"),
        partner_keywords=("proliferate", "counter", "double"),
        synergy_type=SynergyType.ENGINE,
        explanation="growing counters quickly with proliferate",
    ),
    SynergyPattern(
        name="Mill Engine",
        category="mill",
        power_level=6,
        target_keywords=("mill", "library", "graveyard"),
        partner_keywords=("mill", "graveyard", "exile", "library"),
        synergy_type=SynergyType.WIN_CONDITION,
        explanation="emptying the opponent's library",
    ),
    SynergyPattern(
        name="Ramp Acceleration",
        category="ramp",
        power_level=6,
        target_keywords=("land", "mana", "search"),
        partner_keywords=("land", "ramp", "search", "extra"),
        synergy_type=SynergyType.ACCELERATION,
        explanation="accelerating mana development for a fast game",
    ),
    SynergyPattern(
        name="Protection Suite",
        category="protection",
        power_level=5,
        target_keywords=("indestructible", "hexproof", "protection"),
        partner_keywords=("protection", "indestructible", "hexproof", "ward"),
        synergy_type=SynergyType.PROTECTION,
        explanation="shielding key permanents from removal",
    ),
    SynergyPattern(
        name="Draw Engine",
        category="card_advantage",
        power_level=6,
        target_keywords=("draw", "card", "hand"),
        partner_keywords=("draw", "card", "refill", "library"),
        synergy_type=SynergyType.ENGINE,
        explanation="building card advantage for the long game",
    ),
    SynergyPattern(
        name="Flicker/Blink",
        category="flicker",
        power_level=6,
        target_keywords=("enters", "etb", "when", "battlefield"),
        partner_keywords=("exile", "return", "flicker", "blink"),
        synergy_type=SynergyType.ENGINE,
        explanation="reusing enters-the-battlefield effects for repeated value",
    ),
    SynergyPattern(
        name="Poison/Toxic",
        category="poison",
        power_level=8,
        target_keywords=("poison", "toxic", "infect"),
        partner_keywords=("poison", "toxic", "proliferate", "counter"),
        synergy_type=SynergyType.WIN_CONDITION,
        explanation="winning through poison counters",
    ),
)


@dataclass(frozen=True)
class TypeSynergy:
    """A pairing between a target's card type and partners that reference it."""

    target_type: str
    partner_keywords: tuple[str, ...]
    category: str
    name: str
    power_level: int


TYPE_SYNERGIES: tuple[TypeSynergy, ...] = (
    TypeSynergy(
        target_type="Artifact",
        partner_keywords=("artifact", "metalcraft", "affinity"),
        category="artifact_synergy",
        name="Artifact Synergy",
        power_level=6,
    ),
    TypeSynergy(
        target_type="Enchantment",
        partner_keywords=("enchantment", "constellation", "aura"),
        category="enchantment_synergy",
        name="Enchantment Synergy",
        power_level=6,
    ),
    TypeSynergy(
        target_type="Creature",
        partner_keywords=("creature", "tribal", "lord"),
        category="tribal_synergy",
        name="Tribal Synergy",
        power_level=5,
    ),
)


@dataclass(frozen=True)
class PoolPattern:
    """
    A keyword co-occurrence pattern for pool-wide combo scans.

    Attributes:
        key: Stable pattern identifier
        category: Category stamped on emitted combos
        keywords: Substrings that qualify a card for the pattern
        description: Human-readable summary
        power_level: Baseline power before the mana-value penalty
        setup_turns: Typical turns needed to assemble
        priority: 1 for loop combos (reported as infinite), 2 for engines
        steps: Play-pattern templates filled with the first cards' names
    """

    key: str
    category: str
    keywords: tuple[str, ...]
    description: str
    power_level: int
    setup_turns: int
    priority: int
    steps: tuple[str, ...]

    @property
    def synergy_type(self) -> SynergyType:
        if self.priority == 1:
            return SynergyType.INFINITE
        if self.category == "mill":
            return SynergyType.WIN_CONDITION
        return SynergyType.ENGINE


POOL_PATTERNS: tuple[PoolPattern, ...] = (
    PoolPattern(
        key="poison_proliferate",
        category="poison",
        keywords=("poison", "toxic", "proliferate"),
        description="Poison + Proliferate",
        power_level=8,
        setup_turns=3,
        priority=1,
        steps=(
            "Play {first} to start adding poison counters",
            "Use {second} to proliferate the counters",
            "Repeat until the opponent has ten poison counters",
        ),
    ),
    PoolPattern(
        key="infinite_tokens",
        category="infinite_tokens",
        keywords=("create", "token", "copy", "populate", "double"),
        description="Unbounded Token Generation",
        power_level=8,
        setup_turns=4,
        priority=1,
        steps=(
            "Resolve {first} to create the first token",
            "Use {second} to copy or double the tokens",
            "Continue the loop for unbounded tokens",
        ),
    ),
    PoolPattern(
        key="infinite_mana",
        category="infinite_mana",
        keywords=("add", "mana", "untap", "cost reduction"),
        description="Unbounded Mana Generation",
        power_level=9,
        setup_turns=3,
        priority=1,
        steps=(
            "Play {first} to produce mana",
            "Use {second} to untap and repeat",
            "Spend the unbounded mana on a finisher",
        ),
    ),
    PoolPattern(
        key="sacrifice_synergy",
        category="value_engine",
        keywords=("sacrifice", "death", "enters", "leaves", "dies"),
        description="Sacrifice/Death Trigger Engine",
        power_level=6,
        setup_turns=3,
        priority=2,
        steps=(
            "Establish {first} as the sacrifice outlet",
            "Trigger {second} each time a permanent dies",
            "Grind value every turn",
        ),
    ),
    PoolPattern(
        key="draw_mill",
        category="mill",
        keywords=("mill", "library", "graveyard", "cards into graveyard"),
        description="Mill + Punishment Engine",
        power_level=6,
        setup_turns=4,
        priority=2,
        steps=(
            "Establish {first} to start milling",
            "Use {second} to punish cards entering the graveyard",
            "Empty the opponent's library",
        ),
    ),
)

# Placeholder pattern for pools where no named pattern matches
BASIC_SYNERGY = PoolPattern(
    key="basic_synergy",
    category="basic_synergy",
    keywords=(),
    description="Basic Synergy",
    power_level=3,
    setup_turns=3,
    priority=3,
    steps=(
        "Establish {first} as the base",
        "Add {second} for incremental advantage",
    ),
)


def pattern_by_category(category: str) -> SynergyPattern | None:
    """Look up a target-card pattern by its category."""
    for pattern in SYNERGY_PATTERNS:
        if pattern.category == category:
            return pattern
    return None
