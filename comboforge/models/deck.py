from dataclasses import dataclass, field
from enum import Enum

from comboforge.models.card import BASIC_LAND_NAMES, CardFingerprint


class DeckFormat(str, Enum):
    """
    Deck construction rules.

    SINGLETON: 100 cards, one copy of each non-basic card.
    MULTIPLES_ALLOWED: 60 cards, up to four copies.
    """

    SINGLETON = "singleton"
    MULTIPLES_ALLOWED = "multiples_allowed"

    @classmethod
    def parse(cls, value: "str | DeckFormat") -> "DeckFormat":
        """Resolve a format or a game format name (e.g., "brawl", "standard")."""
        if isinstance(value, DeckFormat):
            return value
        key = value.strip().lower().replace("-", "_").replace(" ", "_")
        if key in _FORMAT_ALIASES:
            return _FORMAT_ALIASES[key]
        raise ValueError(f"Unknown deck format: {value!r}")

    @property
    def target_size(self) -> int:
        return 100 if self is DeckFormat.SINGLETON else 60

    @property
    def max_copies(self) -> int:
        return 1 if self is DeckFormat.SINGLETON else 4

    @property
    def land_ratio(self) -> float:
        return 0.38 if self is DeckFormat.SINGLETON else 0.40


_FORMAT_ALIASES: dict[str, DeckFormat] = {
    "singleton": DeckFormat.SINGLETON,
    "brawl": DeckFormat.SINGLETON,
    "historic_brawl": DeckFormat.SINGLETON,
    "commander": DeckFormat.SINGLETON,
    "multiples_allowed": DeckFormat.MULTIPLES_ALLOWED,
    "standard": DeckFormat.MULTIPLES_ALLOWED,
    "historic": DeckFormat.MULTIPLES_ALLOWED,
    "explorer": DeckFormat.MULTIPLES_ALLOWED,
    "pioneer": DeckFormat.MULTIPLES_ALLOWED,
    "timeless": DeckFormat.MULTIPLES_ALLOWED,
}


class SlotRole(str, Enum):
    """Why a card is in the deck."""

    COMBO_PIECE = "combo_piece"
    RAMP = "ramp"
    REMOVAL = "removal"
    CARD_DRAW = "card_draw"
    THREATS = "threats"
    UTILITY = "utility"
    DUAL_LAND = "dual_land"
    BASIC_LAND = "basic_land"
    UTILITY_LAND = "utility_land"
    GENERIC = "generic"

    @property
    def is_land(self) -> bool:
        return self in (SlotRole.DUAL_LAND, SlotRole.BASIC_LAND, SlotRole.UTILITY_LAND)


@dataclass(frozen=True, slots=True)
class DeckSlot:
    """A card in the deck with its quantity and role."""

    card_id: str
    quantity: int
    role: SlotRole

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"Slot for {self.card_id!r} has non-positive quantity")


@dataclass(frozen=True, slots=True)
class PoolShortfall:
    """
    A requirement the candidate pool could not satisfy.

    Attributes:
        requirement: What was being filled (category name, "lands", ...)
        requested: How many cards were wanted
        filled: How many were actually added
        message: Human-readable explanation
    """

    requirement: str
    requested: int
    filled: int
    message: str

    @property
    def missing(self) -> int:
        return max(0, self.requested - self.filled)


@dataclass
class DeckAssembly:
    """
    A deck produced by the assembler.

    A deck is complete only when its quantities sum to the format's target
    size. Anything the pool could not provide is listed in `shortfalls`.
    """

    format: DeckFormat
    color_identity: frozenset[str]
    slots: list[DeckSlot] = field(default_factory=list)
    cards: dict[str, CardFingerprint] = field(default_factory=dict)
    shortfalls: list[PoolShortfall] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def target_size(self) -> int:
        return self.format.target_size

    @property
    def land_ratio(self) -> float:
        return self.format.land_ratio

    @property
    def total_cards(self) -> int:
        return sum(slot.quantity for slot in self.slots)

    @property
    def land_count(self) -> int:
        return sum(slot.quantity for slot in self.slots if slot.role.is_land)

    @property
    def nonland_count(self) -> int:
        return self.total_cards - self.land_count

    @property
    def is_complete(self) -> bool:
        return self.total_cards == self.target_size

    def __contains__(self, card_id: str) -> bool:
        return any(slot.card_id == card_id for slot in self.slots)

    def slot_for(self, card_id: str) -> DeckSlot | None:
        for slot in self.slots:
            if slot.card_id == card_id:
                return slot
        return None

    def slots_with_role(self, role: SlotRole) -> list[DeckSlot]:
        return [slot for slot in self.slots if slot.role is role]

    def role_counts(self) -> dict[str, int]:
        """Total quantity per role."""
        counts: dict[str, int] = {}
        for slot in self.slots:
            counts[slot.role.value] = counts.get(slot.role.value, 0) + slot.quantity
        return counts


class CardCategory(str, Enum):
    """Display group used when ordering a deck list."""

    LAND = "land"
    CREATURE = "creature"
    ARTIFACT = "artifact"
    ENCHANTMENT = "enchantment"
    PLANESWALKER = "planeswalker"
    SPELL = "spell"

    @classmethod
    def for_card(cls, card: CardFingerprint) -> "CardCategory":
        if card.is_land:
            return cls.LAND
        for category in (cls.CREATURE, cls.ARTIFACT, cls.ENCHANTMENT, cls.PLANESWALKER):
            if card.has_type(category.value):
                return category
        return cls.SPELL


@dataclass(frozen=True, slots=True)
class DeckEntry:
    """
    One line of a plain-text deck list.

    Set code and collector number are only present for Arena-style lines
    ("4 Lightning Bolt (LEB) 163").
    """

    name: str
    quantity: int
    category: CardCategory = CardCategory.SPELL
    mana_value: int = 0
    types: tuple[str, ...] = ()
    colors: frozenset[str] = frozenset()
    set_code: str | None = None
    collector_number: str | None = None

    @classmethod
    def from_card(cls, card: CardFingerprint, quantity: int) -> "DeckEntry":
        return cls(
            name=card.name,
            quantity=quantity,
            category=CardCategory.for_card(card),
            mana_value=card.cmc,
            types=card.types,
            colors=card.colors,
        )

    @property
    def is_basic_land(self) -> bool:
        return self.name in BASIC_LAND_NAMES or "Basic" in self.types
