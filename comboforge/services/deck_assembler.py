"""
Deck assembly service.

Builds a legal deck around selected combos from a color-legal card pool.

Strategy:
1. Reserve every combo piece once
2. Fill support categories (ramp, removal, card draw, threats, utility)
   up to the nonland budget, then top up with generic playables
3. Build the mana base: two-color lands, colorless utility lands, then
   basics split by the color pips of the chosen spells

Anything the pool cannot provide is recorded as a PoolShortfall. The deck is
never padded with cards that break the format or the color identity.
"""

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from comboforge.config import DUAL_LAND_SHARE, MAX_SUPPORT_COPIES, MAX_UTILITY_LANDS
from comboforge.models.card import (
    COLOR_SYMBOLS,
    COLOR_TO_BASIC_LAND,
    CardFingerprint,
    coerce_colors,
)
from comboforge.models.combo import ComboMatch
from comboforge.models.deck import DeckAssembly, DeckFormat, DeckSlot, PoolShortfall, SlotRole
from comboforge.parsers.text_patterns import contains_any, count_color_pips

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryQuota:
    """
    One support category of the deck skeleton.

    A card qualifies when its mana value is at most `max_mana_value` and its
    text contains any of `keywords` or it has any of `type_words`.
    """

    role: SlotRole
    count: int
    max_mana_value: int
    keywords: tuple[str, ...] = ()
    type_words: tuple[str, ...] = ()

    def matches(self, card: CardFingerprint) -> bool:
        if card.is_land or card.cmc > self.max_mana_value:
            return False
        if contains_any(card.text_lower, self.keywords):
            return True
        return any(card.has_type(word) for word in self.type_words)


RAMP_KEYWORDS = (
    "add {",
    "add one mana",
    "add two mana",
    "mana of any",
    "search your library for a basic land",
    "search your library for a land",
    "treasure token",
)
REMOVAL_KEYWORDS = (
    "destroy target",
    "exile target",
    "damage to any target",
    "damage to target",
    "fights",
    "counter target spell",
    "return target creature",
)
CARD_DRAW_KEYWORDS = (
    "draw a card",
    "draw two",
    "draw three",
    "draws a card",
    "scry",
    "look at the top",
    "investigate",
)
UTILITY_KEYWORDS = (
    "protection",
    "hexproof",
    "indestructible",
    "gain",
    "return",
    "create",
    "copy",
    "untap",
)


def _quota_table(
    ramp: int,
    removal: int,
    draw: int,
    threats: int,
    utility: int,
) -> tuple[CategoryQuota, ...]:
    return (
        CategoryQuota(SlotRole.RAMP, ramp, 3, RAMP_KEYWORDS),
        CategoryQuota(SlotRole.REMOVAL, removal, 5, REMOVAL_KEYWORDS),
        CategoryQuota(SlotRole.CARD_DRAW, draw, 5, CARD_DRAW_KEYWORDS),
        CategoryQuota(SlotRole.THREATS, threats, 6, type_words=("Creature", "Planeswalker")),
        CategoryQuota(SlotRole.UTILITY, utility, 6, UTILITY_KEYWORDS, ("Artifact", "Enchantment")),
    )


# Counts are distinct cards; multiples-allowed decks run up to 3 copies of each
DEFAULT_QUOTAS: Mapping[DeckFormat, tuple[CategoryQuota, ...]] = {
    DeckFormat.SINGLETON: _quota_table(ramp=10, removal=8, draw=8, threats=25, utility=11),
    DeckFormat.MULTIPLES_ALLOWED: _quota_table(ramp=2, removal=4, draw=3, threats=6, utility=2),
}

# Generic fill prefers cheap castable bodies and spells
GENERIC_TYPES = ("Creature", "Instant", "Sorcery")
GENERIC_MANA_RANGE = (1, 5)

UTILITY_LAND_KEYWORDS = ("draw", "scry", "life")


def synthesize_basic_land(color: str) -> CardFingerprint:
    """Canonical basic land for a color symbol."""
    name = COLOR_TO_BASIC_LAND[color]
    return CardFingerprint(
        id=name.lower(),
        name=name,
        mana_value=0,
        color_identity=frozenset({color}),
        types=("Basic", "Land"),
        oracle_text=f"{{T}}: Add {{{color}}}.",
        legalities={},
    )


class _SlotBook:
    """Ordered slots keyed by card id; re-adding a card grows its quantity."""

    def __init__(self) -> None:
        self._slots: dict[str, DeckSlot] = {}
        self._names: set[str] = set()
        self.cards: dict[str, CardFingerprint] = {}

    def __contains__(self, card_id: str) -> bool:
        return card_id in self._slots

    def holds(self, card: CardFingerprint) -> bool:
        """True if this card, or another printing of it, already has a slot."""
        return card.id in self._slots or card.name.lower() in self._names

    def add(self, card: CardFingerprint, quantity: int, role: SlotRole) -> None:
        existing = self._slots.get(card.id)
        if existing is not None:
            quantity += existing.quantity
            role = existing.role
        self._slots[card.id] = DeckSlot(card_id=card.id, quantity=quantity, role=role)
        self._names.add(card.name.lower())
        self.cards[card.id] = card

    @property
    def slots(self) -> list[DeckSlot]:
        return list(self._slots.values())

    def quantity(self, *, lands: bool) -> int:
        return sum(s.quantity for s in self._slots.values() if s.role.is_land == lands)


def assemble_deck(
    combos: Iterable[ComboMatch],
    color_identity: Iterable[str],
    format: DeckFormat | str,
    pool: Iterable[CardFingerprint],
    quotas: Sequence[CategoryQuota] | None = None,
    synthesize_basics: bool = True,
) -> DeckAssembly:
    """
    Assemble a deck around selected combos.

    Args:
        combos: Combos whose pieces must be in the deck
        color_identity: Allowed color symbols
        format: DeckFormat or a game format name ("brawl", "standard", ...)
        pool: Candidate cards; cards outside the identity are ignored
        quotas: Support categories to fill (default per format)
        synthesize_basics: Create canonical basic lands missing from the pool

    Returns:
        DeckAssembly; `is_complete` is False when the pool ran short
    """
    deck_format = DeckFormat.parse(format)
    identity = coerce_colors(color_identity)
    category_quotas = tuple(quotas) if quotas is not None else DEFAULT_QUOTAS[deck_format]

    assembly = DeckAssembly(format=deck_format, color_identity=identity)
    book = _SlotBook()

    candidates = _dedupe([card for card in pool if card.fits_identity(identity)])
    nonland_budget = assembly.target_size - round(assembly.target_size * assembly.land_ratio)

    _reserve_combo_pieces(combos, identity, assembly, book)
    _fill_categories(category_quotas, candidates, identity, nonland_budget, assembly, book)
    _fill_generic(candidates, identity, nonland_budget, assembly, book)

    lands_needed = assembly.target_size - book.quantity(lands=False)
    _build_mana_base(candidates, identity, lands_needed, synthesize_basics, assembly, book)

    assembly.slots = book.slots
    assembly.cards = dict(book.cards)

    assembly.notes.append(
        f"{assembly.nonland_count} nonland cards, {assembly.land_count} lands "
        f"({assembly.total_cards}/{assembly.target_size})"
    )
    if not assembly.is_complete:
        logger.warning(
            "Deck incomplete: %d/%d cards",
            assembly.total_cards,
            assembly.target_size,
            extra={"shortfalls": [s.requirement for s in assembly.shortfalls]},
        )
    else:
        logger.info(
            "Assembled %s deck with %d cards",
            deck_format.value,
            assembly.total_cards,
            extra={"colors": sorted(identity)},
        )
    return assembly


def _dedupe(cards: Iterable[CardFingerprint]) -> list[CardFingerprint]:
    # One candidate per card name; reprints keep the lowest id
    by_name: dict[str, CardFingerprint] = {}
    for card in sorted(cards, key=lambda c: c.id):
        by_name.setdefault(card.name.lower(), card)
    return list(by_name.values())


def _sort_key(identity: frozenset[str]):
    def key(card: CardFingerprint) -> tuple[bool, int, str, str]:
        return (card.color_identity != identity, card.cmc, card.name, card.id)

    return key


# =============================================================================
# COMBO PIECES
# =============================================================================


def _reserve_combo_pieces(
    combos: Iterable[ComboMatch],
    identity: frozenset[str],
    assembly: DeckAssembly,
    book: _SlotBook,
) -> None:
    quantity = 1 if assembly.format is DeckFormat.SINGLETON else assembly.format.max_copies
    requested = 0
    reserved = 0

    for combo in combos:
        for card in combo.cards:
            if book.holds(card):
                continue
            requested += 1
            if not card.fits_identity(identity):
                assembly.shortfalls.append(
                    PoolShortfall(
                        requirement="combo_piece",
                        requested=1,
                        filled=0,
                        message=f"{card.name} is outside the deck's color identity",
                    )
                )
                continue
            if book.quantity(lands=False) + quantity > assembly.target_size:
                assembly.shortfalls.append(
                    PoolShortfall(
                        requirement="combo_piece",
                        requested=1,
                        filled=0,
                        message=f"No room for {card.name}: combo pieces exceed the deck size",
                    )
                )
                continue
            book.add(card, quantity, SlotRole.COMBO_PIECE)
            reserved += 1

    if requested:
        assembly.notes.append(f"Reserved {reserved} of {requested} combo pieces")


# =============================================================================
# SUPPORT CATEGORIES
# =============================================================================


def _fill_categories(
    quotas: Sequence[CategoryQuota],
    candidates: Sequence[CardFingerprint],
    identity: frozenset[str],
    nonland_budget: int,
    assembly: DeckAssembly,
    book: _SlotBook,
) -> None:
    singleton = assembly.format is DeckFormat.SINGLETON

    for quota in quotas:
        picks = sorted(
            (c for c in candidates if not book.holds(c) and quota.matches(c)),
            key=_sort_key(identity),
        )[: quota.count]

        filled = 0
        for card in picks:
            remaining = nonland_budget - book.quantity(lands=False)
            if remaining <= 0:
                break
            book.add(card, 1 if singleton else min(MAX_SUPPORT_COPIES, remaining), quota.role)
            filled += 1

        budget_reached = book.quantity(lands=False) >= nonland_budget
        if filled < quota.count and not budget_reached:
            assembly.shortfalls.append(
                PoolShortfall(
                    requirement=quota.role.value,
                    requested=quota.count,
                    filled=filled,
                    message=f"Only {filled} of {quota.count} {quota.role.value} cards available",
                )
            )


def _fill_generic(
    candidates: Sequence[CardFingerprint],
    identity: frozenset[str],
    nonland_budget: int,
    assembly: DeckAssembly,
    book: _SlotBook,
) -> None:
    if book.quantity(lands=False) >= nonland_budget:
        return

    singleton = assembly.format is DeckFormat.SINGLETON
    low, high = GENERIC_MANA_RANGE
    base_key = _sort_key(identity)

    def key(card: CardFingerprint) -> tuple:
        playable = low <= card.cmc <= high and any(card.has_type(t) for t in GENERIC_TYPES)
        return (not playable, *base_key(card))

    for card in sorted((c for c in candidates if not book.holds(c) and not c.is_land), key=key):
        remaining = nonland_budget - book.quantity(lands=False)
        if remaining <= 0:
            break
        book.add(card, 1 if singleton else min(MAX_SUPPORT_COPIES, remaining), SlotRole.GENERIC)

    placed = book.quantity(lands=False)
    if placed < nonland_budget:
        assembly.shortfalls.append(
            PoolShortfall(
                requirement="nonland",
                requested=nonland_budget,
                filled=placed,
                message=f"Pool provides only {placed} of {nonland_budget} nonland cards",
            )
        )


# =============================================================================
# MANA BASE
# =============================================================================


def _build_mana_base(
    candidates: Sequence[CardFingerprint],
    identity: frozenset[str],
    lands_needed: int,
    synthesize_basics: bool,
    assembly: DeckAssembly,
    book: _SlotBook,
) -> None:
    if lands_needed <= 0:
        return

    singleton = assembly.format is DeckFormat.SINGLETON
    lands = sorted(
        (c for c in candidates if c.is_land and not book.holds(c)),
        key=lambda c: (c.name, c.id),
    )
    placed = 0

    # Two-color lands
    dual_budget = math.floor(DUAL_LAND_SHARE * lands_needed)
    for land in lands:
        if placed >= dual_budget:
            break
        if land.is_basic_land or len(land.color_identity) != 2:
            continue
        quantity = 1 if singleton else min(assembly.format.max_copies, dual_budget - placed)
        book.add(land, quantity, SlotRole.DUAL_LAND)
        placed += quantity

    # Colorless utility lands
    utility = 0
    for land in lands:
        if utility >= MAX_UTILITY_LANDS or placed >= lands_needed:
            break
        if land.id in book or land.is_basic_land or not land.is_colorless:
            continue
        if not contains_any(land.text_lower, UTILITY_LAND_KEYWORDS):
            continue
        book.add(land, 1, SlotRole.UTILITY_LAND)
        utility += 1
        placed += 1

    placed += _add_basics(lands, identity, lands_needed - placed, synthesize_basics, assembly, book)

    if placed < lands_needed:
        assembly.shortfalls.append(
            PoolShortfall(
                requirement="lands",
                requested=lands_needed,
                filled=placed,
                message=f"Only {placed} of {lands_needed} lands available",
            )
        )


def _add_basics(
    lands: Sequence[CardFingerprint],
    identity: frozenset[str],
    count: int,
    synthesize_basics: bool,
    assembly: DeckAssembly,
    book: _SlotBook,
) -> int:
    if count <= 0:
        return 0

    if not identity:
        wastes = next((c for c in lands if c.is_basic_land and c.name == "Wastes"), None)
        if wastes is None:
            return 0
        book.add(wastes, count, SlotRole.BASIC_LAND)
        return count

    split = distribute_basics(count, _nonland_pips(book, identity))
    added = 0
    for color, quantity in split.items():
        if quantity <= 0:
            continue
        basic = _basic_for_color(lands, color)
        if basic is None:
            if not synthesize_basics:
                continue
            basic = synthesize_basic_land(color)
            assembly.notes.append(f"Added {quantity} {basic.name} not present in the pool")
        book.add(basic, quantity, SlotRole.BASIC_LAND)
        added += quantity
    return added


def _basic_for_color(lands: Sequence[CardFingerprint], color: str) -> CardFingerprint | None:
    name = COLOR_TO_BASIC_LAND[color]
    matches = [
        land for land in lands if land.is_basic_land and land.color_identity == frozenset({color})
    ]
    return next((land for land in matches if land.name == name), next(iter(matches), None))


def _nonland_pips(book: _SlotBook, identity: frozenset[str]) -> dict[str, int]:
    pips = dict.fromkeys(sorted(identity, key=COLOR_SYMBOLS.index), 0)
    for slot in book.slots:
        if slot.role.is_land:
            continue
        for color, count in count_color_pips(book.cards[slot.card_id].mana_cost).items():
            if color in pips:
                pips[color] += count * slot.quantity
    return pips


def distribute_basics(count: int, pips: Mapping[str, int]) -> dict[str, int]:
    """
    Split `count` basics across colors proportionally to pip counts.

    Uses largest remainder; ties go to WUBRG order. With no pips the split
    is even.
    """
    colors = sorted(pips, key=COLOR_SYMBOLS.index)
    if not colors:
        return {}

    total = sum(pips.values())
    weights = {c: pips[c] for c in colors} if total > 0 else dict.fromkeys(colors, 1)
    weight_total = sum(weights.values())

    shares = {c: count * weights[c] / weight_total for c in colors}
    split = {c: math.floor(shares[c]) for c in colors}

    leftover = count - sum(split.values())
    by_remainder = sorted(colors, key=lambda c: (-(shares[c] - split[c]), COLOR_SYMBOLS.index(c)))
    for color in by_remainder[:leftover]:
        split[color] += 1

    return split
