"""
Deck export and validation.

Renders deck entries as plain-text import lists and checks them against the
size and copy limits of a deck format. Validation reports problems as
warnings and never raises.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from comboforge.models.deck import CardCategory, DeckAssembly, DeckEntry, DeckFormat

logger = logging.getLogger(__name__)

CATEGORY_ORDER: tuple[CardCategory, ...] = (
    CardCategory.LAND,
    CardCategory.CREATURE,
    CardCategory.ARTIFACT,
    CardCategory.ENCHANTMENT,
    CardCategory.PLANESWALKER,
    CardCategory.SPELL,
)


@dataclass
class DeckValidationResult:
    """Outcome of checking a deck against format rules."""

    is_valid: bool
    warnings: list[str]
    total_cards: int
    expected_size: int


@dataclass
class DeckStatistics:
    """Mana curve and composition of a deck."""

    total_cards: int = 0
    land_count: int = 0
    average_mana_value: float = 0.0
    mana_curve: dict[int, int] = field(default_factory=dict)
    color_distribution: dict[str, int] = field(default_factory=dict)
    type_distribution: dict[str, int] = field(default_factory=dict)


def sort_entries(entries: Iterable[DeckEntry]) -> list[DeckEntry]:
    """Order entries: lands, creatures, artifacts, enchantments, planeswalkers, spells."""
    return sorted(
        entries,
        key=lambda e: (CATEGORY_ORDER.index(e.category), e.mana_value, e.name.lower(), e.name),
    )


def _format_line(entry: DeckEntry) -> str:
    if entry.set_code and entry.collector_number:
        return f"{entry.quantity} {entry.name} ({entry.set_code}) {entry.collector_number}"
    return f"{entry.quantity} {entry.name}"


def serialize_deck(
    entries: Sequence[DeckEntry],
    sideboard: Sequence[DeckEntry] | None = None,
    sort_cards: bool = True,
    separate_lands: bool = False,
) -> str:
    """
    Render a deck as "<quantity> <name>" lines.

    Args:
        entries: Main deck entries
        sideboard: Optional sideboard, emitted after a blank line and a
            "Sideboard" header
        sort_cards: Apply the canonical category / mana value / name order
        separate_lands: Put lands in their own "Lands" section after spells

    Returns:
        Deck list text ready for import
    """
    main = [e for e in entries if e.quantity > 0]
    if sort_cards:
        main = sort_entries(main)

    if separate_lands:
        spells = [e for e in main if e.category is not CardCategory.LAND]
        lands = [e for e in main if e.category is CardCategory.LAND]
        lines = [_format_line(e) for e in spells]
        if lands:
            if lines:
                lines.append("")
            lines.append("Lands")
            lines.extend(_format_line(e) for e in lands)
    else:
        lines = [_format_line(e) for e in main]

    side = [e for e in (sideboard or ()) if e.quantity > 0]
    if side:
        if sort_cards:
            side = sort_entries(side)
        lines.append("")
        lines.append("Sideboard")
        lines.extend(_format_line(e) for e in side)

    return "\n".join(lines)


def validate_deck(entries: Iterable[DeckEntry], format: DeckFormat | str) -> DeckValidationResult:
    """
    Check deck size and per-card copy limits.

    Basic lands are exempt from the copy limit. Quantities of repeated names
    are summed before checking.
    """
    warnings: list[str] = []
    try:
        deck_format = DeckFormat.parse(format)
    except ValueError:
        deck_format = DeckFormat.MULTIPLES_ALLOWED
        warnings.append(f"Unknown format '{format}', validating as {deck_format.value}")

    entries = list(entries)
    totals: dict[str, int] = {}
    basics: set[str] = set()
    for entry in entries:
        if entry.quantity < 1:
            warnings.append(f"{entry.name} has invalid quantity {entry.quantity}")
            continue
        totals[entry.name] = totals.get(entry.name, 0) + entry.quantity
        if entry.is_basic_land:
            basics.add(entry.name)

    total_cards = sum(totals.values())
    expected = deck_format.target_size
    if total_cards != expected:
        warnings.append(
            f"Deck has {total_cards} cards, expected {expected} for {deck_format.value}"
        )

    max_copies = deck_format.max_copies
    for name, quantity in totals.items():
        if name in basics:
            continue
        if quantity > max_copies:
            warnings.append(
                f"{name} has {quantity} copies, max {max_copies} for {deck_format.value}"
            )

    if warnings:
        logger.debug("Deck validation produced %d warnings", len(warnings))

    return DeckValidationResult(
        is_valid=not warnings,
        warnings=warnings,
        total_cards=total_cards,
        expected_size=expected,
    )


def entries_from_assembly(assembly: DeckAssembly) -> list[DeckEntry]:
    """Turn assembled slots into deck entries, in slot order."""
    return [
        DeckEntry.from_card(assembly.cards[slot.card_id], slot.quantity)
        for slot in assembly.slots
    ]


def export_assembly(assembly: DeckAssembly, separate_lands: bool = False) -> str:
    """Serialize an assembled deck in canonical order."""
    return serialize_deck(entries_from_assembly(assembly), separate_lands=separate_lands)


def deck_statistics(entries: Iterable[DeckEntry]) -> DeckStatistics:
    """Mana curve (nonland), color and type distribution of a deck."""
    stats = DeckStatistics()
    spell_mana = 0
    spell_count = 0

    for entry in entries:
        if entry.quantity < 1:
            continue
        stats.total_cards += entry.quantity

        if entry.category is CardCategory.LAND:
            stats.land_count += entry.quantity
        else:
            stats.mana_curve[entry.mana_value] = (
                stats.mana_curve.get(entry.mana_value, 0) + entry.quantity
            )
            spell_mana += entry.mana_value * entry.quantity
            spell_count += entry.quantity

        for color in sorted(entry.colors):
            stats.color_distribution[color] = stats.color_distribution.get(color, 0) + entry.quantity
        for type_word in entry.types:
            stats.type_distribution[type_word] = (
                stats.type_distribution.get(type_word, 0) + entry.quantity
            )

    if spell_count:
        stats.average_mana_value = round(spell_mana / spell_count, 2)
    return stats
