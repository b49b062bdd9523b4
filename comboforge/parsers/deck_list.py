"""
Parser for plain-text deck lists.

Line format:
    <quantity> <card name>
    <quantity> <card name> (<set_code>) <collector_number>

Example:
    Deck
    4 Lightning Bolt (LEB) 163
    20 Mountain

    Sideboard
    2 Abrade

Sections are introduced by headers (Deck, Lands, Sideboard, Commander,
Companion), optionally followed by a colon. Cards under "Lands" belong to
the main deck.
"""

import logging
import re
from dataclasses import dataclass, field

from comboforge.models.deck import CardCategory, DeckEntry

logger = logging.getLogger(__name__)

# Pattern: "4 Lightning Bolt (LEB) 163" or "4 Card (SET) 290a"
# Groups: (quantity, card_name, set_code, collector_number)
DECK_FULL_PATTERN = re.compile(r"^(\d+)x?\s+(.+?)\s+\(([A-Za-z0-9]+)\)\s+(\S+)$")

# Pattern: "4 Lightning Bolt" or "4x Lightning Bolt"
# Groups: (quantity, card_name)
DECK_SIMPLE_PATTERN = re.compile(r"^(\d+)x?\s+(.+)$")

MAIN = "main"
LANDS = "lands"
SIDEBOARD = "sideboard"
COMMANDER = "commander"
COMPANION = "companion"

SECTION_HEADERS: dict[str, str] = {
    "deck": MAIN,
    "main": MAIN,
    "maindeck": MAIN,
    "lands": LANDS,
    "sideboard": SIDEBOARD,
    "commander": COMMANDER,
    "companion": COMPANION,
}


@dataclass
class ParsedDeckList:
    """Entries of a deck list grouped by section."""

    main: list[DeckEntry] = field(default_factory=list)
    sideboard: list[DeckEntry] = field(default_factory=list)
    commander: list[DeckEntry] = field(default_factory=list)
    companion: list[DeckEntry] = field(default_factory=list)
    skipped_lines: list[str] = field(default_factory=list)

    @property
    def total_main(self) -> int:
        return sum(entry.quantity for entry in self.main)


def section_for_header(line: str) -> str | None:
    """Section name for a header line ("Sideboard:", "Deck"), or None."""
    return SECTION_HEADERS.get(line.strip().rstrip(":").strip().lower())


def parse_deck_line(line: str, category: CardCategory = CardCategory.SPELL) -> DeckEntry | None:
    """
    Parse a single card line.

    Returns:
        DeckEntry, or None if the line is not a card line
    """
    line = line.strip()

    match = DECK_FULL_PATTERN.match(line)
    if match:
        quantity, name, set_code, collector_num = match.groups()
        return DeckEntry(
            name=name,
            quantity=int(quantity),
            category=category,
            set_code=set_code,
            collector_number=collector_num,
        )

    match = DECK_SIMPLE_PATTERN.match(line)
    if match:
        quantity, name = match.groups()
        return DeckEntry(name=name.strip(), quantity=int(quantity), category=category)

    return None


def parse_deck_list(text: str | None) -> ParsedDeckList:
    """
    Parse deck list text into sections.

    Args:
        text: Raw deck list (clipboard paste or exported text)

    Returns:
        ParsedDeckList. Empty if input is empty/whitespace. Lines that are
        neither headers nor card lines are collected in `skipped_lines`.
    """
    parsed = ParsedDeckList()
    if not text or not text.strip():
        return parsed

    section = MAIN
    for raw_line in text.strip().splitlines():
        line = raw_line.strip()

        if not line:
            continue

        header = section_for_header(line)
        if header is not None:
            section = header
            continue

        category = CardCategory.LAND if section == LANDS else CardCategory.SPELL
        entry = parse_deck_line(line, category)
        if entry is None or entry.quantity < 1:
            parsed.skipped_lines.append(line)
            continue

        if section in (MAIN, LANDS):
            parsed.main.append(entry)
        elif section == SIDEBOARD:
            parsed.sideboard.append(entry)
        elif section == COMMANDER:
            parsed.commander.append(entry)
        else:
            parsed.companion.append(entry)

    if parsed.skipped_lines:
        logger.debug("Skipped %d unparseable deck lines", len(parsed.skipped_lines))

    return parsed
