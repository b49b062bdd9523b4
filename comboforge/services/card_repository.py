"""
Card repository service.

The engine never fetches card data itself; callers hand it a repository.
InMemoryCardRepository serves a fixed list of cards, and
load_card_repository builds one from a Scryfall-shaped JSON file.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from comboforge.config import settings
from comboforge.models.card import CardFingerprint, coerce_colors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CardQuery:
    """
    Predicate for fetching cards.

    Attributes:
        color_identity: When set, only cards whose identity is a subset
            (colorless always matches)
        legal_in: When set, only cards legal in this format
        require_oracle_text: Skip cards without rules text
    """

    color_identity: frozenset[str] | None = None
    legal_in: str | None = None
    require_oracle_text: bool = False

    def matches(self, card: CardFingerprint) -> bool:
        if self.require_oracle_text and not card.oracle_text:
            return False
        if self.color_identity is not None and not card.fits_identity(self.color_identity):
            return False
        return self.legal_in is None or card.is_legal_in(self.legal_in)


class CardRepository(Protocol):
    """Source of card fingerprints."""

    def fetch_cards(self, query: CardQuery) -> list[CardFingerprint]: ...


class InMemoryCardRepository:
    """Repository over an in-memory card list (first card per id wins)."""

    def __init__(self, cards: Iterable[CardFingerprint]):
        self._cards: dict[str, CardFingerprint] = {}
        for card in cards:
            self._cards.setdefault(card.id, card)

    def __len__(self) -> int:
        return len(self._cards)

    def fetch_cards(self, query: CardQuery) -> list[CardFingerprint]:
        return [card for card in self._cards.values() if query.matches(card)]

    def find_by_names(self, names: Iterable[str]) -> tuple[list[CardFingerprint], list[str]]:
        """
        Look up cards by exact name (case-insensitive).

        Returns:
            (found cards in request order, names that were not found)
        """
        by_name: dict[str, CardFingerprint] = {}
        for card in self._cards.values():
            by_name.setdefault(card.name.lower(), card)

        found: list[CardFingerprint] = []
        missing: list[str] = []
        for name in names:
            card = by_name.get(name.strip().lower())
            if card is None:
                missing.append(name)
            else:
                found.append(card)
        return found, missing


def load_cards(path: Path) -> list[CardFingerprint]:
    """
    Load card records from a JSON list.

    Records without a name are skipped; other malformed fields are coerced
    by CardFingerprint.from_record.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not path.exists():
        raise FileNotFoundError(f"Card data not found at {path}")

    with open(path, encoding="utf-8") as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise ValueError(f"Card data at {path} is not a JSON list")

    cards: list[CardFingerprint] = []
    skipped = 0
    for record in records:
        if not isinstance(record, dict) or not record.get("name"):
            skipped += 1
            continue
        cards.append(CardFingerprint.from_record(record))

    if skipped:
        logger.warning("Skipped %d card records without a name", skipped, extra={"path": str(path)})
    return cards


@lru_cache(maxsize=4)
def load_card_repository(path: str | None = None) -> InMemoryCardRepository:
    """
    Get a cached repository for a card data file.

    Args:
        path: JSON file path. Defaults to settings.card_data_path

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    card_path = Path(path or settings.card_data_path)
    cards = load_cards(card_path)
    logger.info("Loaded %d cards", len(cards), extra={"path": str(card_path)})
    return InMemoryCardRepository(cards)


def colors_query(colors: Iterable[str], legal_in: str | None = None) -> CardQuery:
    """Query for cards playable in a color identity."""
    return CardQuery(color_identity=coerce_colors(colors), legal_in=legal_in)
