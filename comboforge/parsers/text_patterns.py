"""
Text pattern matching over oracle text.

Pure helpers shared by the oracle parser, combo discovery and deck assembly.
All matching is case-insensitive and tolerates None.
"""

import re
from collections.abc import Iterable

SENTENCE_SPLIT = re.compile(r"[.!?]+")

# "{2}{G}" / "{T}" style cost tokens
MANA_SYMBOL = re.compile(r"\{([^}]*)\}")


def normalize(text: str | None) -> str:
    """Lowercase text, treating None and non-strings as empty."""
    if not isinstance(text, str):
        return ""
    return text.lower()


def split_sentences(text: str | None) -> list[str]:
    """Split on terminal punctuation, dropping empty fragments."""
    if not isinstance(text, str):
        return []
    return [s.strip() for s in SENTENCE_SPLIT.split(text) if s.strip()]


def contains_any(text: str | None, keywords: Iterable[str]) -> bool:
    """True if any keyword occurs as a substring of the text."""
    lowered = normalize(text)
    return any(keyword.lower() in lowered for keyword in keywords)


def matched_keywords(text: str | None, keywords: Iterable[str]) -> list[str]:
    """Keywords that occur in the text, in keyword order."""
    lowered = normalize(text)
    return [keyword for keyword in keywords if keyword.lower() in lowered]


def count_matches(text: str | None, keywords: Iterable[str]) -> int:
    """Number of distinct keywords present in the text."""
    return len(matched_keywords(text, keywords))


def count_color_pips(mana_cost: str | None) -> dict[str, int]:
    """
    Count colored mana symbols in a cost.

    Hybrid symbols ({R/G}) count toward each color they contain.
    """
    pips = {"W": 0, "U": 0, "B": 0, "R": 0, "G": 0}
    if not isinstance(mana_cost, str):
        return pips
    for symbol in MANA_SYMBOL.findall(mana_cost.upper()):
        for part in symbol.split("/"):
            if part in pips:
                pips[part] += 1
    return pips
