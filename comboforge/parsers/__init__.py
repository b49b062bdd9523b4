from comboforge.parsers.deck_list import ParsedDeckList, parse_deck_line, parse_deck_list
from comboforge.parsers.oracle_parser import (
    find_combo_enablers,
    find_combo_triggers,
    interaction_types,
    parse_card,
    parse_oracle_text,
)

__all__ = [
    "ParsedDeckList",
    "find_combo_enablers",
    "find_combo_triggers",
    "interaction_types",
    "parse_card",
    "parse_deck_line",
    "parse_deck_list",
    "parse_oracle_text",
]
