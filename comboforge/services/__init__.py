"""
ComboForge services.

Combo discovery, deck assembly and deck export.
"""

from comboforge.services.card_repository import (
    CardQuery,
    CardRepository,
    InMemoryCardRepository,
    load_card_repository,
)
from comboforge.services.combo_finder import (
    ComboDiscoveryEngine,
    DiscoveryRequest,
    DiscoveryResult,
    find_combos_for_colors,
    find_combos_with_card,
    make_manual_combo,
)
from comboforge.services.combo_suggester import (
    AnthropicComboSuggester,
    ComboSuggester,
    SuggestionRequest,
    coerce_suggestion,
)
from comboforge.services.deck_assembler import (
    DEFAULT_QUOTAS,
    CategoryQuota,
    assemble_deck,
)
from comboforge.services.deck_exporter import (
    DeckStatistics,
    DeckValidationResult,
    deck_statistics,
    entries_from_assembly,
    export_assembly,
    serialize_deck,
    validate_deck,
)

__all__ = [
    # Card repository
    "CardQuery",
    "CardRepository",
    "InMemoryCardRepository",
    "load_card_repository",
    # Combo discovery
    "ComboDiscoveryEngine",
    "DiscoveryRequest",
    "DiscoveryResult",
    "find_combos_for_colors",
    "find_combos_with_card",
    "make_manual_combo",
    # Generative suggester
    "AnthropicComboSuggester",
    "ComboSuggester",
    "SuggestionRequest",
    "coerce_suggestion",
    # Deck assembly
    "DEFAULT_QUOTAS",
    "CategoryQuota",
    "assemble_deck",
    # Export
    "DeckStatistics",
    "DeckValidationResult",
    "deck_statistics",
    "entries_from_assembly",
    "export_assembly",
    "serialize_deck",
    "validate_deck",
]
