from comboforge.models.ability import Ability, AbilityType, CardPattern
from comboforge.models.card import (
    BASIC_LAND_NAMES,
    COLOR_SYMBOLS,
    COLOR_TO_BASIC_LAND,
    CardFingerprint,
    coerce_colors,
)
from comboforge.models.combo import (
    ComboMatch,
    ComboSource,
    Reliability,
    SynergyPattern,
    SynergyType,
    combo_id,
    reliability_for_mana,
)
from comboforge.models.deck import (
    CardCategory,
    DeckAssembly,
    DeckEntry,
    DeckFormat,
    DeckSlot,
    PoolShortfall,
    SlotRole,
)
from comboforge.models.failure import (
    CardNotFoundError,
    CollaboratorError,
    FailureDetail,
    FailureKind,
    InvalidDiscoveryRequestError,
    KnownError,
)

__all__ = [
    "Ability",
    "AbilityType",
    "BASIC_LAND_NAMES",
    "COLOR_SYMBOLS",
    "COLOR_TO_BASIC_LAND",
    "CardFingerprint",
    "CardCategory",
    "CardNotFoundError",
    "CardPattern",
    "CollaboratorError",
    "ComboMatch",
    "ComboSource",
    "DeckAssembly",
    "DeckEntry",
    "DeckFormat",
    "DeckSlot",
    "FailureDetail",
    "FailureKind",
    "InvalidDiscoveryRequestError",
    "KnownError",
    "PoolShortfall",
    "Reliability",
    "SlotRole",
    "SynergyPattern",
    "SynergyType",
    "coerce_colors",
    "combo_id",
    "reliability_for_mana",
]
