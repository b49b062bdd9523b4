import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

COLOR_SYMBOLS = ("W", "U", "B", "R", "G")

COLOR_TO_BASIC_LAND = {
    "W": "Plains",
    "U": "Island",
    "B": "Swamp",
    "R": "Mountain",
    "G": "Forest",
}

BASIC_LAND_NAMES = frozenset(
    {
        *COLOR_TO_BASIC_LAND.values(),
        "Wastes",
        "Snow-Covered Plains",
        "Snow-Covered Island",
        "Snow-Covered Swamp",
        "Snow-Covered Mountain",
        "Snow-Covered Forest",
        "Snow-Covered Wastes",
    }
)


@dataclass(frozen=True, slots=True)
class CardFingerprint:
    """
    A card record as the engine reasons about it.

    Attributes:
        id: Opaque repository id
        name: Canonical card name
        mana_value: Converted mana cost, or None when unknown
        mana_cost: Raw mana cost string (e.g., "{1}{R}{G}")
        colors: Colors the card is cast with
        color_identity: Colors that decide deck legality (empty = colorless)
        types: Ordered type words (e.g., ("Legendary", "Creature"))
        oracle_text: Rules text, or None
        legalities: Format name -> legal flag
    """

    id: str
    name: str
    mana_value: int | None = None
    mana_cost: str = ""
    colors: frozenset[str] = frozenset()
    color_identity: frozenset[str] = frozenset()
    types: tuple[str, ...] = ()
    oracle_text: str | None = None
    legalities: Mapping[str, bool] = field(default_factory=dict, hash=False, compare=False)

    @property
    def text_lower(self) -> str:
        """Lowercased oracle text ("" when missing)."""
        return (self.oracle_text or "").lower()

    @property
    def cmc(self) -> int:
        """Mana value with unknown treated as 0."""
        return self.mana_value or 0

    @property
    def is_land(self) -> bool:
        return "Land" in self.types

    @property
    def is_basic_land(self) -> bool:
        return self.is_land and ("Basic" in self.types or self.name in BASIC_LAND_NAMES)

    @property
    def is_colorless(self) -> bool:
        return not self.color_identity

    def has_type(self, type_word: str) -> bool:
        """Check for a type word, case-insensitively."""
        wanted = type_word.lower()
        return any(t.lower() == wanted for t in self.types)

    def is_legal_in(self, format_name: str) -> bool:
        """Check the legality flag for a format (unknown = not legal)."""
        return bool(self.legalities.get(format_name.lower(), False))

    def fits_identity(self, identity: Iterable[str]) -> bool:
        """True if this card's color identity is a subset of `identity`."""
        return self.color_identity <= frozenset(identity)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CardFingerprint":
        """
        Build a fingerprint from a raw repository or Scryfall record.

        Malformed fields never raise: they fall back to empty or unknown
        values so a single bad record cannot break a pool.
        """
        name = str(record.get("name") or "").strip()
        card_id = str(record.get("id") or name)

        types = _coerce_types(record)
        legalities = _coerce_legalities(record.get("legalities"))

        for flag, format_name in (
            ("legal_standard", "standard"),
            ("legal_historic", "historic"),
            ("legal_brawl", "brawl"),
        ):
            if flag in record:
                legalities[format_name] = bool(record[flag])

        oracle = record.get("oracle_text")
        if not isinstance(oracle, str):
            oracle = None

        mana_cost = record.get("mana_cost")
        if not isinstance(mana_cost, str):
            mana_cost = ""

        return cls(
            id=card_id,
            name=name,
            mana_value=_coerce_mana_value(record.get("mana_value", record.get("cmc"))),
            mana_cost=mana_cost,
            colors=coerce_colors(record.get("colors")),
            color_identity=coerce_colors(record.get("color_identity", record.get("colors"))),
            types=types,
            oracle_text=oracle,
            legalities=legalities,
        )


def coerce_colors(value: Any) -> frozenset[str]:
    """Normalize a color list to WUBRG symbols, dropping anything else."""
    if isinstance(value, str):
        value = list(value)
    if not isinstance(value, Iterable):
        return frozenset()
    return frozenset(str(c).upper() for c in value if str(c).upper() in COLOR_SYMBOLS)


def _coerce_mana_value(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable mana value %r", value)
        return None
    if number < 0:
        return None
    return int(number)


def _coerce_types(record: Mapping[str, Any]) -> tuple[str, ...]:
    raw_types = record.get("types")
    if isinstance(raw_types, list | tuple):
        return tuple(str(t) for t in raw_types if t)

    type_line = record.get("type_line")
    if isinstance(type_line, str):
        # "Legendary Creature — Elf Druid" -> ("Legendary", "Creature")
        front = type_line.split("—")[0].split(" - ")[0].split("//")[0]
        return tuple(front.split())

    return ()


def _coerce_legalities(value: Any) -> dict[str, bool]:
    if not isinstance(value, Mapping):
        return {}
    result: dict[str, bool] = {}
    for format_name, status in value.items():
        if isinstance(status, str):
            result[str(format_name).lower()] = status.lower() in ("legal", "restricted")
        else:
            result[str(format_name).lower()] = bool(status)
    return result
