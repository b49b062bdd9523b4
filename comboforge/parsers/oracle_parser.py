"""
Oracle text parser.

Decomposes a card's rules text into structured abilities, keyword abilities,
mechanic tags and synergy tags, and scores how much the card tends to
interact with other cards.

Parsing is pure and total: any input, including None, yields a CardPattern.
The same text always yields the same derived fields, so results are cached
by text.
"""

import re
from functools import lru_cache

from comboforge.models.ability import Ability, AbilityType, CardPattern
from comboforge.models.card import CardFingerprint
from comboforge.parsers.text_patterns import normalize, split_sentences

KEYWORD_ABILITIES: tuple[str, ...] = (
    "flying",
    "trample",
    "vigilance",
    "haste",
    "first strike",
    "double strike",
    "deathtouch",
    "lifelink",
    "hexproof",
    "indestructible",
    "menace",
    "reach",
    "defender",
    "flash",
    "protection",
    "ward",
    "prowess",
)

# (mechanic name, pattern) in reporting order
MECHANIC_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("etb", re.compile(r"enters the battlefield|\benters\b(?!\s+tapped)", re.IGNORECASE)),
    ("dies", re.compile(r"\bdies\b|is put into [^.]*graveyard", re.IGNORECASE)),
    ("cast_trigger", re.compile(r"whenever[^.]*\bcasts?\b", re.IGNORECASE)),
    ("tap_ability", re.compile(r"\{[^}]*t[^}]*\}[^.:]*:", re.IGNORECASE)),
    ("sacrifice", re.compile(r"sacrifice[^.]*:", re.IGNORECASE)),
    ("token_creation", re.compile(r"create[^.]*token", re.IGNORECASE)),
    ("mana_production", re.compile(r"\badd\b[^.]*mana|\badd \{[wubrgc]", re.IGNORECASE)),
    ("card_draw", re.compile(r"draw[^.]*card", re.IGNORECASE)),
    ("lifegain", re.compile(r"gains?[^.]*life", re.IGNORECASE)),
    ("damage_dealing", re.compile(r"deals?[^.]*damage", re.IGNORECASE)),
    ("untap", re.compile(r"\buntap", re.IGNORECASE)),
    ("bounce", re.compile(r"return[^.]*to[^.]*hand", re.IGNORECASE)),
    ("flicker", re.compile(r"exile[^\n]*return[^\n]*battlefield", re.IGNORECASE)),
    ("cost_reduction", re.compile(r"costs?[^.]*less|without paying", re.IGNORECASE)),
    ("tutor", re.compile(r"search[^.]*library", re.IGNORECASE)),
    ("graveyard_recursion", re.compile(r"return[^.]*from[^.]*graveyard", re.IGNORECASE)),
)

COMBO_MECHANICS = frozenset({"etb", "untap", "sacrifice", "token_creation", "bounce", "flicker"})
SUPPORT_MECHANICS = frozenset({"tutor", "card_draw", "mana_production", "cost_reduction"})

# mechanic -> tag
MECHANIC_TAGS: tuple[tuple[str, str], ...] = (
    ("etb", "etb_synergy"),
    ("dies", "death_synergy"),
    ("token_creation", "token_synergy"),
    ("sacrifice", "sacrifice_synergy"),
    ("mana_production", "mana_synergy"),
)

# text substrings -> tag
TEXT_TAGS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("artifact",), "artifact_synergy"),
    (("enchantment",), "enchantment_synergy"),
    (("creature",), "creature_synergy"),
    (("instant", "sorcery"), "spell_synergy"),
    (("noncreature spell",), "noncreature_spell_synergy"),
    (("historic",), "historic_synergy"),
    (("legendary",), "legendary_synergy"),
    (("+1/+1 counter",), "counter_synergy"),
    (("treasure",), "treasure_synergy"),
    (("food",), "food_synergy"),
    (("clue",), "clue_synergy"),
)

STATIC_INDICATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bhas\s+", re.IGNORECASE),
    re.compile(r"\bcan't\s+", re.IGNORECASE),
    re.compile(r"\bdoesn't\s+", re.IGNORECASE),
    re.compile(r"\bgains?\s+", re.IGNORECASE),
    re.compile(r"\bloses?\s+", re.IGNORECASE),
    re.compile(r"\bgets?\s+", re.IGNORECASE),
    re.compile(r"\bcosts?\s+", re.IGNORECASE),
)

TRIGGER_START = re.compile(r"^(whenever|when|at)\b\s*([^,]*)", re.IGNORECASE)
TRIGGER_PREFIX = re.compile(r"^(whenever|when|at)\b[^,]*,?\s*", re.IGNORECASE)
CONDITION = re.compile(r"\bif\s+([^,]+)", re.IGNORECASE)
ACTIVATED = re.compile(r"^([^:]*\{[^}]*\}[^:]*):\s*(.*)$", re.DOTALL)
WARD_COST = re.compile(r"ward\s+\{([^}]+)\}", re.IGNORECASE)
PROTECTION_FROM = re.compile(r"protection from\s+([^.,;\n]+)", re.IGNORECASE)
MAY = re.compile(r"\bmay\b", re.IGNORECASE)


def parse_oracle_text(card_id: str, oracle_text: str | None) -> CardPattern:
    """
    Parse one card's oracle text.

    Args:
        card_id: Id to stamp on the result
        oracle_text: Rules text (None or empty yields an empty pattern)

    Returns:
        CardPattern with abilities, keywords, mechanics, synergy tags and
        an interaction potential between 0 and 10.
    """
    text = oracle_text if isinstance(oracle_text, str) else ""
    abilities, keywords, mechanics, tags, potential = _parse_text(text)
    return CardPattern(
        card_id=card_id,
        abilities=abilities,
        keywords=keywords,
        mechanics=mechanics,
        synergy_tags=tags,
        interaction_potential=potential,
    )


def parse_card(card: CardFingerprint) -> CardPattern:
    """Parse a card's oracle text."""
    return parse_oracle_text(card.id, card.oracle_text)


@lru_cache(maxsize=8192)
def _parse_text(
    text: str,
) -> tuple[tuple[Ability, ...], tuple[str, ...], tuple[str, ...], tuple[str, ...], int]:
    if not text.strip():
        return (), (), (), (), 0

    abilities = extract_abilities(text)
    keywords = extract_keywords(text)
    mechanics = extract_mechanics(text)
    tags = derive_synergy_tags(abilities, mechanics, text)
    potential = interaction_potential(abilities, mechanics)
    return tuple(abilities), tuple(keywords), tuple(mechanics), tuple(tags), potential


def extract_abilities(text: str) -> list[Ability]:
    """Classify each sentence as a triggered, activated or static ability."""
    abilities: list[Ability] = []

    for sentence in split_sentences(text):
        activated = ACTIVATED.match(sentence)
        if TRIGGER_START.match(sentence):
            abilities.append(_triggered(sentence))
        elif activated:
            abilities.append(_activated(activated))
        elif any(p.search(sentence) for p in STATIC_INDICATORS):
            abilities.append(Ability(type=AbilityType.STATIC, effect=sentence, optional=False))

    return abilities


def _triggered(sentence: str) -> Ability:
    start = TRIGGER_START.match(sentence)
    trigger = start.group(2).strip() if start else ""

    condition_match = CONDITION.search(sentence)
    condition = condition_match.group(1).strip() if condition_match else None

    return Ability(
        type=AbilityType.TRIGGERED,
        trigger=trigger,
        condition=condition,
        effect=TRIGGER_PREFIX.sub("", sentence).strip(),
        optional=MAY.search(sentence) is not None,
    )


def _activated(match: re.Match[str]) -> Ability:
    return Ability(
        type=AbilityType.ACTIVATED,
        cost=match.group(1).strip(),
        effect=match.group(2).strip(),
        optional=True,
    )


def extract_keywords(text: str) -> list[str]:
    """Keyword abilities present in the text, plus parameterized ward/protection."""
    lowered = normalize(text)
    found = [keyword for keyword in KEYWORD_ABILITIES if keyword in lowered]

    ward = WARD_COST.search(text)
    if ward:
        found.append(f"ward_{ward.group(1).strip().lower()}")

    protection = PROTECTION_FROM.search(text)
    if protection:
        found.append(f"protection_{protection.group(1).strip().lower()}")

    return found


def extract_mechanics(text: str) -> list[str]:
    """Mechanic names whose pattern matches the text, in table order."""
    return [name for name, pattern in MECHANIC_PATTERNS if pattern.search(text)]


def derive_synergy_tags(abilities: list[Ability], mechanics: list[str], text: str) -> list[str]:
    """Map mechanics, text themes and ability shapes to synergy tags (deduplicated)."""
    lowered = normalize(text)
    tags: list[str] = []

    for mechanic, tag in MECHANIC_TAGS:
        if mechanic in mechanics:
            tags.append(tag)

    for needles, tag in TEXT_TAGS:
        if any(needle in lowered for needle in needles):
            tags.append(tag)

    for ability in abilities:
        effect = ability.effect.lower()
        if "infinite" in effect or "any number" in effect:
            tags.append("infinite_potential")
        if (
            ability.type is AbilityType.TRIGGERED
            and "cast" in (ability.trigger or "").lower()
            and "copy" in effect
        ):
            tags.append("copy_combo")

    return list(dict.fromkeys(tags))


def interaction_potential(abilities: list[Ability], mechanics: list[str]) -> int:
    """Score 0-10: repeatable or exploitable abilities and combo-friendly mechanics."""
    potential = 0
    potential += 2 * sum(1 for a in abilities if a.type is AbilityType.TRIGGERED)
    potential += 3 * sum(1 for a in abilities if a.type is AbilityType.ACTIVATED)
    potential += 2 * sum(1 for m in mechanics if m in COMBO_MECHANICS)
    potential += sum(1 for m in mechanics if m in SUPPORT_MECHANICS)
    return min(potential, 10)


# =============================================================================
# COMBO HELPERS
# =============================================================================


def find_combo_triggers(pattern: CardPattern) -> list[str]:
    """Trigger events of the card's triggered abilities."""
    return [a.trigger for a in pattern.abilities_of(AbilityType.TRIGGERED) if a.trigger]


def find_combo_enablers(pattern: CardPattern) -> list[str]:
    """Activated effects that can restart a loop (untap, return, copy, create)."""
    enablers: list[str] = []
    for ability in pattern.abilities_of(AbilityType.ACTIVATED):
        effect = ability.effect.lower()
        if any(word in effect for word in ("untap", "return", "copy", "create")):
            enablers.append(ability.effect)
    return enablers


def interaction_types(first: CardPattern, second: CardPattern) -> list[str]:
    """Known two-card interaction shapes formed by the pair's mechanics."""
    mechanics = set(first.mechanics) | set(second.mechanics)
    interactions: list[str] = []

    if "etb" in mechanics and ({"bounce", "flicker"} & mechanics):
        interactions.append("etb_bounce_combo")
    if "tap_ability" in mechanics and "untap" in mechanics:
        interactions.append("tap_untap_combo")
    if "dies" in mechanics and "sacrifice" in mechanics:
        interactions.append("death_sacrifice_combo")
    if "token_creation" in mechanics and "sacrifice" in mechanics:
        interactions.append("token_sacrifice_combo")

    return interactions
