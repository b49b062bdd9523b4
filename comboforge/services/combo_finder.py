"""
Combo discovery engine.

Two ways to find combos in a card pool:

- Target card (find_combos_with_card): every synergy pattern whose target
  keywords hit the card is matched against partner cards, plus a few
  card-type pairings.
- Color set (find_combos_for_colors): keyword co-occurrence across the
  color-legal pool, optionally topped up by a generative suggester.

ComboDiscoveryEngine dispatches between the two and owns the suggester.
All results are sorted by power level, highest first.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from comboforge.config import (
    MAX_COMBINED_MANA_VALUE,
    MAX_POOL_COMBOS,
    PARTNERS_PER_PATTERN,
    PARTNERS_PER_TYPE_SYNERGY,
    POOL_CARDS_PER_COMBO,
    POOL_HIGH_RELIABILITY_MAX_MANA,
    settings,
)
from comboforge.models.card import CardFingerprint, coerce_colors
from comboforge.models.combo import (
    ComboMatch,
    ComboSource,
    Reliability,
    SynergyPattern,
    SynergyType,
    combo_id,
    reliability_for_mana,
)
from comboforge.models.failure import CardNotFoundError, InvalidDiscoveryRequestError
from comboforge.parsers.oracle_parser import interaction_types, parse_card
from comboforge.parsers.text_patterns import contains_any, count_matches, matched_keywords
from comboforge.services.combo_suggester import (
    ComboSuggester,
    SuggestionRequest,
    coerce_suggestion,
)
from comboforge.services.synergy_patterns import (
    BASIC_SYNERGY,
    POOL_PATTERNS,
    SYNERGY_PATTERNS,
    TYPE_SYNERGIES,
    PoolPattern,
    TypeSynergy,
)

logger = logging.getLogger(__name__)

DEFAULT_TARGET_RESULTS = 15

INTERACTION_NOTES: dict[str, str] = {
    "etb_bounce_combo": "Bouncing or flickering re-triggers enters-the-battlefield effects",
    "tap_untap_combo": "Untapping lets the tap ability be used again",
    "death_sacrifice_combo": "Each sacrifice feeds the death trigger",
    "token_sacrifice_combo": "Tokens provide free sacrifice fodder",
}


@dataclass(frozen=True)
class DiscoveryRequest:
    """
    Parameters for combo discovery.

    Exactly one of the two modes is used: `target` (card name or id) takes
    precedence; otherwise `colors` selects the pool-wide scan.
    """

    target: str | None = None
    colors: frozenset[str] = frozenset()
    power_level_min: int = 1
    power_level_max: int = 10
    max_setup_turns: int = 10
    max_cards: int = 6
    format: str = "standard"
    creative_mode: bool = False
    max_results: int | None = None
    allow_basic_fallback: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "colors", coerce_colors(self.colors))


@dataclass
class DiscoveryResult:
    """Combos plus bookkeeping about where they came from."""

    combos: list[ComboMatch] = field(default_factory=list)
    target: CardFingerprint | None = None
    local_count: int = 0
    external_count: int = 0
    suggester_used: bool = False
    suggester_failed: bool = False
    cards_analyzed: int = 0


# =============================================================================
# TARGET CARD DISCOVERY
# =============================================================================


def find_combos_with_card(
    target: CardFingerprint,
    pool: Iterable[CardFingerprint],
    max_results: int = DEFAULT_TARGET_RESULTS,
) -> list[ComboMatch]:
    """
    Find two-card combos that include a target card.

    Args:
        target: The card every combo must contain
        pool: Candidate partners (the target itself is ignored)
        max_results: Maximum combos to return

    Returns:
        ComboMatch list sorted by power level, highest first
    """
    candidates = [card for card in pool if card.id != target.id and card.oracle_text]
    target_text = target.text_lower
    combos: list[ComboMatch] = []

    for pattern in SYNERGY_PATTERNS:
        if not contains_any(target_text, pattern.target_keywords):
            continue

        partners = _rank_partners(target, candidates, pattern)
        for rank, partner in enumerate(partners):
            combos.append(_pattern_combo(target, partner, pattern, rank))

    budget = max(0, max_results - len(combos))
    combos.extend(_type_synergy_combos(target, candidates, budget))

    combos.sort(key=lambda c: -c.power_level)
    result = combos[:max_results]

    logger.info(
        "Found %d combos for %s",
        len(result),
        target.name,
        extra={"target_id": target.id, "candidates": len(candidates)},
    )
    return result


def _colors_compatible(first: CardFingerprint, second: CardFingerprint) -> bool:
    if first.is_colorless or second.is_colorless:
        return True
    return bool(first.color_identity & second.color_identity)


def _rank_partners(
    target: CardFingerprint,
    candidates: Sequence[CardFingerprint],
    pattern: SynergyPattern,
) -> list[CardFingerprint]:
    partners = [
        card
        for card in candidates
        if contains_any(card.text_lower, pattern.partner_keywords)
        and _colors_compatible(target, card)
        and target.cmc + card.cmc <= MAX_COMBINED_MANA_VALUE
    ]
    partners.sort(
        key=lambda c: (
            -count_matches(c.text_lower, pattern.partner_keywords),
            c.cmc,
            c.name,
            c.id,
        )
    )
    return partners[:PARTNERS_PER_PATTERN]


def _pattern_combo(
    target: CardFingerprint,
    partner: CardFingerprint,
    pattern: SynergyPattern,
    rank: int,
) -> ComboMatch:
    keywords = [
        *matched_keywords(target.text_lower, pattern.target_keywords),
        *matched_keywords(partner.text_lower, pattern.partner_keywords),
    ]
    total = target.cmc + partner.cmc

    explanation = [
        f"{target.name} provides the base for {pattern.explanation}",
        f"{partner.name} completes the synergy",
        *_interaction_lines(target, partner),
        f"Combo category: {pattern.category}",
    ]

    return ComboMatch(
        id=combo_id((target, partner), pattern.category),
        cards=(target, partner),
        category=pattern.category,
        synergy_type=pattern.synergy_type,
        power_level=max(1, pattern.power_level - rank),
        reliability=reliability_for_mana(total),
        mana_cost_total=total,
        explanation=tuple(explanation),
        keywords_matched=tuple(dict.fromkeys(keywords)),
        description=f"{pattern.name} with {partner.name}",
    )


def _type_synergy_combos(
    target: CardFingerprint,
    candidates: Sequence[CardFingerprint],
    budget: int,
) -> list[ComboMatch]:
    combos: list[ComboMatch] = []

    for synergy in TYPE_SYNERGIES:
        if not target.has_type(synergy.target_type):
            continue

        partners = sorted(
            (
                card
                for card in candidates
                if contains_any(card.text_lower, synergy.partner_keywords)
                and _colors_compatible(target, card)
            ),
            key=lambda c: (c.cmc, c.name, c.id),
        )[:PARTNERS_PER_TYPE_SYNERGY]

        for partner in partners:
            if len(combos) >= budget:
                return combos
            combos.append(_type_combo(target, partner, synergy))

    return combos


def _type_combo(
    target: CardFingerprint,
    partner: CardFingerprint,
    synergy: TypeSynergy,
) -> ComboMatch:
    total = target.cmc + partner.cmc
    return ComboMatch(
        id=combo_id((target, partner), synergy.category),
        cards=(target, partner),
        category=synergy.category,
        synergy_type=SynergyType.ENGINE,
        power_level=synergy.power_level,
        reliability=reliability_for_mana(total),
        mana_cost_total=total,
        explanation=(
            f"{target.name} synergizes with {partner.name}",
            f"{partner.name} rewards playing {synergy.target_type.lower()} cards",
            "Both cards are stronger together",
        ),
        keywords_matched=(synergy.target_type.lower(),),
        description=f"{synergy.name} with {partner.name}",
    )


def _interaction_lines(first: CardFingerprint, second: CardFingerprint) -> list[str]:
    kinds = interaction_types(parse_card(first), parse_card(second))
    return [INTERACTION_NOTES[kind] for kind in kinds]


# =============================================================================
# POOL-WIDE DISCOVERY
# =============================================================================


def find_combos_for_colors(
    request: DiscoveryRequest,
    pool: Iterable[CardFingerprint],
) -> list[ComboMatch]:
    """
    Scan a color-legal pool for keyword co-occurrence combos.

    Only cards whose color identity fits the requested colors (colorless
    always fits) and that have oracle text are considered. Emits at most one
    combo per pool pattern.

    When no pattern produces a combo and `allow_basic_fallback` is set, a
    "basic_synergy" placeholder made of the cheapest cards is returned
    instead. An empty pool always yields an empty list.
    """
    eligible = [card for card in pool if card.oracle_text and card.fits_identity(request.colors)]
    per_combo = min(POOL_CARDS_PER_COMBO, request.max_cards)
    max_results = request.max_results or MAX_POOL_COMBOS

    combos: list[ComboMatch] = []
    for pattern in POOL_PATTERNS:
        combo = _pool_pattern_combo(pattern, eligible, per_combo)
        if combo is None:
            continue
        if not _within_limits(combo, request):
            logger.debug("Pattern %s outside requested limits", pattern.key)
            continue
        combos.append(combo)

    if not combos and request.allow_basic_fallback:
        fallback = _basic_synergy_combo(eligible, request.max_cards)
        if fallback is not None:
            combos.append(fallback)

    combos.sort(key=lambda c: -c.power_level)

    logger.info(
        "Pool scan found %d combos",
        len(combos),
        extra={"colors": sorted(request.colors), "eligible": len(eligible)},
    )
    return combos[:max_results]


def _pool_pattern_combo(
    pattern: PoolPattern,
    eligible: Sequence[CardFingerprint],
    per_combo: int,
) -> ComboMatch | None:
    if per_combo < 2:
        return None

    matching = [card for card in eligible if contains_any(card.text_lower, pattern.keywords)]
    matching.sort(
        key=lambda c: (-count_matches(c.text_lower, pattern.keywords), c.cmc, c.name, c.id)
    )
    cards = matching[:per_combo]
    if len(cards) < 2:
        return None

    total = sum(card.cmc for card in cards)
    keywords = [kw for kw in pattern.keywords if any(kw in c.text_lower for c in cards)]

    return ComboMatch(
        id=combo_id(cards, pattern.category),
        cards=tuple(cards),
        category=pattern.category,
        synergy_type=pattern.synergy_type,
        power_level=max(1, pattern.power_level - total // 3),
        reliability=_pool_reliability(total),
        mana_cost_total=total,
        explanation=_fill_steps(pattern, cards),
        keywords_matched=tuple(keywords),
        description=pattern.description,
        setup_turns=pattern.setup_turns,
    )


def _basic_synergy_combo(eligible: Sequence[CardFingerprint], max_cards: int) -> ComboMatch | None:
    size = min(3, max_cards)
    cheapest = sorted(eligible, key=lambda c: (c.cmc, c.name, c.id))[:size]
    if len(cheapest) < 2:
        return None

    total = sum(card.cmc for card in cheapest)
    return ComboMatch(
        id=combo_id(cheapest, BASIC_SYNERGY.category),
        cards=tuple(cheapest),
        category=BASIC_SYNERGY.category,
        synergy_type=BASIC_SYNERGY.synergy_type,
        power_level=max(1, BASIC_SYNERGY.power_level - total // 3),
        reliability=_pool_reliability(total),
        mana_cost_total=total,
        explanation=_fill_steps(BASIC_SYNERGY, cheapest),
        description=BASIC_SYNERGY.description,
        setup_turns=BASIC_SYNERGY.setup_turns,
    )


def _pool_reliability(total_mana: int) -> Reliability:
    if total_mana <= POOL_HIGH_RELIABILITY_MAX_MANA:
        return Reliability.HIGH
    return Reliability.MEDIUM


def _fill_steps(pattern: PoolPattern, cards: Sequence[CardFingerprint]) -> tuple[str, ...]:
    return tuple(step.format(first=cards[0].name, second=cards[1].name) for step in pattern.steps)


def _within_limits(combo: ComboMatch, request: DiscoveryRequest) -> bool:
    if not request.power_level_min <= combo.power_level <= request.power_level_max:
        return False
    if combo.setup_turns is not None and combo.setup_turns > request.max_setup_turns:
        return False
    return len(combo.cards) <= request.max_cards


# =============================================================================
# MANUAL COMBOS
# =============================================================================


def make_manual_combo(cards: Sequence[CardFingerprint], description: str = "") -> ComboMatch:
    """
    Wrap hand-picked cards as a combo so they can seed deck assembly.

    Raises:
        ValueError: If fewer than two distinct cards are given
    """
    unique = list({card.id: card for card in cards}.values())
    total = sum(card.cmc for card in unique)

    explanation: list[str] = []
    for i, first in enumerate(unique):
        for second in unique[i + 1 :]:
            explanation.extend(_interaction_lines(first, second))

    return ComboMatch(
        id=combo_id(unique, "manual"),
        cards=tuple(unique),
        category="manual",
        synergy_type=SynergyType.ENGINE,
        power_level=5,
        reliability=reliability_for_mana(total),
        mana_cost_total=total,
        explanation=tuple(dict.fromkeys(explanation)),
        description=description or " + ".join(card.name for card in unique),
    )


# =============================================================================
# DISPATCH
# =============================================================================


def resolve_card(pool: Iterable[CardFingerprint], card_ref: str) -> CardFingerprint:
    """
    Find a card by id, exact name, or name fragment (case-insensitive).

    Raises:
        CardNotFoundError: If nothing matches
    """
    cards = list(pool)
    wanted = card_ref.strip().lower()

    for card in cards:
        if card.id == card_ref:
            return card
    for card in cards:
        if card.name.lower() == wanted:
            return card

    if wanted:
        partial = [card for card in cards if wanted in card.name.lower()]
        if partial:
            return min(partial, key=lambda c: (c.name, c.id))

    raise CardNotFoundError(card_ref)


class ComboDiscoveryEngine:
    """
    Entry point for combo discovery.

    Target-card requests run locally only. Color requests consult the
    suggester when local results are scarce or creative mode is on; a
    failing suggester never fails the request.
    """

    def __init__(
        self,
        suggester: ComboSuggester | None = None,
        min_local_combos: int | None = None,
    ):
        self.suggester = suggester
        self.min_local_combos = (
            settings.min_local_combos if min_local_combos is None else min_local_combos
        )

    def discover(
        self,
        request: DiscoveryRequest,
        pool: Sequence[CardFingerprint],
    ) -> DiscoveryResult:
        """
        Run target-card or pool-wide discovery.

        Raises:
            InvalidDiscoveryRequestError: If neither a target nor colors are given
            CardNotFoundError: If the target is not in the pool
        """
        if request.target is not None and request.target.strip():
            target = resolve_card(pool, request.target)
            candidates = [card for card in pool if card.id != target.id]
            combos = find_combos_with_card(
                target,
                candidates,
                request.max_results or DEFAULT_TARGET_RESULTS,
            )
            return DiscoveryResult(
                combos=combos,
                target=target,
                local_count=len(combos),
                cards_analyzed=len(candidates),
            )

        if request.colors:
            return self._discover_for_colors(request, pool)

        raise InvalidDiscoveryRequestError()

    def _discover_for_colors(
        self,
        request: DiscoveryRequest,
        pool: Sequence[CardFingerprint],
    ) -> DiscoveryResult:
        local = find_combos_for_colors(request, pool)
        result = DiscoveryResult(combos=local, local_count=len(local), cards_analyzed=len(pool))

        wants_more = len(local) < self.min_local_combos or request.creative_mode
        if self.suggester is None or not wants_more:
            return result

        result.suggester_used = True
        try:
            external = self._suggest(self.suggester, request, pool, local)
        except Exception as e:
            logger.warning(
                "Combo suggester failed, using local results only: %s",
                e,
                extra={"colors": sorted(request.colors)},
            )
            result.suggester_failed = True
            return result

        max_results = request.max_results or MAX_POOL_COMBOS
        merged = sorted(
            [*local, *external],
            key=lambda c: (-c.power_level, c.source is not ComboSource.LOCAL),
        )
        result.combos = merged[:max_results]
        result.external_count = sum(1 for c in result.combos if c.source is ComboSource.EXTERNAL)
        return result

    def _suggest(
        self,
        suggester: ComboSuggester,
        request: DiscoveryRequest,
        pool: Sequence[CardFingerprint],
        local: Sequence[ComboMatch],
    ) -> list[ComboMatch]:
        suggestion_request = SuggestionRequest(
            colors=tuple(sorted(request.colors)),
            power_level_min=request.power_level_min,
            power_level_max=request.power_level_max,
            max_setup_turns=request.max_setup_turns,
            max_cards=request.max_cards,
            format=request.format,
            creative_mode=request.creative_mode,
            exclude=tuple(combo.card_names for combo in local),
        )
        records = suggester.suggest_combos(suggestion_request)

        pool_by_name: dict[str, CardFingerprint] = {}
        for card in pool:
            pool_by_name.setdefault(card.name.lower(), card)

        known = {frozenset(name.lower() for name in combo.card_names) for combo in local}
        accepted: list[ComboMatch] = []
        for index, record in enumerate(records):
            combo = coerce_suggestion(record, pool_by_name, index)
            if combo is None:
                continue
            names = frozenset(name.lower() for name in combo.card_names)
            if names in known:
                continue
            if not all(card.fits_identity(request.colors) for card in combo.cards):
                logger.debug("Discarding suggestion outside colors: %s", combo.id)
                continue
            if not _within_limits(combo, request):
                continue
            known.add(names)
            accepted.append(combo)

        logger.info("Accepted %d of %d suggestions", len(accepted), len(records))
        return accepted
