"""
Generative combo suggester boundary.

Pool-wide discovery can ask an external text-generation collaborator for
extra combo candidates. The engine only depends on the ComboSuggester
protocol; AnthropicComboSuggester is the concrete implementation.

Suggester output is untrusted. Every record goes through coerce_suggestion
before it is merged with locally discovered combos.
"""

import json
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import anthropic
from anthropic.types import MessageParam, TextBlock

from comboforge.config import settings
from comboforge.models.card import CardFingerprint
from comboforge.models.combo import (
    ComboMatch,
    ComboSource,
    Reliability,
    SynergyType,
    combo_id,
)
from comboforge.models.failure import CollaboratorError

logger = logging.getLogger(__name__)

# Defaults applied to fields a suggestion leaves out
DEFAULT_RELIABILITY = Reliability.MEDIUM
DEFAULT_SETUP_TURNS = 5
DEFAULT_MANA_COST_TOTAL = 0
DEFAULT_POWER_LEVEL = 5
DEFAULT_CATEGORY = "synergy"

# Free-form "type" values -> synergy classification
_TYPE_ALIASES: dict[str, SynergyType] = {
    "infinite": SynergyType.INFINITE,
    "engine": SynergyType.ENGINE,
    "value_engine": SynergyType.ENGINE,
    "synergy": SynergyType.ENGINE,
    "protection": SynergyType.PROTECTION,
    "acceleration": SynergyType.ACCELERATION,
    "win_condition": SynergyType.WIN_CONDITION,
}

_JSON_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass(frozen=True)
class SuggestionRequest:
    """Constraints passed to a combo suggester."""

    colors: tuple[str, ...] = ()
    power_level_min: int = 1
    power_level_max: int = 10
    max_setup_turns: int = 10
    max_cards: int = 6
    format: str = "standard"
    creative_mode: bool = False
    # Card-name combinations already found, so the suggester can avoid them
    exclude: tuple[tuple[str, ...], ...] = ()


class ComboSuggester(Protocol):
    """Anything that can propose combo records for a set of constraints."""

    def suggest_combos(self, request: SuggestionRequest) -> Sequence[Mapping[str, Any]]: ...


# =============================================================================
# COERCION
# =============================================================================


def coerce_suggestion(
    record: Any,
    pool_by_name: Mapping[str, CardFingerprint],
    index: int = 0,
) -> ComboMatch | None:
    """
    Turn one suggester record into a well-formed ComboMatch.

    Card names are resolved against the pool (case-insensitive); names the
    pool does not know become placeholder cards. Missing or malformed
    numeric fields fall back to defaults, and power is clamped to 1-10.

    Args:
        record: Raw record from the suggester
        pool_by_name: Lowercased card name -> card
        index: Position of the record, used only for logging

    Returns:
        ComboMatch, or None when the record names fewer than two cards
    """
    if not isinstance(record, Mapping):
        logger.debug("Discarding non-mapping suggestion #%d", index)
        return None

    cards = _resolve_cards(record.get("cards"), pool_by_name)
    if len(cards) < 2:
        logger.debug("Discarding suggestion #%d with %d cards", index, len(cards))
        return None

    category = record.get("category")
    if not isinstance(category, str) or not category.strip():
        category = DEFAULT_CATEGORY
    category = category.strip()

    power = _as_int(record.get("power_level"), DEFAULT_POWER_LEVEL)
    power = min(10, max(1, power))

    mana_total = _as_int(record.get("mana_cost_total"), DEFAULT_MANA_COST_TOTAL)
    if mana_total < 0:
        mana_total = DEFAULT_MANA_COST_TOTAL

    setup_turns = _as_int(record.get("setup_turns"), DEFAULT_SETUP_TURNS)
    if setup_turns < 1:
        setup_turns = DEFAULT_SETUP_TURNS

    description = record.get("description")
    steps = record.get("steps")

    return ComboMatch(
        id=f"external_{combo_id(cards, category)}",
        cards=tuple(cards),
        category=category,
        synergy_type=_as_synergy_type(record.get("type", record.get("synergy_type"))),
        power_level=power,
        reliability=_as_reliability(record.get("reliability")),
        mana_cost_total=mana_total,
        explanation=tuple(str(s) for s in steps if isinstance(s, str))
        if isinstance(steps, list)
        else (),
        keywords_matched=(),
        description=description if isinstance(description, str) else "",
        setup_turns=setup_turns,
        source=ComboSource.EXTERNAL,
    )


def _resolve_cards(
    raw_cards: Any,
    pool_by_name: Mapping[str, CardFingerprint],
) -> list[CardFingerprint]:
    if not isinstance(raw_cards, list):
        return []

    resolved: list[CardFingerprint] = []
    seen: set[str] = set()
    for raw in raw_cards:
        name = raw.get("name") if isinstance(raw, Mapping) else raw
        if not isinstance(name, str) or not name.strip():
            continue
        name = name.strip()
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)
        card = pool_by_name.get(key)
        if card is None:
            card = CardFingerprint(id=f"external:{name}", name=name)
        resolved.append(card)
    return resolved


def _as_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _as_reliability(value: Any) -> Reliability:
    if isinstance(value, str):
        try:
            return Reliability(value.strip().lower())
        except ValueError:
            pass
    return DEFAULT_RELIABILITY


def _as_synergy_type(value: Any) -> SynergyType:
    if isinstance(value, str):
        return _TYPE_ALIASES.get(value.strip().lower(), SynergyType.ENGINE)
    return SynergyType.ENGINE


# =============================================================================
# ANTHROPIC IMPLEMENTATION
# =============================================================================

PROMPT_TEMPLATE = """Suggest Magic: The Gathering combos for these constraints:

- Colors: {colors}
- Power level: {power_min}-{power_max}
- Maximum setup: {max_turns} turns
- Maximum cards per combo: {max_cards}
- Format: {format}
{creative}
{exclude}
Return 5-8 combos as JSON in exactly this shape:
{{
  "combos": [
    {{
      "cards": ["Card Name 1", "Card Name 2"],
      "category": "infinite_mana|infinite_tokens|infinite_damage|win_condition|synergy",
      "type": "infinite|synergy|win_condition|value_engine",
      "description": "Short description of what the combo does",
      "steps": ["Step 1", "Step 2", "Step 3"],
      "reliability": "high|medium|low",
      "setup_turns": 3,
      "mana_cost_total": 6,
      "power_level": 7
    }}
  ]
}}

Rules:
- Combos must be real and work under current rules
- Use exact English card names
- Prefer 2-3 card combos

Respond with JSON only, no extra text."""


def build_prompt(request: SuggestionRequest) -> str:
    """Render the suggestion prompt for a request."""
    colors = ", ".join(request.colors) if request.colors else "any color"
    creative = (
        "- Prefer subtle, uncommon interactions over well-known combos\n"
        if request.creative_mode
        else ""
    )
    exclude = ""
    if request.exclude:
        known = "\n".join(f"- {' + '.join(names)}" for names in request.exclude[:5])
        exclude = f"Do not repeat these known combos:\n{known}\n"

    return PROMPT_TEMPLATE.format(
        colors=colors,
        power_min=request.power_level_min,
        power_max=request.power_level_max,
        max_turns=request.max_setup_turns,
        max_cards=request.max_cards,
        format=request.format,
        creative=creative,
        exclude=exclude,
    )


def parse_suggestion_payload(text: str) -> list[Mapping[str, Any]]:
    """
    Extract combo records from a model reply.

    Accepts a bare JSON object with a "combos" list, a bare list, or either
    wrapped in a ```json fence.

    Raises:
        CollaboratorError: If the reply is not JSON of a recognized shape
    """
    cleaned = _JSON_FENCE.sub("", text.strip()).strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise CollaboratorError("Combo suggester returned invalid JSON", detail=str(e)) from e

    if isinstance(payload, Mapping):
        payload = payload.get("combos")
    if not isinstance(payload, list):
        raise CollaboratorError("Combo suggester reply has no combo list")

    return [item for item in payload if isinstance(item, Mapping)]


class AnthropicComboSuggester:
    """ComboSuggester backed by the Anthropic Messages API."""

    def __init__(
        self,
        client: anthropic.Anthropic | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
    ):
        if client is None and settings.anthropic_api_key:
            client = anthropic.Anthropic(api_key=settings.anthropic_api_key)
        self._client = client
        self.model = model or settings.suggester_model
        self.max_tokens = max_tokens or settings.suggester_max_tokens

    def suggest_combos(self, request: SuggestionRequest) -> list[Mapping[str, Any]]:
        if self._client is None:
            raise CollaboratorError("Anthropic API key not configured")

        messages: list[MessageParam] = [{"role": "user", "content": build_prompt(request)}]
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=messages,
            )
        except anthropic.APIError as e:
            raise CollaboratorError("Combo suggester request failed", detail=str(e)) from e

        text = "".join(block.text for block in response.content if isinstance(block, TextBlock))
        records = parse_suggestion_payload(text)

        logger.info(
            "Suggester returned %d records",
            len(records),
            extra={"model": self.model, "colors": list(request.colors)},
        )
        return records
