"""
Combo API endpoints.

Target-card combo search and pool-wide combo search by colors.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from comboforge.api.dependencies import get_card_repository, get_combo_suggester
from comboforge.models.card import CardFingerprint
from comboforge.models.combo import ComboMatch
from comboforge.models.failure import CardNotFoundError
from comboforge.services.card_repository import CardQuery, CardRepository
from comboforge.services.combo_finder import ComboDiscoveryEngine, DiscoveryRequest
from comboforge.services.combo_suggester import ComboSuggester

router = APIRouter(prefix="/combos", tags=["combos"])


class CardResponse(BaseModel):
    """A card as shown in combo results."""

    id: str
    name: str
    mana_value: int | None = None
    mana_cost: str = ""
    color_identity: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    oracle_text: str | None = None

    @classmethod
    def from_card(cls, card: CardFingerprint) -> "CardResponse":
        return cls(
            id=card.id,
            name=card.name,
            mana_value=card.mana_value,
            mana_cost=card.mana_cost,
            color_identity=sorted(card.color_identity),
            types=list(card.types),
            oracle_text=card.oracle_text,
        )


class ComboResponse(BaseModel):
    """A discovered combo."""

    id: str
    category: str
    synergy_type: str
    power_level: int
    reliability: str
    mana_cost_total: int
    cards: list[CardResponse]
    explanation: list[str] = Field(default_factory=list)
    keywords_matched: list[str] = Field(default_factory=list)
    description: str = ""
    setup_turns: int | None = None
    source: str

    @classmethod
    def from_combo(cls, combo: ComboMatch) -> "ComboResponse":
        return cls(
            id=combo.id,
            category=combo.category,
            synergy_type=combo.synergy_type.value,
            power_level=combo.power_level,
            reliability=combo.reliability.value,
            mana_cost_total=combo.mana_cost_total,
            cards=[CardResponse.from_card(card) for card in combo.cards],
            explanation=list(combo.explanation),
            keywords_matched=list(combo.keywords_matched),
            description=combo.description,
            setup_turns=combo.setup_turns,
            source=combo.source.value,
        )


class WithCardRequest(BaseModel):
    """Request for combos built around one card."""

    card: str = Field(..., min_length=1, description="Card name or id")
    max_results: int = Field(default=15, ge=1, le=50)
    format: str | None = Field(default=None, description="Only use cards legal in this format")


class WithCardResponse(BaseModel):
    """Combos for a target card."""

    target: CardResponse
    combos: list[ComboResponse]
    total_combinations_analyzed: int


class SearchRequest(BaseModel):
    """Request for pool-wide combos in a color identity."""

    colors: list[str] = Field(default_factory=list)
    power_level_min: int = Field(default=1, ge=1, le=10)
    power_level_max: int = Field(default=10, ge=1, le=10)
    max_setup_turns: int = Field(default=10, ge=1)
    max_cards: int = Field(default=6, ge=2)
    format: str = "standard"
    creative_mode: bool = False
    max_results: int = Field(default=20, ge=1, le=50)


class SearchStats(BaseModel):
    """Where the returned combos came from."""

    from_local: int
    from_external: int
    suggester_used: bool
    suggester_failed: bool


class SearchResponse(BaseModel):
    """Pool-wide combo search results."""

    combos: list[ComboResponse]
    total_found: int
    stats: SearchStats
    categories: dict[str, int]


@router.post("/with-card", response_model=WithCardResponse)
def combos_with_card(
    request: WithCardRequest,
    repository: Annotated[CardRepository, Depends(get_card_repository)],
) -> WithCardResponse:
    """
    Find combos that include a specific card.

    Returns 404 if the card is not in the repository.
    """
    pool = repository.fetch_cards(CardQuery(legal_in=request.format))
    result = ComboDiscoveryEngine().discover(
        DiscoveryRequest(target=request.card, max_results=request.max_results),
        pool,
    )
    if result.target is None:
        raise CardNotFoundError(request.card)

    return WithCardResponse(
        target=CardResponse.from_card(result.target),
        combos=[ComboResponse.from_combo(combo) for combo in result.combos],
        total_combinations_analyzed=result.cards_analyzed,
    )


@router.post("/search", response_model=SearchResponse)
def search_combos(
    request: SearchRequest,
    repository: Annotated[CardRepository, Depends(get_card_repository)],
    suggester: Annotated[ComboSuggester | None, Depends(get_combo_suggester)],
) -> SearchResponse:
    """
    Find combos across every card playable in the requested colors.

    Uses the generative suggester (when configured) if few local combos are
    found or creative mode is on. Returns 400 if no valid color is given.
    """
    discovery = DiscoveryRequest(
        colors=frozenset(request.colors),
        power_level_min=request.power_level_min,
        power_level_max=request.power_level_max,
        max_setup_turns=request.max_setup_turns,
        max_cards=request.max_cards,
        format=request.format,
        creative_mode=request.creative_mode,
        max_results=request.max_results,
    )
    pool = repository.fetch_cards(
        CardQuery(color_identity=discovery.colors, require_oracle_text=True)
    )
    result = ComboDiscoveryEngine(suggester).discover(discovery, pool)

    categories: dict[str, int] = {}
    for combo in result.combos:
        categories[combo.category] = categories.get(combo.category, 0) + 1

    return SearchResponse(
        combos=[ComboResponse.from_combo(combo) for combo in result.combos],
        total_found=len(result.combos),
        stats=SearchStats(
            from_local=len(result.combos) - result.external_count,
            from_external=result.external_count,
            suggester_used=result.suggester_used,
            suggester_failed=result.suggester_failed,
        ),
        categories=categories,
    )
