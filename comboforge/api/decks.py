"""
Deck API endpoints.

Assembles decks around chosen combos and validates pasted deck lists.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from comboforge.api.dependencies import get_card_repository
from comboforge.models.card import CardFingerprint, coerce_colors
from comboforge.models.deck import DeckFormat
from comboforge.models.failure import CardNotFoundError, FailureKind, KnownError
from comboforge.parsers.deck_list import parse_deck_list
from comboforge.services.card_repository import CardQuery, CardRepository
from comboforge.services.combo_finder import make_manual_combo
from comboforge.services.deck_assembler import assemble_deck
from comboforge.services.deck_exporter import (
    DeckValidationResult,
    deck_statistics,
    entries_from_assembly,
    serialize_deck,
    validate_deck,
)

router = APIRouter(prefix="/decks", tags=["decks"])


class AssembleRequest(BaseModel):
    """Request to build a deck around combos."""

    combos: list[list[str]] = Field(
        default_factory=list,
        description="Each combo as a list of at least two card names",
    )
    colors: list[str] = Field(..., description="Deck color identity (W, U, B, R, G)")
    format: str = "standard"
    legal_only: bool = Field(default=False, description="Only use cards legal in the format")
    separate_lands: bool = False


class SlotResponse(BaseModel):
    """A card slot in an assembled deck."""

    card_id: str
    name: str
    quantity: int
    role: str


class ShortfallResponse(BaseModel):
    """A requirement the card pool could not meet."""

    requirement: str
    requested: int
    filled: int
    message: str


class ValidationResponse(BaseModel):
    """Result of validating a deck against format rules."""

    is_valid: bool
    warnings: list[str]
    total_cards: int
    expected_size: int

    @classmethod
    def from_result(cls, result: DeckValidationResult) -> "ValidationResponse":
        return cls(
            is_valid=result.is_valid,
            warnings=result.warnings,
            total_cards=result.total_cards,
            expected_size=result.expected_size,
        )


class AssembleResponse(BaseModel):
    """An assembled deck with its export text and validation."""

    format: str
    color_identity: list[str]
    slots: list[SlotResponse]
    total_cards: int
    land_count: int
    is_complete: bool
    shortfalls: list[ShortfallResponse]
    notes: list[str]
    deck_list: str
    validation: ValidationResponse
    mana_curve: dict[int, int]


class ValidateRequest(BaseModel):
    """Request to validate a pasted deck list."""

    deck_list: str
    format: str = "standard"


class ValidateResponse(BaseModel):
    """Validation of a pasted deck list."""

    validation: ValidationResponse
    sideboard_cards: int
    skipped_lines: list[str]


def _parse_format(value: str) -> DeckFormat:
    try:
        return DeckFormat.parse(value)
    except ValueError as e:
        raise KnownError(
            kind=FailureKind.INVALID_REQUEST,
            message=f"Unknown format '{value}'.",
            suggestion="Use singleton, multiples_allowed, or a format such as brawl or standard.",
        ) from e


def _resolve_names(pool: list[CardFingerprint], names: list[str]) -> list[CardFingerprint]:
    by_name: dict[str, CardFingerprint] = {}
    for card in pool:
        by_name.setdefault(card.name.lower(), card)

    cards: list[CardFingerprint] = []
    for name in names:
        card = by_name.get(name.strip().lower())
        if card is None:
            raise CardNotFoundError(name)
        cards.append(card)
    return cards


@router.post("/assemble", response_model=AssembleResponse)
def assemble(
    request: AssembleRequest,
    repository: Annotated[CardRepository, Depends(get_card_repository)],
) -> AssembleResponse:
    """
    Assemble a deck around the given combos.

    Returns 404 if a combo card is unknown, 400 for an unknown format or a
    combo with fewer than two cards.
    """
    deck_format = _parse_format(request.format)
    identity = coerce_colors(request.colors)
    legal_in = request.format if request.legal_only else None

    all_cards = repository.fetch_cards(CardQuery())
    combos = []
    for names in request.combos:
        if len(names) < 2:
            raise KnownError(
                kind=FailureKind.INVALID_REQUEST,
                message="Each combo needs at least two cards.",
                detail=f"Got {names!r}",
            )
        combos.append(make_manual_combo(_resolve_names(all_cards, names)))

    pool = repository.fetch_cards(CardQuery(color_identity=identity, legal_in=legal_in))
    assembly = assemble_deck(combos, identity, deck_format, pool)

    entries = entries_from_assembly(assembly)
    validation = validate_deck(entries, deck_format)

    return AssembleResponse(
        format=deck_format.value,
        color_identity=sorted(identity),
        slots=[
            SlotResponse(
                card_id=slot.card_id,
                name=assembly.cards[slot.card_id].name,
                quantity=slot.quantity,
                role=slot.role.value,
            )
            for slot in assembly.slots
        ],
        total_cards=assembly.total_cards,
        land_count=assembly.land_count,
        is_complete=assembly.is_complete,
        shortfalls=[
            ShortfallResponse(
                requirement=s.requirement,
                requested=s.requested,
                filled=s.filled,
                message=s.message,
            )
            for s in assembly.shortfalls
        ],
        notes=assembly.notes,
        deck_list=serialize_deck(entries, separate_lands=request.separate_lands),
        validation=ValidationResponse.from_result(validation),
        mana_curve=deck_statistics(entries).mana_curve,
    )


@router.post("/validate", response_model=ValidateResponse)
def validate(request: ValidateRequest) -> ValidateResponse:
    """
    Validate a pasted deck list against a format's size and copy limits.

    Problems are reported as warnings; only an unknown format is an error.
    """
    deck_format = _parse_format(request.format)
    parsed = parse_deck_list(request.deck_list)
    result = validate_deck(parsed.main, deck_format)

    return ValidateResponse(
        validation=ValidationResponse.from_result(result),
        sideboard_cards=sum(entry.quantity for entry in parsed.sideboard),
        skipped_lines=parsed.skipped_lines,
    )
