"""
Failure classification for the combo and deck engine.

Only invalid requests surface as exceptions. Data-quality problems inside a
card pool are recovered where they occur:

- MalformedInput: card fields are coerced to empty/unknown values
- InsufficientPool: assembly records a PoolShortfall instead of padding
- CollaboratorFailure: the generative suggester's output is discarded
- ValidationFailure: deck rule violations become warnings

The HTTP layer renders every KnownError as a FailureDetail body.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Which recovery path a failure belongs to."""

    MALFORMED_INPUT = "malformed_input"
    INSUFFICIENT_POOL = "insufficient_pool"
    COLLABORATOR_FAILURE = "collaborator_failure"
    VALIDATION_FAILED = "validation_failed"
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"


class FailureDetail(BaseModel):
    """JSON body returned for a known failure."""

    kind: FailureKind = Field(
        ...,
        description="Failure category",
    )
    message: str = Field(
        ...,
        description="What went wrong, in plain words",
    )
    detail: str | None = Field(
        default=None,
        description="Technical context, e.g. the offending input",
    )
    suggestion: str | None = Field(
        default=None,
        description="How the caller can fix the request",
    )


class KnownError(Exception):
    """
    A failure the engine can explain to the caller.

    Carries the HTTP status the API layer should answer with.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail body."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class InvalidDiscoveryRequestError(KnownError):
    """Raised when combo discovery gets neither a target card nor a color filter."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.INVALID_REQUEST,
            message="Combo discovery needs a target card or a color filter.",
            detail=detail,
            suggestion="Pass a card name/id, or at least one color symbol (W, U, B, R, G).",
            status_code=400,
        )


class CardNotFoundError(KnownError):
    """Raised when a requested card is not present in the repository."""

    def __init__(self, card_ref: str):
        self.card_ref = card_ref
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Card '{card_ref}' was not found.",
            suggestion="Check the spelling or search by card id.",
            status_code=404,
        )


class CollaboratorError(KnownError):
    """
    Raised by the generative suggester when it cannot produce usable output.

    Discovery catches this (and any other suggester exception) and continues
    with locally discovered combos.
    """

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.COLLABORATOR_FAILURE,
            message=message,
            detail=detail,
            status_code=502,
        )
