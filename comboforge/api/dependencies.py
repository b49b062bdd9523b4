"""
Shared FastAPI dependencies.

Tests replace these through app.dependency_overrides.
"""

import logging

from fastapi import HTTPException, status

from comboforge.config import settings
from comboforge.services.card_repository import CardRepository, load_card_repository
from comboforge.services.combo_suggester import AnthropicComboSuggester, ComboSuggester

logger = logging.getLogger(__name__)


def get_card_repository() -> CardRepository:
    """Card repository backed by the configured card data file."""
    try:
        return load_card_repository(settings.card_data_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Card data unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Card data not available",
        ) from e


def get_combo_suggester() -> ComboSuggester | None:
    """Generative suggester, or None when disabled or not configured."""
    if not settings.suggester_enabled or not settings.anthropic_api_key:
        return None
    return AnthropicComboSuggester()
