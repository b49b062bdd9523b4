from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "ComboForge"
    debug: bool = False

    # Scryfall-shaped JSON list used by the HTTP surface as its card repository
    card_data_path: str = "data/cards.json"

    anthropic_api_key: str = ""
    suggester_model: str = "claude-sonnet-4-20250514"
    suggester_max_tokens: int = 3000

    # When False, pool-wide search never calls the generative suggester
    suggester_enabled: bool = True

    # Below this many locally discovered combos the suggester is consulted
    min_local_combos: int = 5


settings = Settings()


# =============================================================================
# COMBO HEURISTICS
# =============================================================================

# Combined mana value buckets for target-card combos
HIGH_RELIABILITY_MAX_MANA = 4
MEDIUM_RELIABILITY_MAX_MANA = 7

# Pool-wide combos use a single cut: at or below this is high, else medium
POOL_HIGH_RELIABILITY_MAX_MANA = 6

# Partners whose mana value plus the target's exceeds this are ignored
MAX_COMBINED_MANA_VALUE = 12

# Partners kept per synergy pattern for a target card
PARTNERS_PER_PATTERN = 5

# Partners kept per type-based synergy for a target card
PARTNERS_PER_TYPE_SYNERGY = 2

# Cards collected per pool-wide pattern
POOL_CARDS_PER_COMBO = 4

# Maximum combos returned by pool-wide search
MAX_POOL_COMBOS = 20


# =============================================================================
# MANA BASE HEURISTICS
# =============================================================================

# Share of lands_needed that may go to two-color lands
DUAL_LAND_SHARE = 0.30

# Utility lands (colorless, card draw / scry / life) reserved per deck
MAX_UTILITY_LANDS = 3

# Copies of a category card in a multiples-allowed deck
MAX_SUPPORT_COPIES = 3
