from comboforge.api.combos import router as combos_router
from comboforge.api.decks import router as decks_router
from comboforge.api.health import router as health_router

__all__ = [
    "combos_router",
    "decks_router",
    "health_router",
]
