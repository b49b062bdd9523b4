from collections.abc import Callable, Iterable

import pytest

from comboforge.models.card import CardFingerprint

CardFactory = Callable[..., CardFingerprint]


def build_card(
    name: str,
    text: str | None = None,
    mana_value: int | None = 1,
    colors: Iterable[str] = (),
    types: Iterable[str] = ("Creature",),
    mana_cost: str | None = None,
    card_id: str | None = None,
    legalities: dict[str, bool] | None = None,
) -> CardFingerprint:
    identity = frozenset(colors)
    if mana_cost is None:
        generic = max(0, (mana_value or 0) - len(identity))
        mana_cost = (f"{{{generic}}}" if generic else "") + "".join(
            f"{{{c}}}" for c in sorted(identity)
        )
    return CardFingerprint(
        id=card_id or name.lower().replace(" ", "-").replace("'", ""),
        name=name,
        mana_value=mana_value,
        mana_cost=mana_cost,
        colors=identity,
        color_identity=identity,
        types=tuple(types),
        oracle_text=text,
        legalities=legalities or {},
    )


@pytest.fixture
def make_card() -> CardFactory:
    """Factory for test cards; color identity equals colors."""
    return build_card


@pytest.fixture
def sacrifice_outlet() -> CardFingerprint:
    return build_card(
        "Ashnod's Altar",
        "Sacrifice a creature: Add one mana of any color.",
        mana_value=3,
        types=("Artifact",),
    )


@pytest.fixture
def death_trigger() -> CardFingerprint:
    return build_card(
        "Blood Watcher",
        "Whenever a creature dies, draw a card.",
        mana_value=2,
        colors="B",
    )


NONLAND_TEXTS = (
    ("{T}: Add {G}.", ("Creature",)),
    ("Destroy target artifact.", ("Instant",)),
    ("Draw a card.", ("Sorcery",)),
    ("Trample", ("Creature",)),
    ("Create a 1/1 token.", ("Enchantment",)),
    ("Lightning deals 2 damage to target creature.", ("Instant",)),
    ("Haste", ("Creature",)),
    ("Search your library for a basic land card.", ("Sorcery",)),
)


@pytest.fixture
def rg_pool() -> list[CardFingerprint]:
    """200 red/green nonland cards plus 10 dual lands and 10 basics."""
    color_cycle = ("R", "G", "RG")
    cards: list[CardFingerprint] = []

    for i in range(200):
        text, types = NONLAND_TEXTS[i % len(NONLAND_TEXTS)]
        cards.append(
            build_card(
                f"Spell {i:03d}",
                text,
                mana_value=1 + i % 5,
                colors=color_cycle[i % 3],
                types=types,
            )
        )

    for i in range(10):
        cards.append(
            build_card(
                f"Dual Land {i}",
                "{T}: Add {R} or {G}.",
                mana_value=0,
                colors="RG",
                types=("Land",),
                mana_cost="",
            )
        )

    for i in range(5):
        cards.append(
            build_card(
                "Mountain",
                "({T}: Add {R}.)",
                mana_value=0,
                colors="R",
                types=("Basic", "Land"),
                mana_cost="",
                card_id=f"mountain-{i}",
            )
        )
        cards.append(
            build_card(
                "Forest",
                "({T}: Add {G}.)",
                mana_value=0,
                colors="G",
                types=("Basic", "Land"),
                mana_cost="",
                card_id=f"forest-{i}",
            )
        )

    return cards


@pytest.fixture
def sample_deck_list() -> str:
    """Sample Arena deck export for testing."""
    return """Deck
4 Lightning Bolt (LEB) 163
4 Monastery Swiftspear (BRO) 144
20 Mountain (NEO) 290

Sideboard
2 Abrade (VOW) 139"""
