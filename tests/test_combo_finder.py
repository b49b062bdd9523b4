"""Tests for combo discovery."""

import math
from unittest.mock import MagicMock

import pytest

from comboforge.models.combo import ComboSource, Reliability, SynergyType
from comboforge.models.failure import CardNotFoundError, InvalidDiscoveryRequestError
from comboforge.services.combo_finder import (
    ComboDiscoveryEngine,
    DiscoveryRequest,
    find_combos_for_colors,
    find_combos_with_card,
    make_manual_combo,
    resolve_card,
)


@pytest.fixture
def scry_outlet(make_card):
    """Colorless enchantment whose only pattern hit is sacrifice."""
    return make_card("Altar Of Bones", "Sacrifice a creature: Scry 1.", 2, types=("Enchantment",))


@pytest.fixture
def poison_pool(make_card):
    return [
        make_card("Toxic Rat", "Toxic 1", 2, colors="B"),
        make_card("Proliferator", "Proliferate.", 3, colors="G", types=("Sorcery",)),
    ]


# =============================================================================
# TARGET CARD
# =============================================================================


class TestFindCombosWithCard:
    def test_sacrifice_outlet_with_death_trigger(self, sacrifice_outlet, death_trigger) -> None:
        """A sacrifice outlet and a death trigger form a sacrifice engine."""
        combos = find_combos_with_card(sacrifice_outlet, [death_trigger])

        assert len(combos) == 1
        combo = combos[0]
        assert combo.id == "ashnods-altar_blood-watcher_sacrifice_engine"
        assert combo.category == "sacrifice_engine"
        assert combo.synergy_type is SynergyType.ENGINE
        assert combo.power_level == 7
        assert combo.reliability is Reliability.MEDIUM
        assert combo.mana_cost_total == 5
        assert combo.cards == (sacrifice_outlet, death_trigger)
        assert combo.keywords_matched == ("sacrifice", "dies")
        assert combo.source is ComboSource.LOCAL

    def test_explanation_mentions_interaction(self, sacrifice_outlet, death_trigger) -> None:
        combo = find_combos_with_card(sacrifice_outlet, [death_trigger])[0]

        assert combo.explanation[0].startswith("Ashnod's Altar provides the base")
        assert "Each sacrifice feeds the death trigger" in combo.explanation
        assert combo.explanation[-1] == "Combo category: sacrifice_engine"

    def test_target_never_its_own_partner(self, sacrifice_outlet, death_trigger) -> None:
        combos = find_combos_with_card(sacrifice_outlet, [sacrifice_outlet, death_trigger])

        for combo in combos:
            ids = [card.id for card in combo.cards]
            assert len(ids) == len(set(ids))
        assert len(combos) == 1

    def test_partners_ranked_by_keyword_count_then_mana(self, make_card, scry_outlet) -> None:
        """Each rank below the best partner costs one power level."""
        pool = [
            make_card("Zulaport", "Whenever a creature dies, each opponent loses 1 life.", 2),
            make_card(
                "Plunderer",
                "Whenever another creature dies or is sacrificed, create a token.",
                3,
            ),
            make_card("Visionary", "When this enters, draw a card.", 1, colors="G"),
        ]

        combos = find_combos_with_card(scry_outlet, pool)

        assert [c.cards[1].name for c in combos] == ["Plunderer", "Visionary", "Zulaport"]
        assert [c.power_level for c in combos] == [7, 6, 5]

    def test_partners_per_pattern_capped(self, make_card, scry_outlet) -> None:
        pool = [make_card(f"Ghoul {i}", "When this dies, scry 1.", 1) for i in range(8)]

        combos = find_combos_with_card(scry_outlet, pool)

        assert len(combos) == 5
        assert [c.power_level for c in combos] == [7, 6, 5, 4, 3]

    def test_max_results(self, make_card, scry_outlet) -> None:
        pool = [make_card(f"Ghoul {i}", "When this dies, scry 1.", 1) for i in range(8)]

        assert len(find_combos_with_card(scry_outlet, pool, max_results=3)) == 3

    def test_color_mismatch_excluded(self, make_card) -> None:
        target = make_card(
            "Red Altar", "Sacrifice a creature: Scry 1.", 2, colors="R", types=("Enchantment",)
        )
        pool = [
            make_card("Black Mourner", "When this dies, scry 1.", 1, colors="B"),
            make_card("Red Mourner", "When this dies, scry 1.", 1, colors="R"),
            make_card("Gray Mourner", "When this dies, scry 1.", 1, types=("Artifact",)),
        ]

        partners = {c.cards[1].name for c in find_combos_with_card(target, pool)}

        assert partners == {"Red Mourner", "Gray Mourner"}

    def test_combined_mana_value_cap(self, make_card, sacrifice_outlet) -> None:
        huge = make_card("Huge Horror", "When this dies, draw a card.", 10, colors="B")

        assert find_combos_with_card(sacrifice_outlet, [huge]) == []

    def test_partners_without_text_ignored(self, make_card, sacrifice_outlet) -> None:
        assert find_combos_with_card(sacrifice_outlet, [make_card("Vanilla", None, 2)]) == []

    def test_type_synergy(self, make_card) -> None:
        target = make_card("Trinket", "{T}: Scry 1.", 2, types=("Artifact",))
        pool = [
            make_card("Reckoner", "Whenever an artifact enters, scry 1.", 2),
            make_card("Foreman", "Artifact creatures you control get +1/+1.", 1),
            make_card("Smith", "Metalcraft: this gets +2/+2 with three artifacts.", 3),
        ]

        combos = find_combos_with_card(target, pool)

        assert [c.cards[1].name for c in combos] == ["Foreman", "Reckoner"]
        assert all(c.category == "artifact_synergy" for c in combos)
        assert all(c.power_level == 6 for c in combos)
        assert combos[0].reliability is Reliability.HIGH

    def test_no_matches(self, make_card) -> None:
        target = make_card("Shock", None, 1, colors="R", types=("Instant",))

        assert find_combos_with_card(target, [make_card("Bear", "Trample", 2)]) == []

    def test_deterministic(self, rg_pool) -> None:
        target = rg_pool[4]
        first = find_combos_with_card(target, rg_pool)
        second = find_combos_with_card(target, list(rg_pool))

        assert [c.id for c in first] == [c.id for c in second]

    def test_sorted_by_power(self, rg_pool) -> None:
        combos = find_combos_with_card(rg_pool[0], rg_pool)

        powers = [c.power_level for c in combos]
        assert powers == sorted(powers, reverse=True)
        assert len(combos) <= 15


# =============================================================================
# COLOR SCAN
# =============================================================================


class TestFindCombosForColors:
    def test_poison_combo(self, poison_pool) -> None:
        combos = find_combos_for_colors(DiscoveryRequest(colors=frozenset("BG")), poison_pool)

        assert len(combos) == 1
        combo = combos[0]
        assert combo.category == "poison"
        assert combo.synergy_type is SynergyType.INFINITE
        assert combo.power_level == 7
        assert combo.reliability is Reliability.HIGH
        assert combo.mana_cost_total == 5
        assert combo.setup_turns == 3
        assert combo.card_names == ("Toxic Rat", "Proliferator")
        assert combo.explanation[0] == "Play Toxic Rat to start adding poison counters"

    def test_off_color_cards_ignored(self, make_card, poison_pool) -> None:
        pool = [*poison_pool, make_card("Blue Proliferator", "Proliferate.", 1, colors="U")]

        combos = find_combos_for_colors(DiscoveryRequest(colors=frozenset("BG")), pool)

        assert "Blue Proliferator" not in combos[0].card_names

    def test_sorted_by_power(self, make_card, poison_pool) -> None:
        pool = [
            *poison_pool,
            make_card("Cult Altar", "Sacrifice a creature: Scry 1.", 1, colors="B"),
            make_card("Mourner", "Whenever a creature dies, you gain 1 life.", 2, colors="B"),
        ]

        combos = find_combos_for_colors(DiscoveryRequest(colors=frozenset("BG")), pool)

        assert [c.category for c in combos] == ["poison", "value_engine"]
        assert combos[1].power_level == 5

    def test_power_filter_falls_back_to_basic_synergy(self, poison_pool) -> None:
        request = DiscoveryRequest(colors=frozenset("BG"), power_level_min=8)

        combos = find_combos_for_colors(request, poison_pool)

        assert len(combos) == 1
        assert combos[0].category == "basic_synergy"
        assert combos[0].power_level == 2

    def test_fallback_can_be_disabled(self, poison_pool) -> None:
        request = DiscoveryRequest(
            colors=frozenset("BG"), power_level_min=8, allow_basic_fallback=False
        )

        assert find_combos_for_colors(request, poison_pool) == []

    def test_setup_turn_filter(self, poison_pool) -> None:
        request = DiscoveryRequest(
            colors=frozenset("BG"), max_setup_turns=2, allow_basic_fallback=False
        )

        assert find_combos_for_colors(request, poison_pool) == []

    def test_max_cards_below_two(self, poison_pool) -> None:
        request = DiscoveryRequest(colors=frozenset("BG"), max_cards=1)

        assert find_combos_for_colors(request, poison_pool) == []

    def test_empty_pool(self) -> None:
        assert find_combos_for_colors(DiscoveryRequest(colors=frozenset("R")), []) == []

    def test_cards_without_text_ignored(self, make_card) -> None:
        pool = [make_card("Vanilla A", None, 1, colors="R"), make_card("Vanilla B", "", 2)]

        assert find_combos_for_colors(DiscoveryRequest(colors=frozenset("R")), pool) == []

    def test_color_strings_coerced(self, poison_pool) -> None:
        request = DiscoveryRequest(colors=frozenset({"b", "g"}))

        assert request.colors == frozenset({"B", "G"})
        assert find_combos_for_colors(request, poison_pool)


# =============================================================================
# MANUAL COMBOS / CARD LOOKUP
# =============================================================================


class TestMakeManualCombo:
    def test_wraps_cards(self, sacrifice_outlet, death_trigger) -> None:
        combo = make_manual_combo([sacrifice_outlet, death_trigger])

        assert combo.category == "manual"
        assert combo.power_level == 5
        assert combo.description == "Ashnod's Altar + Blood Watcher"
        assert "Each sacrifice feeds the death trigger" in combo.explanation

    def test_duplicates_collapse(self, sacrifice_outlet) -> None:
        with pytest.raises(ValueError):
            make_manual_combo([sacrifice_outlet, sacrifice_outlet])


class TestResolveCard:
    def test_by_id(self, sacrifice_outlet, death_trigger) -> None:
        pool = [sacrifice_outlet, death_trigger]
        assert resolve_card(pool, "blood-watcher") is death_trigger

    def test_by_name_case_insensitive(self, sacrifice_outlet, death_trigger) -> None:
        pool = [sacrifice_outlet, death_trigger]
        assert resolve_card(pool, "  BLOOD watcher ") is death_trigger

    def test_by_partial_name(self, sacrifice_outlet, death_trigger) -> None:
        assert resolve_card([sacrifice_outlet, death_trigger], "altar") is sacrifice_outlet

    def test_not_found(self, sacrifice_outlet) -> None:
        with pytest.raises(CardNotFoundError) as exc_info:
            resolve_card([sacrifice_outlet], "Nonexistent")

        assert exc_info.value.card_ref == "Nonexistent"


# =============================================================================
# ENGINE
# =============================================================================


class TestComboDiscoveryEngine:
    def test_target_request(self, sacrifice_outlet, death_trigger) -> None:
        result = ComboDiscoveryEngine().discover(
            DiscoveryRequest(target="Ashnod's Altar"),
            [sacrifice_outlet, death_trigger],
        )

        assert result.target is sacrifice_outlet
        assert result.cards_analyzed == 1
        assert result.local_count == 1
        assert not result.suggester_used

    def test_target_takes_precedence_over_colors(self, sacrifice_outlet, death_trigger) -> None:
        suggester = MagicMock()
        result = ComboDiscoveryEngine(suggester).discover(
            DiscoveryRequest(target="Ashnod's Altar", colors=frozenset("B")),
            [sacrifice_outlet, death_trigger],
        )

        assert result.target is sacrifice_outlet
        suggester.suggest_combos.assert_not_called()

    def test_unknown_target(self, sacrifice_outlet) -> None:
        with pytest.raises(CardNotFoundError):
            ComboDiscoveryEngine().discover(DiscoveryRequest(target="Nope"), [sacrifice_outlet])

    def test_needs_target_or_colors(self, sacrifice_outlet) -> None:
        with pytest.raises(InvalidDiscoveryRequestError):
            ComboDiscoveryEngine().discover(DiscoveryRequest(), [sacrifice_outlet])

    def test_blank_target_without_colors(self, sacrifice_outlet) -> None:
        with pytest.raises(InvalidDiscoveryRequestError):
            ComboDiscoveryEngine().discover(DiscoveryRequest(target="  "), [sacrifice_outlet])

    def test_no_suggester_configured(self, poison_pool) -> None:
        result = ComboDiscoveryEngine(None, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG")), poison_pool
        )

        assert result.local_count == 1
        assert not result.suggester_used

    def test_suggester_skipped_when_enough_local(self, poison_pool) -> None:
        suggester = MagicMock()

        result = ComboDiscoveryEngine(suggester, min_local_combos=1).discover(
            DiscoveryRequest(colors=frozenset("BG")), poison_pool
        )

        suggester.suggest_combos.assert_not_called()
        assert not result.suggester_used

    def test_creative_mode_always_asks(self, poison_pool) -> None:
        suggester = MagicMock()
        suggester.suggest_combos.return_value = []

        result = ComboDiscoveryEngine(suggester, min_local_combos=1).discover(
            DiscoveryRequest(colors=frozenset("BG"), creative_mode=True), poison_pool
        )

        suggester.suggest_combos.assert_called_once()
        assert result.suggester_used
        assert result.external_count == 0

    def test_suggestions_merged(self, poison_pool) -> None:
        suggester = MagicMock()
        suggester.suggest_combos.return_value = [
            {"cards": ["Toxic Rat", "Ghost Card"], "power_level": 9, "category": "poison"},
        ]

        result = ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG")), poison_pool
        )

        assert result.suggester_used
        assert not result.suggester_failed
        assert result.external_count == 1
        assert result.combos[0].source is ComboSource.EXTERNAL
        assert result.combos[0].power_level == 9
        assert result.combos[0].id.startswith("external_")
        assert result.combos[1].source is ComboSource.LOCAL

    def test_non_finite_numbers_do_not_drop_batch(self, poison_pool) -> None:
        suggester = MagicMock()
        suggester.suggest_combos.return_value = [
            {
                "cards": ["Toxic Rat", "Ghost Card"],
                "power_level": math.inf,
                "setup_turns": math.inf,
            },
            {"cards": ["Proliferator", "Other Ghost"], "power_level": 8},
        ]

        result = ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG")), poison_pool
        )

        assert not result.suggester_failed
        assert result.external_count == 2
        external = [c for c in result.combos if c.source is ComboSource.EXTERNAL]
        assert sorted(c.power_level for c in external) == [5, 8]

    def test_suggester_receives_known_combos(self, poison_pool) -> None:
        suggester = MagicMock()
        suggester.suggest_combos.return_value = []

        ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("GB"), format="historic"), poison_pool
        )

        request = suggester.suggest_combos.call_args.args[0]
        assert request.colors == ("B", "G")
        assert request.format == "historic"
        assert request.exclude == (("Toxic Rat", "Proliferator"),)

    def test_duplicate_suggestion_dropped(self, poison_pool) -> None:
        suggester = MagicMock()
        suggester.suggest_combos.return_value = [
            {"cards": ["proliferator", "TOXIC RAT"], "power_level": 9},
        ]

        result = ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG")), poison_pool
        )

        assert result.external_count == 0
        assert len(result.combos) == 1

    def test_off_color_suggestion_dropped(self, make_card, poison_pool) -> None:
        pool = [*poison_pool, make_card("Blue Thing", "Draw a card.", 2, colors="U")]
        suggester = MagicMock()
        suggester.suggest_combos.return_value = [{"cards": ["Toxic Rat", "Blue Thing"]}]

        result = ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG")), pool
        )

        assert result.external_count == 0

    def test_suggestion_outside_power_range_dropped(self, poison_pool) -> None:
        suggester = MagicMock()
        suggester.suggest_combos.return_value = [
            {"cards": ["Toxic Rat", "Ghost Card"], "power_level": 2},
        ]

        result = ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG"), power_level_min=5), poison_pool
        )

        assert result.external_count == 0

    def test_local_wins_power_ties(self, poison_pool) -> None:
        suggester = MagicMock()
        suggester.suggest_combos.return_value = [
            {"cards": ["Ghost A", "Ghost B"], "power_level": 7},
        ]

        result = ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG")), poison_pool
        )

        assert [c.source for c in result.combos] == [ComboSource.LOCAL, ComboSource.EXTERNAL]

    def test_suggester_failure_keeps_local_results(self, poison_pool) -> None:
        """A broken suggester never fails discovery."""
        suggester = MagicMock()
        suggester.suggest_combos.side_effect = RuntimeError("boom")

        result = ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG")), poison_pool
        )

        assert result.suggester_used
        assert result.suggester_failed
        assert [c.category for c in result.combos] == ["poison"]

    def test_max_results_applies_after_merge(self, poison_pool) -> None:
        suggester = MagicMock()
        suggester.suggest_combos.return_value = [
            {"cards": ["Ghost A", "Ghost B"], "power_level": 9},
            {"cards": ["Ghost C", "Ghost D"], "power_level": 8},
        ]

        result = ComboDiscoveryEngine(suggester, min_local_combos=5).discover(
            DiscoveryRequest(colors=frozenset("BG"), max_results=2), poison_pool
        )

        assert [c.power_level for c in result.combos] == [9, 8]
        assert result.external_count == 2
