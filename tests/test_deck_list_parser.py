"""Tests for plain-text deck list parsing."""

from comboforge.models.deck import CardCategory
from comboforge.parsers.deck_list import parse_deck_line, parse_deck_list, section_for_header


class TestParseDeckLine:
    def test_arena_line(self) -> None:
        entry = parse_deck_line("4 Lightning Bolt (LEB) 163")

        assert entry is not None
        assert entry.quantity == 4
        assert entry.name == "Lightning Bolt"
        assert entry.set_code == "LEB"
        assert entry.collector_number == "163"

    def test_simple_line(self) -> None:
        entry = parse_deck_line("20 Mountain")

        assert entry is not None
        assert entry.name == "Mountain"
        assert entry.set_code is None

    def test_x_quantity(self) -> None:
        entry = parse_deck_line("2x Abrade")

        assert entry is not None
        assert entry.quantity == 2
        assert entry.name == "Abrade"

    def test_letter_collector_number(self) -> None:
        entry = parse_deck_line("1 Card Name (SET) 290a")

        assert entry is not None
        assert entry.collector_number == "290a"

    def test_not_a_card_line(self) -> None:
        assert parse_deck_line("Lightning Bolt") is None


class TestSectionHeaders:
    def test_known_headers(self) -> None:
        assert section_for_header("Deck") == "main"
        assert section_for_header("Sideboard:") == "sideboard"
        assert section_for_header("  lands ") == "lands"

    def test_card_line_is_not_header(self) -> None:
        assert section_for_header("4 Deck of Many Things") is None


class TestParseDeckList:
    def test_sample_deck(self, sample_deck_list: str) -> None:
        parsed = parse_deck_list(sample_deck_list)

        assert [e.name for e in parsed.main] == [
            "Lightning Bolt",
            "Monastery Swiftspear",
            "Mountain",
        ]
        assert parsed.total_main == 28
        assert [(e.name, e.quantity) for e in parsed.sideboard] == [("Abrade", 2)]
        assert parsed.skipped_lines == []

    def test_no_header_defaults_to_main(self) -> None:
        parsed = parse_deck_list("4 Shock\n20 Mountain")

        assert parsed.total_main == 24

    def test_lands_section_joins_main(self) -> None:
        parsed = parse_deck_list("Deck\n4 Shock\n\nLands\n20 Mountain")

        assert [e.name for e in parsed.main] == ["Shock", "Mountain"]
        assert parsed.main[1].category is CardCategory.LAND

    def test_commander_and_companion(self) -> None:
        parsed = parse_deck_list("Commander\n1 Kiki-Jiki\nCompanion\n1 Lurrus\nDeck\n99 Forest")

        assert [e.name for e in parsed.commander] == ["Kiki-Jiki"]
        assert [e.name for e in parsed.companion] == ["Lurrus"]
        assert parsed.total_main == 99

    def test_unparseable_lines_skipped(self) -> None:
        parsed = parse_deck_list("4 Shock\nAbout this deck\n0 Nothing")

        assert parsed.total_main == 4
        assert parsed.skipped_lines == ["About this deck", "0 Nothing"]

    def test_empty(self) -> None:
        assert parse_deck_list("").main == []
        assert parse_deck_list(None).main == []
        assert parse_deck_list("  \n ").skipped_lines == []
