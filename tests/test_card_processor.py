"""Tests for the card processing pipeline."""

from brawlforge.models.canonical_card import SelectedPrinting
from brawlforge.services.card_processor import process_card_data, process_cards


def _select(card) -> SelectedPrinting:
    return SelectedPrinting(card=card, legal_set_codes=(card["set"],))


class TestProcessCards:
    def test_transforms_all(self, make_card) -> None:
        records, errors = process_cards([_select(make_card("Opt")), _select(make_card("Shock"))])

        assert [record.original_name for record in records] == ["Opt", "Shock"]
        assert errors == []

    def test_bad_record_skipped(self, make_card) -> None:
        """One malformed record is skipped with one error naming it."""
        selected = [
            _select(make_card("Opt")),
            _select(make_card("Broken Card", type_line=None)),
            _select(make_card("Shock")),
        ]

        records, errors = process_cards(selected)

        assert [record.original_name for record in records] == ["Opt", "Shock"]
        assert len(errors) == 1
        assert "Broken Card" in errors[0]

    def test_progress_at_start_interval_and_end(self, make_card) -> None:
        """Progress is reported at 0, every interval, and at completion."""
        selected = [_select(make_card(f"Card {i}")) for i in range(5)]
        calls: list[tuple[int, int]] = []

        process_cards(selected, on_progress=lambda done, total: calls.append((done, total)),
                      progress_interval=2)

        assert calls == [(0, 5), (2, 5), (4, 5), (5, 5)]

    def test_progress_not_repeated_at_exact_interval(self, make_card) -> None:
        """A total that is a multiple of the interval reports completion once."""
        selected = [_select(make_card(f"Card {i}")) for i in range(4)]
        calls: list[tuple[int, int]] = []

        process_cards(selected, on_progress=lambda done, total: calls.append((done, total)),
                      progress_interval=2)

        assert calls == [(0, 4), (2, 4), (4, 4)]


class TestProcessCardData:
    def test_full_pipeline(self, make_card) -> None:
        """Filter, dedupe, transform and validate in one pass."""
        cards = [
            make_card("Opt", set="dom", released_at="2018-04-27"),
            make_card("Opt", set="m21", released_at="2020-07-03"),
            make_card("Shock", lang="ja"),
            make_card("Banned", legalities={"brawl": "banned"}),
            make_card("Lightning Bolt", set="m21", released_at="2020-07-03"),
        ]

        outcome = process_card_data(cards)

        assert [record.original_name for record in outcome.records] == ["Opt", "Lightning Bolt"]
        assert outcome.records[0].set_code == "m21"
        assert outcome.records[0].legal_set_codes == ("dom", "m21")
        assert outcome.eligible_count == 3
        assert outcome.unique_count == 2
        assert outcome.release_dates == {"dom": "2018-04-27", "m21": "2020-07-03"}
        assert outcome.errors == []

    def test_release_dates_from_filtered_cards_only(self, make_card) -> None:
        """Ineligible printings do not contribute set dates."""
        cards = [make_card("Opt"), make_card("Shock", set="jpn", lang="ja")]

        outcome = process_card_data(cards)

        assert "jpn" not in outcome.release_dates

    def test_errors_from_transform_and_validation(self, make_card) -> None:
        """Transformation failures and validation errors are both collected."""
        cards = [
            make_card("Opt"),
            make_card("Broken", type_line=None),
            make_card("No Identity", oracle_id=None),
        ]

        outcome = process_card_data(cards)

        assert [record.original_name for record in outcome.records] == ["Opt"]
        assert len(outcome.errors) == 2
        assert any("Broken" in error for error in outcome.errors)
        assert "Card missing oracle_id: No Identity" in outcome.errors

    def test_stage_messages(self, make_card) -> None:
        """Each stage is announced in order."""
        messages: list[str] = []

        process_card_data(
            [make_card("Opt")],
            on_progress=lambda message, done, total: messages.append(message),
        )

        assert messages[0] == "Filtering cards"
        assert messages[1] == "Deduplicating cards"
        assert messages[-1] == "Processing cards (1/1)"
