"""Tests for canonical printing selection."""

import pytest

from brawlforge.services.version_selector import (
    build_release_dates,
    deduplicate_cards,
    group_by_identity,
    load_most_recent_set,
    load_sets_by_release_date,
    load_sets_in_date_range,
    most_recent_set,
    select_canonical_version,
    sets_in_date_range,
    sort_sets_by_release_date,
)

RELEASE_DATES = {
    "m19": "2018-07-13",
    "dom": "2018-04-27",
    "m21": "2020-07-03",
    "fdn": "2024-11-15",
}


class TestBuildReleaseDates:
    def test_earliest_date_per_set(self, make_card) -> None:
        """Promos released later do not move a set's date."""
        cards = [
            make_card(set="dom", released_at="2018-05-10"),
            make_card(set="dom", released_at="2018-04-27"),
            make_card(set="m19", released_at="2018-07-13"),
        ]

        assert build_release_dates(cards) == {"dom": "2018-04-27", "m19": "2018-07-13"}

    def test_skips_missing_data(self, make_card) -> None:
        """Printings without set or date are ignored."""
        cards = [make_card(set=None), make_card(released_at=None)]

        assert build_release_dates(cards) == {}


class TestGroupByIdentity:
    def test_groups_by_oracle_id(self, make_card) -> None:
        """Printings sharing an oracle_id form one group."""
        cards = [make_card("Shock"), make_card("Opt"), make_card("Shock", set="m19")]

        groups = group_by_identity(cards)

        assert [len(group) for group in groups.values()] == [2, 1]

    def test_missing_oracle_id_never_merged(self, make_card) -> None:
        """Printings without an oracle_id stay separate."""
        cards = [make_card(oracle_id=None), make_card(oracle_id=None)]

        assert len(group_by_identity(cards)) == 2


class TestSelectCanonicalVersion:
    def test_lowest_rarity_then_newest(self, make_card) -> None:
        """The newest of the lowest-rarity printings wins, with all sets attached."""
        printings = [
            make_card("Opt", rarity="common", set="dom"),
            make_card("Opt", rarity="rare", set="fdn"),
            make_card("Opt", rarity="common", set="m21"),
        ]

        selected = select_canonical_version(printings, RELEASE_DATES)

        assert selected.card["set"] == "m21"
        assert selected.legal_set_codes == ("dom", "fdn", "m21")

    def test_unknown_rarity_loses(self, make_card) -> None:
        """Special rarities lose to any known rarity."""
        printings = [
            make_card("Opt", rarity="special", set="fdn"),
            make_card("Opt", rarity="mythic", set="dom"),
        ]

        assert select_canonical_version(printings, RELEASE_DATES).card["set"] == "dom"

    def test_tie_keeps_first(self, make_card) -> None:
        """Identical rarity and date keep the first printing."""
        first = make_card("Opt", set="dom")
        second = make_card("Opt", set="dom")

        assert select_canonical_version([first, second], RELEASE_DATES).card is first

    def test_unknown_set_date_is_oldest(self, make_card) -> None:
        """Sets missing from the date map count as oldest."""
        printings = [
            make_card("Opt", set="zzz"),
            make_card("Opt", set="dom"),
        ]

        assert select_canonical_version(printings, RELEASE_DATES).card["set"] == "dom"

    def test_single_printing(self, make_card) -> None:
        """A lone printing carries only its own set."""
        selected = select_canonical_version([make_card(set="m19")], RELEASE_DATES)

        assert selected.legal_set_codes == ("m19",)

    def test_empty_raises(self) -> None:
        """Selecting from nothing is a programming error."""
        with pytest.raises(ValueError):
            select_canonical_version([], RELEASE_DATES)


class TestDeduplicateCards:
    def test_one_record_per_identity(self, make_card) -> None:
        """Output has one printing per oracle_id in first-seen order."""
        cards = [
            make_card("Shock", set="m19", released_at="2018-07-13"),
            make_card("Opt", set="dom", released_at="2018-04-27"),
            make_card("Shock", set="m21", released_at="2020-07-03"),
        ]

        selected = deduplicate_cards(cards)

        assert [choice.card["name"] for choice in selected] == ["Shock", "Opt"]
        assert selected[0].card["set"] == "m21"
        assert selected[0].legal_set_codes == ("m19", "m21")

    def test_debug_sink(self, make_card) -> None:
        """The chosen printing of every identity is traced."""
        events = []

        deduplicate_cards([make_card("Opt")], debug_sink=lambda *event: events.append(event))

        assert events[0][0] == "version_selected"
        assert events[0][1] == "Opt"


class TestSetDateHelpers:
    def test_most_recent_set(self) -> None:
        assert most_recent_set(["dom", "m21", "m19"], RELEASE_DATES) == ("m21", "2020-07-03")
        assert most_recent_set([], RELEASE_DATES) is None

    def test_sort_sets(self) -> None:
        """Newest first by default."""
        assert sort_sets_by_release_date(["dom", "fdn", "m19"], RELEASE_DATES) == [
            "fdn",
            "m19",
            "dom",
        ]
        assert sort_sets_by_release_date(["fdn", "dom"], RELEASE_DATES, ascending=True) == [
            "dom",
            "fdn",
        ]

    def test_sets_in_date_range(self) -> None:
        """Inclusive range, oldest first."""
        assert sets_in_date_range("2018-01-01", "2020-07-03", RELEASE_DATES) == [
            ("dom", "2018-04-27"),
            ("m19", "2018-07-13"),
            ("m21", "2020-07-03"),
        ]


class TestStoredSetDates:
    async def test_most_recent_set(self, gateway) -> None:
        """Helpers read the release dates saved by the last import."""
        await gateway.replace_sets(RELEASE_DATES)

        assert await load_most_recent_set(gateway, ["dom", "m19"]) == ("m19", "2018-07-13")

    async def test_all_stored_sets_by_date(self, gateway) -> None:
        await gateway.replace_sets(RELEASE_DATES)

        assert await load_sets_by_release_date(gateway) == ["fdn", "m21", "m19", "dom"]
        assert await load_sets_by_release_date(gateway, ["fdn", "dom"], ascending=True) == [
            "dom",
            "fdn",
        ]

    async def test_sets_in_date_range(self, fake_gateway) -> None:
        await fake_gateway.replace_sets(RELEASE_DATES)

        assert await load_sets_in_date_range(fake_gateway, "2020-01-01", "2024-12-31") == [
            ("m21", "2020-07-03"),
            ("fdn", "2024-11-15"),
        ]

    async def test_nothing_stored(self, gateway) -> None:
        assert await load_most_recent_set(gateway, ["dom"]) == ("dom", "1993-01-01")
        assert await load_sets_in_date_range(gateway, "1990-01-01", "2030-01-01") == []
