"""Tests for watched-card import tracing."""

import logging

import pytest

from brawlforge.services.debug import make_watch_sink


class TestMakeWatchSink:
    def test_no_names_no_sink(self) -> None:
        assert make_watch_sink([]) is None
        assert make_watch_sink(["", "  "]) is None

    def test_logs_only_watched_cards(self, caplog: pytest.LogCaptureFixture) -> None:
        """Names are matched by search key, so accents and case do not matter."""
        caplog.set_level(logging.INFO, logger="brawlforge.services.debug")
        sink = make_watch_sink(["lorien revealed"])

        sink("filtered_out", "Lórien Revealed", {"lang": "ja"})
        sink("filtered_out", "Shock", {"lang": "ja"})

        assert len(caplog.records) == 1
        assert "Lórien Revealed" in caplog.records[0].getMessage()

    def test_custom_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="import.trace")
        sink = make_watch_sink(["Opt"], log=logging.getLogger("import.trace"))

        sink("transformed", "Opt", {})

        assert caplog.records[0].name == "import.trace"
