"""Tests for batched card writes."""

import pytest

from brawlforge.db.batch_writer import write_in_batches


class TestWriteInBatches:
    async def test_writes_cards_and_terms(self, fake_gateway, make_record) -> None:
        """Every record and all its search terms are written."""
        records = [make_record(f"Card {i}") for i in range(5)]

        summary = await write_in_batches(fake_gateway, records, batch_size=2)

        assert summary.inserted == 5
        assert summary.errors == []
        assert fake_gateway.batch_calls == 3
        assert summary.search_terms == sum(len(record.search_terms) for record in records)
        assert set(summary.inserted_ids) == {record.identity_id for record in records}

    async def test_failed_batch_does_not_stop_later_batches(
        self, fake_gateway, make_record
    ) -> None:
        """A failed batch is recorded and the next batch still runs."""
        fake_gateway.fail_batches = {2}
        records = [make_record(f"Card {i}") for i in range(6)]

        summary = await write_in_batches(fake_gateway, records, batch_size=2)

        assert summary.inserted == 4
        assert summary.errors == ["Batch 2: database is locked"]
        assert fake_gateway.batch_calls == 3

    async def test_search_term_failure_recorded(self, fake_gateway, make_record) -> None:
        """Search term failures name their batch; the cards still count."""
        fake_gateway.fail_terms = {1}
        records = [make_record("Opt"), make_record("Shock")]

        summary = await write_in_batches(fake_gateway, records, batch_size=1)

        assert summary.inserted == 2
        assert summary.errors == ["Search terms batch 1: duplicate search term"]

    async def test_errors_in_batch_order(self, fake_gateway, make_record) -> None:
        fake_gateway.fail_batches = {3, 1}
        records = [make_record(f"Card {i}") for i in range(3)]

        summary = await write_in_batches(fake_gateway, records, batch_size=1)

        assert [error.split(":")[0] for error in summary.errors] == ["Batch 1", "Batch 3"]

    async def test_progress_after_each_saved_batch(self, fake_gateway, make_record) -> None:
        """Progress reports (saved, total) only for batches that saved."""
        fake_gateway.fail_batches = {2}
        records = [make_record(f"Card {i}") for i in range(5)]
        calls: list[tuple[int, int]] = []

        await write_in_batches(
            fake_gateway, records, batch_size=2, on_progress=lambda *args: calls.append(args)
        )

        assert calls == [(2, 5), (3, 5)]

    async def test_empty(self, fake_gateway) -> None:
        summary = await write_in_batches(fake_gateway, [], batch_size=100)

        assert summary.inserted == 0
        assert fake_gateway.batch_calls == 0

    async def test_rejects_zero_batch_size(self, fake_gateway, make_record) -> None:
        with pytest.raises(ValueError):
            await write_in_batches(fake_gateway, [make_record()], batch_size=0)

    async def test_against_database(self, gateway, make_record) -> None:
        """A duplicate identity fails only its own batch in a real database."""
        records = [make_record("Opt"), make_record("Shock"), make_record("Opt")]

        summary = await write_in_batches(gateway, records, batch_size=1)

        assert summary.inserted == 2
        assert len(summary.errors) == 1
        assert summary.errors[0].startswith("Batch 3:")
        assert await gateway.count("cards") == 2
        assert await gateway.count("card_search_terms") == 2
