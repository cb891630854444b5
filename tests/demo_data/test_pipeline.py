"""
End-to-end tests: full generation, ledger audit, export and teardown.
"""

import random
from datetime import datetime

import pandas as pd
import pytest

from src.demo_data.config import GeneratorConfig
from src.demo_data.ledger_audit import audit_ledger
from src.demo_data.memory_store import create_memory_stores
from src.demo_data.pipeline import DemoPipeline, export_tables, table_frames
from src.demo_data.seed_loader import parse_catalog
from src.demo_data.stores import (
    AVAILABILITY_TABLE,
    BOOKINGS_TABLE,
    DEMO_META_KEY,
    DEMO_TABLES,
    MICROSITES_TABLE,
    TRANSACTIONS_TABLE,
)
from src.demo_data.teardown import count_demo_rows, remove_demo_data

NOW = datetime(2024, 6, 15, 12, 0, 0)


def _small_catalog(extra_performers=None):
    performers = [
        {"name": "Pro Star", "email": "pro@example.com", "category": "Magicians",
         "hourly_rate": 300, "tier": "pro", "city": "Chicago"},
        {"name": "Free Spirit", "email": "free1@example.com", "category": "Magicians",
         "hourly_rate": 95.5, "tier": "free", "city": "Chicago"},
        {"name": "Free Agent", "email": "free2@example.com", "category": "Magicians",
         "hourly_rate": 120, "tier": "free", "city": "Austin"},
    ]
    performers.extend(extra_performers or [])
    return parse_catalog({
        "categories": [{"name": "Magicians", "description": "Illusionists"}],
        "service_areas": ["Chicago"],
        "performers": performers,
        "customers": [
            {"name": "Dana Lee", "email": "dana@example.com"},
            {"name": "Acme Events", "email": "acme@example.com", "company": "Acme"},
        ],
        "review_templates": {
            5: [{"title": "Wow", "content": "{name} was wonderful.", "response": "Thanks!"}],
            4: [{"title": "Good", "content": "{name} was good."}],
        },
        "event_templates": [
            {"name": "Spring Gala", "description": "Need a magician.", "category": "Magicians",
             "duration": 2, "budget_min": 500, "budget_max": 900, "status": "open"},
            {"name": "Winter Party", "description": "Close-up magic.", "category": "Magicians",
             "duration": 3, "budget_min": 700, "budget_max": 1200, "status": "filled"},
        ],
    })


def _run(seed=17, collect_failures=False, catalog=None):
    stores = create_memory_stores()
    pipeline = DemoPipeline(
        stores=stores,
        catalog=catalog or _small_catalog(),
        config=GeneratorConfig(random_seed=seed, collect_failures=collect_failures),
        now=NOW,
    )
    return stores, pipeline.generate()


class TestDemoPipeline:

    def test_small_marketplace_counts(self):
        stores, summary = _run()

        assert summary.terms == 2
        assert summary.performers == 3
        assert summary.customers == 2
        assert summary.microsites == 3
        assert summary.availability == 3 * 121
        assert summary.bookings == 63
        assert summary.reviews == 36
        assert summary.events == 2
        assert summary.bids == 2
        assert summary.failures == []

        counts = count_demo_rows(stores)
        assert counts[BOOKINGS_TABLE] == 63
        assert counts[AVAILABILITY_TABLE] == 363
        assert counts[TRANSACTIONS_TABLE] == summary.transactions

    def test_summary_dict_shape(self):
        _, summary = _run()
        result = summary.to_dict()
        assert set(result) == {
            "performers", "customers", "microsites", "availability", "bookings",
            "reviews", "transactions", "events", "bids",
        }

    def test_generated_ledger_passes_audit(self):
        stores, _ = _run(seed=3)
        assert audit_ledger(table_frames(stores.db)) == []

    def test_audit_catches_broken_ledger(self):
        stores, _ = _run(seed=3)
        db = stores.db

        released = db.get_row(BOOKINGS_TABLE, escrow_status="released")
        db.delete(TRANSACTIONS_TABLE, booking_id=released["id"], transaction_type="payout")
        pending = db.get_row(BOOKINGS_TABLE, escrow_status="pending")
        db.update(BOOKINGS_TABLE, pending["id"], {"performer_payout": 0.0})

        rules = {v.rule for v in audit_ledger(table_frames(db))}
        assert "payout_count" in rules
        assert "commission_plus_payout" in rules

    def test_same_seed_same_marketplace(self):
        first, _ = _run(seed=8)
        second, _ = _run(seed=8)
        for table in DEMO_TABLES:
            assert first.db.get_results(table) == second.db.get_results(table)

        first_bookings = first.db.get_results(BOOKINGS_TABLE)
        assert len({row["booking_number"] for row in first_bookings}) == len(first_bookings)

    def test_skipped_units_are_collected(self):
        duplicate = {"name": "Copy Cat", "email": "pro@example.com", "category": "Magicians",
                     "hourly_rate": 100, "tier": "pro", "city": "Chicago"}
        _, summary = _run(collect_failures=True, catalog=_small_catalog([duplicate]))

        assert summary.performers == 3
        assert [f.stage for f in summary.failures] == ["performers"]
        assert summary.to_dict()["failures"][0]["unit"] == "pro@example.com"

    def test_every_row_is_tagged(self):
        stores, summary = _run()
        for table in DEMO_TABLES:
            assert all(row["is_demo"] == 1 for row in stores.db.get_results(table))
        for user_id in summary.performer_user_ids + summary.customer_user_ids:
            assert stores.identities.get_user_meta(user_id, DEMO_META_KEY) == 1

    def test_teardown_removes_everything_but_terms(self):
        stores, _ = _run()

        removed = remove_demo_data(stores)

        assert removed[BOOKINGS_TABLE] == 63
        assert removed["users"] == 5
        assert removed["content_items"] == 5
        assert all(count == 0 for count in count_demo_rows(stores).values())
        assert stores.identities.find_users() == []
        assert stores.content.find_items() == []
        assert len(stores.taxonomy.terms) == 2

    def test_rng_can_be_injected(self):
        stores = create_memory_stores()
        pipeline = DemoPipeline(
            stores=stores,
            catalog=_small_catalog(),
            rng=random.Random(1),
            now=NOW,
        )
        assert pipeline.generate().bookings == 63


class TestExport:

    def test_export_writes_one_file_per_table(self, tmp_path):
        stores, summary = _run()

        written = export_tables(stores.db, tmp_path / "out")

        assert set(written) == set(DEMO_TABLES)
        for table, path in written.items():
            assert path.exists()
            assert path.stem == table

        path = written[BOOKINGS_TABLE]
        df = pd.read_parquet(path) if path.suffix == ".parquet" else pd.read_csv(path)
        assert len(df) == 63
        assert {"total_amount", "deposit_amount", "escrow_status"} <= set(df.columns)

    def test_design_settings_exported_as_json(self):
        stores, _ = _run()
        frames = table_frames(stores.db)
        settings = frames[MICROSITES_TABLE]["design_settings"]
        assert all(isinstance(value, str) and value.startswith("{") for value in settings)

    def test_empty_tables_are_skipped(self, tmp_path):
        written = export_tables(create_memory_stores().db, tmp_path)
        assert written == {}


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_audit_holds_across_seeds(seed):
    stores, _ = _run(seed=seed)
    assert audit_ledger(table_frames(stores.db)) == []
