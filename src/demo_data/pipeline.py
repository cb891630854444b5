"""
Pipeline: Wire all stages together for demo marketplace generation.

Stages run once, in order: taxonomy, performers (with availability),
microsites, customers, bookings (with transactions and reviews), market.
Later stages consume the identity lists produced by earlier ones.
"""

import argparse
import json
import logging
import random
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from .booking_generator import BookingGenerator
from .config import GeneratorConfig
from .context import GenerationContext
from .customer_factory import CustomerFactory
from .ledger_audit import audit_ledger
from .market_generator import MarketGenerator
from .memory_store import create_memory_stores
from .microsite_factory import MicrositeFactory
from .models import GenerationSummary
from .performer_factory import PerformerFactory
from .seed_loader import SeedCatalog, load_catalog
from .stores import DEMO_TABLES, DemoStores, RelationalStore
from .taxonomy_seeder import TaxonomySeeder
from .weighted import RandomSource

logger = logging.getLogger(__name__)


class DemoPipeline:
    """Main pipeline for demo data generation."""

    def __init__(
        self,
        stores: DemoStores,
        catalog: SeedCatalog,
        config: Optional[GeneratorConfig] = None,
        rng: Optional[RandomSource] = None,
        now: Optional[datetime] = None,
    ):
        self.config = config or GeneratorConfig()
        self.stores = stores
        self.catalog = catalog
        self.context = GenerationContext(
            stores=stores,
            rng=rng if rng is not None else random.Random(self.config.random_seed),
            now=now or datetime.now().replace(microsecond=0),
            collect_failures=self.config.collect_failures,
        )

        self.taxonomy_seeder = TaxonomySeeder(stores.taxonomy)
        self.performer_factory = PerformerFactory(
            self.context,
            history_days=self.config.history_days,
            horizon_days=self.config.horizon_days,
        )
        self.microsite_factory = MicrositeFactory(self.context)
        self.customer_factory = CustomerFactory(self.context)
        self.booking_generator = BookingGenerator(self.context, catalog)
        self.market_generator = MarketGenerator(self.context)

    def generate(self) -> GenerationSummary:
        """Run every stage and return the counts."""
        summary = GenerationSummary()

        created_categories, created_areas = self.taxonomy_seeder.seed(
            self.catalog.categories,
            self.catalog.service_areas,
        )
        summary.terms = created_categories + created_areas

        performer_ids = self.performer_factory.create_performers(self.catalog.performers)
        summary.performers = len(performer_ids)
        summary.performer_user_ids = performer_ids
        summary.availability = self.performer_factory.availability_count

        summary.microsites = self.microsite_factory.create_microsites(performer_ids)

        customer_ids = self.customer_factory.create_customers(self.catalog.customers)
        summary.customers = len(customer_ids)
        summary.customer_user_ids = customer_ids

        booking_counts = self.booking_generator.generate(performer_ids, customer_ids)
        summary.bookings = booking_counts["bookings"]
        summary.reviews = booking_counts["reviews"]
        summary.transactions = booking_counts["transactions"]

        market_counts = self.market_generator.generate(
            self.catalog.event_templates,
            performer_ids,
            customer_ids,
        )
        summary.events = market_counts["events"]
        summary.bids = market_counts["bids"]

        summary.failures = list(self.context.failures)
        logger.info(f"Demo generation complete: {summary.to_dict()}")
        return summary


def table_frames(db: RelationalStore) -> Dict[str, pd.DataFrame]:
    """One DataFrame per demo table (empty tables are omitted)."""
    frames = {}
    for table in DEMO_TABLES:
        rows = db.get_results(table)
        if not rows:
            continue
        df = pd.DataFrame(rows)
        for column in df.columns:
            if df[column].map(lambda v: isinstance(v, dict)).any():
                df[column] = df[column].map(
                    lambda v: json.dumps(v) if isinstance(v, dict) else v
                )
        frames[table] = df
    return frames


def export_tables(db: RelationalStore, output_dir: Path) -> Dict[str, Path]:
    """Export tables to parquet files (with CSV fallback)."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    parquet_available = True
    try:
        import pyarrow  # noqa: F401
    except ImportError:
        try:
            import fastparquet  # noqa: F401
        except ImportError:
            parquet_available = False
            logger.info("pyarrow not available, using CSV export")

    ext = ".parquet" if parquet_available else ".csv"
    written: Dict[str, Path] = {}
    for table, df in table_frames(db).items():
        path = output_dir / f"{table}{ext}"
        if parquet_available:
            df.to_parquet(path, index=False)
        else:
            df.to_csv(path, index=False)
        written[table] = path
        logger.info(f"Wrote {len(df)} records to {path}")
    return written


def run_pipeline(
    config: Optional[GeneratorConfig] = None,
    stores: Optional[DemoStores] = None,
    export: bool = True,
) -> Dict[str, Any]:
    """Convenience function: generate into in-memory stores and export."""
    config = config or GeneratorConfig()
    stores = stores or create_memory_stores()
    catalog = load_catalog(config.seed_data_path)

    pipeline = DemoPipeline(stores=stores, catalog=catalog, config=config)
    summary = pipeline.generate()

    if export:
        export_tables(stores.db, config.output_dir)

    return summary.to_dict()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate demo marketplace data")
    parser.add_argument(
        "--seed-data",
        type=Path,
        default=None,
        help="Path to the seed data YAML (default: config/demo/seed_data.yaml)",
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help="Output directory for exported tables",
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--collect-failures",
        action="store_true",
        help="List every skipped unit in the summary",
    )
    parser.add_argument(
        "--audit",
        action="store_true",
        help="Check the generated ledger for consistency",
    )
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    args = _parse_args()

    config = GeneratorConfig.from_env()
    if args.seed_data is not None:
        config.seed_data_path = args.seed_data
    if args.output_dir is not None:
        config.output_dir = args.output_dir
    if args.seed is not None:
        config.random_seed = args.seed
    if args.collect_failures:
        config.collect_failures = True

    stores = create_memory_stores()
    stats = run_pipeline(config=config, stores=stores)

    print("\n=== Generation Complete ===")
    for key, value in stats.items():
        if key == "failures":
            continue
        print(f"  {key}: {value}")
    for failure in stats.get("failures", []):
        print(f"  skipped [{failure['stage']}] {failure['unit']}: {failure['reason']}")

    if args.audit:
        violations = audit_ledger(table_frames(stores.db))
        print(f"\nLedger audit: {len(violations)} violation(s)")
        for violation in violations:
            print(f"  {violation.rule}: {violation.detail}")


if __name__ == "__main__":
    main()
