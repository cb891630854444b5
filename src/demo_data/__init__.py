"""
Demo marketplace data generation.

Generates performers, customers, microsites, bookings with their escrow
ledger and reviews, and market events with bids, all tagged so they can be
removed again.
"""

from .booking_generator import BookingGenerator, compute_financials
from .config import GeneratorConfig
from .demo_mode import DemoModeController
from .errors import (
    ContentCreationError,
    DemoDataError,
    DemoModeError,
    IdentityCreationError,
    RecordNotFoundError,
    SeedDataError,
)
from .ledger_audit import AuditViolation, audit_ledger
from .memory_store import create_memory_stores
from .models import GenerationSummary, UnitFailure
from .pipeline import DemoPipeline, export_tables, run_pipeline, table_frames
from .seed_loader import SeedCatalog, load_catalog
from .stores import DemoStores
from .teardown import remove_demo_data
from .weighted import weighted_choice

__all__ = [
    "AuditViolation",
    "BookingGenerator",
    "ContentCreationError",
    "DemoDataError",
    "DemoModeController",
    "DemoModeError",
    "DemoPipeline",
    "DemoStores",
    "GenerationSummary",
    "GeneratorConfig",
    "IdentityCreationError",
    "RecordNotFoundError",
    "SeedCatalog",
    "SeedDataError",
    "UnitFailure",
    "audit_ledger",
    "compute_financials",
    "create_memory_stores",
    "export_tables",
    "load_catalog",
    "remove_demo_data",
    "run_pipeline",
    "table_frames",
    "weighted_choice",
]
