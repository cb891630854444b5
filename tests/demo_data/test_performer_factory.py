"""
Tests for performer, customer and microsite creation.
"""

import random
from datetime import date, datetime

import pytest

from src.demo_data.context import GenerationContext
from src.demo_data.customer_factory import CustomerFactory
from src.demo_data.errors import ContentCreationError
from src.demo_data.memory_store import InMemoryContentStore, create_memory_stores
from src.demo_data.microsite_factory import MicrositeFactory
from src.demo_data.models import AvailabilityStatus
from src.demo_data.performer_factory import (
    PerformerFactory,
    availability_for_date,
    calculate_achievement_score,
    service_area_for_city,
)
from src.demo_data.seed_loader import CategorySeed, CustomerSeed, PerformerSeed
from src.demo_data.stores import (
    AVAILABILITY_TABLE,
    DEMO_META_KEY,
    MICROSITES_TABLE,
    PERFORMER_CATEGORY_TAXONOMY,
    PERFORMERS_TABLE,
    SERVICE_AREA_TAXONOMY,
)
from src.demo_data.taxonomy_seeder import TaxonomySeeder

NOW = datetime(2024, 6, 15, 9, 30, 0)


class _ScriptedRng:
    def __init__(self, ints):
        self.ints = list(ints)

    def randint(self, a, b):
        return self.ints.pop(0)

    def random(self):
        return 0.5

    def choice(self, seq):
        return seq[0]

    def shuffle(self, x):
        pass


class _FailingContentStore(InMemoryContentStore):
    def create_item(self, item_type, title, body, status, author, created_at=None):
        raise ContentCreationError("database is read-only")


def _make_context(seed=5, collect_failures=False, stores=None) -> GenerationContext:
    return GenerationContext(
        stores=stores or create_memory_stores(),
        rng=random.Random(seed),
        now=NOW,
        collect_failures=collect_failures,
    )


def _performer_seed(name="Marcus Johnson", email="marcus@example.com", **overrides):
    fields = dict(
        name=name,
        email=email,
        category="Magicians",
        tagline="Wonder on demand",
        bio="Close-up magic for corporate events.",
        hourly_rate=175,
        tier="pro",
        city="New York",
        state="NY",
        experience=12,
        verified=True,
        featured=True,
        achievement_level="gold",
        completed_bookings=150,
        avg_rating=4.5,
        total_reviews=80,
    )
    fields.update(overrides)
    return PerformerSeed(**fields)


class TestPureRules:

    def test_achievement_score(self):
        assert calculate_achievement_score(150, 4.5, 90) == 1500 + 90 + 45
        assert calculate_achievement_score(0, 0.0, 85) == 42

    def test_service_area_mapping(self):
        assert service_area_for_city("New York") == "New York Metro"
        assert service_area_for_city("San Francisco") == "San Francisco Bay Area"
        assert service_area_for_city("Denver") == "Denver"

    def test_past_days_block_forty_percent(self):
        day = date(2024, 6, 10)
        assert availability_for_date(-5, day, _ScriptedRng([41])) == AvailabilityStatus.AVAILABLE
        assert availability_for_date(-5, day, _ScriptedRng([40])) == AvailabilityStatus.BLOCKED

    def test_weekend_threshold(self):
        saturday = date(2024, 6, 15)
        assert availability_for_date(0, saturday, _ScriptedRng([70])) == AvailabilityStatus.AVAILABLE
        assert availability_for_date(0, saturday, _ScriptedRng([71])) == AvailabilityStatus.BLOCKED

    def test_weekday_threshold(self):
        monday = date(2024, 6, 17)
        assert availability_for_date(2, monday, _ScriptedRng([85])) == AvailabilityStatus.AVAILABLE
        assert availability_for_date(2, monday, _ScriptedRng([86])) == AvailabilityStatus.BLOCKED


class TestPerformerFactory:

    def test_creates_identity_profile_and_row(self):
        context = _make_context()
        stores = context.stores
        TaxonomySeeder(stores.taxonomy).seed(
            [CategorySeed(name="Magicians")], ["New York Metro"],
        )
        factory = PerformerFactory(context)

        user_ids = factory.create_performers([_performer_seed()])

        assert user_ids == [1]
        user = stores.identities.get_user(1)
        assert user.login == "demo_performer_1"
        assert user.display_name == "Marcus Johnson"
        assert user.first_name == "Marcus"
        assert user.role == "pb_performer"
        assert stores.identities.get_user_meta(1, DEMO_META_KEY) == 1

        row = stores.db.get_row(PERFORMERS_TABLE, user_id=1)
        assert row["tier"] == "pro"
        assert row["hourly_rate"] == 175.0
        assert 25 <= row["deposit_percentage"] <= 50
        assert 85 <= row["profile_completeness"] <= 100
        assert row["achievement_score"] == calculate_achievement_score(
            150, 4.5, row["profile_completeness"]
        )
        assert row["is_verified"] == 1
        assert row["is_demo"] == 1

        profile_id = row["profile_id"]
        assert stores.content.get_meta(profile_id, DEMO_META_KEY) == 1
        assert stores.content.get_meta(profile_id, "pb_performer_id") == row["id"]
        assert stores.content.get_meta(profile_id, "pb_location_city") == "New York"
        categories = stores.taxonomy.get_item_terms(profile_id, PERFORMER_CATEGORY_TAXONOMY)
        areas = stores.taxonomy.get_item_terms(profile_id, SERVICE_AREA_TAXONOMY)
        assert [t.name for t in categories] == ["Magicians"]
        assert [t.name for t in areas] == ["New York Metro"]

    def test_availability_spans_history_and_horizon(self):
        context = _make_context()
        factory = PerformerFactory(context)
        factory.create_performers([_performer_seed()])

        slots = context.stores.db.get_results(AVAILABILITY_TABLE)
        dates = [slot["date"] for slot in slots]
        assert len(slots) == 121
        assert factory.availability_count == 121
        assert len(set(dates)) == 121
        assert min(dates) == "2024-05-16"
        assert max(dates) == "2024-09-13"
        assert {slot["status"] for slot in slots} <= {"available", "blocked"}

    def test_custom_window(self):
        context = _make_context()
        factory = PerformerFactory(context, history_days=2, horizon_days=3)
        assert len(factory.generate_availability(1)) == 6

    def test_duplicate_email_skips_seed(self):
        context = _make_context(collect_failures=True)
        factory = PerformerFactory(context)

        user_ids = factory.create_performers([
            _performer_seed(),
            _performer_seed(name="Marcus Again"),
        ])

        assert user_ids == [1]
        assert len(context.failures) == 1
        assert context.failures[0].stage == "performers"
        assert len(context.stores.db.get_results(PERFORMERS_TABLE)) == 1

    def test_profile_failure_rolls_back_identity(self):
        stores = create_memory_stores()
        stores.content = _FailingContentStore()
        context = _make_context(stores=stores, collect_failures=True)

        user_ids = PerformerFactory(context).create_performers([_performer_seed()])

        assert user_ids == []
        assert stores.identities.find_users(**{DEMO_META_KEY: 1}) == []
        assert stores.db.get_results(PERFORMERS_TABLE) == []
        assert "rolled back" in context.failures[0].reason


class TestCustomerFactory:

    def test_creates_customers_with_company(self):
        context = _make_context()
        user_ids = CustomerFactory(context).create_customers([
            CustomerSeed(name="Dana Lee", email="dana@example.com", company="Acme Events"),
            CustomerSeed(name="Priya Shah", email="priya@example.com"),
        ])

        identities = context.stores.identities
        assert user_ids == [1, 2]
        assert identities.get_user(1).login == "demo_customer_1"
        assert identities.get_user(1).role == "pb_customer"
        assert identities.get_user_meta(1, "pb_company") == "Acme Events"
        assert identities.get_user_meta(2, "pb_company") is None
        assert identities.find_users(**{DEMO_META_KEY: 1}) == [1, 2]


class TestMicrositeFactory:

    def test_slug_collision_gets_suffix(self):
        context = _make_context()
        performer_ids = PerformerFactory(context).create_performers([
            _performer_seed(name="Sam Rivers", email="sam1@example.com"),
            _performer_seed(name="Sam Rivers", email="sam2@example.com"),
        ])

        created = MicrositeFactory(context).create_microsites(performer_ids)

        slugs = [row["slug"] for row in context.stores.db.get_results(MICROSITES_TABLE)]
        assert created == 2
        assert slugs == ["sam-rivers", "sam-rivers-1"]

    def test_stage_name_wins(self):
        context = _make_context()
        performer_ids = PerformerFactory(context).create_performers([_performer_seed()])
        profile_id = context.stores.db.get_row(PERFORMERS_TABLE, user_id=performer_ids[0])["profile_id"]
        context.stores.content.set_meta(profile_id, "_pb_stage_name", "The Great Marco")

        record = MicrositeFactory(context).create_microsite(performer_ids[0])

        assert record.slug == "the-great-marco"
        assert record.meta_title == "The Great Marco - Book Now"
        assert 50 <= record.view_count <= 500
        assert record.design_settings["font_family"] == "Inter"

    def test_missing_performer_is_skipped(self):
        context = _make_context(collect_failures=True)
        assert MicrositeFactory(context).create_microsites([42]) == 0
        assert context.failures[0].stage == "microsites"

    def test_one_microsite_per_performer(self):
        context = _make_context()
        performer_ids = PerformerFactory(context).create_performers([_performer_seed()])
        factory = MicrositeFactory(context)

        assert factory.create_microsites(performer_ids) == 1
        assert factory.create_microsites(performer_ids) == 0
        assert len(context.stores.db.get_results(MICROSITES_TABLE)) == 1


@pytest.mark.parametrize("name,expected", [
    ('Marcus "The Magnificent" Johnson', "marcus-the-magnificent-johnson"),
    ("???", "performer-1"),
])
def test_microsite_slug_fallback(name, expected):
    context = _make_context()
    performer_ids = PerformerFactory(context).create_performers([_performer_seed(name=name)])
    record = MicrositeFactory(context).create_microsite(performer_ids[0])
    assert record.slug == expected
