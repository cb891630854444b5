"""
PerformerFactory: Create performer identities, profiles and calendars.
"""

import logging
import uuid
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from .context import GenerationContext
from .errors import ContentCreationError, IdentityCreationError
from .models import AvailabilitySlot, AvailabilityStatus, PerformerRecord, first_token
from .seed_loader import PerformerSeed
from .stores import (
    AVAILABILITY_TABLE,
    DEMO_META_KEY,
    DEMO_ROW_FLAG,
    PERFORMER_CATEGORY_TAXONOMY,
    PERFORMERS_TABLE,
    SERVICE_AREA_TAXONOMY,
)
from .weighted import RandomSource

logger = logging.getLogger(__name__)

STAGE = "performers"

PERFORMER_ROLE = "pb_performer"
PROFILE_ITEM_TYPE = "pb_performer"

# Seed city -> service-area term name; unknown cities map to themselves
CITY_TO_AREA: Dict[str, str] = {
    "Las Vegas": "Las Vegas",
    "New York": "New York Metro",
    "Miami": "Miami",
    "Chicago": "Chicago",
    "Austin": "Austin",
    "Atlanta": "Atlanta",
    "Portland": "Portland",
    "Los Angeles": "Los Angeles",
    "San Francisco": "San Francisco Bay Area",
    "Nashville": "Nashville",
    "Boston": "Boston",
    "Phoenix": "Phoenix",
}

# Percent chance a date is available
PAST_AVAILABLE_PERCENT = 60
WEEKEND_AVAILABLE_PERCENT = 70
WEEKDAY_AVAILABLE_PERCENT = 85


def calculate_achievement_score(bookings: int, rating: float, profile_completeness: int) -> int:
    """bookings×10 + rating×20 + completeness×0.5, truncated to int."""
    return int((bookings * 10) + (rating * 20) + (profile_completeness * 0.5))


def service_area_for_city(city: str) -> str:
    return CITY_TO_AREA.get(city, city)


def availability_for_date(offset: int, day: date, rng: RandomSource) -> AvailabilityStatus:
    """
    Draw availability for one calendar day.

    Past days are blocked 40% of the time (they were booked); today and
    later are available 85% on weekdays, 70% on weekends.
    """
    draw = rng.randint(1, 100)
    if offset < 0:
        available = draw > (100 - PAST_AVAILABLE_PERCENT)
    else:
        is_weekend = day.weekday() >= 5
        threshold = WEEKEND_AVAILABLE_PERCENT if is_weekend else WEEKDAY_AVAILABLE_PERCENT
        available = draw <= threshold
    return AvailabilityStatus.AVAILABLE if available else AvailabilityStatus.BLOCKED


class PerformerFactory:
    """
    Factory for performer accounts.

    A failed identity skips the seed; a failed profile item also deletes the
    identity so no orphan account is left behind.
    """

    def __init__(
        self,
        context: GenerationContext,
        history_days: int = 30,
        horizon_days: int = 90,
    ):
        self.context = context
        self.stores = context.stores
        self.rng = context.rng
        self.history_days = history_days
        self.horizon_days = horizon_days

        self.availability_count = 0
        self.records: Dict[int, PerformerRecord] = {}

    def create_performers(self, seeds: Sequence[PerformerSeed]) -> List[int]:
        """Create every seed; return the identity ids that made it."""
        user_ids: List[int] = []
        for index, seed in enumerate(seeds):
            user_id = self.create_performer(index, seed)
            if user_id is not None:
                user_ids.append(user_id)

        logger.info(
            f"Created {len(user_ids)}/{len(seeds)} performers, "
            f"{self.availability_count} availability slots"
        )
        return user_ids

    def create_performer(self, index: int, seed: PerformerSeed) -> Optional[int]:
        identities = self.stores.identities
        content = self.stores.content
        unit = seed.email

        try:
            user_id = identities.create_user(
                f"demo_performer_{index + 1}",
                uuid.uuid4().hex,
                seed.email,
            )
        except IdentityCreationError as e:
            self.context.skip(STAGE, unit, str(e))
            return None

        identities.update_user(
            user_id,
            display_name=seed.name,
            first_name=first_token(seed.name),
            role=PERFORMER_ROLE,
        )
        identities.set_user_meta(user_id, DEMO_META_KEY, 1)

        try:
            profile_id = content.create_item(
                PROFILE_ITEM_TYPE,
                title=seed.name,
                body=seed.bio,
                status="publish",
                author=user_id,
            )
        except ContentCreationError as e:
            identities.delete_user(user_id)
            self.context.skip(STAGE, unit, f"profile not created, identity rolled back: {e}")
            return None

        content.set_meta(profile_id, DEMO_META_KEY, 1)
        self._assign_terms(profile_id, seed)

        profile_completeness = self.rng.randint(85, 100)
        record = PerformerRecord(
            user_id=user_id,
            profile_id=profile_id,
            tier=seed.tier,
            hourly_rate=float(seed.hourly_rate),
            deposit_percentage=self.rng.randint(25, 50),
            is_verified=seed.verified,
            is_featured=seed.featured,
            completed_bookings=seed.completed_bookings,
            total_reviews=seed.total_reviews,
            average_rating=seed.avg_rating,
            profile_completeness=profile_completeness,
            achievement_level=seed.achievement_level,
            achievement_score=calculate_achievement_score(
                seed.completed_bookings,
                seed.avg_rating,
                profile_completeness,
            ),
            created_at=self.context.now - timedelta(days=self.rng.randint(60, 730)),
        )
        row = record.to_row()
        row[DEMO_ROW_FLAG] = 1
        record.performer_id = self.stores.db.insert(PERFORMERS_TABLE, row)
        self.records[user_id] = record

        profile_meta = {
            "pb_user_id": user_id,
            "pb_performer_id": record.performer_id,
            "pb_tagline": seed.tagline,
            "pb_hourly_rate": seed.hourly_rate,
            "pb_location_city": seed.city,
            "pb_location_state": seed.state,
            "pb_experience_years": seed.experience,
            "pb_travel_willing": 1,
            "pb_travel_radius": self.rng.randint(50, 200),
        }
        for key, value in profile_meta.items():
            content.set_meta(profile_id, key, value)

        self.create_availability(record.performer_id)
        return user_id

    def _assign_terms(self, profile_id: int, seed: PerformerSeed) -> None:
        taxonomy = self.stores.taxonomy

        category = taxonomy.find_term_by_name(seed.category, PERFORMER_CATEGORY_TAXONOMY)
        if category:
            taxonomy.assign_terms(profile_id, [category.term_id], PERFORMER_CATEGORY_TAXONOMY)
        else:
            logger.debug(f"No category term '{seed.category}' for {seed.name}")

        area_name = service_area_for_city(seed.city)
        area = taxonomy.find_term_by_name(area_name, SERVICE_AREA_TAXONOMY)
        if area:
            taxonomy.assign_terms(profile_id, [area.term_id], SERVICE_AREA_TAXONOMY)
        else:
            logger.debug(f"No service area term '{area_name}' for {seed.name}")

    def generate_availability(self, performer_id: int) -> List[AvailabilitySlot]:
        """One slot per day from -history_days to +horizon_days inclusive."""
        today = self.context.today
        slots = []
        for offset in range(-self.history_days, self.horizon_days + 1):
            day = today + timedelta(days=offset)
            slots.append(AvailabilitySlot(
                performer_id=performer_id,
                date=day,
                status=availability_for_date(offset, day, self.rng),
                created_at=self.context.now,
            ))
        return slots

    def create_availability(self, performer_id: int) -> int:
        slots = self.generate_availability(performer_id)
        for slot in slots:
            row = slot.to_row()
            row[DEMO_ROW_FLAG] = 1
            self.stores.db.insert(AVAILABILITY_TABLE, row)
        self.availability_count += len(slots)
        return len(slots)
