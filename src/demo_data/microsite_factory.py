"""
MicrositeFactory: One public booking page per performer.
"""

import logging
from typing import Any, Dict, Optional, Sequence

from .context import GenerationContext
from .models import MicrositeRecord
from .slugs import slugify, unique_slug
from .stores import DEMO_ROW_FLAG, MICROSITES_TABLE, PERFORMERS_TABLE

logger = logging.getLogger(__name__)

STAGE = "microsites"

STAGE_NAME_META = "_pb_stage_name"

TEMPLATES = ["classic", "modern", "bold", "minimal"]
ACCENT_COLORS = ["#3b82f6", "#ef4444", "#10b981", "#8b5cf6", "#f59e0b", "#ec4899"]

BASE_DESIGN = {
    "secondary_color": "#1e40af",
    "background_color": "#ffffff",
    "text_color": "#1e293b",
    "font_family": "Inter",
    "show_reviews": True,
    "show_calendar": True,
    "show_booking_button": True,
}


class MicrositeFactory:
    """Creates microsites with unique slugs and randomized design settings."""

    def __init__(self, context: GenerationContext):
        self.context = context
        self.stores = context.stores
        self.rng = context.rng

    def create_microsites(self, performer_user_ids: Sequence[int]) -> int:
        count = 0
        for user_id in performer_user_ids:
            if self.create_microsite(user_id) is not None:
                count += 1
        logger.info(f"Created {count} microsites")
        return count

    def create_microsite(self, user_id: int) -> Optional[MicrositeRecord]:
        db = self.stores.db
        performer = db.get_row(PERFORMERS_TABLE, user_id=user_id)
        if not performer:
            self.context.skip(STAGE, f"user {user_id}", "performer record not found")
            return None

        if db.get_row(MICROSITES_TABLE, performer_id=performer["id"]):
            logger.debug(f"Performer {performer['id']} already has a microsite")
            return None

        name = self.display_name(performer)
        base_slug = slugify(name) or f"performer-{performer['id']}"
        slug = unique_slug(
            base_slug,
            lambda candidate: db.get_var(MICROSITES_TABLE, "id", slug=candidate) is not None,
        )

        record = MicrositeRecord(
            performer_id=performer["id"],
            user_id=user_id,
            slug=slug,
            design_settings=self._design_settings(),
            meta_title=f"{name} - Book Now",
            meta_description=(
                f"Book {name} for your next event. View availability, "
                "read reviews, and book directly."
            ),
            view_count=self.rng.randint(50, 500),
            created_at=self.context.now,
        )
        row = record.to_row()
        row[DEMO_ROW_FLAG] = 1
        db.insert(MICROSITES_TABLE, row)
        return record

    def display_name(self, performer: Dict[str, Any]) -> str:
        """Stage name, then profile title, then account name, then a placeholder."""
        content = self.stores.content
        profile_id = performer.get("profile_id")
        if profile_id:
            stage_name = content.get_meta(profile_id, STAGE_NAME_META)
            if stage_name:
                return stage_name
            item = content.get_item(profile_id)
            if item and item.title:
                return item.title

        user = self.stores.identities.get_user(performer["user_id"])
        if user and user.display_name:
            return user.display_name
        return f"performer-{performer['id']}"

    def _design_settings(self) -> Dict[str, Any]:
        settings = {
            "template": self.rng.choice(TEMPLATES),
            "primary_color": self.rng.choice(ACCENT_COLORS),
        }
        settings.update(BASE_DESIGN)
        return settings
