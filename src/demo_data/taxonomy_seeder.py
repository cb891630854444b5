"""
TaxonomySeeder: Ensure the category and service-area vocabulary exists.

Seeding is idempotent: terms are matched by exact name and only missing
ones are created.
"""

import logging
from typing import Iterable, Tuple

from .seed_loader import CategorySeed
from .slugs import slugify
from .stores import (
    PERFORMER_CATEGORY_TAXONOMY,
    SERVICE_AREA_TAXONOMY,
    TaxonomyStore,
)

logger = logging.getLogger(__name__)


class TaxonomySeeder:
    """Creates missing taxonomy terms, best-effort."""

    def __init__(self, taxonomy: TaxonomyStore):
        self.taxonomy = taxonomy

    def seed(
        self,
        categories: Iterable[CategorySeed],
        service_areas: Iterable[str],
    ) -> Tuple[int, int]:
        """
        Seed both taxonomies.

        Returns:
            (categories created, service areas created)
        """
        created_categories = 0
        for category in categories:
            if self._ensure_term(
                category.name,
                PERFORMER_CATEGORY_TAXONOMY,
                description=category.description,
            ):
                created_categories += 1

        created_areas = 0
        for area in service_areas:
            if self._ensure_term(area, SERVICE_AREA_TAXONOMY):
                created_areas += 1

        logger.info(
            f"Taxonomy seeded: {created_categories} categories, "
            f"{created_areas} service areas created"
        )
        return created_categories, created_areas

    def _ensure_term(self, name: str, taxonomy: str, description: str = "") -> bool:
        if self.taxonomy.term_exists(name, taxonomy):
            logger.debug(f"Term exists, skipping: {taxonomy}/{name}")
            return False
        try:
            self.taxonomy.create_term(
                name,
                taxonomy,
                description=description,
                slug=slugify(name),
            )
        except Exception as e:
            logger.warning(f"Could not create term {taxonomy}/{name}: {e}")
            return False
        return True
