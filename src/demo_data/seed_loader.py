"""
SeedLoader: Load the demo vocabulary (performers, customers, templates).

The YAML file is validated into pydantic models before any stage runs, so a
broken seed file fails loudly instead of producing half a marketplace.
"""

from pathlib import Path
from typing import Dict, List, Optional, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import SeedDataError
from .models import MarketTemplateStatus, PerformerTier


class CategorySeed(BaseModel):
    name: str
    description: str = ""


class PerformerSeed(BaseModel):
    """One performer to create."""
    name: str
    email: str
    category: str
    tagline: str = ""
    bio: str = ""
    hourly_rate: float = Field(gt=0)
    tier: PerformerTier
    city: str
    state: str = ""
    experience: int = 0
    verified: bool = False
    featured: bool = False
    achievement_level: str = "bronze"
    completed_bookings: int = Field(default=0, ge=0)
    avg_rating: float = Field(default=0.0, ge=0, le=5)
    total_reviews: int = Field(default=0, ge=0)


class CustomerSeed(BaseModel):
    name: str
    email: str
    company: str = ""


class ReviewTemplate(BaseModel):
    title: str
    content: str
    response: Optional[str] = None


class EventTemplate(BaseModel):
    """A market event a customer posts for bidding."""
    name: str
    description: str
    category: str
    duration: int = Field(ge=1)
    budget_min: int = Field(ge=0)
    budget_max: int = Field(ge=0)
    status: MarketTemplateStatus

    @model_validator(mode="after")
    def check_budget_range(self) -> "EventTemplate":
        if self.budget_min > self.budget_max:
            raise ValueError(
                f"budget_min ({self.budget_min}) exceeds budget_max ({self.budget_max})"
            )
        return self


class SeedCatalog(BaseModel):
    """Everything the pipeline needs besides randomness and stores."""
    categories: List[CategorySeed] = Field(default_factory=list)
    service_areas: List[str] = Field(default_factory=list)
    performers: List[PerformerSeed] = Field(default_factory=list)
    customers: List[CustomerSeed] = Field(default_factory=list)
    review_templates: Dict[int, List[ReviewTemplate]] = Field(default_factory=dict)
    event_templates: List[EventTemplate] = Field(default_factory=list)

    @field_validator("review_templates")
    @classmethod
    def check_review_ratings(
        cls, value: Dict[int, List[ReviewTemplate]]
    ) -> Dict[int, List[ReviewTemplate]]:
        for rating in value:
            if rating < 1 or rating > 5:
                raise ValueError(f"Review template rating out of range: {rating}")
        return value

    def templates_for_rating(self, rating: int) -> List[ReviewTemplate]:
        """Templates for ``rating``, falling back to the 5-star pool."""
        return self.review_templates.get(rating) or self.review_templates.get(5, [])


def parse_catalog(data: Dict[str, Any]) -> SeedCatalog:
    """Validate raw seed data into a catalog."""
    try:
        return SeedCatalog.model_validate(data)
    except ValidationError as e:
        raise SeedDataError(f"Invalid seed data: {e}") from e


def load_catalog(seed_data_path: Path) -> SeedCatalog:
    """Load and validate the seed YAML."""
    seed_data_path = Path(seed_data_path)
    if not seed_data_path.exists():
        raise SeedDataError(f"Seed data file not found: {seed_data_path}")

    with open(seed_data_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise SeedDataError(f"Seed data must be a mapping: {seed_data_path}")

    return parse_catalog(data)
