"""
Store interfaces the generators write through.

The host platform (users, posts, taxonomies, custom tables, options) is
reached only through these interfaces, so generation can run against the
in-memory implementations in ``memory_store`` or any real backend.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .models import Term


# Tag written onto every identity, content item and row the generator creates
DEMO_META_KEY = "pb_demo_data"
DEMO_ROW_FLAG = "is_demo"

PERFORMER_CATEGORY_TAXONOMY = "pb_performer_category"
SERVICE_AREA_TAXONOMY = "pb_service_area"

PERFORMERS_TABLE = "pb_performers"
AVAILABILITY_TABLE = "pb_availability"
MICROSITES_TABLE = "pb_microsites"
BOOKINGS_TABLE = "pb_bookings"
TRANSACTIONS_TABLE = "pb_transactions"
REVIEWS_TABLE = "pb_reviews"
EVENTS_TABLE = "pb_events"
BIDS_TABLE = "pb_bids"

DEMO_TABLES = [
    PERFORMERS_TABLE,
    AVAILABILITY_TABLE,
    MICROSITES_TABLE,
    BOOKINGS_TABLE,
    TRANSACTIONS_TABLE,
    REVIEWS_TABLE,
    EVENTS_TABLE,
    BIDS_TABLE,
]


@dataclass
class UserRecord:
    user_id: int
    login: str
    email: str
    display_name: str = ""
    first_name: str = ""
    role: str = ""


@dataclass
class ContentItem:
    item_id: int
    item_type: str
    title: str
    body: str
    status: str
    author: int
    created_at: Optional[datetime] = None


class IdentityStore(ABC):
    """User accounts."""

    @abstractmethod
    def create_user(self, login: str, password: str, email: str) -> int:
        """Create a user, raising IdentityCreationError on duplicates."""

    @abstractmethod
    def update_user(self, user_id: int, **fields: Any) -> None:
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def delete_user(self, user_id: int) -> bool:
        pass

    @abstractmethod
    def set_user_meta(self, user_id: int, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def get_user_meta(self, user_id: int, key: str) -> Any:
        pass

    @abstractmethod
    def find_users(self, **meta: Any) -> List[int]:
        """User ids whose meta matches every given key/value."""


class ContentStore(ABC):
    """Typed content items (profiles, market events) with key/value meta."""

    @abstractmethod
    def create_item(
        self,
        item_type: str,
        title: str,
        body: str,
        status: str,
        author: int,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create an item, raising ContentCreationError on failure."""

    @abstractmethod
    def update_item(self, item_id: int, **partial: Any) -> None:
        pass

    @abstractmethod
    def get_item(self, item_id: int) -> Optional[ContentItem]:
        pass

    @abstractmethod
    def delete_item(self, item_id: int) -> bool:
        pass

    @abstractmethod
    def get_meta(self, item_id: int, key: str) -> Any:
        pass

    @abstractmethod
    def set_meta(self, item_id: int, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def find_items(self, **meta: Any) -> List[int]:
        pass


class TaxonomyStore(ABC):
    """Named terms grouped by taxonomy, attachable to content items."""

    @abstractmethod
    def term_exists(self, name: str, taxonomy: str) -> bool:
        pass

    @abstractmethod
    def create_term(
        self,
        name: str,
        taxonomy: str,
        description: str = "",
        slug: Optional[str] = None,
    ) -> Term:
        pass

    @abstractmethod
    def find_term_by_name(self, name: str, taxonomy: str) -> Optional[Term]:
        pass

    @abstractmethod
    def assign_terms(self, item_id: int, term_ids: Iterable[int], taxonomy: str) -> None:
        pass

    @abstractmethod
    def get_item_terms(self, item_id: int, taxonomy: str) -> List[Term]:
        pass


class RelationalStore(ABC):
    """Custom tables addressed by name; rows are plain dicts with an ``id``."""

    @abstractmethod
    def insert(self, table: str, row: Dict[str, Any]) -> int:
        pass

    @abstractmethod
    def update(self, table: str, row_id: int, values: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def get_var(self, table: str, column: str, **where: Any) -> Any:
        """Value of ``column`` in the first matching row, else None."""

    @abstractmethod
    def get_row(self, table: str, **where: Any) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_results(self, table: str, **where: Any) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def delete(self, table: str, **where: Any) -> int:
        """Delete matching rows and return how many went."""

    @abstractmethod
    def tables(self) -> List[str]:
        pass


class OptionsStore(ABC):
    """Site-wide key/value options."""

    @abstractmethod
    def get_option(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def update_option(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete_option(self, key: str) -> None:
        pass


@dataclass
class DemoStores:
    """Every store a generation run touches."""
    identities: IdentityStore
    content: ContentStore
    taxonomy: TaxonomyStore
    db: RelationalStore
    options: OptionsStore
