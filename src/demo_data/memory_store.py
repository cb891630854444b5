"""
In-memory store implementations.

Used by the CLI (generate, then export with pandas) and by the tests.
"""

import copy
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .errors import ContentCreationError, IdentityCreationError, RecordNotFoundError
from .models import Term
from .slugs import slugify
from .stores import (
    ContentItem,
    ContentStore,
    DemoStores,
    IdentityStore,
    OptionsStore,
    RelationalStore,
    TaxonomyStore,
    UserRecord,
)


def _matches(values: Dict[str, Any], where: Dict[str, Any]) -> bool:
    return all(values.get(key) == value for key, value in where.items())


class InMemoryIdentityStore(IdentityStore):

    def __init__(self):
        self.users: Dict[int, UserRecord] = {}
        self.meta: Dict[int, Dict[str, Any]] = defaultdict(dict)
        self._next_id = 1

    def create_user(self, login: str, password: str, email: str) -> int:
        if not login or not email:
            raise IdentityCreationError("login and email are required")
        for user in self.users.values():
            if user.login == login:
                raise IdentityCreationError(f"Login already exists: {login}")
            if user.email.lower() == email.lower():
                raise IdentityCreationError(f"Email already registered: {email}")

        user_id = self._next_id
        self._next_id += 1
        self.users[user_id] = UserRecord(user_id=user_id, login=login, email=email)
        return user_id

    def update_user(self, user_id: int, **fields: Any) -> None:
        user = self.users.get(user_id)
        if user is None:
            raise RecordNotFoundError(f"No user {user_id}")
        for key, value in fields.items():
            setattr(user, key, value)

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self.users.get(user_id)

    def delete_user(self, user_id: int) -> bool:
        self.meta.pop(user_id, None)
        return self.users.pop(user_id, None) is not None

    def set_user_meta(self, user_id: int, key: str, value: Any) -> None:
        if user_id not in self.users:
            raise RecordNotFoundError(f"No user {user_id}")
        self.meta[user_id][key] = value

    def get_user_meta(self, user_id: int, key: str) -> Any:
        return self.meta.get(user_id, {}).get(key)

    def find_users(self, **meta: Any) -> List[int]:
        return [
            user_id for user_id in self.users
            if _matches(self.meta.get(user_id, {}), meta)
        ]


class InMemoryContentStore(ContentStore):

    def __init__(self):
        self.items: Dict[int, ContentItem] = {}
        self.meta: Dict[int, Dict[str, Any]] = defaultdict(dict)
        self._next_id = 1

    def create_item(
        self,
        item_type: str,
        title: str,
        body: str,
        status: str,
        author: int,
        created_at: Optional[datetime] = None,
    ) -> int:
        if not item_type:
            raise ContentCreationError("item_type is required")
        if not title:
            raise ContentCreationError("Content title cannot be empty")

        item_id = self._next_id
        self._next_id += 1
        self.items[item_id] = ContentItem(
            item_id=item_id,
            item_type=item_type,
            title=title,
            body=body,
            status=status,
            author=author,
            created_at=created_at,
        )
        return item_id

    def update_item(self, item_id: int, **partial: Any) -> None:
        item = self.items.get(item_id)
        if item is None:
            raise RecordNotFoundError(f"No content item {item_id}")
        for key, value in partial.items():
            setattr(item, key, value)

    def get_item(self, item_id: int) -> Optional[ContentItem]:
        return self.items.get(item_id)

    def delete_item(self, item_id: int) -> bool:
        self.meta.pop(item_id, None)
        return self.items.pop(item_id, None) is not None

    def get_meta(self, item_id: int, key: str) -> Any:
        return self.meta.get(item_id, {}).get(key)

    def set_meta(self, item_id: int, key: str, value: Any) -> None:
        if item_id not in self.items:
            raise RecordNotFoundError(f"No content item {item_id}")
        self.meta[item_id][key] = value

    def find_items(self, **meta: Any) -> List[int]:
        return [
            item_id for item_id in self.items
            if _matches(self.meta.get(item_id, {}), meta)
        ]


class InMemoryTaxonomyStore(TaxonomyStore):

    def __init__(self):
        self.terms: Dict[int, Term] = {}
        self.assignments: Dict[tuple, List[int]] = {}
        self._next_id = 1

    def term_exists(self, name: str, taxonomy: str) -> bool:
        return self.find_term_by_name(name, taxonomy) is not None

    def create_term(
        self,
        name: str,
        taxonomy: str,
        description: str = "",
        slug: Optional[str] = None,
    ) -> Term:
        existing = self.find_term_by_name(name, taxonomy)
        if existing is not None:
            return existing

        term = Term(
            term_id=self._next_id,
            name=name,
            taxonomy=taxonomy,
            slug=slug or slugify(name),
            description=description,
        )
        self._next_id += 1
        self.terms[term.term_id] = term
        return term

    def find_term_by_name(self, name: str, taxonomy: str) -> Optional[Term]:
        for term in self.terms.values():
            if term.taxonomy == taxonomy and term.name == name:
                return term
        return None

    def assign_terms(self, item_id: int, term_ids: Iterable[int], taxonomy: str) -> None:
        self.assignments[(item_id, taxonomy)] = list(term_ids)

    def get_item_terms(self, item_id: int, taxonomy: str) -> List[Term]:
        return [
            self.terms[term_id]
            for term_id in self.assignments.get((item_id, taxonomy), [])
            if term_id in self.terms
        ]


class InMemoryRelationalStore(RelationalStore):

    def __init__(self):
        self.data: Dict[str, Dict[int, Dict[str, Any]]] = defaultdict(dict)
        self._next_ids: Dict[str, int] = defaultdict(lambda: 1)

    def insert(self, table: str, row: Dict[str, Any]) -> int:
        row_id = self._next_ids[table]
        self._next_ids[table] += 1
        stored = copy.deepcopy(row)
        stored["id"] = row_id
        self.data[table][row_id] = stored
        return row_id

    def update(self, table: str, row_id: int, values: Dict[str, Any]) -> None:
        row = self.data.get(table, {}).get(row_id)
        if row is None:
            raise RecordNotFoundError(f"No row {row_id} in {table}")
        row.update(values)

    def get_var(self, table: str, column: str, **where: Any) -> Any:
        row = self.get_row(table, **where)
        return row.get(column) if row else None

    def get_row(self, table: str, **where: Any) -> Optional[Dict[str, Any]]:
        for row in self.data.get(table, {}).values():
            if _matches(row, where):
                return dict(row)
        return None

    def get_results(self, table: str, **where: Any) -> List[Dict[str, Any]]:
        return [
            dict(row) for row in self.data.get(table, {}).values()
            if _matches(row, where)
        ]

    def delete(self, table: str, **where: Any) -> int:
        rows = self.data.get(table, {})
        doomed = [row_id for row_id, row in rows.items() if _matches(row, where)]
        for row_id in doomed:
            del rows[row_id]
        return len(doomed)

    def tables(self) -> List[str]:
        return [name for name, rows in self.data.items() if rows]


class InMemoryOptionsStore(OptionsStore):

    def __init__(self):
        self.options: Dict[str, Any] = {}

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    def update_option(self, key: str, value: Any) -> None:
        self.options[key] = value

    def delete_option(self, key: str) -> None:
        self.options.pop(key, None)


def create_memory_stores() -> DemoStores:
    """Fresh, empty in-memory stores."""
    return DemoStores(
        identities=InMemoryIdentityStore(),
        content=InMemoryContentStore(),
        taxonomy=InMemoryTaxonomyStore(),
        db=InMemoryRelationalStore(),
        options=InMemoryOptionsStore(),
    )
