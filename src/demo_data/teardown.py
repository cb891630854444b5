"""
Remove everything a demo generation run created.

Works from the demo tag alone, so it also cleans up after a run that died
halfway through. Taxonomy terms are shared vocabulary and are left alone.
"""

import logging
from typing import Dict

from .stores import DEMO_META_KEY, DEMO_ROW_FLAG, DEMO_TABLES, DemoStores

logger = logging.getLogger(__name__)


def remove_demo_data(stores: DemoStores) -> Dict[str, int]:
    """Delete demo-tagged rows, content items and identities; return counts."""
    removed: Dict[str, int] = {}

    for table in DEMO_TABLES:
        removed[table] = stores.db.delete(table, **{DEMO_ROW_FLAG: 1})

    items = stores.content.find_items(**{DEMO_META_KEY: 1})
    removed["content_items"] = sum(1 for item_id in items if stores.content.delete_item(item_id))

    users = stores.identities.find_users(**{DEMO_META_KEY: 1})
    removed["users"] = sum(1 for user_id in users if stores.identities.delete_user(user_id))

    logger.info(f"Removed demo data: {removed}")
    return removed


def count_demo_rows(stores: DemoStores) -> Dict[str, int]:
    """Demo-tagged rows per table."""
    return {
        table: len(stores.db.get_results(table, **{DEMO_ROW_FLAG: 1}))
        for table in DEMO_TABLES
    }
