"""
Demo mode: the admin on/off switch around generation and teardown.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from .config import DEMO_IDS_OPTION, DEMO_MODE_OPTION, GeneratorConfig
from .errors import DemoModeError
from .models import GenerationSummary
from .pipeline import DemoPipeline
from .seed_loader import SeedCatalog, load_catalog
from .stores import DemoStores
from .teardown import count_demo_rows, remove_demo_data
from .weighted import RandomSource

logger = logging.getLogger(__name__)


class DemoModeController:
    """
    Enables demo mode by generating a full demo marketplace, disables it by
    removing everything tagged as demo data.

    State lives in the options store, so a new controller over the same
    stores sees the same mode.
    """

    def __init__(
        self,
        stores: DemoStores,
        config: Optional[GeneratorConfig] = None,
        catalog: Optional[SeedCatalog] = None,
    ):
        self.stores = stores
        self.config = config or GeneratorConfig()
        self._catalog = catalog

    @property
    def is_enabled(self) -> bool:
        return bool(self.stores.options.get_option(DEMO_MODE_OPTION, False))

    @property
    def catalog(self) -> SeedCatalog:
        if self._catalog is None:
            self._catalog = load_catalog(self.config.seed_data_path)
        return self._catalog

    def enable(
        self,
        rng: Optional[RandomSource] = None,
        now: Optional[datetime] = None,
    ) -> GenerationSummary:
        """Generate demo data and switch demo mode on."""
        if self.is_enabled:
            raise DemoModeError("Demo mode is already enabled")

        logger.info("Enabling demo mode")
        pipeline = DemoPipeline(
            stores=self.stores,
            catalog=self.catalog,
            config=self.config,
            rng=rng,
            now=now,
        )
        summary = pipeline.generate()

        self.stores.options.update_option(DEMO_MODE_OPTION, True)
        self.stores.options.update_option(DEMO_IDS_OPTION, {
            "performers": list(summary.performer_user_ids),
            "customers": list(summary.customer_user_ids),
        })
        return summary

    def disable(self) -> bool:
        """Remove all demo data. Returns False if demo mode was not on."""
        if not self.is_enabled:
            logger.info("Demo mode is not enabled; nothing to remove")
            return False

        logger.info("Disabling demo mode")
        remove_demo_data(self.stores)
        self.stores.options.delete_option(DEMO_MODE_OPTION)
        self.stores.options.delete_option(DEMO_IDS_OPTION)
        return True

    def summary(self) -> Dict[str, int]:
        if not self.is_enabled:
            return {}
        counts = count_demo_rows(self.stores)
        ids = self.stores.options.get_option(DEMO_IDS_OPTION, {}) or {}
        counts["performers_created"] = len(ids.get("performers", []))
        counts["customers_created"] = len(ids.get("customers", []))
        return counts
