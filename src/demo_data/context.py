"""
Shared state handed to every generation stage.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List

from .models import UnitFailure
from .stores import DemoStores
from .weighted import RandomSource

logger = logging.getLogger(__name__)


@dataclass
class GenerationContext:
    """
    Stores, randomness and clock for one run.

    ``now`` is fixed at the start of the run so every stage agrees on what
    "today" is.
    """
    stores: DemoStores
    rng: RandomSource
    now: datetime
    collect_failures: bool = False
    failures: List[UnitFailure] = field(default_factory=list)

    @property
    def today(self) -> date:
        return self.now.date()

    def skip(self, stage: str, unit: str, reason: str) -> None:
        """Record a skipped unit. Skips are never fatal."""
        logger.warning(f"[{stage}] skipped {unit}: {reason}")
        if self.collect_failures:
            self.failures.append(UnitFailure(stage=stage, unit=unit, reason=reason))
