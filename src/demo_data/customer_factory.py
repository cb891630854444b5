"""
CustomerFactory: Create customer identities.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from .context import GenerationContext
from .errors import IdentityCreationError
from .models import first_token
from .seed_loader import CustomerSeed
from .stores import DEMO_META_KEY

logger = logging.getLogger(__name__)

STAGE = "customers"

CUSTOMER_ROLE = "pb_customer"
COMPANY_META = "pb_company"


class CustomerFactory:

    def __init__(self, context: GenerationContext):
        self.context = context
        self.identities = context.stores.identities

    def create_customers(self, seeds: Sequence[CustomerSeed]) -> List[int]:
        user_ids: List[int] = []
        for index, seed in enumerate(seeds):
            user_id = self.create_customer(index, seed)
            if user_id is not None:
                user_ids.append(user_id)
        logger.info(f"Created {len(user_ids)}/{len(seeds)} customers")
        return user_ids

    def create_customer(self, index: int, seed: CustomerSeed) -> Optional[int]:
        try:
            user_id = self.identities.create_user(
                f"demo_customer_{index + 1}",
                uuid.uuid4().hex,
                seed.email,
            )
        except IdentityCreationError as e:
            self.context.skip(STAGE, seed.email, str(e))
            return None

        self.identities.update_user(
            user_id,
            display_name=seed.name,
            first_name=first_token(seed.name),
            role=CUSTOMER_ROLE,
        )
        self.identities.set_user_meta(user_id, DEMO_META_KEY, 1)
        if seed.company:
            self.identities.set_user_meta(user_id, COMPANY_META, seed.company)
        return user_id
