"""
MarketGenerator: Customer-posted market events and performer bids.

A market event lives in two places, a content item with meta (what listing
pages query) and a ``pb_events`` row. Both are written from one
MarketEventRecord by ``write_market_event`` and kept in step by
``update_bid_count``.
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from .context import GenerationContext
from .errors import ContentCreationError
from .models import (
    BidRecord,
    BidStatus,
    MarketEventRecord,
    MarketEventStatus,
    MarketTemplateStatus,
    PerformerTier,
    at_midnight,
    hour_string,
)
from .seed_loader import EventTemplate
from .stores import (
    BIDS_TABLE,
    DEMO_META_KEY,
    DEMO_ROW_FLAG,
    DemoStores,
    EVENTS_TABLE,
    PERFORMER_CATEGORY_TAXONOMY,
    PERFORMERS_TABLE,
)
from .weighted import RandomSource, cycle_choice

logger = logging.getLogger(__name__)

STAGE = "market"

MARKET_EVENT_ITEM_TYPE = "pb_market_event"

OPEN_EVENT_MAX_BIDS = 5
CLOSED_EVENT_MAX_BIDS = 8
MIN_BIDS = 2
BID_DEADLINE_DAYS = 5

EVENT_STATUS_FOR_TEMPLATE: Dict[MarketTemplateStatus, MarketEventStatus] = {
    MarketTemplateStatus.OPEN: MarketEventStatus.OPEN,
    MarketTemplateStatus.CLOSED: MarketEventStatus.CLOSED,
    MarketTemplateStatus.FILLED: MarketEventStatus.BOOKED,
}

# Bid i of an event gets cycle[i % len(cycle)]
BID_STATUS_CYCLES: Dict[MarketTemplateStatus, List[BidStatus]] = {
    MarketTemplateStatus.OPEN: [BidStatus.PENDING],
    MarketTemplateStatus.FILLED: [
        BidStatus.ACCEPTED,
        BidStatus.REJECTED,
        BidStatus.REJECTED,
        BidStatus.REJECTED,
    ],
    MarketTemplateStatus.CLOSED: [
        BidStatus.EXPIRED,
        BidStatus.EXPIRED,
        BidStatus.WITHDRAWN,
    ],
}

VENUE_CITIES = [
    ("New York", "NY"),
    ("Los Angeles", "CA"),
    ("Chicago", "IL"),
    ("Miami", "FL"),
    ("Austin", "TX"),
    ("San Francisco", "CA"),
    ("Atlanta", "GA"),
    ("Nashville", "TN"),
    ("Las Vegas", "NV"),
    ("Boston", "MA"),
]

BID_MESSAGES = [
    "I'd love to perform at your event! With my experience and style, I believe I can "
    "make it truly memorable. Looking forward to discussing the details with you.",
    "This sounds like a perfect fit for my act! I specialize in exactly this type of "
    "event. Let me know if you'd like to schedule a call to discuss.",
    "Your event sounds fantastic! I'm available on that date and would be honored to be "
    "part of it. My rate is competitive and includes all equipment.",
    "Hi there! I saw your posting and I think we'd be a great match. I have extensive "
    "experience with similar events. Happy to provide references!",
    "Excited about this opportunity! I've performed at many events like this and "
    "consistently receive excellent feedback. Would love to chat more.",
]


def event_status_for_template(status: MarketTemplateStatus) -> MarketEventStatus:
    try:
        return EVENT_STATUS_FOR_TEMPLATE[status]
    except KeyError:
        raise ValueError(f"Unhandled market template status: {status}")


def market_event_date(status: MarketTemplateStatus, today: date, rng: RandomSource) -> date:
    """Closed and filled events already happened; open ones are upcoming."""
    if status in (MarketTemplateStatus.CLOSED, MarketTemplateStatus.FILLED):
        return today - timedelta(days=rng.randint(7, 45))
    if status == MarketTemplateStatus.OPEN:
        return today + timedelta(days=rng.randint(14, 75))
    raise ValueError(f"Unhandled market template status: {status}")


def max_bids_for(status: MarketTemplateStatus, pool_size: int) -> int:
    if status == MarketTemplateStatus.OPEN:
        return min(OPEN_EVENT_MAX_BIDS, pool_size)
    if status in (MarketTemplateStatus.CLOSED, MarketTemplateStatus.FILLED):
        return min(CLOSED_EVENT_MAX_BIDS, pool_size)
    raise ValueError(f"Unhandled market template status: {status}")


def bid_status_for(status: MarketTemplateStatus, index: int) -> BidStatus:
    try:
        cycle = BID_STATUS_CYCLES[status]
    except KeyError:
        raise ValueError(f"Unhandled market template status: {status}")
    return cycle_choice(cycle, index)


def write_market_event(stores: DemoStores, record: MarketEventRecord) -> MarketEventRecord:
    """
    Persist a market event to the content store and the events table.

    Raises ContentCreationError if the content item cannot be created, in
    which case nothing is written.
    """
    post_id = stores.content.create_item(
        MARKET_EVENT_ITEM_TYPE,
        title=record.title,
        body=record.description,
        status="publish",
        author=record.customer_id,
        created_at=record.created_at,
    )
    record.post_id = post_id

    stores.content.set_meta(post_id, DEMO_META_KEY, 1)
    for key, value in record.to_meta().items():
        stores.content.set_meta(post_id, key, value)

    term = stores.taxonomy.find_term_by_name(record.category, PERFORMER_CATEGORY_TAXONOMY)
    if term:
        stores.taxonomy.assign_terms(post_id, [term.term_id], PERFORMER_CATEGORY_TAXONOMY)
    else:
        logger.debug(f"No category term '{record.category}' for event '{record.title}'")

    row = record.to_row()
    row[DEMO_ROW_FLAG] = 1
    record.row_id = stores.db.insert(EVENTS_TABLE, row)
    return record


def update_bid_count(stores: DemoStores, record: MarketEventRecord, total_bids: int) -> None:
    """Set the bid counter on both representations of an event."""
    record.total_bids = total_bids
    if record.post_id is not None:
        stores.content.set_meta(record.post_id, "pb_total_bids", total_bids)
    if record.row_id is not None:
        stores.db.update(EVENTS_TABLE, record.row_id, {"total_bids": total_bids})


class MarketGenerator:
    """Creates market events from templates and bids from pro performers."""

    def __init__(self, context: GenerationContext):
        self.context = context
        self.stores = context.stores
        self.rng = context.rng

    def generate(
        self,
        templates: Sequence[EventTemplate],
        performer_user_ids: Sequence[int],
        customer_user_ids: Sequence[int],
    ) -> Dict[str, int]:
        """
        Returns:
            {"events": n, "bids": n}
        """
        counts = {"events": 0, "bids": 0}
        if not customer_user_ids:
            logger.warning("No customers to post market events; skipping market")
            return counts

        pro_pool = self.pro_performers(performer_user_ids)

        for template in templates:
            record = self.create_event(template, customer_user_ids)
            if record is None:
                continue
            counts["events"] += 1

            if not pro_pool:
                logger.debug(f"No pro performers to bid on '{template.name}'")
                continue

            bids = self.create_bids(record, template, pro_pool)
            update_bid_count(self.stores, record, len(bids))
            counts["bids"] += len(bids)

        logger.info(f"Created {counts['events']} market events, {counts['bids']} bids")
        return counts

    def pro_performers(self, performer_user_ids: Sequence[int]) -> List[Dict]:
        pool = []
        for user_id in performer_user_ids:
            performer = self.stores.db.get_row(
                PERFORMERS_TABLE,
                user_id=user_id,
                tier=PerformerTier.PRO.value,
            )
            if performer:
                pool.append(performer)
        return pool

    def create_event(
        self,
        template: EventTemplate,
        customer_user_ids: Sequence[int],
    ) -> Optional[MarketEventRecord]:
        rng = self.rng
        customer_id = rng.choice(list(customer_user_ids))

        event_date = market_event_date(template.status, self.context.today, rng)
        city, state = rng.choice(VENUE_CITIES)
        record = MarketEventRecord(
            customer_id=customer_id,
            title=template.name,
            description=template.description,
            category=template.category,
            event_date=event_date,
            event_start_time=hour_string(rng.randint(14, 19)),
            duration=template.duration,
            city=city,
            state=state,
            budget_min=float(template.budget_min),
            budget_max=float(template.budget_max),
            bid_deadline=at_midnight(event_date - timedelta(days=BID_DEADLINE_DAYS)),
            status=event_status_for_template(template.status),
            created_at=at_midnight(event_date - timedelta(days=rng.randint(20, 45))),
        )

        try:
            return write_market_event(self.stores, record)
        except ContentCreationError as e:
            self.context.skip(STAGE, template.name, str(e))
            return None

    def create_bids(
        self,
        record: MarketEventRecord,
        template: EventTemplate,
        pro_pool: Sequence[Dict],
    ) -> List[BidRecord]:
        """
        Bids from a shuffled slice of the pro pool.

        Open events take up to 5 bids, closed and filled ones up to 8; at
        least 2 when the pool allows it.
        """
        rng = self.rng
        max_bids = max_bids_for(template.status, len(pro_pool))
        num_bids = rng.randint(min(MIN_BIDS, max_bids), max_bids)

        bidders = list(pro_pool)
        rng.shuffle(bidders)

        bids = []
        for index, performer in enumerate(bidders[:num_bids]):
            bid = BidRecord(
                event_id=record.post_id,
                performer_id=performer["id"],
                bid_amount=float(rng.randint(template.budget_min, template.budget_max)),
                message=rng.choice(BID_MESSAGES),
                status=bid_status_for(template.status, index),
                created_at=record.created_at + timedelta(days=rng.randint(1, 10)),
            )
            row = bid.to_row()
            row[DEMO_ROW_FLAG] = 1
            self.stores.db.insert(BIDS_TABLE, row)
            bids.append(bid)
        return bids
