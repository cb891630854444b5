"""
BookingGenerator: Bookings in every lifecycle stage, with matching escrow
transactions and reviews.

Each booking configuration fixes a (status, escrow) pair. Everything else
(money, dates, which ledger entries exist, whether a review is written)
follows from that pair and the performer's rate card, so the generated
ledger always balances.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Tuple

from .context import GenerationContext
from .models import (
    ArbitrationStatus,
    BookingConfig,
    BookingRecord,
    BookingStatus,
    EscrowStatus,
    Financials,
    PerformerTier,
    ReviewRecord,
    TransactionRecord,
    TransactionType,
    at_midnight,
    hour_string,
)
from .seed_loader import SeedCatalog
from .stores import (
    BOOKINGS_TABLE,
    DEMO_ROW_FLAG,
    PERFORMERS_TABLE,
    REVIEWS_TABLE,
    TRANSACTIONS_TABLE,
)
from .weighted import RandomSource, percent_chance, weighted_choice

logger = logging.getLogger(__name__)

STAGE = "bookings"

# Chosen so every admin tab (pending, confirmed, payouts, cancelled,
# disputes, flagged reviews) has data.
BOOKING_CONFIGS: List[BookingConfig] = [
    BookingConfig(BookingStatus.PENDING, EscrowStatus.PENDING, 8),
    BookingConfig(BookingStatus.CONFIRMED, EscrowStatus.DEPOSIT_HELD, 10),
    BookingConfig(BookingStatus.IN_PROGRESS, EscrowStatus.FULL_HELD, 3),
    BookingConfig(BookingStatus.COMPLETED, EscrowStatus.RELEASED, 20, create_review=True),
    # completed but not yet paid out
    BookingConfig(BookingStatus.COMPLETED, EscrowStatus.FULL_HELD, 8, create_review=True),
    BookingConfig(BookingStatus.CANCELLED, EscrowStatus.REFUNDED, 6),
    BookingConfig(BookingStatus.DISPUTED, EscrowStatus.FULL_HELD, 3, create_review=True, flag_review=True),
    BookingConfig(BookingStatus.COMPLETED, EscrowStatus.RELEASED, 5, create_review=True, flag_review=True),
]

COMMISSION_RATES: Dict[PerformerTier, Decimal] = {
    PerformerTier.PRO: Decimal("0.10"),
    PerformerTier.FREE: Decimal("0.15"),
}

# (deposit_paid, fully_paid) for each escrow state
PAYMENT_FLAGS: Dict[EscrowStatus, Tuple[bool, bool]] = {
    EscrowStatus.PENDING: (False, False),
    EscrowStatus.DEPOSIT_HELD: (True, False),
    EscrowStatus.FULL_HELD: (True, True),
    EscrowStatus.RELEASED: (True, True),
    EscrowStatus.REFUNDED: (True, False),
}

REVIEWABLE_STATUSES = {BookingStatus.COMPLETED, BookingStatus.DISPUTED}

RATING_WEIGHTS: List[Tuple[int, int]] = [(5, 50), (4, 35), (3, 15)]
RESPONSE_PERCENT = 60

LOCATIONS = [
    "Grand Ballroom, Downtown Marriott",
    "Riverside Convention Center",
    "The Garden Pavilion at Sunset Park",
    "Private Residence",
    "Corporate Headquarters - Main Auditorium",
    "Beach Resort & Spa - Ocean Terrace",
    "City Park Amphitheater",
    "Metropolitan Art Museum - East Wing",
    "The Ritz-Carlton Ballroom",
    "Hilton Conference Center",
    "Private Vineyard Estate",
    "Rooftop Event Space - Sky Lounge",
    "Historic Manor House",
    "Country Club Grand Hall",
]

EVENT_TITLES = [
    "Annual Company Gala",
    "Wedding Reception",
    "Corporate Holiday Party",
    "Product Launch Event",
    "Charity Fundraiser Dinner",
    "Birthday Celebration",
    "Anniversary Party",
    "Team Building Event",
    "Award Ceremony",
    "Retirement Celebration",
    "Graduation Party",
    "Networking Mixer",
    "Client Appreciation Event",
    "Summer Festival",
    "New Year's Eve Party",
]


@dataclass(frozen=True)
class FlaggedReviewTemplate:
    """A negative review plus the performer's rebuttal."""
    rating: int
    title: str
    content: str
    flag_reason: str


FLAGGED_REVIEW_TEMPLATES: List[FlaggedReviewTemplate] = [
    FlaggedReviewTemplate(
        rating=1,
        title="Completely unprofessional - DO NOT BOOK",
        content=(
            "{name} was a complete disaster. Showed up an hour late with no explanation, "
            "was rude to guests, and left early. The \"performance\" was nothing like what "
            "was advertised. Worst experience ever. Demanding full refund."
        ),
        flag_reason=(
            "Performer disputes accuracy of review. Claims customer is exaggerating "
            "timeline issues and that they completed full contracted time."
        ),
    ),
    FlaggedReviewTemplate(
        rating=1,
        title="Scam artist - stay away!",
        content=(
            "This was supposed to be a \"professional\" performance but {name} clearly had "
            "no idea what they were doing. Equipment kept breaking, sound was terrible, and "
            "they blamed us for not having proper setup. Complete waste of money."
        ),
        flag_reason=(
            "Performer claims venue did not have agreed-upon electrical setup causing "
            "equipment issues. Has photos as evidence."
        ),
    ),
    FlaggedReviewTemplate(
        rating=2,
        title="Not worth the money",
        content=(
            "{name} was mediocre at best. Performance was boring, didn't engage with the "
            "crowd at all, and seemed like they didn't want to be there. For what we paid, "
            "expected much better. Very disappointed."
        ),
        flag_reason=(
            "Performer disputes characterization. States they were professional throughout "
            "and crowd engagement was limited due to venue layout."
        ),
    ),
    FlaggedReviewTemplate(
        rating=2,
        title="False advertising",
        content=(
            "The profile said 10 years experience but {name} performed like an amateur. "
            "Nothing like the videos on their profile. Either those videos are fake or they "
            "sent someone else. Would not recommend."
        ),
        flag_reason=(
            "Performer claims this review contains defamatory statements. All profile "
            "content is accurate and verifiable."
        ),
    ),
    FlaggedReviewTemplate(
        rating=1,
        title="Ruined my daughter's birthday",
        content=(
            "Hired {name} for my daughter's 7th birthday party. They were supposed to do "
            "magic and balloon animals. Instead, they did inappropriate jokes that scared "
            "the kids and made parents uncomfortable. Had to ask them to leave early."
        ),
        flag_reason=(
            "Performer strongly disputes this account. States material was entirely "
            "child-appropriate and was asked to cut short due to scheduling conflict on "
            "client side."
        ),
    ),
]


def round_money(value) -> float:
    """Round half away from zero to cents."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def commission_rate(tier: PerformerTier) -> Decimal:
    try:
        return COMMISSION_RATES[tier]
    except KeyError:
        raise ValueError(f"No commission rate for tier: {tier}")


def compute_financials(
    hourly_rate: float,
    hours: int,
    deposit_percentage: float,
    tier: PerformerTier,
) -> Financials:
    """
    Split a booking's price.

    100/h for 4h at a 30% deposit on the pro tier gives total 400.00,
    deposit 120.00, commission 40.00, payout 360.00.
    """
    total = Decimal(str(hourly_rate)) * hours
    deposit = round_money(total * Decimal(str(deposit_percentage)) / 100)
    commission = round_money(total * commission_rate(tier))
    total_amount = round_money(total)
    return Financials(
        hours=hours,
        total_amount=total_amount,
        deposit_amount=deposit,
        remaining_amount=round_money(Decimal(str(total_amount)) - Decimal(str(deposit))),
        commission_amount=commission,
        payout_amount=round_money(Decimal(str(total_amount)) - Decimal(str(commission))),
    )


def payment_flags(escrow_status: EscrowStatus) -> Tuple[bool, bool]:
    """(deposit_paid, fully_paid) implied by an escrow state."""
    try:
        return PAYMENT_FLAGS[escrow_status]
    except KeyError:
        raise ValueError(f"Unhandled escrow status: {escrow_status}")


def event_date_for_status(status: BookingStatus, today: date, rng: RandomSource) -> date:
    """
    Place the event relative to today.

    Finished or disputed work is in the past, pending and confirmed work in
    the future; cancellations land on either side.
    """
    if status == BookingStatus.COMPLETED:
        return today - timedelta(days=rng.randint(7, 90))
    if status == BookingStatus.IN_PROGRESS:
        return today
    if status == BookingStatus.CONFIRMED:
        return today + timedelta(days=rng.randint(7, 60))
    if status == BookingStatus.PENDING:
        return today + timedelta(days=rng.randint(14, 90))
    if status == BookingStatus.CANCELLED:
        if rng.randint(0, 1):
            return today - timedelta(days=rng.randint(7, 60))
        return today + timedelta(days=rng.randint(7, 30))
    if status == BookingStatus.DISPUTED:
        return today - timedelta(days=rng.randint(3, 30))
    raise ValueError(f"Unhandled booking status: {status}")


def is_reviewable(status: BookingStatus) -> bool:
    if not isinstance(status, BookingStatus):
        raise ValueError(f"Unhandled booking status: {status}")
    return status in REVIEWABLE_STATUSES


def build_transactions(booking: BookingRecord, booking_id: int) -> List[TransactionRecord]:
    """
    Ledger entries for a booking, in the order money moves.

    Unpaid bookings have none. Released escrow ends in a payout, refunded
    escrow in a refund of the deposit.
    """
    if not booking.deposit_paid:
        return []

    money = booking.financials
    customer = booking.customer_id
    performer = booking.performer_user_id

    transactions = [
        TransactionRecord(
            booking_id=booking_id,
            transaction_type=TransactionType.DEPOSIT,
            amount=money.deposit_amount,
            payer_id=customer,
            payee_id=performer,
            created_at=booking.created_at,
        )
    ]

    if booking.fully_paid and money.total_amount > money.deposit_amount:
        transactions.append(TransactionRecord(
            booking_id=booking_id,
            transaction_type=TransactionType.BALANCE,
            amount=money.remaining_amount,
            payer_id=customer,
            payee_id=performer,
            created_at=at_midnight(booking.event_date) - timedelta(days=1),
        ))

    if booking.escrow_status == EscrowStatus.RELEASED and booking.payout_date:
        transactions.append(TransactionRecord(
            booking_id=booking_id,
            transaction_type=TransactionType.PAYOUT,
            amount=money.payout_amount,
            payer_id=None,
            payee_id=performer,
            created_at=booking.payout_date,
            notes="Escrow released to performer",
        ))

    if booking.escrow_status == EscrowStatus.REFUNDED:
        transactions.append(TransactionRecord(
            booking_id=booking_id,
            transaction_type=TransactionType.REFUND,
            amount=money.deposit_amount,
            payer_id=None,
            payee_id=customer,
            created_at=booking.created_at + timedelta(days=5),
            notes="Booking cancelled - deposit refunded",
        ))

    return transactions


class BookingGenerator:
    """Generates bookings, transactions and reviews from BOOKING_CONFIGS."""

    def __init__(
        self,
        context: GenerationContext,
        catalog: SeedCatalog,
        configs: Optional[Sequence[BookingConfig]] = None,
    ):
        self.context = context
        self.stores = context.stores
        self.rng = context.rng
        self.catalog = catalog
        self.configs = list(configs) if configs is not None else list(BOOKING_CONFIGS)

    def generate(
        self,
        performer_user_ids: Sequence[int],
        customer_user_ids: Sequence[int],
    ) -> Dict[str, int]:
        """
        Create every configured booking.

        Returns:
            {"bookings": n, "reviews": n, "transactions": n}
        """
        counts = {"bookings": 0, "reviews": 0, "transactions": 0}
        if not performer_user_ids or not customer_user_ids:
            logger.warning("No performers or customers to book; skipping bookings")
            return counts

        for config in self.configs:
            for i in range(config.count):
                unit = f"{config.status.value}/{config.escrow_status.value}#{i + 1}"
                performer_user_id = self.rng.choice(list(performer_user_ids))
                customer_user_id = self.rng.choice(list(customer_user_ids))

                performer = self.stores.db.get_row(PERFORMERS_TABLE, user_id=performer_user_id)
                if not performer:
                    self.context.skip(
                        STAGE, unit, f"performer record not found for user {performer_user_id}"
                    )
                    continue

                booking = self.build_booking(config, performer, customer_user_id)
                row = booking.to_row()
                row[DEMO_ROW_FLAG] = 1
                booking_id = self.stores.db.insert(BOOKINGS_TABLE, row)
                if not booking_id:
                    self.context.skip(STAGE, unit, "booking row not inserted")
                    continue
                booking.booking_id = booking_id
                counts["bookings"] += 1

                for transaction in build_transactions(booking, booking_id):
                    tx_row = transaction.to_row()
                    tx_row[DEMO_ROW_FLAG] = 1
                    self.stores.db.insert(TRANSACTIONS_TABLE, tx_row)
                    counts["transactions"] += 1

                if config.create_review and is_reviewable(config.status):
                    review = self.build_review(booking, config.flag_review)
                    if review is None:
                        self.context.skip(STAGE, unit, "no review template available")
                        continue
                    review_row = review.to_row()
                    review_row[DEMO_ROW_FLAG] = 1
                    self.stores.db.insert(REVIEWS_TABLE, review_row)
                    counts["reviews"] += 1

        logger.info(
            f"Created {counts['bookings']} bookings, {counts['transactions']} transactions, "
            f"{counts['reviews']} reviews"
        )
        return counts

    def build_booking(
        self,
        config: BookingConfig,
        performer: Dict,
        customer_user_id: int,
    ) -> BookingRecord:
        rng = self.rng
        financials = compute_financials(
            hourly_rate=performer["hourly_rate"],
            hours=rng.randint(2, 6),
            deposit_percentage=performer["deposit_percentage"],
            tier=PerformerTier(performer["tier"]),
        )

        event_date = event_date_for_status(config.status, self.context.today, rng)
        deposit_paid, fully_paid = payment_flags(config.escrow_status)

        created_at = at_midnight(event_date - timedelta(days=rng.randint(14, 45)))
        confirmed_at = (
            created_at + timedelta(days=rng.randint(1, 3)) if deposit_paid else None
        )
        completion_date = (
            at_midnight(event_date + timedelta(days=1))
            if config.status == BookingStatus.COMPLETED
            else None
        )
        payout_date = (
            at_midnight(event_date) + timedelta(days=rng.randint(3, 7))
            if config.escrow_status == EscrowStatus.RELEASED
            else None
        )

        return BookingRecord(
            booking_number=f"PB-{rng.randint(0, 0xFFFFFFFF):08X}",
            performer_id=performer["id"],
            performer_user_id=performer["user_id"],
            customer_id=customer_user_id,
            event_title=rng.choice(EVENT_TITLES),
            event_date=event_date,
            event_start_time=hour_string(rng.randint(14, 20)),
            event_end_time=hour_string(rng.randint(21, 23)),
            event_location=rng.choice(LOCATIONS),
            financials=financials,
            deposit_paid=deposit_paid,
            fully_paid=fully_paid,
            status=config.status,
            escrow_status=config.escrow_status,
            created_at=created_at,
            confirmed_at=confirmed_at,
            completion_date=completion_date,
            payout_date=payout_date,
        )

    def build_review(self, booking: BookingRecord, flagged: bool) -> Optional[ReviewRecord]:
        """
        Customer review of a finished booking.

        Flagged reviews come from FLAGGED_REVIEW_TEMPLATES (rating 1-2) and
        go to arbitration; others draw a weighted rating and may carry a
        performer response.
        """
        rng = self.rng
        performer_name = self._performer_name(booking.performer_user_id)

        if flagged:
            template = rng.choice(FLAGGED_REVIEW_TEMPLATES)
            rating = template.rating
            title = template.title
            content = template.content.replace("{name}", performer_name)
            flag_reason: Optional[str] = template.flag_reason
            response = None
        else:
            rating = weighted_choice(RATING_WEIGHTS, rng)
            templates = self.catalog.templates_for_rating(rating)
            if not templates:
                return None
            normal = rng.choice(templates)
            title = normal.title
            content = normal.content.replace("{name}", performer_name)
            flag_reason = None
            has_response = rating >= 4 and percent_chance(rng, RESPONSE_PERCENT)
            response = normal.response if has_response and normal.response else None

        review_date = at_midnight(booking.event_date) + timedelta(days=rng.randint(1, 7))
        response_date = (
            review_date + timedelta(days=rng.randint(1, 3)) if response else None
        )

        return ReviewRecord(
            booking_id=booking.booking_id,
            reviewer_id=booking.customer_id,
            reviewee_id=booking.performer_user_id,
            rating=rating,
            title=title,
            content=content,
            created_at=review_date,
            response=response,
            response_date=response_date,
            is_flagged=flagged,
            flag_reason=flag_reason,
            flagged_by=booking.performer_user_id if flagged else None,
            flagged_date=review_date + timedelta(days=2) if flagged else None,
            arbitration_status=ArbitrationStatus.PENDING if flagged else None,
        )

    def _performer_name(self, user_id: int) -> str:
        user = self.stores.identities.get_user(user_id)
        if user and user.display_name:
            return user.display_name
        return "The performer"
