"""
Data models for demo marketplace generation.

Each generated entity is a plain dataclass whose ``to_row()`` gives the
relational row persisted through the store layer.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional, Dict, List, Any
from enum import Enum


DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_date(value: Optional[date]) -> Optional[str]:
    return value.strftime(DATE_FORMAT) if value else None


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(DATETIME_FORMAT) if value else None


def at_midnight(day: date) -> datetime:
    return datetime.combine(day, time(0, 0, 0))


def hour_string(hour: int) -> str:
    return f"{hour:02d}:00:00"


def first_token(name: str) -> str:
    parts = name.split(" ")
    return parts[0] if parts else name


class PerformerTier(Enum):
    """Subscription tier of a performer."""
    FREE = "free"
    PRO = "pro"


class AvailabilityStatus(Enum):
    AVAILABLE = "available"
    BLOCKED = "blocked"


class BookingStatus(Enum):
    """Lifecycle stage of a booking."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class EscrowStatus(Enum):
    """Where the customer's money currently sits."""
    PENDING = "pending"            # nothing paid yet
    DEPOSIT_HELD = "deposit_held"
    FULL_HELD = "full_held"
    RELEASED = "released"          # paid out to performer
    REFUNDED = "refunded"          # returned to customer


class TransactionType(Enum):
    DEPOSIT = "deposit"
    BALANCE = "balance"
    PAYOUT = "payout"
    REFUND = "refund"


class ArbitrationStatus(Enum):
    """State of a flagged review in the arbitration queue."""
    PENDING = "pending"


class MarketTemplateStatus(Enum):
    """Status vocabulary used by market event templates."""
    OPEN = "open"
    CLOSED = "closed"
    FILLED = "filled"


class MarketEventStatus(Enum):
    """Status stored on a persisted market event."""
    OPEN = "open"
    CLOSED = "closed"
    BOOKED = "booked"


class BidStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    WITHDRAWN = "withdrawn"


@dataclass(frozen=True)
class BookingConfig:
    """
    One batch of bookings sharing a status/escrow combination.

    ``flag_review`` only matters when ``create_review`` is set.
    """
    status: BookingStatus
    escrow_status: EscrowStatus
    count: int
    create_review: bool = False
    flag_review: bool = False


@dataclass
class Term:
    """A taxonomy term."""
    term_id: int
    name: str
    taxonomy: str
    slug: str
    description: str = ""


@dataclass
class AvailabilitySlot:
    performer_id: int
    date: date
    status: AvailabilityStatus
    slot_type: str = "full_day"
    created_at: Optional[datetime] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "performer_id": self.performer_id,
            "date": format_date(self.date),
            "slot_type": self.slot_type,
            "status": self.status.value,
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class PerformerRecord:
    """
    A performer's marketplace record.

    ``user_id`` is the identity; ``profile_id`` the public profile item.
    """
    user_id: int
    profile_id: int
    tier: PerformerTier
    hourly_rate: float
    deposit_percentage: int
    is_verified: bool
    is_featured: bool
    completed_bookings: int
    total_reviews: int
    average_rating: float
    profile_completeness: int
    achievement_level: str
    achievement_score: int
    created_at: datetime
    status: str = "active"
    performer_id: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "profile_id": self.profile_id,
            "tier": self.tier.value,
            "hourly_rate": self.hourly_rate,
            "deposit_percentage": self.deposit_percentage,
            "is_verified": int(self.is_verified),
            "is_featured": int(self.is_featured),
            "status": self.status,
            "completed_bookings": self.completed_bookings,
            "total_reviews": self.total_reviews,
            "average_rating": self.average_rating,
            "profile_completeness": self.profile_completeness,
            "achievement_level": self.achievement_level,
            "achievement_score": self.achievement_score,
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class MicrositeRecord:
    performer_id: int
    user_id: int
    slug: str
    design_settings: Dict[str, Any]
    meta_title: str
    meta_description: str
    view_count: int
    created_at: datetime
    status: str = "active"

    def to_row(self) -> Dict[str, Any]:
        return {
            "performer_id": self.performer_id,
            "user_id": self.user_id,
            "status": self.status,
            "slug": self.slug,
            "design_settings": dict(self.design_settings),
            "meta_title": self.meta_title,
            "meta_description": self.meta_description,
            "view_count": self.view_count,
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class Financials:
    """Money split for one booking, all values rounded to cents."""
    hours: int
    total_amount: float
    deposit_amount: float
    remaining_amount: float
    commission_amount: float
    payout_amount: float


@dataclass
class BookingRecord:
    """
    A booking and its escrow state.

    The payment flags are derived from ``escrow_status``; see
    ``booking_generator.payment_flags``.
    """
    booking_number: str
    performer_id: int
    performer_user_id: int
    customer_id: int
    event_title: str
    event_date: date
    event_start_time: str
    event_end_time: str
    event_location: str
    financials: Financials
    deposit_paid: bool
    fully_paid: bool
    status: BookingStatus
    escrow_status: EscrowStatus
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    payout_date: Optional[datetime] = None
    booking_id: Optional[int] = None

    def to_row(self) -> Dict[str, Any]:
        money = self.financials
        return {
            "booking_number": self.booking_number,
            "performer_id": self.performer_id,
            "customer_id": self.customer_id,
            "event_title": self.event_title,
            "event_date": format_date(self.event_date),
            "event_start_time": self.event_start_time,
            "event_end_time": self.event_end_time,
            "event_location": self.event_location,
            "total_amount": money.total_amount,
            "deposit_amount": money.deposit_amount,
            "remaining_amount": money.remaining_amount,
            "deposit_paid": int(self.deposit_paid),
            "fully_paid": int(self.fully_paid),
            "platform_commission": money.commission_amount,
            "performer_payout": money.payout_amount,
            "booking_status": self.status.value,
            "escrow_status": self.escrow_status.value,
            "performer_confirmed": int(self.deposit_paid),
            "customer_confirmed_completion": int(self.status == BookingStatus.COMPLETED),
            "created_at": format_datetime(self.created_at),
            "confirmed_at": format_datetime(self.confirmed_at),
            "completion_date": format_datetime(self.completion_date),
            "payout_date": format_datetime(self.payout_date),
        }


@dataclass
class TransactionRecord:
    booking_id: int
    transaction_type: TransactionType
    amount: float
    payer_id: Optional[int]
    payee_id: Optional[int]
    created_at: datetime
    status: str = "completed"
    notes: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "booking_id": self.booking_id,
            "transaction_type": self.transaction_type.value,
            "amount": self.amount,
            "payer_id": self.payer_id,
            "payee_id": self.payee_id,
            "status": self.status,
            "notes": self.notes,
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class ReviewRecord:
    """
    A customer review of a performer.

    Flagged reviews carry the performer's rebuttal in ``flag_reason`` and
    wait in the arbitration queue.
    """
    booking_id: int
    reviewer_id: int
    reviewee_id: int
    rating: int
    title: str
    content: str
    created_at: datetime
    response: Optional[str] = None
    response_date: Optional[datetime] = None
    is_flagged: bool = False
    flag_reason: Optional[str] = None
    flagged_by: Optional[int] = None
    flagged_date: Optional[datetime] = None
    arbitration_status: Optional[ArbitrationStatus] = None
    reviewer_type: str = "customer"
    is_visible: bool = True

    def to_row(self) -> Dict[str, Any]:
        return {
            "booking_id": self.booking_id,
            "reviewer_id": self.reviewer_id,
            "reviewee_id": self.reviewee_id,
            "reviewer_type": self.reviewer_type,
            "rating": self.rating,
            "title": self.title,
            "content": self.content,
            "response": self.response,
            "response_date": format_datetime(self.response_date),
            "is_visible": int(self.is_visible),
            "is_flagged": int(self.is_flagged),
            "flag_reason": self.flag_reason,
            "flagged_by": self.flagged_by,
            "flagged_date": format_datetime(self.flagged_date),
            "arbitration_status": (
                self.arbitration_status.value if self.arbitration_status else None
            ),
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class MarketEventRecord:
    """
    A customer-posted market event.

    Persisted twice (content item + relational row) from this one struct.
    """
    customer_id: int
    title: str
    description: str
    category: str
    event_date: date
    event_start_time: str
    duration: int
    city: str
    state: str
    budget_min: float
    budget_max: float
    bid_deadline: datetime
    status: MarketEventStatus
    created_at: datetime
    total_bids: int = 0
    post_id: Optional[int] = None
    row_id: Optional[int] = None

    def to_meta(self) -> Dict[str, Any]:
        return {
            "pb_customer_id": self.customer_id,
            "pb_event_date": format_date(self.event_date),
            "pb_event_time": self.event_start_time,
            "pb_event_duration": self.duration,
            "pb_venue_city": self.city,
            "pb_venue_state": self.state,
            "pb_budget_min": self.budget_min,
            "pb_budget_max": self.budget_max,
            "pb_bid_deadline": format_datetime(self.bid_deadline),
            "pb_event_status": self.status.value,
            "pb_total_bids": self.total_bids,
        }

    def to_row(self) -> Dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "post_id": self.post_id,
            "title": self.title,
            "description": self.description,
            "event_date": format_date(self.event_date),
            "event_start_time": self.event_start_time,
            "city": self.city,
            "state": self.state,
            "budget_min": self.budget_min,
            "budget_max": self.budget_max,
            "bid_deadline": format_datetime(self.bid_deadline),
            "status": self.status.value,
            "total_bids": self.total_bids,
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class BidRecord:
    event_id: int
    performer_id: int
    bid_amount: float
    message: str
    status: BidStatus
    created_at: datetime

    def to_row(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "performer_id": self.performer_id,
            "bid_amount": self.bid_amount,
            "message": self.message,
            "status": self.status.value,
            "created_at": format_datetime(self.created_at),
        }


@dataclass
class UnitFailure:
    """One skipped unit of work."""
    stage: str
    unit: str
    reason: str


@dataclass
class GenerationSummary:
    """Counts reported back to the admin action that triggered generation."""
    performers: int = 0
    customers: int = 0
    microsites: int = 0
    availability: int = 0
    bookings: int = 0
    reviews: int = 0
    transactions: int = 0
    events: int = 0
    bids: int = 0
    terms: int = 0
    performer_user_ids: List[int] = field(default_factory=list)
    customer_user_ids: List[int] = field(default_factory=list)
    failures: List[UnitFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the count dictionary shown in the success notice."""
        result: Dict[str, Any] = {
            "performers": self.performers,
            "customers": self.customers,
            "microsites": self.microsites,
            "availability": self.availability,
            "bookings": self.bookings,
            "reviews": self.reviews,
            "transactions": self.transactions,
            "events": self.events,
            "bids": self.bids,
        }
        if self.failures:
            result["failures"] = [
                {"stage": f.stage, "unit": f.unit, "reason": f.reason}
                for f in self.failures
            ]
        return result
