"""
Ledger audit: check generated bookings, transactions and reviews for
internal consistency.

Works on the exported DataFrames (one per table, as produced by
``pipeline.table_frames``), so it can audit any store's contents.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .models import BookingStatus, EscrowStatus, TransactionType
from .stores import BOOKINGS_TABLE, PERFORMERS_TABLE, REVIEWS_TABLE, TRANSACTIONS_TABLE

logger = logging.getLogger(__name__)

MONEY_TOLERANCE = 0.01


@dataclass
class AuditViolation:
    """One broken ledger rule."""
    rule: str
    detail: str
    booking_id: Optional[int] = None


def _frame(frames: Dict[str, pd.DataFrame], table: str) -> pd.DataFrame:
    df = frames.get(table)
    return df if df is not None else pd.DataFrame()


def _money_mismatch(left: pd.Series, right: pd.Series) -> np.ndarray:
    return ~np.isclose(
        left.astype(float).to_numpy(),
        right.astype(float).to_numpy(),
        rtol=0,
        atol=MONEY_TOLERANCE,
    )


def check_booking_arithmetic(
    bookings: pd.DataFrame,
    performers: pd.DataFrame,
) -> List[AuditViolation]:
    """Deposit, remaining, commission and payout add up to the total."""
    violations: List[AuditViolation] = []
    if bookings.empty:
        return violations

    split_total = bookings["deposit_amount"] + bookings["remaining_amount"]
    for booking_id in bookings.loc[_money_mismatch(split_total, bookings["total_amount"]), "id"]:
        violations.append(AuditViolation(
            "deposit_plus_remaining",
            "deposit + remaining != total",
            int(booking_id),
        ))

    payout_total = bookings["platform_commission"] + bookings["performer_payout"]
    for booking_id in bookings.loc[_money_mismatch(payout_total, bookings["total_amount"]), "id"]:
        violations.append(AuditViolation(
            "commission_plus_payout",
            "commission + payout != total",
            int(booking_id),
        ))

    if performers.empty:
        return violations

    rates = performers[["id", "deposit_percentage"]].rename(columns={"id": "performer_id"})
    merged = bookings.merge(rates, on="performer_id", how="left")
    known = merged.dropna(subset=["deposit_percentage"])
    expected_deposit = known["total_amount"] * known["deposit_percentage"] / 100
    for booking_id in known.loc[_money_mismatch(known["deposit_amount"], expected_deposit), "id"]:
        violations.append(AuditViolation(
            "deposit_percentage",
            "deposit does not match the performer's deposit percentage",
            int(booking_id),
        ))
    return violations


def check_transactions(
    bookings: pd.DataFrame,
    transactions: pd.DataFrame,
) -> List[AuditViolation]:
    """Ledger entries that must, or must not, exist for each escrow state."""
    violations: List[AuditViolation] = []
    if bookings.empty:
        return violations

    if transactions.empty:
        transactions = pd.DataFrame(
            columns=["id", "booking_id", "transaction_type", "amount", "created_at"]
        )

    by_booking = {
        booking_id: group.sort_values("id")
        for booking_id, group in transactions.groupby("booking_id")
    }
    empty = transactions.iloc[0:0]

    for booking in bookings.itertuples(index=False):
        booking_id = int(booking.id)
        entries = by_booking.get(booking_id, empty)
        types = list(entries["transaction_type"])
        escrow = booking.escrow_status

        if not booking.deposit_paid:
            if types:
                violations.append(AuditViolation(
                    "unpaid_has_transactions",
                    f"unpaid booking has {len(types)} transaction(s)",
                    booking_id,
                ))
            continue

        if types.count(TransactionType.DEPOSIT.value) != 1:
            violations.append(AuditViolation(
                "deposit_count",
                f"expected one deposit, found {types.count(TransactionType.DEPOSIT.value)}",
                booking_id,
            ))

        payouts = entries[entries["transaction_type"] == TransactionType.PAYOUT.value]
        refunds = entries[entries["transaction_type"] == TransactionType.REFUND.value]

        if escrow == EscrowStatus.RELEASED.value:
            if len(payouts) != 1:
                violations.append(AuditViolation(
                    "payout_count",
                    f"released escrow needs one payout, found {len(payouts)}",
                    booking_id,
                ))
            else:
                payout_day = pd.to_datetime(payouts["created_at"].iloc[0]).normalize()
                if payout_day < pd.to_datetime(booking.event_date):
                    violations.append(AuditViolation(
                        "payout_before_event",
                        "payout dated before the event",
                        booking_id,
                    ))
        elif len(payouts):
            violations.append(AuditViolation(
                "unexpected_payout",
                f"payout recorded for escrow state {escrow}",
                booking_id,
            ))

        if escrow == EscrowStatus.REFUNDED.value:
            if len(refunds) != 1:
                violations.append(AuditViolation(
                    "refund_count",
                    f"refunded escrow needs one refund, found {len(refunds)}",
                    booking_id,
                ))
        elif len(refunds):
            violations.append(AuditViolation(
                "unexpected_refund",
                f"refund recorded for escrow state {escrow}",
                booking_id,
            ))

        stamps = pd.to_datetime(entries["created_at"])
        if not stamps.is_monotonic_increasing:
            violations.append(AuditViolation(
                "transaction_order",
                "transactions are not in chronological order",
                booking_id,
            ))

    return violations


def check_reviews(bookings: pd.DataFrame, reviews: pd.DataFrame) -> List[AuditViolation]:
    """Flagged reviews sit in arbitration; others never do."""
    violations: List[AuditViolation] = []
    if reviews.empty:
        return violations

    flagged = reviews[reviews["is_flagged"] == 1]
    bad_rating = flagged[flagged["rating"] > 2]
    for booking_id in bad_rating["booking_id"]:
        violations.append(AuditViolation(
            "flagged_rating",
            "flagged review rated above 2",
            int(booking_id),
        ))

    missing_reason = flagged[flagged["flag_reason"].isna()]
    for booking_id in missing_reason["booking_id"]:
        violations.append(AuditViolation(
            "flagged_reason",
            "flagged review has no flag reason",
            int(booking_id),
        ))

    not_pending = flagged[flagged["arbitration_status"] != "pending"]
    for booking_id in not_pending["booking_id"]:
        violations.append(AuditViolation(
            "flagged_arbitration",
            "flagged review is not pending arbitration",
            int(booking_id),
        ))

    unflagged = reviews[reviews["is_flagged"] != 1]
    in_arbitration = unflagged[unflagged["arbitration_status"].notna()]
    for booking_id in in_arbitration["booking_id"]:
        violations.append(AuditViolation(
            "unflagged_arbitration",
            "unflagged review has an arbitration status",
            int(booking_id),
        ))

    if not bookings.empty:
        reviewable = {BookingStatus.COMPLETED.value, BookingStatus.DISPUTED.value}
        status_by_id = dict(zip(bookings["id"], bookings["booking_status"]))
        for booking_id in reviews["booking_id"]:
            if status_by_id.get(booking_id) not in reviewable:
                violations.append(AuditViolation(
                    "review_status",
                    f"review on a booking with status {status_by_id.get(booking_id)}",
                    int(booking_id),
                ))

    return violations


def audit_ledger(frames: Dict[str, pd.DataFrame]) -> List[AuditViolation]:
    """
    Run every ledger check.

    Args:
        frames: table name -> DataFrame; missing tables count as empty

    Returns:
        Every violation found; an empty list means the ledger is consistent.
    """
    bookings = _frame(frames, BOOKINGS_TABLE)
    performers = _frame(frames, PERFORMERS_TABLE)
    transactions = _frame(frames, TRANSACTIONS_TABLE)
    reviews = _frame(frames, REVIEWS_TABLE)

    violations = []
    violations.extend(check_booking_arithmetic(bookings, performers))
    violations.extend(check_transactions(bookings, transactions))
    violations.extend(check_reviews(bookings, reviews))

    if violations:
        logger.warning(f"Ledger audit found {len(violations)} violation(s)")
    else:
        logger.info(f"Ledger audit passed for {len(bookings)} bookings")
    return violations
