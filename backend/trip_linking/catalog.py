from __future__ import annotations

from typing import List

from models.transaction_model import TransactionRecord
from models.trip_model import Trip

from .prompt import TransactionCandidate, TripCandidate


def load_trip_catalog(user_id: int, limit: int = 25) -> List[TripCandidate]:
    """
    The user's most recently created trips, minus any without both dates.
    The limit applies before the date filter.
    """
    trips = (
        Trip.query.filter_by(user_id=user_id)
        .order_by(Trip.created_at.desc())
        .limit(limit)
        .all()
    )
    return [
        TripCandidate(
            id=str(t.id),
            name=t.name,
            destination=t.destination,
            start_date=t.start_date,
            end_date=t.end_date,
            currency=t.currency or "USD",
        )
        for t in trips
        if t.is_dated
    ]


def to_transaction_candidate(txn: TransactionRecord) -> TransactionCandidate:
    try:
        amount = abs(float(txn.amount or 0.0))
    except (TypeError, ValueError):
        amount = 0.0
    return TransactionCandidate(
        id=str(txn.id),
        amount=amount,
        currency=txn.currency or "USD",
        merchant=txn.merchant,
        description=txn.description or "",
        posted_at=txn.posted_at.isoformat() if txn.posted_at else "",
        location=tuple(txn.location_parts()),
    )
