from __future__ import annotations

import logging
from typing import Optional

from models import db
from models.transaction_model import TransactionRecord
from models.trip_model import Trip

from .errors import InvalidArgumentError, NotFoundError, PermissionDeniedError, UnauthenticatedError

logger = logging.getLogger(__name__)

MANUAL_REASONING = "Linked manually by user"


def _owned_transaction(user_id: Optional[int], transaction_id: str) -> TransactionRecord:
    if user_id is None:
        raise UnauthenticatedError("User must be authenticated.")
    if not transaction_id:
        raise InvalidArgumentError("transaction_id is required.")

    txn = db.session.get(TransactionRecord, transaction_id)
    if txn is None:
        raise NotFoundError("Transaction not found.")
    if txn.user_id != user_id:
        raise PermissionDeniedError("Cannot modify this transaction.")
    return txn


def link_transaction(
    user_id: Optional[int],
    transaction_id: str,
    trip_id: str,
    *,
    confidence: Optional[float] = None,
    reasoning: Optional[str] = None,
) -> dict:
    """Link a transaction to one of the caller's trips, bypassing the scheduled job."""
    txn = _owned_transaction(user_id, transaction_id)
    if not trip_id:
        raise InvalidArgumentError("trip_id is required.")

    trip = Trip.query.filter_by(id=trip_id, user_id=user_id).first()
    if trip is None:
        raise NotFoundError("Trip not found.")

    txn.apply_link(
        trip_id=str(trip.id),
        trip_name=trip.name or "Trip",
        trip_destination=trip.destination,
        confidence=1.0 if confidence is None else confidence,
        method="manual",
        reasoning=reasoning or MANUAL_REASONING,
    )
    db.session.commit()
    logger.info("User %s linked transaction %s to trip %s", user_id, txn.id, trip.id)
    return {"success": True}


def dismiss_suggestion(user_id: Optional[int], transaction_id: str) -> dict:
    """Drop any trip suggestion and park the transaction as skipped. Safe to repeat."""
    txn = _owned_transaction(user_id, transaction_id)
    txn.dismiss_suggestion()
    db.session.commit()
    logger.info("User %s dismissed trip suggestion on transaction %s", user_id, txn.id)
    return {"success": True}
