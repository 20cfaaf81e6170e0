from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional

from models.transaction_model import TransactionRecord

from .classifier import TripLinkDecision
from .prompt import TripCandidate

LINK_THRESHOLD = 0.8
SUGGEST_THRESHOLD = 0.6


@dataclass(frozen=True)
class Resolution:
    status: str  # linked | suggested | skipped
    trip: Optional[TripCandidate] = None
    confidence: float = 0.0
    reasoning: Optional[str] = None
    error: Optional[str] = None


def clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, value))


def resolve_decision(
    decision: Optional[TripLinkDecision], trips: Mapping[str, TripCandidate]
) -> Resolution:
    """Map a raw classifier verdict to the final link state."""
    if decision is None or decision.decision == "skip" or not decision.trip_id:
        return Resolution("skipped")

    trip = trips.get(decision.trip_id)
    if trip is None:
        return Resolution("skipped", error=f"Trip {decision.trip_id} not found")

    confidence = clamp_confidence(decision.confidence)
    if decision.decision == "link" and confidence >= LINK_THRESHOLD:
        status = "linked"
    elif decision.decision == "suggest" or confidence >= SUGGEST_THRESHOLD:
        status = "suggested"
    else:
        return Resolution("skipped")

    return Resolution(status, trip=trip, confidence=confidence, reasoning=decision.reasoning)


def apply_resolution(txn: TransactionRecord, resolution: Resolution, now: Optional[datetime] = None):
    trip = resolution.trip
    if resolution.status == "linked":
        txn.apply_link(
            trip_id=trip.id,
            trip_name=trip.name,
            trip_destination=trip.destination,
            confidence=resolution.confidence,
            method="auto",
            reasoning=resolution.reasoning,
            now=now,
        )
    elif resolution.status == "suggested":
        txn.apply_suggestion(
            trip_id=trip.id,
            trip_name=trip.name,
            trip_destination=trip.destination,
            confidence=resolution.confidence,
            reasoning=resolution.reasoning,
            now=now,
        )
    else:
        txn.mark_skipped(error=resolution.error, now=now)


def resolve_bucket(
    transactions: Iterable[TransactionRecord],
    decisions: Iterable[TripLinkDecision],
    trips: Iterable[TripCandidate],
    now: Optional[datetime] = None,
) -> Dict[str, int]:
    """
    Resolve and apply every transaction of one bucket. Returns a count per
    final status. The caller commits.
    """
    now = now or datetime.utcnow()
    trip_map = {t.id: t for t in trips}
    decision_map = {d.transaction_id: d for d in decisions}

    counts = {"linked": 0, "suggested": 0, "skipped": 0}
    for txn in transactions:
        resolution = resolve_decision(decision_map.get(str(txn.id)), trip_map)
        apply_resolution(txn, resolution, now)
        counts[resolution.status] += 1
    return counts
