"""
Scheduled trip linking run.

One tick: take the lease, select pending transactions, bucket them per user,
mark them "processing", then classify and write back each bucket on its own.
A failing bucket is put back to "pending" with the error message and does not
affect the other buckets of the same tick.
"""
from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List

from flask import current_app

from llm_providers import provider_configured
from models import db
from models.transaction_model import TransactionRecord

from .catalog import load_trip_catalog, to_transaction_candidate
from .classifier import parse_decisions, request_decisions
from .lease import acquire_lease, release_lease
from .prompt import load_prompt_template, render_prompt
from .resolver import resolve_bucket
from .selector import bucket_by_user, mark_processing, select_candidates

logger = logging.getLogger(__name__)

NO_TRIPS_ERROR = "No trips available for matching"


@dataclass
class BucketOutcome:
    user_id: int
    size: int
    counts: Dict[str, int] = field(default_factory=dict)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class CycleSummary:
    status: str  # disabled | locked | idle | completed
    selected: int = 0
    buckets: List[BucketOutcome] = field(default_factory=list)

    def to_dict(self) -> dict:
        totals: Dict[str, int] = {}
        for b in self.buckets:
            for k, v in b.counts.items():
                totals[k] = totals.get(k, 0) + v
        return {
            "status": self.status,
            "selected": self.selected,
            "users": len(self.buckets),
            "failed_users": sum(1 for b in self.buckets if b.failed),
            "totals": totals,
        }


def _load_bucket(transaction_ids: List[str]) -> List[TransactionRecord]:
    rows = TransactionRecord.query.filter(TransactionRecord.id.in_(transaction_ids)).all()
    by_id = {r.id: r for r in rows}
    return [by_id[i] for i in transaction_ids if i in by_id]


def process_user_bucket(user_id: int, transaction_ids: List[str]) -> Dict[str, int]:
    """Classify one user's bucket and commit its final states in one batch."""
    cfg = current_app.config
    docs = _load_bucket(transaction_ids)
    now = datetime.utcnow()

    trips = load_trip_catalog(user_id, limit=cfg["TRIP_LINK_TRIP_LIMIT"])
    if not trips:
        logger.info("No trips for user %s; marking %d transactions as skipped", user_id, len(docs))
        for txn in docs:
            txn.mark_skipped(error=NO_TRIPS_ERROR, now=now)
        db.session.commit()
        return {"skipped": len(docs)}

    template = load_prompt_template(cfg["TRIP_LINK_PROMPT_PATH"])
    prompt = render_prompt(template, trips, [to_transaction_candidate(t) for t in docs])
    raw = request_decisions(
        prompt,
        template,
        provider=cfg["TRIP_LINK_PROVIDER"],
        model=cfg.get("TRIP_LINK_MODEL") or None,
        timeout=cfg["TRIP_LINK_TIMEOUT_S"],
    )
    decisions = parse_decisions(raw)
    if not decisions:
        logger.warning("Classifier returned no usable decisions for user %s", user_id)

    counts = resolve_bucket(docs, decisions, trips, now)
    db.session.commit()
    return counts


def revert_bucket(transaction_ids: List[str], error: str):
    """Put a failed bucket back to "pending" so the next tick retries it."""
    db.session.rollback()
    now = datetime.utcnow()
    for txn in _load_bucket(transaction_ids):
        txn.revert_to_pending(error, now)
    db.session.commit()


def run_bucket(user_id: int, transaction_ids: List[str]) -> BucketOutcome:
    outcome = BucketOutcome(user_id=user_id, size=len(transaction_ids))
    try:
        outcome.counts = process_user_bucket(user_id, transaction_ids)
        logger.info("Trip linking for user %s: %s", user_id, outcome.counts)
    except Exception as e:
        logger.exception("Failed to process trip links for user %s", user_id)
        outcome.error = str(e) or "Trip linking failed"
        try:
            revert_bucket(transaction_ids, outcome.error)
        except Exception:
            # Rows stay "processing" and are reclaimed once they go stale.
            db.session.rollback()
            logger.exception("Could not revert trip link bucket for user %s", user_id)
    return outcome


def _run_bucket_in_context(app, user_id: int, transaction_ids: List[str]) -> BucketOutcome:
    with app.app_context():
        return run_bucket(user_id, transaction_ids)


def run_trip_link_cycle() -> CycleSummary:
    """Entry point for the scheduler. Needs an application context."""
    cfg = current_app.config
    provider = cfg["TRIP_LINK_PROVIDER"]
    if not provider_configured(provider):
        logger.warning("Skipping trip link processing: no API key configured for %s", provider)
        return CycleSummary(status="disabled")

    owner = uuid.uuid4().hex
    if not acquire_lease(owner, cfg["TRIP_LINK_LEASE_SECONDS"]):
        logger.info("Another trip linking run holds the lease; skipping this tick")
        return CycleSummary(status="locked")

    try:
        candidates = select_candidates(
            cfg["TRIP_LINK_BATCH_LIMIT"], stale_minutes=cfg["TRIP_LINK_STALE_MINUTES"]
        )
        if not candidates:
            logger.info("No transactions awaiting trip linking")
            return CycleSummary(status="idle")

        buckets = bucket_by_user(candidates, cfg["TRIP_LINK_BATCH_PER_USER"])
        selected = mark_processing(buckets)
        work = [(uid, [t.id for t in docs]) for uid, docs in buckets.items()]

        workers = max(1, int(cfg.get("TRIP_LINK_WORKERS") or 1))
        if workers == 1 or len(work) == 1:
            outcomes = [run_bucket(uid, ids) for uid, ids in work]
        else:
            app = current_app._get_current_object()
            with ThreadPoolExecutor(max_workers=min(workers, len(work))) as pool:
                futures = [pool.submit(_run_bucket_in_context, app, uid, ids) for uid, ids in work]
                outcomes = [f.result() for f in futures]

        summary = CycleSummary(status="completed", selected=selected, buckets=outcomes)
        logger.info("Trip linking run finished: %s", summary.to_dict())
        return summary
    finally:
        db.session.rollback()
        try:
            release_lease(owner)
        except Exception:
            db.session.rollback()
            logger.exception("Could not release trip linking lease %s", owner)
