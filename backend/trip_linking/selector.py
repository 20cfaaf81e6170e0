from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import and_, or_

from models import db
from models.transaction_model import TransactionRecord

logger = logging.getLogger(__name__)


def select_candidates(
    limit: int = 60,
    *,
    stale_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[TransactionRecord]:
    """
    Settled transactions awaiting trip linking, newest first.

    With stale_minutes set, rows left in "processing" longer than that by a
    crashed run are picked up again as well.
    """
    awaiting = TransactionRecord.link_status == "pending"
    if stale_minutes:
        cutoff = (now or datetime.utcnow()) - timedelta(minutes=stale_minutes)
        awaiting = or_(
            awaiting,
            and_(
                TransactionRecord.link_status == "processing",
                or_(
                    TransactionRecord.link_updated_at.is_(None),
                    TransactionRecord.link_updated_at < cutoff,
                ),
            ),
        )

    return (
        TransactionRecord.query.filter(awaiting)
        .filter(TransactionRecord.authorization_pending.is_(False))
        .order_by(TransactionRecord.posted_at.desc())
        .limit(limit)
        .all()
    )


def bucket_by_user(
    transactions: List[TransactionRecord], per_user: int = 12
) -> Dict[int, List[TransactionRecord]]:
    """
    Group candidates per owner, keeping at most per_user each. Overflow rows
    are left untouched and stay eligible for the next run.
    """
    buckets: Dict[int, List[TransactionRecord]] = OrderedDict()
    for txn in transactions:
        if txn.user_id is None:
            continue
        bucket = buckets.setdefault(txn.user_id, [])
        if len(bucket) < per_user:
            bucket.append(txn)
    return buckets


def mark_processing(buckets: Dict[int, List[TransactionRecord]], now: Optional[datetime] = None) -> int:
    """Flip every selected row to "processing" in one commit."""
    now = now or datetime.utcnow()
    count = 0
    for docs in buckets.values():
        for txn in docs:
            txn.mark_processing(now)
            count += 1
    db.session.commit()
    logger.info("Marked %d transactions as processing across %d users", count, len(buckets))
    return count
