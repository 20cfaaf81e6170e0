from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from models import db
from models.lease_model import TripLinkLease

logger = logging.getLogger(__name__)

LEASE_NAME = "trip-linking"


def acquire_lease(owner: str, ttl_seconds: int, *, name: str = LEASE_NAME, now: Optional[datetime] = None) -> bool:
    """
    Take the named lease for ttl_seconds. Succeeds when no lease exists, the
    current one has expired, or owner already holds it.
    """
    now = now or datetime.utcnow()
    expires_at = now + timedelta(seconds=ttl_seconds)

    existing = db.session.get(TripLinkLease, name)
    if existing is None:
        db.session.add(TripLinkLease(name=name, owner=owner, acquired_at=now, expires_at=expires_at))
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            logger.info("Lease %s was taken concurrently", name)
            return False
        return True

    previous_owner = existing.owner
    updated = (
        TripLinkLease.query.filter(
            TripLinkLease.name == name,
            or_(TripLinkLease.expires_at < now, TripLinkLease.owner == owner),
        )
        .update(
            {"owner": owner, "acquired_at": now, "expires_at": expires_at},
            synchronize_session=False,
        )
    )
    db.session.commit()
    if updated != 1:
        logger.info("Lease %s is held by %s", name, previous_owner)
        return False
    if previous_owner != owner:
        logger.warning("Took over expired lease %s from %s", name, previous_owner)
    return True


def release_lease(owner: str, *, name: str = LEASE_NAME) -> bool:
    deleted = TripLinkLease.query.filter_by(name=name, owner=owner).delete(synchronize_session=False)
    db.session.commit()
    return deleted == 1
