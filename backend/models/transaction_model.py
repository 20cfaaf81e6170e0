import uuid
from datetime import datetime

from models import db


LINK_STATUSES = ("pending", "processing", "linked", "suggested", "skipped")


def _new_id() -> str:
    return uuid.uuid4().hex


class TransactionRecord(db.Model):
    """
    A user's financial transaction plus its trip-link reconciliation state.

    The ingestion side creates rows with link_status="pending". Only the
    trip linking job and the manual override endpoints touch the link_* /
    trip_link* columns, always through the mark_* / apply_* helpers below so
    that trip_link and trip_link_suggestion are never populated together.
    """

    __tablename__ = "transactions"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)

    # Ownership
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), index=True, nullable=False)

    # Financial facts
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="USD")
    merchant_name = db.Column(db.String(255), nullable=True)
    merchant_normalized = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=False, default="")
    posted_at = db.Column(db.DateTime, index=True, nullable=False)
    # Card authorisations that have not settled yet
    authorization_pending = db.Column(db.Boolean, nullable=False, default=False)

    location_city = db.Column(db.String(120), nullable=True)
    location_region = db.Column(db.String(120), nullable=True)
    location_country = db.Column(db.String(120), nullable=True)

    # Trip link state
    link_status = db.Column(db.String(16), index=True, nullable=False, default="pending")
    trip_link = db.Column(db.JSON, nullable=True)
    trip_link_suggestion = db.Column(db.JSON, nullable=True)
    link_error = db.Column(db.Text, nullable=True)
    link_updated_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, server_default=db.func.now())

    @property
    def merchant(self) -> str:
        return self.merchant_normalized or self.merchant_name or self.description or ""

    def location_parts(self) -> list[str]:
        return [p for p in (self.location_city, self.location_region, self.location_country) if p]

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def _touch(self, now: datetime | None) -> datetime:
        now = now or datetime.utcnow()
        self.link_updated_at = now
        return now

    def mark_processing(self, now: datetime | None = None):
        self.link_status = "processing"
        self.link_error = None
        self._touch(now)

    def revert_to_pending(self, error: str, now: datetime | None = None):
        self.link_status = "pending"
        self.link_error = error or "Trip linking failed"
        self._touch(now)

    def mark_skipped(self, error: str | None = None, now: datetime | None = None):
        self.link_status = "skipped"
        self.trip_link = None
        self.trip_link_suggestion = None
        self.link_error = error
        self._touch(now)

    def apply_link(
        self,
        *,
        trip_id: str,
        trip_name: str,
        trip_destination: str | None,
        confidence: float,
        method: str,
        reasoning: str | None,
        now: datetime | None = None,
    ):
        now = self._touch(now)
        self.link_status = "linked"
        self.trip_link = {
            "trip_id": trip_id,
            "trip_name": trip_name,
            "trip_destination": trip_destination,
            "confidence": confidence,
            "method": method,
            "reasoning": reasoning,
            "linked_at": now.isoformat(),
        }
        self.trip_link_suggestion = None
        self.link_error = None

    def apply_suggestion(
        self,
        *,
        trip_id: str,
        trip_name: str,
        trip_destination: str | None,
        confidence: float,
        reasoning: str | None,
        now: datetime | None = None,
    ):
        now = self._touch(now)
        self.link_status = "suggested"
        self.trip_link = None
        self.trip_link_suggestion = {
            "trip_id": trip_id,
            "trip_name": trip_name,
            "trip_destination": trip_destination,
            "confidence": confidence,
            "reasoning": reasoning,
            "suggested_at": now.isoformat(),
            "status": "pending",
        }
        self.link_error = None

    def dismiss_suggestion(self, now: datetime | None = None):
        self.link_status = "skipped"
        self.trip_link = None
        self.trip_link_suggestion = None
        self._touch(now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": float(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "merchant": self.merchant,
            "description": self.description,
            "posted_at": self.posted_at.isoformat() if self.posted_at else None,
            "link_status": self.link_status,
            "trip_link": self.trip_link,
            "trip_link_suggestion": self.trip_link_suggestion,
            "link_error": self.link_error,
            "link_updated_at": self.link_updated_at.isoformat() if self.link_updated_at else None,
        }
