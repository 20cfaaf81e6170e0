import uuid
from datetime import datetime

from models import db


class Trip(db.Model):
    __tablename__ = "trips"

    id = db.Column(db.String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), index=True, nullable=False)

    name = db.Column(db.String(255), nullable=False)
    destination = db.Column(db.String(255), nullable=True)
    start_date = db.Column(db.String(10), nullable=True)  # YYYY-MM-DD
    end_date = db.Column(db.String(10), nullable=True)  # YYYY-MM-DD
    currency = db.Column(db.String(10), nullable=False, default="USD")

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @property
    def is_dated(self) -> bool:
        """Only trips with both dates can be offered to the classifier."""
        return bool(self.start_date and self.end_date)
