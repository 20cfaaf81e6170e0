from models import db


class TripLinkLease(db.Model):
    """
    Single-row lease guarding the scheduled trip linking run, so that an
    overlapping tick sees a live owner and backs off.
    """

    __tablename__ = "trip_link_leases"

    name = db.Column(db.String(64), primary_key=True)
    owner = db.Column(db.String(64), nullable=False)
    acquired_at = db.Column(db.DateTime, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
