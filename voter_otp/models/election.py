from ..utils.clock import utcnow
from ..extensions import db

class Election(db.Model):
    __tablename__ = "elections"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)

    unit_id = db.Column(db.Integer, db.ForeignKey("organizational_units.id"), nullable=False, index=True)
    unit = db.relationship("OrganizationalUnit", lazy="joined")

    # Voting window; only consulted when the schedule check is enabled
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    start_time = db.Column(db.Time, nullable=True)
    end_time = db.Column(db.Time, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    candidates = db.relationship(
        "Candidate",
        backref="election",
        lazy=True,
        cascade="all, delete-orphan"
    )
