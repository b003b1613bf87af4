import uuid
from ..utils.clock import utcnow
from sqlalchemy import Uuid
from ..extensions import db

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # What happened
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. OTP_ISSUED
    entity_type = db.Column(db.String(50), nullable=True, index=True)  # e.g. OTP
    entity_id = db.Column(db.String(64), nullable=True, index=True)

    # Voter/election the event concerns, when known
    voter_id = db.Column(db.Integer, nullable=True, index=True)
    election_id = db.Column(db.Integer, nullable=True, index=True)

    # Request context (empty for CLI/maintenance events)
    request_id = db.Column(db.String(64), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    # Extra structured details (never the raw code of a pending OTP)
    details = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
