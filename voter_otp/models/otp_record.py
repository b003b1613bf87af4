import enum
import uuid
from datetime import datetime
from ..utils.clock import utcnow
from sqlalchemy import Uuid, text
from ..extensions import db


class OtpStatus(str, enum.Enum):
    PENDING = "PENDING"
    USED = "USED"


class OtpRecord(db.Model):
    __tablename__ = "otp_records"

    id = db.Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    code = db.Column(db.String(16), nullable=False, index=True)
    status = db.Column(
        db.Enum(OtpStatus, native_enum=False, length=16, name="otp_status"),
        nullable=False,
        default=OtpStatus.PENDING,
    )

    voter_id = db.Column(db.Integer, db.ForeignKey("voters.id", ondelete="CASCADE"), nullable=False, index=True)
    election_id = db.Column(db.Integer, db.ForeignKey("elections.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    used_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        # At most one pending code per voter and election
        db.Index(
            "uq_otp_records_pending_pair",
            "voter_id",
            "election_id",
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
        # Pending codes must be unambiguous for code-only lookups
        db.Index(
            "uq_otp_records_pending_code",
            "code",
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
        db.Index("ix_otp_records_pair_status", "voter_id", "election_id", "status"),
    )

    @property
    def is_used(self) -> bool:
        return self.status == OtpStatus.USED

    def expires_at(self, window):
        return self.created_at + window

    def is_expired(self, now: datetime, window) -> bool:
        return now > self.expires_at(window)

    def __repr__(self) -> str:
        return f"<OtpRecord id={self.id} voter={self.voter_id} election={self.election_id} status={self.status.value}>"
