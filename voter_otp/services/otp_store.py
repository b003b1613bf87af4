from datetime import datetime

from sqlalchemy import case, delete, select, update

from ..models.otp_record import OtpRecord, OtpStatus


class OtpStore:
    """
    Persistence for OTP records.

    Every method works on the caller's session and at most flushes; the
    issuer/verifier decide when to commit or roll back.
    """

    def __init__(self, session):
        self._session = session

    def purge_stale(self, voter_id: int, election_id: int, older_than: datetime) -> int:
        stmt = (
            delete(OtpRecord)
            .where(
                OtpRecord.voter_id == voter_id,
                OtpRecord.election_id == election_id,
                OtpRecord.status == OtpStatus.PENDING,
                OtpRecord.created_at < older_than,
            )
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount or 0

    def supersede_pending(self, voter_id: int, election_id: int) -> int:
        """Drop any still-valid pending code of the pair; a new one replaces it."""
        stmt = (
            delete(OtpRecord)
            .where(
                OtpRecord.voter_id == voter_id,
                OtpRecord.election_id == election_id,
                OtpRecord.status == OtpStatus.PENDING,
            )
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount or 0

    def purge_expired(self, older_than: datetime) -> int:
        stmt = (
            delete(OtpRecord)
            .where(
                OtpRecord.status == OtpStatus.PENDING,
                OtpRecord.created_at < older_than,
            )
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount or 0

    def create(self, voter_id: int, election_id: int, code: str, created_at: datetime) -> OtpRecord:
        record = OtpRecord(
            code=code,
            status=OtpStatus.PENDING,
            voter_id=voter_id,
            election_id=election_id,
            created_at=created_at,
        )
        self._session.add(record)
        self._session.flush()
        return record

    def find_by_code(self, code: str, voter_id: int | None = None, election_id: int | None = None) -> OtpRecord | None:
        """
        Pending match first; otherwise the latest used record with that code,
        so callers can tell "already used" apart from "never issued".
        """
        stmt = select(OtpRecord).where(OtpRecord.code == code)
        if voter_id is not None:
            stmt = stmt.where(OtpRecord.voter_id == voter_id)
        if election_id is not None:
            stmt = stmt.where(OtpRecord.election_id == election_id)

        pending_first = case((OtpRecord.status == OtpStatus.PENDING, 0), else_=1)
        stmt = stmt.order_by(pending_first, OtpRecord.created_at.desc()).limit(1)
        return self._session.execute(stmt).scalar_one_or_none()

    def find_used(self, voter_id: int, election_id: int) -> OtpRecord | None:
        stmt = (
            select(OtpRecord)
            .where(
                OtpRecord.voter_id == voter_id,
                OtpRecord.election_id == election_id,
                OtpRecord.status == OtpStatus.USED,
            )
            .order_by(OtpRecord.created_at.desc())
            .limit(1)
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def mark_used(self, record: OtpRecord, used_at: datetime) -> bool:
        """
        Compare-and-set PENDING -> USED. Returns False when a concurrent
        request already consumed (or deleted) the record.
        """
        stmt = (
            update(OtpRecord)
            .where(OtpRecord.id == record.id, OtpRecord.status == OtpStatus.PENDING)
            .values(status=OtpStatus.USED, used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        changed = self._session.execute(stmt).rowcount or 0
        if changed:
            self._session.refresh(record)
        return changed == 1

    def delete(self, record: OtpRecord) -> bool:
        """
        Delete a record only while it is still PENDING. Returns False when a
        concurrent request consumed it first; used records are never removed.
        """
        stmt = (
            delete(OtpRecord)
            .where(OtpRecord.id == record.id, OtpRecord.status == OtpStatus.PENDING)
            .execution_options(synchronize_session=False)
        )
        return (self._session.execute(stmt).rowcount or 0) == 1
