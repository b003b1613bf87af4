"""
Typed outcomes returned by the OTP services.

Domain failures are values, not exceptions: every service call returns either
its result object or an ``OtpError``. Callers branch with ``isinstance``.
"""
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


class OtpErrorKind(str, enum.Enum):
    VOTER_NOT_FOUND = "VOTER_NOT_FOUND"
    ELECTION_NOT_FOUND = "ELECTION_NOT_FOUND"
    VOTER_INELIGIBLE_STATE = "VOTER_INELIGIBLE_STATE"
    ELECTION_CLOSED = "ELECTION_CLOSED"
    UNIT_MISMATCH = "UNIT_MISMATCH"
    ALREADY_VOTED = "ALREADY_VOTED"
    CODE_MISMATCH = "CODE_MISMATCH"
    EXPIRED = "EXPIRED"
    ALREADY_CONSUMED = "ALREADY_CONSUMED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


DEFAULT_MESSAGES = {
    OtpErrorKind.VOTER_NOT_FOUND: "The specified voter does not exist",
    OtpErrorKind.ELECTION_NOT_FOUND: "The specified election does not exist",
    OtpErrorKind.VOTER_INELIGIBLE_STATE: "The voter's current state does not allow voting",
    OtpErrorKind.ELECTION_CLOSED: "The election is not open for voting at this time",
    OtpErrorKind.UNIT_MISMATCH: "The voter and the election must belong to the same organizational unit",
    OtpErrorKind.ALREADY_VOTED: "You have already voted in this election",
    OtpErrorKind.CODE_MISMATCH: "OTP code, voter or election do not match",
    OtpErrorKind.EXPIRED: "The OTP code has expired. Request a new one.",
    OtpErrorKind.ALREADY_CONSUMED: "The OTP code has already been used",
    OtpErrorKind.VALIDATION_FAILED: "Validation error",
    OtpErrorKind.STORE_UNAVAILABLE: "The OTP service is temporarily unavailable. Please try again.",
}


@dataclass(frozen=True)
class OtpError:
    kind: OtpErrorKind
    message: str = ""
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def of(cls, kind: OtpErrorKind, message: Optional[str] = None, **details) -> "OtpError":
        return cls(kind=kind, message=message or DEFAULT_MESSAGES[kind], details=details or None)

    @property
    def code(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class Eligibility:
    voter: Any
    election: Any


@dataclass(frozen=True)
class IssueResult:
    record_id: str
    voter: Dict[str, Any]
    election: Dict[str, Any]
    contact_address: Optional[str]
    expires_in_minutes: int
    expires_at: datetime
    notified: bool
    # Only populated outside production
    code: Optional[str] = None


@dataclass(frozen=True)
class VerifyResult:
    record_id: str
    voter_id: int
    election_id: int
    verified_at: datetime


@dataclass(frozen=True)
class NotifyResult:
    ok: bool
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, **meta) -> "NotifyResult":
        return cls(ok=True, meta=meta)

    @classmethod
    def failure(cls, error: str) -> "NotifyResult":
        return cls(ok=False, error=error)
