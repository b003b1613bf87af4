from .unit import OrganizationalUnit  # noqa: F401
from .voter import Voter  # noqa: F401
from .election import Election  # noqa: F401
from .candidate import Candidate  # noqa: F401
from .otp_record import OtpRecord, OtpStatus  # noqa: F401
from .audit_log import AuditLog  # noqa: F401

# Import ALL models so SQLAlchemy registers them

__all__ = [
    "OrganizationalUnit",
    "Voter",
    "Election",
    "Candidate",
    "OtpRecord",
    "OtpStatus",
    "AuditLog",
]
