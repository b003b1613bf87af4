from typing import Optional, Dict, Any
from flask import current_app, g, has_request_context, request

from ..extensions import db
from ..models.audit_log import AuditLog

def _request_context():
    """
    Returns (request_id, ip, user_agent) or Nones outside a request
    (CLI commands, direct service calls).
    """
    if not has_request_context():
        return None, None, None
    forwarded = request.headers.get("X-Forwarded-For")
    # first hop is the client; the column holds 64 chars
    ip = forwarded.split(",")[0].strip() if forwarded else request.remote_addr
    ip = ip[:64] if ip else None
    ua = request.headers.get("User-Agent")
    return getattr(g, "request_id", None), ip, ua[:255] if ua else None

def audit_log(
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    voter_id: Optional[int] = None,
    election_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    request_id, ip, ua = _request_context()

    log = AuditLog(
        action=action,
        entity_type=entity_type,
        entity_id=entity_id if entity_id else None,
        voter_id=voter_id,
        election_id=election_id,
        request_id=request_id,
        ip_address=ip,
        user_agent=ua,
        details=details or None,
    )
    db.session.add(log)

def safe_audit(action: str, entity_type: str, voter_id=None, election_id=None, details: dict | None = None):
    """
    Best-effort audit for rejected requests.
    Does not break the endpoint if auditing fails.
    """
    try:
        audit_log(
            action=action,
            entity_type=entity_type,
            voter_id=voter_id,
            election_id=election_id,
            details=details or {},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Audit logging failed: %s", action)
