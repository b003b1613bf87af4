from flask import jsonify, g
from werkzeug.exceptions import HTTPException

from .services.outcomes import OtpErrorKind

# Domain error kind -> HTTP status
STATUS_BY_KIND = {
    OtpErrorKind.VOTER_NOT_FOUND: 404,
    OtpErrorKind.ELECTION_NOT_FOUND: 404,
    OtpErrorKind.VOTER_INELIGIBLE_STATE: 403,
    OtpErrorKind.ELECTION_CLOSED: 403,
    OtpErrorKind.UNIT_MISMATCH: 403,
    OtpErrorKind.ALREADY_VOTED: 409,
    OtpErrorKind.CODE_MISMATCH: 400,
    OtpErrorKind.EXPIRED: 410,
    OtpErrorKind.ALREADY_CONSUMED: 409,
    OtpErrorKind.VALIDATION_FAILED: 400,
    OtpErrorKind.STORE_UNAVAILABLE: 503,
}

def _payload(code: str, message: str, details=None, status=400):
    return (
        jsonify({
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details or None,
            },
            "request_id": getattr(g, "request_id", None),
        }),
        status,
    )

def otp_error_response(error):
    """Render an OtpError returned by the issuer/verifier."""
    return _payload(
        code=error.code,
        message=error.message,
        details=error.details,
        status=STATUS_BY_KIND.get(error.kind, 400),
    )

def register_error_handlers(app):
    # Generic HTTP errors (404, 405, 400 from validate_or_abort, ...)
    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        desc = e.description

        # If we pass structured error info via abort(description=dict)
        if isinstance(desc, dict):
            code = desc.get("code") or e.name.replace(" ", "_").upper()
            message = desc.get("message") or e.name
            details = desc.get("errors") or desc.get("details")
            return _payload(code=code, message=message, details=details, status=e.code or 400)

        return _payload(
            code=e.name.replace(" ", "_").upper(),
            message=desc or e.name,
            details=None,
            status=e.code or 400
        )

    @app.errorhandler(404)
    def handle_404(_):
        return _payload("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return handle_http_exception(e)
        app.logger.exception("Unhandled exception request_id=%s", getattr(g, "request_id", None))
        # Don't leak internals
        return _payload("INTERNAL_SERVER_ERROR", "An unexpected error occurred", status=500)
