from flask import Blueprint, request, current_app
from flasgger import swag_from

from ...errors import otp_error_response
from ...schemas.otp import GenerateOtpSchema, VerifyOtpSchema, IssueResultSchema, VerifyResultSchema
from ...services.factory import build_issuer, build_verifier
from ...services.outcomes import OtpError, OtpErrorKind
from ...utils.audit import safe_audit
from ...utils.validation import validate_or_abort

otp_bp = Blueprint("otp", __name__)

generate_schema = GenerateOtpSchema()
verify_schema = VerifyOtpSchema()
issue_result_schema = IssueResultSchema()
verify_result_schema = VerifyResultSchema()

# Rejections worth keeping in the audit trail
_AUDITED_ISSUE_DENIALS = {
    OtpErrorKind.VOTER_INELIGIBLE_STATE,
    OtpErrorKind.ELECTION_CLOSED,
    OtpErrorKind.UNIT_MISMATCH,
    OtpErrorKind.ALREADY_VOTED,
}
_AUDITED_VERIFY_DENIALS = {
    OtpErrorKind.CODE_MISMATCH,
    OtpErrorKind.ALREADY_CONSUMED,
}


@otp_bp.post("/generate-otp")
@swag_from({
    "tags": ["OTP"],
    "summary": "Issue a voting OTP",
    "description": "Checks voter/election eligibility, stores a fresh code and emails it to the voter. "
                   "Outside production the code is also returned in the response.",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "voter_id": {"type": "integer", "example": 1},
                "election_id": {"type": "integer", "example": 5},
            },
            "required": ["voter_id", "election_id"],
        },
    }],
    "responses": {
        200: {"description": "OTP issued"},
        400: {"description": "Validation error", "schema": {"$ref": "#/definitions/ErrorResponse"}},
        403: {"description": "Voter not eligible (state, unit or schedule)"},
        404: {"description": "Voter/Election not found"},
        409: {"description": "Voter already voted in this election"},
        503: {"description": "Store unavailable"},
    },
})
def generate_otp():
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(generate_schema, payload)

    voter_id = payload["voter_id"]
    election_id = payload["election_id"]

    outcome = build_issuer().issue(voter_id, election_id)

    if isinstance(outcome, OtpError):
        if outcome.kind in _AUDITED_ISSUE_DENIALS:
            safe_audit(
                action="OTP_ISSUE_DENIED",
                entity_type="OTP",
                voter_id=voter_id,
                election_id=election_id,
                details={"reason": outcome.code},
            )
        return otp_error_response(outcome)

    data = issue_result_schema.dump(outcome)
    if outcome.code is None:
        data.pop("code", None)
    else:
        current_app.logger.debug("Returning OTP in response (APP_ENV=%s)", current_app.config.get("APP_ENV"))

    return {"success": True, "message": "OTP code generated", "data": data}, 200


@otp_bp.post("/verify-otp")
@swag_from({
    "tags": ["OTP"],
    "summary": "Verify and consume a voting OTP",
    "description": "Does not record a vote. On success the caller may proceed to the ballot.",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "code": {"type": "string", "example": "A1B2C3"},
                "voter_id": {"type": "integer", "example": 1},
                "election_id": {"type": "integer", "example": 5},
            },
            "required": ["code"],
        },
    }],
    "responses": {
        200: {"description": "OTP valid and consumed"},
        400: {"description": "Validation error or code mismatch"},
        409: {"description": "Code already used"},
        410: {"description": "Code expired"},
        503: {"description": "Store unavailable"},
    },
})
def verify_otp():
    payload = request.get_json(silent=True) or {}
    payload = validate_or_abort(verify_schema, payload)

    voter_id = payload.get("voter_id")
    election_id = payload.get("election_id")

    outcome = build_verifier().verify(payload["code"], voter_id=voter_id, election_id=election_id)

    if isinstance(outcome, OtpError):
        if outcome.kind in _AUDITED_VERIFY_DENIALS:
            safe_audit(
                action="OTP_VERIFY_DENIED",
                entity_type="OTP",
                voter_id=voter_id,
                election_id=election_id,
                details={"reason": outcome.code},
            )
        return otp_error_response(outcome)

    return {
        "success": True,
        "message": "OTP code verified",
        "data": verify_result_schema.dump(outcome),
    }, 200
