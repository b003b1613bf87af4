from marshmallow import fields, validate, pre_load

from ..extensions import ma

# Ids are stored as 32-bit integers
MAX_ID = 2**31 - 1

class GenerateOtpSchema(ma.Schema):
    voter_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=MAX_ID))
    election_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1, max=MAX_ID))

class VerifyOtpSchema(ma.Schema):
    code = fields.Str(
        required=True,
        validate=validate.Regexp(r"^[A-Za-z0-9]{1,16}$", error="OTP must contain only letters or digits"),
    )
    voter_id = fields.Int(required=False, allow_none=True, strict=True, validate=validate.Range(min=1, max=MAX_ID))
    election_id = fields.Int(required=False, allow_none=True, strict=True, validate=validate.Range(min=1, max=MAX_ID))

    @pre_load
    def strip_code(self, data, **kwargs):
        if isinstance(data, dict) and isinstance(data.get("code"), str):
            data = {**data, "code": data["code"].strip()}
        return data

class VoterSummarySchema(ma.Schema):
    id = fields.Int()
    name = fields.Str()
    unit = fields.Str(allow_none=True)

class ElectionSummarySchema(ma.Schema):
    id = fields.Int()
    name = fields.Str()
    unit = fields.Str(allow_none=True)
    candidate_count = fields.Int(allow_none=True)

class IssueResultSchema(ma.Schema):
    record_id = fields.Str()
    voter = fields.Nested(VoterSummarySchema)
    election = fields.Nested(ElectionSummarySchema)
    contact_address = fields.Str(allow_none=True)
    expires_in_minutes = fields.Int()
    expires_at = fields.DateTime()
    notified = fields.Bool()
    code = fields.Str()

class VerifyResultSchema(ma.Schema):
    record_id = fields.Str()
    voter_id = fields.Int()
    election_id = fields.Int()
    verified_at = fields.DateTime()
