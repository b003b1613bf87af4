from flask import abort

def validate_or_abort(schema, payload):
    """Load payload through a marshmallow schema or abort with VALIDATION_FAILED."""
    errors = schema.validate(payload)
    if errors:
        abort(
            400,
            description={
                "code": "VALIDATION_FAILED",
                "message": "Validation error",
                "errors": errors,
            },
        )
    return schema.load(payload)
