def swagger_template(app=None):
    title = "Voter OTP API"
    version = "1.0.0"

    if app:
        title = app.config.get("SWAGGER_TITLE", title)
        version = app.config.get("SWAGGER_VERSION", version)

    return {
        "swagger": "2.0",
        "info": {
            "title": title,
            "version": version,
            "description": "Issues and verifies one-time passcodes that gate voting in an election.",
        },
        "definitions": {
            "ErrorResponse": {
                "type": "object",
                "properties": {
                    "success": {"type": "boolean", "example": False},
                    "error": {
                        "type": "object",
                        "properties": {
                            "code": {"type": "string", "example": "CODE_MISMATCH"},
                            "message": {"type": "string", "example": "OTP code, voter or election do not match"},
                            "details": {"type": "object"}
                        }
                    },
                    "request_id": {"type": "string"}
                }
            }
        }
    }
