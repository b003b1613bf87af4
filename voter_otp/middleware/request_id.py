import re
import uuid
from flask import g, request

# Accept caller-supplied ids only if they look like correlation ids
_VALID_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

def init_request_id(app):
    @app.before_request
    def _assign_request_id():
        incoming = request.headers.get("X-Request-Id", "")
        g.request_id = incoming if _VALID_ID.match(incoming) else str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):
        if hasattr(g, "request_id"):
            response.headers["X-Request-Id"] = g.request_id
        return response
