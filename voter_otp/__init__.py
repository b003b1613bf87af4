from dotenv import load_dotenv
from flask import Flask
from flasgger import Swagger

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate, ma, mail
from .middleware.request_id import init_request_id
from .swagger_config import swagger_template

load_dotenv()

def create_app(config_class=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    Swagger(app, template=swagger_template(app))

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    ma.init_app(app)
    mail.init_app(app)

    # Models must be registered before create_all / migrations
    from . import models  # noqa: F401

    # OTP policy is validated here so bad settings fail at startup
    from .services.factory import init_otp_services
    init_otp_services(app)

    # Middleware + errors
    init_request_id(app)
    register_error_handlers(app)

    # Blueprints
    from .api.otp.routes import otp_bp
    app.register_blueprint(otp_bp, url_prefix="/api/validations")

    # CLI
    from .commands import otp_cli
    app.cli.add_command(otp_cli)

    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    return app
