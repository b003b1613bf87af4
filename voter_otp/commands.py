from datetime import timedelta

import click
from flask import current_app
from flask.cli import AppGroup
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .services.factory import CLOCK_KEY, SETTINGS_KEY
from .services.otp_store import OtpStore
from .utils.audit import audit_log

otp_cli = AppGroup("otp", help="OTP maintenance commands.")


@otp_cli.command("purge-expired")
@click.option("--grace-minutes", default=0, show_default=True, type=click.IntRange(min=0),
              help="Extra minutes to keep expired codes around.")
def purge_expired(grace_minutes):
    """Delete pending OTPs whose expiry window has passed."""
    settings = current_app.extensions[SETTINGS_KEY]
    now = current_app.extensions[CLOCK_KEY]()
    cutoff = now - settings.expiry_window - timedelta(minutes=grace_minutes)

    try:
        removed = OtpStore(db.session).purge_expired(cutoff)
        audit_log(
            action="OTP_SWEEP",
            entity_type="OTP",
            details={"removed": removed, "cutoff": cutoff.isoformat()},
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error while purging expired OTPs")
        raise click.ClickException("Could not purge expired OTPs; see logs.")

    click.echo(f"Removed {removed} expired OTP code(s).")
