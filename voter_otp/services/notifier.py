from flask import current_app
from flask_mail import Message

from ..extensions import mail
from .outcomes import NotifyResult


def render_otp_email(display_name: str, code: str, expiry_minutes: int, election_name: str | None = None) -> str:
    greeting = f"Hello {display_name}," if display_name else "Hello,"
    target = f" for the election \"{election_name}\"" if election_name else ""
    return (
        f"{greeting}\n\n"
        f"Your voting OTP code{target} is: {code}\n\n"
        f"It expires in {expiry_minutes} minutes.\n"
        "If you did not request this code, please ignore this email."
    )


class MailNotifier:
    """Delivers OTP codes by email through Flask-Mail."""

    def send(self, contact_address: str | None, subject: str, body: str) -> NotifyResult:
        if not contact_address:
            return NotifyResult.failure("Voter has no contact address")

        sender = current_app.config.get("MAIL_DEFAULT_SENDER")
        if not sender:
            return NotifyResult.failure(
                "MAIL_DEFAULT_SENDER is not configured. Set MAIL_DEFAULT_SENDER in .env"
            )

        msg = Message(subject=subject, recipients=[contact_address], body=body, sender=sender)
        try:
            mail.send(msg)
        except Exception as exc:  # SMTP, socket and auth errors all end up here
            return NotifyResult.failure(f"{type(exc).__name__}: {exc}")
        return NotifyResult.success(recipient=contact_address)
