from ..utils.clock import utcnow
from ..extensions import db

class Voter(db.Model):
    __tablename__ = "voters"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False, default="")
    email = db.Column(db.String(255), nullable=True)

    # Free text as imported (e.g. "Active ", "in-training"); compared normalized
    state = db.Column(db.String(40), nullable=True)

    unit_id = db.Column(db.Integer, db.ForeignKey("organizational_units.id"), nullable=False, index=True)
    unit = db.relationship("OrganizationalUnit", lazy="joined")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def contact_address(self) -> str | None:
        # Imported spreadsheets often carry stray whitespace
        return self.email.strip() if self.email else None

    @property
    def normalized_state(self) -> str:
        return (self.state or "").strip().lower()
