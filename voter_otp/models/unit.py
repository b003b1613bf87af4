from ..utils.clock import utcnow
from ..extensions import db

class OrganizationalUnit(db.Model):
    __tablename__ = "organizational_units"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
