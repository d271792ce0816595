"""SQLAlchemy model for machine operators."""

from datetime import datetime

from extensions import db


class Operator(db.Model):
    __tablename__ = "operators"

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Operator {self.name}>"


def operator_to_dict(operator) -> dict:
    return {"id": operator.id, "name": operator.name}
