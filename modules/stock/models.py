"""SQLAlchemy model for the spare parts stock."""

from datetime import datetime

from extensions import db


class StockItem(db.Model):
    """
    A stocked part. ``quantity`` is the quantity on hand: what is physically
    stocked minus what current maintenance records have reserved.
    """

    __tablename__ = "stock"

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(32))
    value = db.Column(db.Float, default=0.0)
    location = db.Column(db.String(120))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<StockItem {self.name}: {self.quantity}>"


def stock_to_dict(item, reserved: int = 0) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "quantity": item.quantity,
        "unit": item.unit,
        "value": item.value,
        "location": item.location,
        "reserved": reserved,
    }
