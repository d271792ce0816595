"""SQLAlchemy models for maintenance records and the stock they consume."""

from datetime import datetime

from extensions import db

MAINTENANCE_STATUSES = ["scheduled", "in_progress", "completed", "cancelled"]


class Maintenance(db.Model):
    __tablename__ = "maintenance"

    id = db.Column(db.String(36), primary_key=True)
    # soft reference: records outlive a deleted machine
    machine_id = db.Column(db.String(36), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    description = db.Column(db.Text, default="")
    status = db.Column(db.String(32), default="scheduled")  # scheduled|in_progress|completed|cancelled
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Maintenance {self.id} {self.date}>"


class UsedStockItem(db.Model):
    """
    One usage entry of a maintenance record. ``stock_id`` is a soft reference:
    deleting the stock item leaves the row in place.
    """

    __tablename__ = "maintenance_stock"

    id = db.Column(db.String(36), primary_key=True)
    maintenance_id = db.Column(db.String(36), db.ForeignKey("maintenance.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    stock_id = db.Column(db.String(36), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    position = db.Column(db.Integer, default=0)


def usage_to_dict(usage) -> dict:
    return {"stockId": usage.stock_id, "quantity": usage.quantity}


def maintenance_to_dict(record, usages) -> dict:
    return {
        "id": record.id,
        "machineId": record.machine_id,
        "date": record.date.isoformat() if record.date else None,
        "description": record.description,
        "status": record.status,
        "usedStock": [usage_to_dict(u) for u in usages],
    }
