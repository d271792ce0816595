"""SQLAlchemy models for machines and the sensors they own."""

from datetime import date, datetime

from extensions import db

UNDER_MAINTENANCE = "under maintenance"
SENSOR_TYPES = ["temperature", "pressure", "vibration", "humidity", "current", "speed"]


class Machine(db.Model):
    __tablename__ = "machines"

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    model = db.Column(db.String(120))
    manufacturer = db.Column(db.String(120))
    year = db.Column(db.Integer)
    status = db.Column(db.String(64), default="active")
    # weak reference: deleting the operator nulls it, never the machine
    operator_id = db.Column(db.String(36), db.ForeignKey("operators.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    operator = db.relationship("Operator")

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Machine {self.name}>"


class Sensor(db.Model):
    __tablename__ = "sensors"

    id = db.Column(db.String(36), primary_key=True)
    machine_id = db.Column(db.String(36), db.ForeignKey("machines.id", ondelete="CASCADE"),
                           nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(64))
    position = db.Column(db.Integer, default=0)


def machines_under_maintenance(store, today: date | None = None) -> set[str]:
    """Ids of machines with a maintenance record dated ``today``."""
    today = today or date.today()
    return {record.machine_id for record in store.find("maintenance", date=today)}


def display_status(machine, busy_machine_ids) -> str:
    """
    Status shown to clients. A machine with a maintenance record dated today
    reads as "under maintenance"; the stored status is left untouched.
    """
    if machine.id in busy_machine_ids:
        return UNDER_MAINTENANCE
    return machine.status


def machine_to_dict(machine, sensors, status: str | None = None) -> dict:
    return {
        "id": machine.id,
        "name": machine.name,
        "model": machine.model,
        "manufacturer": machine.manufacturer,
        "year": machine.year,
        "status": status if status is not None else machine.status,
        "operatorId": machine.operator_id,
        "sensors": [sensor_to_dict(s) for s in sensors],
    }


def sensor_to_dict(sensor) -> dict:
    return {"id": sensor.id, "name": sensor.name, "type": sensor.type}
