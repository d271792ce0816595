# seed_demo.py
from app import create_app
from store import current_store

OPERATORS = ["Ana Souza", "Bruno Lima"]

MACHINES = [
    {
        "name": "Lathe L-200",
        "model": "L-200",
        "manufacturer": "Romi",
        "year": 2018,
        "operator": "Ana Souza",
        "sensors": [("Spindle temperature", "temperature"), ("Spindle vibration", "vibration")],
    },
    {
        "name": "Hydraulic press P-40",
        "model": "P-40",
        "manufacturer": "Schuler",
        "year": 2015,
        "operator": "Bruno Lima",
        "sensors": [("Line pressure", "pressure")],
    },
]

STOCK = [
    ("Bolt M8", 100, "pcs", 0.35, "Shelf A1"),
    ("Nut M8", 200, "pcs", 0.10, "Shelf A1"),
    ("Hydraulic oil ISO 46", 40, "l", 6.90, "Oil store"),
    ("Bearing 6204", 12, "pcs", 8.50, "Shelf B3"),
]


def run():
    store = current_store()
    with store.scope():
        operators = {o.name: o for o in store.list("operator")}
        for name in OPERATORS:
            if name not in operators:
                operators[name] = store.put("operator", store.new("operator", name=name))

        known_machines = {m.name for m in store.list("machine")}
        for entry in MACHINES:
            if entry["name"] in known_machines:
                continue
            machine = store.put("machine", store.new(
                "machine",
                name=entry["name"],
                model=entry["model"],
                manufacturer=entry["manufacturer"],
                year=entry["year"],
                status="active",
                operator_id=operators[entry["operator"]].id,
            ))
            for position, (sensor_name, sensor_type) in enumerate(entry["sensors"]):
                store.put("sensor", store.new(
                    "sensor", machine_id=machine.id, name=sensor_name, type=sensor_type, position=position,
                ))

        known_stock = {i.name for i in store.list("stock")}
        for name, quantity, unit, value, location in STOCK:
            if name not in known_stock:
                store.put("stock", store.new(
                    "stock", name=name, quantity=quantity, unit=unit, value=value, location=location,
                ))
    print("Seed OK: demo operators, machines and stock loaded.")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        run()
