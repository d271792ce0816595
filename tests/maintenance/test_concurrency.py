import threading

from errors import InsufficientStock
from modules.maintenance.ledger import StockLedger
from modules.maintenance.schemas import MaintenanceRequest
from store import MemoryStore


def _request(machine_id, stock_id, quantity):
    return MaintenanceRequest.model_validate({
        "machineId": machine_id,
        "date": "2024-05-01",
        "usedStock": [{"stockId": stock_id, "quantity": quantity}],
    })


def test_concurrent_creates_never_oversell():
    store = MemoryStore()
    ledger = StockLedger(store)
    with store.scope():
        machine = store.put("machine", store.new("machine", name="Lathe")).id
        bolt = store.put("stock", store.new("stock", name="bolt", quantity=50)).id

    results = {"ok": 0, "short": 0}
    guard = threading.Lock()
    start = threading.Barrier(20)

    def worker():
        start.wait()
        try:
            ledger.create_maintenance(_request(machine, bolt, 3))
        except InsufficientStock:
            outcome = "short"
        else:
            outcome = "ok"
        with guard:
            results[outcome] += 1

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    # 50 // 3 reservations fit
    assert results == {"ok": 16, "short": 4}
    assert store.get("stock", bolt).quantity == 2
    assert len(store.list("maintenance")) == 16
    assert ledger.reserved_quantities() == {bolt: 48}


def test_readers_never_see_partial_update():
    store = MemoryStore()
    ledger = StockLedger(store)
    with store.scope():
        machine = store.put("machine", store.new("machine", name="Lathe")).id
        bolt = store.put("stock", store.new("stock", name="bolt", quantity=10)).id
        nut = store.put("stock", store.new("stock", name="nut", quantity=10)).id
    record = ledger.create_maintenance(MaintenanceRequest.model_validate({
        "machineId": machine,
        "date": "2024-05-01",
        "usedStock": [{"stockId": bolt, "quantity": 5}, {"stockId": nut, "quantity": 5}],
    }))

    stop = threading.Event()
    violations = []

    def reader():
        while not stop.is_set():
            with store.scope():
                total = store.get("stock", bolt).quantity + store.get("stock", nut).quantity
                reserved = sum(u.quantity for u in store.list("usage"))
            if total + reserved != 20:
                violations.append(total + reserved)

    t = threading.Thread(target=reader)
    t.start()
    for i in range(200):
        qty = 1 + i % 5
        ledger.update_maintenance(record.id, MaintenanceRequest.model_validate({
            "machineId": machine,
            "date": "2024-05-01",
            "usedStock": [{"stockId": bolt, "quantity": qty}, {"stockId": nut, "quantity": 6 - qty}],
        }))
    stop.set()
    t.join(timeout=10)
    assert violations == []
