"""
Stock ledger: keeps stock quantities consistent with the maintenance records
that consume them.

For every stock item the ledger maintains

    quantity on hand = quantity physically stocked
                       - sum of quantities reserved by existing maintenance records

without ever storing the physically stocked figure. Every reservation made for
a record is matched by exactly one release (when the record is updated away
from it or deleted), and every create/update/delete runs inside one store
scope, so no reader sees a half-applied reservation.

Failure handling:
- Each operation keeps a journal of the stock adjustments it has applied.
- On any exception (insufficient stock, unknown item, storage failure, or an
  abnormal exit such as KeyboardInterrupt) the journal is unwound newest-first
  before the exception propagates, so stock quantities are exactly as they
  were before the call.
- A release of a stock item deleted out-of-band is skipped and not journaled,
  so unwinding never tries to reserve an item that no longer exists.
- Only the first shortage in payload order is reported.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Iterator

from flask import current_app

from errors import InsufficientStock, UnknownStockItem
from modules.maintenance.schemas import MaintenanceRequest
from references import ReferenceValidator
from store import EntityStore, get_or_404

logger = logging.getLogger(__name__)


class _Journal:
    """Applied stock adjustments of one ledger operation, for unwinding."""

    def __init__(self, ledger: StockLedger) -> None:
        self._ledger = ledger
        self._applied: list[tuple[str, int]] = []

    def reserve(self, stock_id: str, quantity: int) -> None:
        self._ledger.reserve(stock_id, quantity)
        self._applied.append((stock_id, -quantity))

    def release(self, stock_id: str, quantity: int) -> None:
        if self._ledger.release(stock_id, quantity):
            self._applied.append((stock_id, quantity))

    def unwind(self) -> None:
        while self._applied:
            stock_id, delta = self._applied.pop()
            self._ledger._adjust(stock_id, -delta)


class StockLedger:
    """Reserve/release primitives and the maintenance create/update/delete flows."""

    def __init__(self, store: EntityStore, validator: ReferenceValidator | None = None) -> None:
        self.store = store
        self.validator = validator or ReferenceValidator(store)

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def reserve(self, stock_id: str, quantity: int):
        """Take ``quantity`` units of a stock item; never lets it go negative."""
        if quantity <= 0:
            raise ValueError(f"reserve quantity must be positive, got {quantity}")
        with self.store.scope():
            item = self.store.get("stock", stock_id)
            if item is None:
                raise UnknownStockItem(
                    f"Stock item '{stock_id}' does not exist",
                    kind="stock", id=stock_id, field="usedStock",
                )
            if item.quantity < quantity:
                logger.warning(
                    "stock.reserve.rejected stock_id=%s available=%d requested=%d",
                    stock_id, item.quantity, quantity,
                )
                raise InsufficientStock(
                    f"Insufficient stock for '{item.name}': "
                    f"{item.quantity} available, {quantity} requested",
                    stock_id=stock_id,
                    name=item.name,
                    available=item.quantity,
                    requested=quantity,
                    shortfall=quantity - item.quantity,
                )
            item.quantity -= quantity
            self.store.put("stock", item)
            return item

    def release(self, stock_id: str, quantity: int) -> bool:
        """Give back ``quantity`` units. Returns False when the item no longer exists."""
        with self.store.scope():
            item = self.store.get("stock", stock_id)
            if item is None:
                logger.warning(
                    "stock.release.skipped stock_id=%s quantity=%d (item deleted)",
                    stock_id, quantity,
                )
                return False
            item.quantity += quantity
            self.store.put("stock", item)
            return True

    def _adjust(self, stock_id: str, delta: int) -> None:
        # unchecked; only used to undo adjustments this ledger just made
        item = self.store.get("stock", stock_id)
        if item is not None:
            item.quantity += delta
            self.store.put("stock", item)

    @contextmanager
    def _journal(self) -> Iterator[_Journal]:
        journal = _Journal(self)
        try:
            yield journal
        except BaseException:
            journal.unwind()
            raise

    # ------------------------------------------------------------------
    # Maintenance flows
    # ------------------------------------------------------------------

    def _write_usages(self, maintenance_id: str, request: MaintenanceRequest) -> list:
        usages = []
        for position, entry in enumerate(request.used_stock):
            usage = self.store.new(
                "usage",
                maintenance_id=maintenance_id,
                stock_id=entry.stock_id,
                quantity=entry.quantity,
                position=position,
            )
            usages.append(self.store.put("usage", usage))
        return usages

    def create_maintenance(self, request: MaintenanceRequest):
        """Reserve every usage entry in order, then persist the record."""
        with self.store.scope():
            self.validator.require("machine", request.machine_id, field="machineId")
            with self._journal() as journal:
                for entry in request.used_stock:
                    journal.reserve(entry.stock_id, entry.quantity)
                record = self.store.put("maintenance", self.store.new(
                    "maintenance",
                    machine_id=request.machine_id,
                    date=request.date,
                    description=request.description,
                    status=request.status,
                ))
                self._write_usages(record.id, request)
        logger.info(
            "maintenance.created id=%s machine_id=%s entries=%d",
            record.id, record.machine_id, len(request.used_stock),
        )
        return record

    def update_maintenance(self, maintenance_id: str, request: MaintenanceRequest):
        """
        Swap the record's reservation: release what it holds, reserve the new
        entries, replace the stored fields and usage rows. On failure the
        stock and the stored record are exactly as before the call.
        """
        with self.store.scope():
            record = get_or_404(self.store, "maintenance", maintenance_id)
            self.validator.require("machine", request.machine_id, field="machineId")
            previous = self.store.list_children("maintenance", maintenance_id)
            with self._journal() as journal:
                for usage in previous:
                    journal.release(usage.stock_id, usage.quantity)
                for entry in request.used_stock:
                    journal.reserve(entry.stock_id, entry.quantity)

                for usage in previous:
                    self.store.delete("usage", usage.id)
                record.machine_id = request.machine_id
                record.date = request.date
                record.description = request.description
                record.status = request.status
                self.store.put("maintenance", record)
                self._write_usages(maintenance_id, request)
        logger.info(
            "maintenance.updated id=%s released=%d reserved=%d",
            maintenance_id, len(previous), len(request.used_stock),
        )
        return record

    def delete_maintenance(self, maintenance_id: str) -> None:
        """Release everything the record holds, then delete it."""
        with self.store.scope():
            get_or_404(self.store, "maintenance", maintenance_id)
            usages = self.store.list_children("maintenance", maintenance_id)
            with self._journal() as journal:
                for usage in usages:
                    journal.release(usage.stock_id, usage.quantity)
                for usage in usages:
                    self.store.delete("usage", usage.id)
                self.store.delete("maintenance", maintenance_id)
        logger.info("maintenance.deleted id=%s released=%d", maintenance_id, len(usages))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def reserved_quantities(self) -> dict[str, int]:
        """Total quantity currently reserved per stock id by existing records."""
        reserved: dict[str, int] = defaultdict(int)
        for usage in self.store.list("usage"):
            reserved[usage.stock_id] += usage.quantity
        return dict(reserved)


def current_ledger() -> StockLedger:
    """Ledger bound to the running app by ``create_app()``."""
    return current_app.extensions["stock_ledger"]
