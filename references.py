"""Existence checks for foreign identifiers carried in request payloads."""

from typing import Any

from errors import InvalidReference, UnknownStockItem
from store import EntityStore

REFERENCE_KINDS = ("machine", "operator", "stock")

_LABELS = {
    "machine": "Machine",
    "operator": "Operator",
    "stock": "Stock item",
}


class ReferenceValidator:
    """Confirms that a machine, operator or stock item id resolves."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def exists(self, kind: str, entity_id: str | None) -> bool:
        if kind not in REFERENCE_KINDS:
            raise ValueError(f"{kind!r} is not a referenceable kind")
        if not entity_id:
            return False
        return self.store.get(kind, entity_id) is not None

    def require(self, kind: str, entity_id: str | None, field: str | None = None) -> Any:
        """Return the referenced entity or raise the matching 400-class error."""
        if not self.exists(kind, entity_id):
            label = _LABELS[kind]
            error_cls = UnknownStockItem if kind == "stock" else InvalidReference
            raise error_cls(
                f"{label} '{entity_id}' does not exist",
                kind=kind,
                id=entity_id,
                field=field or f"{kind}Id",
            )
        return self.store.get(kind, entity_id)
