"""
Entity store: keyed storage for machines, sensors, operators, stock items,
maintenance records and the maintenance usage rows.

Two implementations share the ``EntityStore`` protocol:

- ``SqlAlchemyStore`` keeps entities in the Flask-SQLAlchemy models; one
  database transaction per outermost scope.
- ``MemoryStore`` keeps entities in plain dicts (in-process deployments and
  ledger tests).

``scope()`` is the unit of visibility for multi-step mutations. One re-entrant
lock per store serialises scopes, a nested scope joins the one already held by
the thread, and the outermost scope commits on success or rolls back on any
exception before re-raising it.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from types import SimpleNamespace
from typing import Any, ContextManager, Iterator, Protocol, runtime_checkable

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from errors import NotFound, StorageError

logger = logging.getLogger(__name__)

KINDS = ("machine", "sensor", "operator", "stock", "maintenance", "usage")

# parent kind -> (child kind, attribute on the child holding the parent id)
CHILDREN = {
    "machine": ("sensor", "machine_id"),
    "maintenance": ("usage", "maintenance_id"),
}


def new_id() -> str:
    return str(uuid.uuid4())


@runtime_checkable
class EntityStore(Protocol):
    """Storage contract consumed by the reference validator and the ledger."""

    def new(self, kind: str, **fields: Any) -> Any:
        """Build an unsaved entity of ``kind``."""
        ...

    def get(self, kind: str, entity_id: str | None) -> Any | None:
        ...

    def put(self, kind: str, entity: Any) -> Any:
        """Insert or update ``entity``; assigns a fresh id when it has none."""
        ...

    def delete(self, kind: str, entity_id: str) -> bool:
        ...

    def list(self, kind: str) -> list[Any]:
        ...

    def find(self, kind: str, **criteria: Any) -> list[Any]:
        """Entities of ``kind`` whose attributes equal every criterion."""
        ...

    def list_children(self, parent_kind: str, parent_id: str) -> list[Any]:
        """Sensors of a machine or usage rows of a maintenance record, in order."""
        ...

    def scope(self) -> ContextManager[EntityStore]:
        ...


def _child_of(parent_kind: str) -> tuple[str, str]:
    try:
        return CHILDREN[parent_kind]
    except KeyError:
        raise ValueError(f"{parent_kind!r} has no child entities") from None


class _ScopedStore:
    """Lock and nesting bookkeeping shared by both stores."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._local = threading.local()

    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    def in_scope(self) -> bool:
        return self._depth() > 0

    def _begin(self) -> None:
        pass

    def _commit(self) -> None:
        pass

    def _rollback(self) -> None:
        pass

    @contextmanager
    def scope(self) -> Iterator[Any]:
        with self._lock:
            outermost = self._depth() == 0
            if outermost:
                self._begin()
            self._local.depth = self._depth() + 1
            try:
                yield self
                if outermost:
                    self._commit()
            except BaseException:
                if outermost:
                    self._rollback()
                raise
            finally:
                self._local.depth -= 1


class MemoryStore(_ScopedStore):
    """Dict-backed store. Entities are ``SimpleNamespace`` records mutated in place."""

    def __init__(self) -> None:
        super().__init__()
        self._tables: dict[str, dict[str, Any]] = {kind: {} for kind in KINDS}
        self._snapshot: dict[str, dict[str, tuple[Any, dict]]] | None = None

    # outermost scope entry snapshots every entity; rollback restores the same
    # objects with their saved attributes
    def _begin(self) -> None:
        self._snapshot = {
            kind: {entity_id: (entity, dict(vars(entity))) for entity_id, entity in table.items()}
            for kind, table in self._tables.items()
        }

    def _commit(self) -> None:
        self._snapshot = None

    def _rollback(self) -> None:
        snapshot, self._snapshot = self._snapshot, None
        if snapshot is None:
            return
        for kind, saved in snapshot.items():
            table = {}
            for entity_id, (entity, state) in saved.items():
                vars(entity).clear()
                vars(entity).update(state)
                table[entity_id] = entity
            self._tables[kind] = table
        logger.info("memory store rolled back")

    def _table(self, kind: str) -> dict[str, Any]:
        try:
            return self._tables[kind]
        except KeyError:
            raise ValueError(f"unknown entity kind {kind!r}") from None

    def new(self, kind: str, **fields: Any) -> SimpleNamespace:
        self._table(kind)
        fields.setdefault("id", None)
        return SimpleNamespace(**fields)

    def get(self, kind: str, entity_id: str | None) -> Any | None:
        if not entity_id:
            return None
        with self._lock:
            return self._table(kind).get(entity_id)

    def put(self, kind: str, entity: Any) -> Any:
        with self._lock:
            if not getattr(entity, "id", None):
                entity.id = new_id()
            self._table(kind)[entity.id] = entity
            return entity

    def delete(self, kind: str, entity_id: str) -> bool:
        with self._lock:
            return self._table(kind).pop(entity_id, None) is not None

    def list(self, kind: str) -> list[Any]:
        with self._lock:
            return [*self._table(kind).values()]

    def find(self, kind: str, **criteria: Any) -> list[Any]:
        with self._lock:
            return [
                entity for entity in self._table(kind).values()
                if all(getattr(entity, key, None) == value for key, value in criteria.items())
            ]

    def list_children(self, parent_kind: str, parent_id: str) -> list[Any]:
        child_kind, parent_attr = _child_of(parent_kind)
        rows = self.find(child_kind, **{parent_attr: parent_id})
        return sorted(rows, key=lambda row: getattr(row, "position", 0) or 0)


class SqlAlchemyStore(_ScopedStore):
    """Store over Flask-SQLAlchemy models, keyed by entity kind."""

    def __init__(self, db, models: dict[str, type]) -> None:
        super().__init__()
        self._db = db
        self._models = dict(models)

    def _model(self, kind: str) -> type:
        try:
            return self._models[kind]
        except KeyError:
            raise ValueError(f"unknown entity kind {kind!r}") from None

    @staticmethod
    def _ordering(model: type):
        for attr in ("position", "created_at", "id"):
            column = getattr(model, attr, None)
            if column is not None:
                return column
        return None

    def _commit(self) -> None:
        self._db.session.commit()

    def _rollback(self) -> None:
        self._db.session.rollback()

    @contextmanager
    def scope(self) -> Iterator[SqlAlchemyStore]:
        try:
            with super().scope() as store:
                yield store
        except SQLAlchemyError as exc:
            logger.exception("storage failure inside scope")
            raise StorageError(str(exc.__class__.__name__)) from exc

    def new(self, kind: str, **fields: Any) -> Any:
        return self._model(kind)(**fields)

    def get(self, kind: str, entity_id: str | None) -> Any | None:
        if not entity_id:
            return None
        return self._db.session.get(self._model(kind), entity_id)

    def put(self, kind: str, entity: Any) -> Any:
        self._model(kind)
        if not entity.id:
            entity.id = new_id()
        self._db.session.add(entity)
        self._db.session.flush()
        return entity

    def delete(self, kind: str, entity_id: str) -> bool:
        entity = self.get(kind, entity_id)
        if entity is None:
            return False
        self._db.session.delete(entity)
        self._db.session.flush()
        return True

    def list(self, kind: str) -> list[Any]:
        return self.find(kind)

    def find(self, kind: str, **criteria: Any) -> list[Any]:
        model = self._model(kind)
        query = model.query.filter_by(**criteria)
        ordering = self._ordering(model)
        if ordering is not None:
            query = query.order_by(ordering)
        return query.all()

    def list_children(self, parent_kind: str, parent_id: str) -> list[Any]:
        child_kind, parent_attr = _child_of(parent_kind)
        return self.find(child_kind, **{parent_attr: parent_id})


def current_store() -> EntityStore:
    """Store bound to the running app by ``create_app()``."""
    return current_app.extensions["entity_store"]


_LABELS = {
    "machine": "Machine",
    "sensor": "Sensor",
    "operator": "Operator",
    "stock": "Stock item",
    "maintenance": "Maintenance record",
    "usage": "Usage entry",
}


def get_or_404(store: EntityStore, kind: str, entity_id: str) -> Any:
    """``store.get`` that raises ``NotFound`` for a missing primary resource."""
    entity = store.get(kind, entity_id)
    if entity is None:
        raise NotFound(f"{_LABELS.get(kind, kind)} '{entity_id}' not found", kind=kind, id=entity_id)
    return entity
