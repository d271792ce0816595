"""HTTP routes for the spare parts stock."""

import csv
import io
import logging
import zipfile

from flask import jsonify, request
from flask_login import login_required
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError
from modules.maintenance.ledger import current_ledger
from modules.stock.models import stock_to_dict
from modules.stock.schemas import StockItemRequest
from permissions import role_required
from store import current_store, get_or_404
from utils import allowed_file, load_json

from . import bp

logger = logging.getLogger(__name__)

IMPORT_COLUMNS = ["name", "quantity", "unit", "value", "location"]


@bp.route("", methods=["GET"])
@login_required
def list_stock():
    store = current_store()
    q = (request.args.get("q") or "").strip().lower()
    items = store.list("stock")
    if q:
        items = [
            i for i in items
            if any(q in (value or "").lower() for value in (i.name, i.location, i.unit))
        ]
    reserved = current_ledger().reserved_quantities()
    return jsonify([stock_to_dict(i, reserved.get(i.id, 0)) for i in items])


@bp.route("", methods=["POST"])
@role_required(["admin", "root"])
def create_stock_item():
    payload = load_json(StockItemRequest)
    store = current_store()
    with store.scope():
        item = store.put("stock", store.new("stock", **payload.model_dump()))
        body = stock_to_dict(item)
    logger.info("stock.created id=%s quantity=%d", item.id, payload.quantity)
    return jsonify(body), 201


@bp.route("/<string:stock_id>", methods=["GET"])
@login_required
def get_stock_item(stock_id):
    item = get_or_404(current_store(), "stock", stock_id)
    reserved = current_ledger().reserved_quantities().get(stock_id, 0)
    return jsonify(stock_to_dict(item, reserved))


@bp.route("/<string:stock_id>", methods=["PUT"])
@role_required(["admin", "root"])
def update_stock_item(stock_id):
    payload = load_json(StockItemRequest)
    store = current_store()
    # same scope as the ledger: a manual recount never interleaves with a reservation
    with store.scope():
        item = get_or_404(store, "stock", stock_id)
        for f, value in payload.model_dump().items():
            setattr(item, f, value)
        store.put("stock", item)
        body = stock_to_dict(item, current_ledger().reserved_quantities().get(stock_id, 0))
    logger.info("stock.updated id=%s quantity=%d", stock_id, payload.quantity)
    return jsonify(body)


@bp.route("/<string:stock_id>", methods=["DELETE"])
@role_required(["root"])
def delete_stock_item(stock_id):
    store = current_store()
    with store.scope():
        get_or_404(store, "stock", stock_id)
        # usage rows keep pointing at the id; later releases become no-ops
        referencing = len(store.find("usage", stock_id=stock_id))
        store.delete("stock", stock_id)
    if referencing:
        logger.warning("stock.deleted id=%s still referenced by %d usage entries", stock_id, referencing)
    else:
        logger.info("stock.deleted id=%s", stock_id)
    return "", 204


def _xlsx_rows(file):
    wb = load_workbook(file.stream, read_only=True, data_only=True)
    try:
        ws = wb.active
        return [dict(zip(IMPORT_COLUMNS, row)) for row in ws.iter_rows(min_row=2, values_only=True)]
    finally:
        wb.close()


def _csv_rows(file):
    stream = io.StringIO(file.stream.read().decode("utf-8-sig"), newline=None)
    reader = csv.DictReader(stream)
    return [{k: row.get(k) for k in IMPORT_COLUMNS} for row in reader]


def _read_rows(file):
    """Rows of the upload as dicts keyed by IMPORT_COLUMNS; unreadable files are a 400."""
    if file.filename.lower().endswith(".xlsx"):
        try:
            return _xlsx_rows(file)
        except (zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
            logger.warning("stock.import.unreadable file=%s error=%r", file.filename, exc)
            raise ValidationError("The uploaded file is not a readable .xlsx workbook", field="file") from exc
    try:
        return _csv_rows(file)
    except (UnicodeDecodeError, csv.Error) as exc:
        logger.warning("stock.import.unreadable file=%s error=%r", file.filename, exc)
        raise ValidationError("The uploaded file is not a UTF-8 encoded .csv", field="file") from exc


@bp.route("/import", methods=["POST"])
@role_required(["admin", "root"])
def import_stock():
    """
    Bulk-create stock items from an .xlsx (first sheet, header row then
    name | quantity | unit | value | location) or a .csv with those headers.
    Names already in stock are skipped; an invalid row rejects the whole file.
    """
    file = request.files.get("file")
    if not file or not file.filename:
        raise ValidationError("No file uploaded", field="file")
    if not allowed_file(file.filename):
        raise ValidationError("Unsupported file type. Please upload .xlsx or .csv.", field="file")

    rows = _read_rows(file)

    store = current_store()
    added, skipped = [], []
    with store.scope():
        existing = {i.name.strip().lower() for i in store.list("stock")}
        for line, raw in enumerate(rows, start=2):
            if not raw.get("name"):
                continue
            cleaned = {k: v for k, v in raw.items() if v not in (None, "")}
            try:
                payload = StockItemRequest.model_validate(cleaned)
            except PydanticValidationError as exc:
                raise ValidationError(
                    f"Row {line}: {exc.errors(include_url=False)[0]['msg']}", row=line,
                ) from exc
            key = payload.name.lower()
            if key in existing:
                skipped.append(payload.name)
                continue
            item = store.put("stock", store.new("stock", **payload.model_dump()))
            existing.add(key)
            added.append(stock_to_dict(item))

    logger.info("stock.imported file=%s added=%d skipped=%d", file.filename, len(added), len(skipped))
    return jsonify({"added": added, "skipped": skipped}), 201
