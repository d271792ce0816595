"""Read-only reports over maintenance records and the stock they used."""

from flask import jsonify, request
from flask_login import login_required
from sqlalchemy import extract

from errors import ValidationError
from extensions import db
from modules.machines.models import Machine
from modules.maintenance.models import Maintenance, UsedStockItem
from modules.stock.models import StockItem
from utils import csv_response

from . import bp


def _month_filter():
    """(month, year) from the query string, or None when either is missing."""
    month = (request.args.get("month") or "").strip()
    year = (request.args.get("year") or "").strip()
    if not month or not year:
        return None
    try:
        month_n, year_n = int(month), int(year)
    except ValueError:
        raise ValidationError("month and year must be integers", month=month, year=year) from None
    if not 1 <= month_n <= 12:
        raise ValidationError("month must be between 1 and 12", month=month_n)
    return month_n, year_n


def _wants_csv() -> bool:
    return (request.args.get("format") or "").lower() == "csv"


@bp.route("/used-stock")
@login_required
def used_stock_report():
    query = (db.session.query(StockItem.name, UsedStockItem.stock_id, UsedStockItem.quantity, Maintenance.date)
             .select_from(UsedStockItem)
             .join(Maintenance, UsedStockItem.maintenance_id == Maintenance.id)
             # items deleted since keep their rows, with no name
             .outerjoin(StockItem, UsedStockItem.stock_id == StockItem.id))
    period = _month_filter()
    if period:
        query = query.filter(extract("month", Maintenance.date) == period[0],
                             extract("year", Maintenance.date) == period[1])
    rows = query.order_by(Maintenance.date.desc(), UsedStockItem.position.asc()).all()

    if _wants_csv():
        return csv_response(
            ["ITEM", "STOCK ID", "QUANTITY", "DATE"],
            [(name, stock_id, qty, d.isoformat()) for name, stock_id, qty, d in rows],
            "used_stock",
        )
    return jsonify([
        {"itemName": name, "stockId": stock_id, "quantity": qty, "date": d.isoformat()}
        for name, stock_id, qty, d in rows
    ])


@bp.route("/scheduled-maintenances")
@login_required
def scheduled_maintenances_report():
    query = (db.session.query(Maintenance.id, Machine.name, Maintenance.date, Maintenance.description)
             .select_from(Maintenance)
             .outerjoin(Machine, Maintenance.machine_id == Machine.id)
             .filter(Maintenance.status == "scheduled"))
    period = _month_filter()
    if period:
        query = query.filter(extract("month", Maintenance.date) == period[0],
                             extract("year", Maintenance.date) == period[1])
    rows = query.order_by(Maintenance.date.asc()).all()

    if _wants_csv():
        return csv_response(
            ["ID", "MACHINE", "DATE", "DESCRIPTION"],
            [(mid, machine, d.isoformat(), desc) for mid, machine, d, desc in rows],
            "scheduled_maintenances",
        )
    return jsonify([
        {"id": mid, "machineName": machine, "date": d.isoformat(), "description": desc}
        for mid, machine, d, desc in rows
    ])
