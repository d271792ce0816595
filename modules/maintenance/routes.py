"""HTTP routes for maintenance records. Every mutation goes through the stock ledger."""

from flask import jsonify, request
from flask_login import login_required

from modules.maintenance.ledger import current_ledger
from modules.maintenance.models import MAINTENANCE_STATUSES, maintenance_to_dict
from modules.maintenance.schemas import MaintenanceRequest
from permissions import role_required
from store import current_store, get_or_404
from utils import load_json

from . import bp


def _payload(store, record) -> dict:
    return maintenance_to_dict(record, store.list_children("maintenance", record.id))


@bp.route("", methods=["GET"])
@bp.route("/", methods=["GET"])
@login_required
def list_maintenance():
    store = current_store()
    criteria = {}
    if request.args.get("machineId"):
        criteria["machine_id"] = request.args["machineId"]
    status = request.args.get("status")
    if status in MAINTENANCE_STATUSES:
        criteria["status"] = status
    records = store.find("maintenance", **criteria)
    return jsonify([_payload(store, r) for r in records])


@bp.route("", methods=["POST"])
@login_required
def create_maintenance():
    payload = load_json(MaintenanceRequest)
    store = current_store()
    with store.scope():
        record = current_ledger().create_maintenance(payload)
        body = _payload(store, record)
    return jsonify(body), 201


@bp.route("/<string:maintenance_id>", methods=["GET"])
@login_required
def get_maintenance(maintenance_id):
    store = current_store()
    return jsonify(_payload(store, get_or_404(store, "maintenance", maintenance_id)))


@bp.route("/<string:maintenance_id>", methods=["PUT"])
@login_required
def update_maintenance(maintenance_id):
    store = current_store()
    # unknown id answers 404 before the body is looked at
    get_or_404(store, "maintenance", maintenance_id)
    payload = load_json(MaintenanceRequest)
    with store.scope():
        record = current_ledger().update_maintenance(maintenance_id, payload)
        body = _payload(store, record)
    return jsonify(body)


@bp.route("/<string:maintenance_id>", methods=["DELETE"])
@role_required(["admin", "root"])
def delete_maintenance(maintenance_id):
    current_ledger().delete_maintenance(maintenance_id)
    return "", 204
