"""HTTP routes for operators."""

import logging

from flask import jsonify
from flask_login import login_required

from modules.operators.models import operator_to_dict
from modules.operators.schemas import OperatorRequest
from permissions import role_required
from store import current_store, get_or_404
from utils import load_json

from . import bp

logger = logging.getLogger(__name__)


@bp.route("", methods=["GET"])
@login_required
def list_operators():
    return jsonify([operator_to_dict(op) for op in current_store().list("operator")])


@bp.route("", methods=["POST"])
@role_required(["admin", "root"])
def create_operator():
    payload = load_json(OperatorRequest)
    store = current_store()
    with store.scope():
        operator = store.put("operator", store.new("operator", name=payload.name))
        body = operator_to_dict(operator)
    return jsonify(body), 201


@bp.route("/<string:operator_id>", methods=["GET"])
@login_required
def get_operator(operator_id):
    return jsonify(operator_to_dict(get_or_404(current_store(), "operator", operator_id)))


@bp.route("/<string:operator_id>", methods=["PUT"])
@role_required(["admin", "root"])
def update_operator(operator_id):
    payload = load_json(OperatorRequest)
    store = current_store()
    with store.scope():
        operator = get_or_404(store, "operator", operator_id)
        operator.name = payload.name
        store.put("operator", operator)
        body = operator_to_dict(operator)
    return jsonify(body)


@bp.route("/<string:operator_id>", methods=["DELETE"])
@role_required(["root"])
def delete_operator(operator_id):
    store = current_store()
    with store.scope():
        get_or_404(store, "operator", operator_id)
        # unassign, never cascade to the machines themselves
        released = store.find("machine", operator_id=operator_id)
        for machine in released:
            machine.operator_id = None
            store.put("machine", machine)
        store.delete("operator", operator_id)
    logger.info("operator.deleted id=%s unassigned_machines=%d", operator_id, len(released))
    return "", 204
