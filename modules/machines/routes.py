"""HTTP routes for machines and their sensors."""

import logging

from flask import jsonify, request
from flask_login import login_required

from modules.machines.models import (
    display_status,
    machine_to_dict,
    machines_under_maintenance,
    sensor_to_dict,
)
from modules.machines.schemas import MachineRequest, SensorRequest
from permissions import role_required
from references import ReferenceValidator
from store import current_store, get_or_404
from utils import load_json

from . import bp

logger = logging.getLogger(__name__)


def _attach_sensors(store, machine_id, sensors, start=0):
    """Sensors get fresh ids on every attach; position keeps payload order."""
    attached = []
    for offset, payload in enumerate(sensors):
        sensor = store.new(
            "sensor",
            machine_id=machine_id,
            name=payload.name,
            type=payload.type,
            position=start + offset,
        )
        attached.append(store.put("sensor", sensor))
    return attached


def _machine_payload(store, machine, busy=None):
    busy = machines_under_maintenance(store) if busy is None else busy
    sensors = store.list_children("machine", machine.id)
    return machine_to_dict(machine, sensors, status=display_status(machine, busy))


@bp.route("", methods=["GET"])
@login_required
def list_machines():
    store = current_store()
    q = (request.args.get("q") or "").strip().lower()
    machines = store.list("machine")
    if q:
        machines = [
            m for m in machines
            if any(q in (value or "").lower() for value in (m.name, m.model, m.manufacturer))
        ]
    busy = machines_under_maintenance(store)
    return jsonify([_machine_payload(store, m, busy) for m in machines])


@bp.route("", methods=["POST"])
@role_required(["admin", "root"])
def create_machine():
    payload = load_json(MachineRequest)
    store = current_store()
    with store.scope():
        if payload.operator_id is not None:
            ReferenceValidator(store).require("operator", payload.operator_id, field="operatorId")
        machine = store.put("machine", store.new(
            "machine",
            name=payload.name,
            model=payload.model,
            manufacturer=payload.manufacturer,
            year=payload.year,
            status=payload.status,
            operator_id=payload.operator_id,
        ))
        _attach_sensors(store, machine.id, payload.sensors)
        body = _machine_payload(store, machine)
    logger.info("machine.created id=%s sensors=%d", machine.id, len(payload.sensors))
    return jsonify(body), 201


@bp.route("/<string:machine_id>", methods=["GET"])
@login_required
def get_machine(machine_id):
    store = current_store()
    machine = get_or_404(store, "machine", machine_id)
    return jsonify(_machine_payload(store, machine))


@bp.route("/<string:machine_id>", methods=["PUT"])
@role_required(["admin", "root"])
def update_machine(machine_id):
    payload = load_json(MachineRequest)
    store = current_store()
    with store.scope():
        machine = get_or_404(store, "machine", machine_id)
        if payload.operator_id is not None:
            ReferenceValidator(store).require("operator", payload.operator_id, field="operatorId")
        for f in ["name", "model", "manufacturer", "year", "status", "operator_id"]:
            setattr(machine, f, getattr(payload, f))
        store.put("machine", machine)

        for sensor in store.list_children("machine", machine_id):
            store.delete("sensor", sensor.id)
        _attach_sensors(store, machine_id, payload.sensors)
        body = _machine_payload(store, machine)
    logger.info("machine.updated id=%s", machine_id)
    return jsonify(body)


@bp.route("/<string:machine_id>", methods=["DELETE"])
@role_required(["root"])
def delete_machine(machine_id):
    store = current_store()
    with store.scope():
        get_or_404(store, "machine", machine_id)
        for sensor in store.list_children("machine", machine_id):
            store.delete("sensor", sensor.id)
        store.delete("machine", machine_id)
    logger.info("machine.deleted id=%s", machine_id)
    return "", 204


@bp.route("/<string:machine_id>/sensors", methods=["GET"])
@login_required
def list_sensors(machine_id):
    store = current_store()
    get_or_404(store, "machine", machine_id)
    return jsonify([sensor_to_dict(s) for s in store.list_children("machine", machine_id)])


@bp.route("/<string:machine_id>/sensors", methods=["POST"])
@role_required(["admin", "root"])
def create_sensor(machine_id):
    payload = load_json(SensorRequest)
    store = current_store()
    with store.scope():
        get_or_404(store, "machine", machine_id)
        existing = store.list_children("machine", machine_id)
        sensor = _attach_sensors(store, machine_id, [payload], start=len(existing))[0]
        body = sensor_to_dict(sensor)
    return jsonify(body), 201
