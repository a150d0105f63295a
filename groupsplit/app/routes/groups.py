"""
routes/groups.py — Group, participant and snapshot route handlers.

Layer rules:
  - Parse, validate, call ONE service, save, commit, return envelope.
  - No business logic. No DB queries beyond the snapshot load/save.

Endpoints (url_prefix=/api/v1):
  POST   /group                       → 201  create (replaces any stored group)
  GET    /group                       → 200  group header + roster
  DELETE /group                       → 200  reset the local store
  POST   /group/participants          → 201  add participants (duplicates: warning)
  GET    /group/participants/:name    → 200  one participant's totals and debts
  GET    /group/export                → 200  snapshot file as a JSON attachment
  POST   /group/import                → 201  replace the group from a snapshot file
"""

from __future__ import annotations

import json

from flask import Blueprint, Response, current_app, jsonify, request

from groupsplit.app.extensions import db
from groupsplit.app.schemas.group_schema import AddParticipantsSchema, CreateGroupSchema
from groupsplit.app.services import (
    balance_service,
    group_service,
    receipt_service,
    snapshot_service,
)

groups_bp = Blueprint("groups", __name__)


def _snapshot_key() -> str:
    return current_app.config["SNAPSHOT_KEY"]


@groups_bp.route("/group", methods=["POST"])
def create_group():
    """POST /group — Start a new, empty group. Any stored group is replaced."""
    data = CreateGroupSchema().load(request.get_json(force=True) or {})
    state = group_service.create_group(data["name"])
    snapshot_service.save_state(state, db.session, _snapshot_key())
    db.session.commit()
    current_app.logger.info("Group %r created", state.name)
    return jsonify({"data": group_service.summarize_group(state), "warnings": []}), 201


@groups_bp.route("/group", methods=["GET"])
def get_group():
    """GET /group — The stored group's name and roster."""
    state = snapshot_service.require_state(db.session, _snapshot_key())
    return jsonify({"data": group_service.summarize_group(state), "warnings": []}), 200


@groups_bp.route("/group", methods=["DELETE"])
def reset_group():
    """DELETE /group — Forget the stored group. Idempotent."""
    snapshot_service.clear_state(db.session, _snapshot_key())
    db.session.commit()
    current_app.logger.info("Local group store cleared")
    return jsonify({"data": {"deleted": True}, "warnings": []}), 200


@groups_bp.route("/group/participants", methods=["POST"])
def add_participants():
    """
    POST /group/participants — Add one or more people.

    Body: {"names": ["Alice", "Bob"]} or {"names": "Alice, Bob"}
    Names already in the group come back as a DUPLICATE_PARTICIPANT warning.
    """
    data = AddParticipantsSchema().load(request.get_json(force=True) or {})
    key = _snapshot_key()
    state = snapshot_service.require_state(db.session, key)

    added, duplicates = group_service.add_participants(state, data["names"])
    snapshot_service.save_state(state, db.session, key)
    db.session.commit()

    return jsonify({
        "data": {
            "added": [{"id": p.id, "name": p.name} for p in added],
            "participants": [{"id": p.id, "name": p.name} for p in state.participants],
        },
        "warnings": group_service.duplicate_warnings(duplicates),
    }), 201


@groups_bp.route("/group/participants/<name>", methods=["GET"])
def get_participant(name: str):
    """GET /group/participants/:name — What this person paid, is owed and owes."""
    state = snapshot_service.require_state(db.session, _snapshot_key())
    participant = group_service.get_participant(state, name)

    debts = balance_service.compute_debts(
        state.participants,
        state.transactions,
        current_app.config["SETTLEMENT_EPSILON"],
    )
    summary = balance_service.participant_summary(participant.name, state.transactions, debts)
    summary["id"] = participant.id
    summary["owes"] = [d.to_dict() for d in debts if d.from_name == participant.name]
    summary["owed_by"] = [d.to_dict() for d in debts if d.to_name == participant.name]

    return jsonify({"data": summary, "warnings": []}), 200


# ── Snapshot file ──────────────────────────────────────────────────────────

@groups_bp.route("/group/export", methods=["GET"])
def export_group():
    """GET /group/export — The snapshot document, ready to save as a file."""
    state = snapshot_service.require_state(db.session, _snapshot_key())
    document = snapshot_service.export_state(state)
    filename = receipt_service.export_filename(state.name)
    return Response(
        json.dumps(document, indent=2),
        mimetype="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@groups_bp.route("/group/import", methods=["POST"])
def import_group():
    """
    POST /group/import — Replace the stored group with an uploaded snapshot.
    A body that is not a valid snapshot is rejected and nothing is stored.
    """
    payload = request.get_json(force=True, silent=True)
    state = snapshot_service.import_state(payload)
    snapshot_service.save_state(state, db.session, _snapshot_key())
    db.session.commit()
    current_app.logger.info(
        "Group %r imported (%d participants, %d transactions)",
        state.name,
        len(state.participants),
        len(state.transactions),
    )
    return jsonify({"data": group_service.summarize_group(state), "warnings": []}), 201
