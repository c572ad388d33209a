from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game import service

bp = Blueprint("rooms", __name__)


def _registry():
    return current_app.extensions["closest"]["registry"]


@bp.post("/rooms")
def create_room():
    # The room starts empty; whoever joins first becomes host.
    room = _registry().create_room()
    return jsonify({"code": room.code}), 201


@bp.get("/rooms/<code>")
def get_room(code: str):
    room = _registry().get_room(code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(service.room_public_state(room))
