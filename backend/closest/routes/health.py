from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    registry = current_app.extensions["closest"]["registry"]
    return jsonify({"ok": True, "rooms": len(registry)})
