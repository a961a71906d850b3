from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..game.card import Card, check_layout, check_pattern, generate_card_with_retry, validate_marks

bp = Blueprint("cards", __name__)


@bp.get("/cards")
def new_card():
    card = generate_card_with_retry()
    return jsonify({"card": card.to_payload()})


@bp.post("/cards/check")
def check_card():
    data = request.get_json(silent=True) or {}

    try:
        card = Card.from_payload(data.get("card"))
    except ValueError as exc:
        return jsonify({"ok": False, "error": "invalid_card", "message": str(exc)}), 400

    drawn_raw = data.get("drawn") or []
    if not isinstance(drawn_raw, list):
        return jsonify({"ok": False, "error": "invalid_drawn"}), 400
    drawn = [n for n in drawn_raw if isinstance(n, int) and not isinstance(n, bool)]

    result = check_layout(card)
    if result.valid:
        result = validate_marks(card, drawn)

    pattern = data.get("pattern")
    if result.valid and pattern:
        result = check_pattern(str(pattern), card, drawn)

    return jsonify({"ok": True, **result.to_payload()})
