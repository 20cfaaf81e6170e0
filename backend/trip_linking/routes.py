from __future__ import annotations

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from pydantic import ValidationError

from .errors import TripLinkError
from .schemas import LinkTransactionSchema, DismissSuggestionSchema
from .service import link_transaction, dismiss_suggestion


trip_links_bp = Blueprint("trip_links", __name__, url_prefix="/trip-links")


def _current_user_id():
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None


@trip_links_bp.errorhandler(TripLinkError)
def _trip_link_error(e: TripLinkError):
    return jsonify(e.to_dict()), e.status


@trip_links_bp.route("/link", methods=["POST"])
@jwt_required()
def link():
    try:
        data = LinkTransactionSchema(**(request.get_json() or {}))
    except ValidationError as e:
        return jsonify({"error": e.errors(include_url=False), "code": "invalid-argument"}), 400

    result = link_transaction(
        _current_user_id(),
        data.transaction_id,
        data.trip_id,
        confidence=data.confidence,
        reasoning=data.reasoning,
    )
    return jsonify(result), 200


@trip_links_bp.route("/dismiss", methods=["POST"])
@jwt_required()
def dismiss():
    try:
        data = DismissSuggestionSchema(**(request.get_json() or {}))
    except ValidationError as e:
        return jsonify({"error": e.errors(include_url=False), "code": "invalid-argument"}), 400

    result = dismiss_suggestion(_current_user_id(), data.transaction_id)
    return jsonify(result), 200
