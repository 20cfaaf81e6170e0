# backend/auth/routes.py

from flask import Blueprint, request, jsonify
from pydantic import ValidationError

from auth.schemas import RegisterSchema, LoginSchema
from auth.services import register_user, login_user

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _parse(schema):
    try:
        return schema(**(request.get_json() or {})), None
    except ValidationError as e:
        return None, (jsonify({"error": e.errors(include_url=False)}), 400)


@auth_bp.route("/register", methods=["POST"])
def register():
    data, bad_request = _parse(RegisterSchema)
    if bad_request:
        return bad_request

    result, error = register_user(data)
    if error:
        return jsonify({"error": error}), 409

    return jsonify(result), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data, bad_request = _parse(LoginSchema)
    if bad_request:
        return bad_request

    result, error = login_user(data)
    if error:
        return jsonify({"error": error}), 401

    return jsonify(result), 200
