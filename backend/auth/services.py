# backend/auth/services.py

from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token
from models.user_model import User
from models import db


def _session_payload(user):
    # JWT identity must be a string; routes convert it back with int()
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "token": create_access_token(identity=str(user.id)),
    }


def register_user(data):

    if User.query.filter_by(email=data.email).first():
        return None, "User already exists"

    user = User(
        name=data.name,
        email=data.email,
        password=generate_password_hash(data.password),
    )
    db.session.add(user)
    db.session.commit()

    return _session_payload(user), None


def login_user(data):

    user = User.query.filter_by(email=data.email).first()
    if not user or not check_password_hash(user.password, data.password):
        return None, "Invalid email or password"

    return _session_payload(user), None
