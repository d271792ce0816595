"""Session login for the API (Flask-Login cookie sessions)."""

import logging

from flask import current_app, jsonify
from flask_login import (
    UserMixin,
    current_user,
    login_required,
    login_user,
    logout_user,
)
from werkzeug.security import check_password_hash

from extensions import db, login_manager
from models import User
from modules.auth.schemas import LoginRequest
from utils import load_json

from . import bp

logger = logging.getLogger(__name__)


@login_manager.user_loader
def load_user(user_id: str | None) -> User | UserMixin | None:
    """Resolve a ``User`` instance for Flask-Login sessions."""

    if not user_id:
        return None

    user = db.session.get(User, int(user_id))
    if user is not None:
        return user

    if current_app.config.get("LOGIN_DISABLED"):
        class _TestingUser(UserMixin):
            """Fallback principal used when authentication is disabled."""

            def __init__(self, test_user_id: int) -> None:
                self.id = test_user_id
                self.username = "test-user"
                self.role = "root"

        return _TestingUser(int(user_id))

    return None


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({
        "error": "UNAUTHORIZED",
        "message": "Authentication required",
        "data": {},
    }), 401


@bp.route("/login", methods=["POST"])
def login():
    payload = load_json(LoginRequest)
    user = User.query.filter_by(username=payload.username).first()
    if user is None or not check_password_hash(user.password, payload.password):
        logger.warning("auth.login.failed username=%s", payload.username)
        return jsonify({
            "error": "INVALID_CREDENTIALS",
            "message": "Invalid username or password",
            "data": {},
        }), 401
    login_user(user)
    logger.info("auth.login username=%s role=%s", user.username, user.role)
    return jsonify(user.to_dict())


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return "", 204


@bp.route("/me", methods=["GET"])
@login_required
def me():
    if not current_user.is_authenticated:
        # LOGIN_DISABLED lets anonymous requests through
        return jsonify({"id": None, "username": None, "role": None})
    return jsonify({
        "id": current_user.id,
        "username": current_user.username,
        "role": getattr(current_user, "role", None),
    })
