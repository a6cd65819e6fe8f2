from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from pollhub.extensions import db
from pollhub.models import User
from pollhub.routes.helpers import clean_text, request_payload

MIN_PASSWORD_LENGTH = 8


def hash_password(password):
    return generate_password_hash(password, method="pbkdf2:sha256")


def register_auth_routes(app):
    @app.route("/api/login", methods=["POST"])
    def login():
        data = request_payload(request)
        username = clean_text(data.get("username"))
        password = data.get("password") or ""

        if not username or not password:
            return jsonify({"message": "Username and password are required."}), 400

        user = User.query.filter_by(username=username).first()
        if not user or not check_password_hash(user.password_hash, password):
            current_app.logger.warning("Failed admin login for %s", username)
            return jsonify({"message": "Invalid username or password."}), 401

        login_user(user, remember=bool(data.get("remember")))
        return jsonify({"ok": True, "user": {"id": user.id, "username": user.username}})

    @app.route("/api/logout", methods=["POST"])
    @login_required
    def logout():
        logout_user()
        return jsonify({"ok": True})

    @app.route("/api/update-admin", methods=["PUT"])
    @login_required
    def update_admin():
        data = request_payload(request)
        current_password = data.get("currentPassword") or ""

        if not check_password_hash(current_user.password_hash, current_password):
            return jsonify({"message": "Current password is incorrect."}), 400

        username = clean_text(data.get("username"))
        email = clean_text(data.get("email"))
        new_password = data.get("password")

        if new_password is not None and len(new_password) < MIN_PASSWORD_LENGTH:
            return jsonify(
                {
                    "message": "Password must be at least "
                    f"{MIN_PASSWORD_LENGTH} characters long."
                }
            ), 400

        if username:
            current_user.username = username
        if email:
            current_user.email = email.lower()
        if new_password:
            current_user.password_hash = hash_password(new_password)

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return jsonify({"message": "Username or email is already taken."}), 400

        return jsonify(
            {
                "ok": True,
                "user": {"id": current_user.id, "username": current_user.username},
            }
        )
