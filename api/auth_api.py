import logging
from datetime import timedelta

from flask import Blueprint, jsonify, make_response, request

from db.exceptions import DatabaseError
from helpers.identity import SESSION_COOKIE_NAME, IdentityError
from models.user_manager import UserValidationError
from services import current_services

logger = logging.getLogger(__name__)

auth_api = Blueprint("auth_api", __name__)


@auth_api.route("/api/auth/session", methods=["POST"])
def api_create_auth_session():
    """Exchange a Firebase ID token for a session cookie and sync the profile."""
    services = current_services()
    data = request.get_json(silent=True) or {}
    id_token = data.get("idToken")
    if not id_token or not isinstance(id_token, str):
        return make_response(jsonify({"error": "Missing idToken"}), 400)

    expires_in = timedelta(days=services.config.session_cookie_days)
    try:
        claims = services.identity.verify_id_token(id_token)
        cookie = services.identity.create_session_cookie(id_token, expires_in)
        services.users.sync_user(claims=claims)
    except (IdentityError, UserValidationError, DatabaseError) as e:
        logger.error("Session creation error: %s", e)
        return make_response(jsonify({"error": "Failed to create session"}), 401)

    response = make_response(jsonify({"success": True}), 200)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        cookie,
        max_age=int(expires_in.total_seconds()),
        httponly=True,
        secure=services.config.secure_cookies,
        path="/",
        samesite="Strict",
    )
    return response


@auth_api.route("/api/auth/session", methods=["DELETE"])
def api_delete_auth_session():
    response = make_response(jsonify({"success": True}), 200)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return response
