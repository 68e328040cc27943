import logging
from datetime import datetime
from typing import Optional

from flask import Blueprint, jsonify, make_response, request
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from db.exceptions import DatabaseError
from models.typing_session import SessionResult
from services import current_services

logger = logging.getLogger(__name__)

session_api = Blueprint("session_api", __name__)


class SessionCreateModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    mode: str = Field(min_length=1)
    duration: Optional[int] = Field(default=None, ge=0)
    word_count: Optional[int] = Field(default=None, ge=0, alias="wordCount")


class SessionEndModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    wpm: float = Field(ge=0)
    raw_wpm: Optional[float] = Field(default=None, ge=0, alias="rawWpm")
    accuracy: float = Field(ge=0, le=100)
    errors: int = Field(default=0, ge=0)
    duration: int = Field(ge=0)
    word_count: Optional[int] = Field(default=None, ge=0, alias="wordCount")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    ended_at: datetime = Field(alias="endedAt")

    def to_result(self) -> SessionResult:
        return SessionResult(
            wpm=self.wpm,
            raw_wpm=self.raw_wpm,
            accuracy=self.accuracy,
            errors=self.errors,
            duration=self.duration,
            word_count=self.word_count,
            started_at=self.started_at,
            ended_at=self.ended_at,
        )


@session_api.route("/api/sessions/create", methods=["POST"])
def api_create_session():
    services = current_services()
    try:
        model = SessionCreateModel.model_validate(request.get_json(silent=True) or {})
    except ValidationError as e:
        return make_response(jsonify({"error": f"Invalid input: {str(e)}"}), 400)

    claims = services.identity.claims_from_request(request)
    user = None
    try:
        if claims:
            user = services.users.get_user_by_firebase_uid(firebase_uid=claims["uid"])
        session = services.sessions.create_session(
            mode=model.mode,
            duration=model.duration,
            word_count=model.word_count,
            user_id=user.id if user else None,
            firebase_uid=claims["uid"] if claims else None,
        )
    except DatabaseError as e:
        logger.error("Session creation error: %s", e)
        return make_response(jsonify({"error": "Failed to create session"}), 500)
    return make_response(jsonify({"success": True, "sessionId": session.session_id}), 200)


@session_api.route("/api/sessions/end", methods=["POST"])
def api_end_session():
    services = current_services()
    try:
        model = SessionEndModel.model_validate(request.get_json(silent=True) or {})
        result = model.to_result()
    except ValidationError as e:
        return make_response(jsonify({"error": f"Invalid input: {str(e)}"}), 400)

    claims = services.identity.claims_from_request(request)
    try:
        user = services.users.get_user_by_firebase_uid(firebase_uid=claims["uid"]) if claims else None
        session = services.sessions.get_session(model.session_id)
        if session is None:
            return make_response(jsonify({"error": "Session not found"}), 404)
        services.sessions.complete_session(
            session,
            result,
            user_id=user.id if user else None,
            firebase_uid=claims["uid"] if claims else None,
        )
        # A retried end report overwrites the session but is counted only once.
        if user is not None and not session.is_completed:
            services.summaries.record_completed_session(user.id, result)
    except DatabaseError as e:
        logger.error("Session end error: %s", e)
        return make_response(jsonify({"error": "Failed to end session"}), 500)
    return make_response(jsonify({"success": True}), 200)
