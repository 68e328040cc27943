import logging
from datetime import date

from flask import Blueprint, jsonify, make_response, redirect, render_template, request, url_for

from db.exceptions import DatabaseError
from models.user import User
from services import Services, current_services
from services.dashboard_renderer import DashboardView, build_dashboard

logger = logging.getLogger(__name__)

dashboard_api = Blueprint("dashboard_api", __name__)


def load_dashboard(services: Services, user: User) -> DashboardView:
    """Fetch the user's aggregates and render the dashboard view."""
    today = date.today()
    stats = services.summaries.get_user_stats(user.id)
    daily_averages = services.summaries.get_daily_averages(
        user.id, days=services.config.daily_average_days, today=today
    )
    recent_sessions = services.summaries.get_recent_sessions(
        user.id, limit=services.config.recent_sessions_limit
    )
    return build_dashboard(
        user,
        stats,
        daily_averages,
        recent_sessions,
        chart_window=services.config.chart_window,
        today=today,
    )


@dashboard_api.route("/")
def index():
    return render_template("index.html")


@dashboard_api.route("/dashboard")
def dashboard():
    services = current_services()
    if not services.identity.configured:
        logger.warning("Dashboard: Firebase Admin keys missing, serving placeholder.")
        return render_template("dashboard_placeholder.html")

    claims = services.identity.claims_from_request(request)
    if not claims:
        return redirect(url_for("dashboard_api.index"))
    try:
        user = services.users.get_user_by_firebase_uid(firebase_uid=claims["uid"])
        if user is None:
            return redirect(url_for("dashboard_api.index"))
        view = load_dashboard(services, user)
    except DatabaseError as e:
        logger.error("Dashboard error: %s", e)
        return make_response(render_template("dashboard_unavailable.html"), 503)
    return render_template("dashboard.html", view=view, user=user)


@dashboard_api.route("/api/dashboard", methods=["GET"])
def api_dashboard():
    services = current_services()
    claims = services.identity.claims_from_request(request)
    if not claims:
        return make_response(jsonify({"error": "Not authenticated"}), 401)
    try:
        user = services.users.get_user_by_firebase_uid(firebase_uid=claims["uid"])
        if user is None:
            return make_response(jsonify({"error": "User not found"}), 404)
        view = load_dashboard(services, user)
    except DatabaseError as e:
        logger.error("Dashboard error: %s", e)
        return make_response(jsonify({"error": "Dashboard temporarily unavailable"}), 503)
    return make_response(jsonify(view.model_dump(mode="json")), 200)
