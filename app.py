"""Flask application factory for the typing dashboard."""

import logging
from typing import Optional

from flask import Flask

from api.auth_api import auth_api
from api.dashboard_api import dashboard_api
from api.session_api import session_api
from db.database_manager import DatabaseManager
from helpers.config import AppConfig
from helpers.identity import IdentityProvider
from services import EXTENSION_KEY, init_services

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    *,
    db_manager: Optional[DatabaseManager] = None,
    identity: Optional[IdentityProvider] = None,
) -> Flask:
    """Build the Flask app and wire its services.

    Args:
        config: Application configuration; read from the environment when omitted.
        db_manager: Pre-built database manager (tests, scripts).
        identity: Pre-built identity provider (tests).
    """
    config = config or AppConfig.from_env()
    app = Flask(__name__, template_folder="web_ui/templates")

    services = init_services(config, db_manager=db_manager, identity=identity)
    app.extensions[EXTENSION_KEY] = services
    if services.db_manager is None:
        logger.warning("No Postgres configuration supplied; running in Mock DB Mode.")

    app.register_blueprint(auth_api)
    app.register_blueprint(session_api)
    app.register_blueprint(dashboard_api)
    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=False)
