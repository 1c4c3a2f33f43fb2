# app.py
import logging
import os

from dotenv import load_dotenv
from flask import Flask, render_template, request
from flask_cors import CORS
from flask_smorest import Api

from db import db
from extensions import bcrypt, jwt
from models import Opportunity, User
from services.census import DEFAULT_CENSUS_URL, CensusClient
from services.registry import OpportunityRegistry
from services.users import UserDirectory
from store import RowStore
from utils.statistics import CHILDREN_FIELD, HOURS_FIELD, ONLINE_FIELD, VOLUNTEER_FIELD
from utils.web import current_user

logger = logging.getLogger(__name__)


def load_config(app):
    """Read settings from the environment (.env is loaded first)"""
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret-key-change-this")
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-change-this")
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")

    app.config["API_TITLE"] = "Volunteer Hub API"
    app.config["API_VERSION"] = "v1"
    app.config["OPENAPI_VERSION"] = "3.0.3"
    app.config["OPENAPI_URL_PREFIX"] = "/api/docs"
    app.config["OPENAPI_SWAGGER_UI_PATH"] = "/swagger-ui"
    app.config["OPENAPI_SWAGGER_UI_URL"] = "https://cdn.jsdelivr.net/npm/swagger-ui-dist/"

    # Database configuration
    app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL", "sqlite:///volunteer_hub.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["OPPORTUNITY_LIMIT"] = int(os.getenv("OPPORTUNITY_LIMIT", "100"))

    # Census API
    app.config["CENSUS_API_URL"] = os.getenv("CENSUS_API_URL", DEFAULT_CENSUS_URL)
    app.config["CENSUS_TIMEOUT"] = float(os.getenv("CENSUS_TIMEOUT", "10"))
    app.config["CENSUS_VOLUNTEER_FIELD"] = os.getenv("CENSUS_VOLUNTEER_FIELD", VOLUNTEER_FIELD)
    app.config["CENSUS_CHILDREN_FIELD"] = os.getenv("CENSUS_CHILDREN_FIELD", CHILDREN_FIELD)
    app.config["CENSUS_ONLINE_FIELD"] = os.getenv("CENSUS_ONLINE_FIELD", ONLINE_FIELD)
    app.config["CENSUS_HOURS_FIELD"] = os.getenv("CENSUS_HOURS_FIELD", HOURS_FIELD)


def create_app(test_config=None, store=None, census_client=None):
    """
    Build the application and its services.

    Args:
        test_config: Settings applied over the environment
        store: Row store to use instead of the SQLAlchemy one
        census_client: Census client to use instead of one hitting the live API
    """
    # Load environment variables
    load_dotenv()

    # Create Flask app
    app = Flask(__name__)
    load_config(app)
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(
        level=getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize extensions
    db.init_app(app)
    bcrypt.init_app(app)
    jwt.init_app(app)
    api = Api(app)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # Services live on the app, one instance each
    store = store or RowStore(db, {"users": User, "opportunities": Opportunity})
    users = UserDirectory(store, bcrypt)
    registry = OpportunityRegistry(store, users=users, limit=app.config["OPPORTUNITY_LIMIT"])
    census_client = census_client or CensusClient(
        base_url=app.config["CENSUS_API_URL"],
        timeout=app.config["CENSUS_TIMEOUT"],
    )
    app.extensions["user_directory"] = users
    app.extensions["opportunity_registry"] = registry
    app.extensions["census_client"] = census_client

    # Register blueprints
    from routes.api import blp as api_blp
    from routes.auth import blp as auth_blp
    from routes.opportunities import blp as opportunities_blp
    from routes.pages import blp as pages_blp
    from routes.statistics import blp as statistics_blp
    from routes.users import blp as users_blp

    api.register_blueprint(api_blp)
    api.register_blueprint(auth_blp)
    app.register_blueprint(pages_blp)
    app.register_blueprint(users_blp)
    app.register_blueprint(opportunities_blp)
    app.register_blueprint(statistics_blp)

    @app.context_processor
    def inject_user():
        return {"user": current_user()}

    @app.errorhandler(403)
    def forbidden(error):
        if request.path.startswith("/api/"):
            return api.handle_http_exception(error)
        return render_template(
            "error.html", title="Forbidden", message="You cannot change this opportunity.", status=403
        ), 403

    @app.errorhandler(404)
    def not_found(error):
        if request.path.startswith("/api/"):
            return api.handle_http_exception(error)
        return render_template(
            "error.html", title="Page Not Found", message="The page you are looking for does not exist.", status=404
        ), 404

    @app.errorhandler(500)
    def server_error(error):
        logger.error("Unhandled error: %s", getattr(error, "original_exception", None) or error)
        return render_template("error.html", title="Error", message="Something went wrong.", status=500), 500

    # Create tables and load the registry
    with app.app_context():
        db.create_all()
        logger.info("Database tables ready")
        registry.refresh()

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=int(os.getenv("PORT", "5000")))
