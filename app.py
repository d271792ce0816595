import logging

from flask import Flask, jsonify, request
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

load_dotenv()

from config import Config  # noqa: E402  (load_dotenv needs to run first)
from errors import AppError  # noqa: E402
from extensions import db, login_manager  # noqa: E402  (load_dotenv needs to run first)

logger = logging.getLogger(__name__)


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(level)
    app.logger.setLevel(level)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        if exc.status_code >= 500:
            logger.error("request failed: %s %s -> %s", request.method, request.path, exc.code)
        return jsonify(exc.as_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        code = (exc.name or "error").upper().replace(" ", "_")
        return jsonify({"error": code, "message": exc.description, "data": {}}), exc.code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(exc: SQLAlchemyError):
        logger.exception("storage failure: %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify({"error": "INTERNAL", "message": "Storage failure", "data": {}}), 500


def _register_cors(app: Flask) -> None:
    @app.before_request
    def answer_preflight():
        if request.method == "OPTIONS":
            return app.make_response(("", 200))
        return None

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = app.config.get("CORS_ORIGIN", "*")
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        return response


def create_app(test_config: dict | None = None) -> Flask:
    """Application factory for the plant maintenance API."""

    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # init extensions
    db.init_app(app)
    login_manager.init_app(app)

    # blueprints
    from modules.auth import bp as auth_bp
    from modules.machines import bp as machines_bp
    from modules.operators import bp as operators_bp
    from modules.stock import bp as stock_bp
    from modules.maintenance import bp as maintenance_bp
    from modules.reports import bp as reports_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(machines_bp)
    app.register_blueprint(operators_bp)
    app.register_blueprint(stock_bp)
    app.register_blueprint(maintenance_bp)
    app.register_blueprint(reports_bp)

    _register_error_handlers(app)
    _register_cors(app)

    # DB
    with app.app_context():
        # models must be imported before create_all()
        import models  # noqa: F401
        from modules.machines.models import Machine, Sensor
        from modules.operators.models import Operator
        from modules.stock.models import StockItem
        from modules.maintenance.models import Maintenance, UsedStockItem

        db.create_all()

    # storage and stock ledger
    from modules.maintenance.ledger import StockLedger
    from store import SqlAlchemyStore

    store = SqlAlchemyStore(db, {
        "machine": Machine,
        "sensor": Sensor,
        "operator": Operator,
        "stock": StockItem,
        "maintenance": Maintenance,
        "usage": UsedStockItem,
    })
    app.extensions["entity_store"] = store
    app.extensions["stock_ledger"] = StockLedger(store)

    logger.info("app.ready database=%s login_disabled=%s",
                app.config["SQLALCHEMY_DATABASE_URI"], bool(app.config.get("LOGIN_DISABLED")))
    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
