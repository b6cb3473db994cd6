import logging
import os
import uuid

from flask import Flask, g, render_template, request
from dotenv import load_dotenv

from app.bizadmin.config import load_config
from app.bizadmin.db import init_db, teardown_db_session
from app.bizadmin.models import Base  # noqa: F401  (registers every module table before the admins import)
from app.bizadmin.crud.formatting import format_currency, format_date
from app.bizadmin.routes import bp as routes_bp
from app.bizadmin.modules.categories.admin import bp as categories_bp
from app.bizadmin.modules.customers.admin import bp as customers_bp
from app.bizadmin.modules.offerings.admin import bp as offerings_bp
from app.bizadmin.modules.contracts.admin import bp as contracts_bp
from app.bizadmin.modules.addresses.admin import bp as addresses_bp
from app.bizadmin.modules.line_items.admin import bp as line_items_bp

# Sidebar entries: (blueprint name, label)
NAVIGATION = (
    ("customers", "Customers"),
    ("categories", "Categories"),
    ("offerings", "Services"),
    ("contracts", "Contracts"),
    ("line_items", "Items"),
    ("addresses", "Addresses"),
)


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL") or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("app.bizadmin").setLevel(level)
    app.logger.setLevel(level)


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    _configure_logging(app)

    @app.context_processor
    def _inject_navigation() -> dict:
        return {"navigation": NAVIGATION}

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str | None = None) -> str:
        return format_date(value, format or app.config["DATE_FORMAT"])

    @app.template_filter("currency")
    def _currency_filter(value) -> str:
        return format_currency(value, app.config["CURRENCY_SYMBOL"])

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not os.environ.get("DATABASE_URL", "").strip():
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(offerings_bp)
    app.register_blueprint(contracts_bp)
    app.register_blueprint(addresses_bp)
    app.register_blueprint(line_items_bp)

    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
