# backend/stockly/__init__.py
import logging
import os

from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(config_class=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    if not app.config.get("BACKUP_DIR"):
        app.config["BACKUP_DIR"] = os.path.join(app.instance_path, "Backups")

    # Service loggers ("stockly.services.*") propagate to the app logger
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger("stockly.services").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.backups import backups_bp
    from .routes.inventory import inventory_bp
    from .routes.documents import documents_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(backups_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(documents_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
