import logging

from flask import Flask

from .config import Config
from .models import db

logger = logging.getLogger(__name__)


def create_app(overrides=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(level=app.config["LOG_LEVEL"])

    db.init_app(app)

    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.merchants import merchants_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(merchants_bp)

    # Tabellen direkt beim Start anlegen
    with app.app_context():
        db.create_all()

    logger.debug(f"App gestartet mit DB {app.config['SQLALCHEMY_DATABASE_URI']}")
    return app
