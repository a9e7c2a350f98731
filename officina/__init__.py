import logging
import os

from flask import Flask, jsonify

from .config import Config, INSTANCE_DIR
from .errors import ParameterNotFound, StoreError, ValidationError
from .extensions import db
from .sessions import SESSIONS_EXTENSION_KEY, SessionRegistry
from .storage import STORE_EXTENSION_KEY, build_store


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    level = str(app.config.get('LOG_LEVEL') or 'INFO').upper()
    logging.getLogger(__name__).setLevel(level)
    app.logger.setLevel(level)

    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///' + INSTANCE_DIR):
        os.makedirs(INSTANCE_DIR, exist_ok=True)
    db.init_app(app)

    from .blueprints.admin.routes import admin_bp
    from .blueprints.api import api_bp

    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(api_bp, url_prefix='/api')

    with app.app_context():
        # Only creates missing tables; the checklist tree itself is JSON.
        db.create_all()

    store = build_store(app)
    app.extensions[STORE_EXTENSION_KEY] = store
    app.extensions[SESSIONS_EXTENSION_KEY] = SessionRegistry(
        store,
        debounce_seconds=app.config['NOTE_DEBOUNCE_SECONDS'],
        focus_delay=app.config['TAB_FOCUS_DELAY_MS'] / 1000.0,
        idle_seconds=app.config['SESSION_IDLE_SECONDS'],
    )
    app.logger.info("Archivio checklist: %s", type(store).__name__)

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        return jsonify({'error': str(exc)}), 400

    @app.errorhandler(ParameterNotFound)
    def handle_not_found(exc):
        return jsonify({'error': str(exc)}), 404

    @app.errorhandler(StoreError)
    def handle_store_error(exc):
        app.logger.error("Errore di archivio su %s: %s", exc.path, exc)
        return jsonify({'error': 'Errore di salvataggio, riprovare'}), 500

    return app
