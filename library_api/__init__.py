import logging

from flask import Flask, jsonify

from library_api.config import Config
from library_api.extensions import db, migrate, jwt
from library_api.db_objects import ensure_db_objects


def _unauthorized(message):
    return jsonify({"success": False, "error": "unauthorized", "message": message}), 401


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # 1) db first: db.engine / db.session need it
    db.init_app(app)

    # 2) tables and the active-loan index
    ensure_db_objects(app)

    # 3) remaining extensions
    migrate.init_app(app, db)
    jwt.init_app(app)

    @jwt.unauthorized_loader
    def _missing_token(reason):
        return _unauthorized(reason)

    @jwt.invalid_token_loader
    def _bad_token(reason):
        return _unauthorized(reason)

    @jwt.expired_token_loader
    def _expired_token(_header, _payload):
        return _unauthorized("Token has expired")

    # 4) API blueprints
    from library_api.controllers.auth_controller import auth_bp
    from library_api.controllers.book_controller import book_bp
    from library_api.controllers.borrow_controller import borrow_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(book_bp, url_prefix="/books")
    app.register_blueprint(borrow_bp, url_prefix="/borrow")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    app.logger.info(
        f"[app] started; loan period {app.config['LOAN_PERIOD_DAYS']} days, "
        f"max {app.config['MAX_ACTIVE_LOANS']} active loans"
    )
    return app
