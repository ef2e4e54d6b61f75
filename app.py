# app.py (gunicorn "app:create_app()" or python app.py locally)

from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from agritrace.app_config import load_config
from agritrace.blockchain import init_ledger
from agritrace.errors import register_error_handlers
from agritrace.json_provider import MongoJSONProvider
from agritrace.mongo import init_mongo
from agritrace.register_blueprints import register_all_blueprints
from agritrace.services.aggregator.quality_service import init_quality
from agritrace.services.auth.auth_service import bcrypt


def _init_jwt(app):
    jwt = JWTManager(app)

    @jwt.unauthorized_loader
    def _missing_token(reason):
        return jsonify({"success": False, "message": "Access token required"}), 401

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return jsonify({"success": False, "message": "Invalid token"}), 401

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return jsonify({"success": False, "message": "Token expired"}), 401

    return jwt


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.json = MongoJSONProvider(app)

    # -------------------------
    # Config & security
    # -------------------------
    load_config(app, config_overrides)
    CORS(app, resources={r"/*": {"origins": app.config["CORS_ORIGIN"]}})

    # -------------------------
    # Mongo
    # -------------------------
    init_mongo(app)

    # -------------------------
    # Auth
    # -------------------------
    bcrypt.init_app(app)
    _init_jwt(app)

    # -------------------------
    # Ledger & quality inspection
    # -------------------------
    init_ledger(app)
    init_quality(app)

    # -------------------------
    # Errors & blueprints
    # -------------------------
    register_error_handlers(app)
    register_all_blueprints(app)

    return app


# Local run only
if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=True)
