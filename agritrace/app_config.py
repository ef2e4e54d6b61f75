# agritrace/app_config.py

import os
from datetime import timedelta


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config(app, overrides=None):
    """
    Load all Flask configuration in a clean centralized way.
    Values passed in `overrides` win over the environment (used by tests).
    """
    # ------------------------------
    # Mongo
    # ------------------------------
    app.config["MONGO_URI"] = os.getenv(
        "MONGO_URI",
        "mongodb://localhost:27017/agritrace"
    )
    app.config["DISABLE_MONGO"] = _env_flag("DISABLE_MONGO")

    # ------------------------------
    # Security Keys
    # ------------------------------
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", os.urandom(24))
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "change-me")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        hours=int(os.getenv("JWT_ACCESS_TOKEN_HOURS", "6"))
    )
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_TYPE"] = "Bearer"

    # ------------------------------
    # HTTP surface
    # ------------------------------
    app.config["FRONTEND_URL"] = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")
    app.config["CORS_ORIGIN"] = os.getenv("CORS_ORIGIN", "*")
    app.config["UPLOAD_FOLDER"] = os.getenv(
        "UPLOAD_FOLDER",
        os.path.join(os.getcwd(), "uploads")
    )
    app.config["MAX_CONTENT_LENGTH"] = int(os.getenv("MAX_CONTENT_LENGTH", str(10 * 1024 * 1024)))

    # ------------------------------
    # Ledger (blockchain) Settings
    # ------------------------------
    app.config["LEDGER_BACKEND"] = os.getenv("LEDGER_BACKEND", "mock").lower()
    app.config["WEB3_RPC_URL"] = os.getenv("WEB3_RPC_URL", "http://127.0.0.1:8545")
    app.config["WEB3_PRIVATE_KEY"] = os.getenv("WEB3_PRIVATE_KEY", "")
    app.config["WEB3_POA"] = _env_flag("WEB3_POA")
    app.config["PRODUCE_LEDGER_ADDRESS"] = os.getenv(
        "PRODUCE_LEDGER_ADDRESS",
        "0x1234567890123456789012345678901234567890"
    )
    app.config["PAYMENT_MANAGER_ADDRESS"] = os.getenv(
        "PAYMENT_MANAGER_ADDRESS",
        "0x0987654321098765432109876543210987654321"
    )
    app.config["LEDGER_TIMEOUT"] = int(os.getenv("LEDGER_TIMEOUT", "30"))

    # ------------------------------
    # Quality inspection / workflow
    # ------------------------------
    seed = os.getenv("QUALITY_SEED")
    app.config["QUALITY_SEED"] = int(seed) if seed else None
    app.config["ENFORCE_STATUS_TRANSITIONS"] = _env_flag("ENFORCE_STATUS_TRANSITIONS")

    if overrides:
        app.config.update(overrides)

    app.logger.info("Config loaded (ledger=%s)", app.config["LEDGER_BACKEND"])
