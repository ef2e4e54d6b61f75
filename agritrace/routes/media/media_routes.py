# agritrace/routes/media/media_routes.py

from flask import Blueprint, current_app, send_from_directory

media_bp = Blueprint("media", __name__, url_prefix="/uploads")


@media_bp.route("/<path:filename>")
def serve_upload(filename):
    """QR images and aggregator quality photos saved under UPLOAD_FOLDER."""
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
