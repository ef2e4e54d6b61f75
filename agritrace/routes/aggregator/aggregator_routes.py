# agritrace/routes/aggregator/aggregator_routes.py

import json
import os
import time
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required
from werkzeug.utils import secure_filename

from agritrace.errors import ServerError, Unauthorized, ValidationError
from agritrace.models.aggregator.collection_models import (
    CollectCropModel,
    RecordSaleModel,
    ScanQRModel,
    StatusUpdateModel,
)
from agritrace.services.aggregator.collection_service import CollectionService
from agritrace.services.traceability.traceability_services import TraceabilityService
from agritrace.utils import parse_pagination

aggregator_bp = Blueprint("aggregator", __name__, url_prefix="/api/v1/aggregator")

ALLOWED_IMAGE_EXT = {"jpg", "jpeg", "png", "webp"}
MAX_QUALITY_IMAGES = 10
IMAGE_SUBDIR = "aggregator"


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
def _get_aggregator_id() -> str:
    """JWT identity of the caller; only aggregators get past this."""
    if (get_jwt().get("role") or "").lower() != "aggregator":
        raise Unauthorized("Aggregator access required")
    return get_jwt_identity()


def _allowed_image(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_IMAGE_EXT


def _save_quality_images(files):
    """Saves uploads under UPLOAD_FOLDER/aggregator; returns (disk path, served url) pairs."""
    files = [f for f in files if f and f.filename]
    if len(files) > MAX_QUALITY_IMAGES:
        raise ValidationError(f"At most {MAX_QUALITY_IMAGES} quality images are allowed")
    for f in files:
        if not _allowed_image(f.filename):
            raise ValidationError("Only image files are allowed",
                                  errors=[{"field": "qualityImages", "message": f.filename}])

    upload_dir = os.path.join(current_app.config["UPLOAD_FOLDER"], IMAGE_SUBDIR)
    os.makedirs(upload_dir, exist_ok=True)

    saved = []
    try:
        stamp = int(time.time() * 1000)
        for i, f in enumerate(files):
            name = f"quality-{stamp}-{i}-{secure_filename(f.filename)}"
            path = os.path.join(upload_dir, name)
            f.save(path)
            saved.append((path, f"/uploads/{IMAGE_SUBDIR}/{name}"))
    except OSError as e:
        current_app.logger.error("Quality image write failed: %s", e)
        _remove_files(saved)
        raise ServerError("Failed to store quality images")
    return saved


def _remove_files(saved):
    for path, _ in saved:
        try:
            os.remove(path)
        except OSError as e:
            current_app.logger.warning("Could not remove %s: %s", path, e)


def _json_field(form, key):
    raw = form.get(key)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError(f"{key} must be valid JSON", errors=[{"field": key, "message": "invalid JSON"}])


def _collect_payload():
    """multipart form (with quality images) or a plain JSON body"""
    if request.files or request.form:
        form = request.form
        data = {k: v for k, v in form.items() if k not in ("collectionLocation", "storageDetails")}
        for key in ("collectionLocation", "storageDetails"):
            value = _json_field(form, key)
            if value is not None:
                data[key] = value
        return data, request.files.getlist("qualityImages")
    return (request.get_json(silent=True) or {}), []


def _parse_date(value, field):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date", errors=[{"field": field, "message": "invalid date"}])


# ---------------------------------------------------------
# POST /api/v1/aggregator/scan-qr
# ---------------------------------------------------------
@aggregator_bp.post("/scan-qr")
@jwt_required()
def scan_qr():
    _get_aggregator_id()
    payload = ScanQRModel(**(request.get_json(silent=True) or {}))
    location = payload.scannedLocation.model_dump() if payload.scannedLocation else None
    result = CollectionService.scan(payload.qrCode, location)
    return jsonify({"success": True, "message": "QR code scanned successfully", "data": result})


# ---------------------------------------------------------
# POST /api/v1/aggregator/collect-crop
# ---------------------------------------------------------
@aggregator_bp.post("/collect-crop")
@jwt_required()
def collect_crop():
    aggregator_id = _get_aggregator_id()
    data, files = _collect_payload()

    # validate before any file lands on disk
    payload = CollectCropModel(**data)
    saved = _save_quality_images(files)

    # nothing stays on disk unless the collection is written
    try:
        result = CollectionService.collect(payload, aggregator_id, [url for _, url in saved])
    except Exception:
        _remove_files(saved)
        raise
    return jsonify({"success": True, "message": "Crop collected successfully", "data": result}), 201


# ---------------------------------------------------------
# GET /api/v1/aggregator/collections
# ---------------------------------------------------------
@aggregator_bp.get("/collections")
@jwt_required()
def list_collections():
    aggregator_id = _get_aggregator_id()
    page, limit = parse_pagination(request.args)
    result = CollectionService.list_collections(
        aggregator_id,
        status=request.args.get("status"),
        page=page,
        limit=limit,
        sort_by=request.args.get("sortBy", "collectionDate"),
        sort_order=request.args.get("sortOrder", "desc"),
    )
    return jsonify({"success": True, "data": result})


@aggregator_bp.get("/collections/<collection_id>")
@jwt_required()
def get_collection(collection_id):
    aggregator_id = _get_aggregator_id()
    return jsonify({"success": True, "data": CollectionService.get_collection(collection_id, aggregator_id)})


# ---------------------------------------------------------
# PUT /api/v1/aggregator/collections/<id>/status
# ---------------------------------------------------------
@aggregator_bp.put("/collections/<collection_id>/status")
@jwt_required()
def update_collection_status(collection_id):
    aggregator_id = _get_aggregator_id()
    payload = StatusUpdateModel(**(request.get_json(silent=True) or {}))
    collection = CollectionService.update_status(collection_id, payload.status, payload.notes, aggregator_id)
    return jsonify({"success": True, "message": "Collection status updated successfully", "data": collection})


# ---------------------------------------------------------
# PUT /api/v1/aggregator/collections/<id>/sale
# ---------------------------------------------------------
@aggregator_bp.put("/collections/<collection_id>/sale")
@jwt_required()
def record_sale(collection_id):
    aggregator_id = _get_aggregator_id()
    payload = RecordSaleModel(**(request.get_json(silent=True) or {}))
    collection = CollectionService.record_sale(collection_id, payload, aggregator_id)
    return jsonify({"success": True, "message": "Sale recorded successfully", "data": collection})


# ---------------------------------------------------------
# GET /api/v1/aggregator/analytics
# ---------------------------------------------------------
@aggregator_bp.get("/analytics")
@jwt_required()
def analytics():
    aggregator_id = _get_aggregator_id()
    start = _parse_date(request.args.get("startDate"), "startDate")
    end = _parse_date(request.args.get("endDate"), "endDate")
    return jsonify({"success": True, "data": CollectionService.analytics(aggregator_id, start, end)})


# ---------------------------------------------------------
# GET /api/v1/aggregator/trace/<id>  (public)
# ---------------------------------------------------------
@aggregator_bp.get("/trace/<identifier>")
def trace_collection(identifier):
    vm = TraceabilityService.build_collection_trace(identifier)
    return jsonify({"success": True, "data": vm.to_dict()})
