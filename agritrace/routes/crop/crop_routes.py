# agritrace/routes/crop/crop_routes.py

from flask import Blueprint, jsonify, request

from agritrace.models.crop.crop_models import CropUpdateModel, CropUploadModel
from agritrace.services.crop.crop_service import CropService
from agritrace.utils import parse_pagination

crop_bp = Blueprint("crops", __name__, url_prefix="/api/v1/crops")


# ---------------------------------------------------------
# POST /api/v1/crops/upload
# ---------------------------------------------------------
@crop_bp.post("/upload")
def upload_crop():
    payload = CropUploadModel(**(request.get_json(silent=True) or {}))
    crop = CropService.create_crop(payload)
    return jsonify({"success": True, "message": "Crop uploaded successfully", "crop": crop}), 201


# ---------------------------------------------------------
# GET /api/v1/crops/marketplace
# ---------------------------------------------------------
@crop_bp.get("/marketplace")
def marketplace():
    page, limit = parse_pagination(request.args, default_limit=12)
    result = CropService.marketplace(
        request.args.to_dict(),
        page=page,
        limit=limit,
        sort_by=request.args.get("sortBy", "listedAt"),
        sort_order=request.args.get("sortOrder", "desc"),
    )
    return jsonify({"success": True, **result})


# ---------------------------------------------------------
# GET /api/v1/crops/farmer/<email>
# ---------------------------------------------------------
@crop_bp.get("/farmer/<email>")
def farmer_crops(email):
    page, limit = parse_pagination(request.args)
    result = CropService.list_for_farmer(email, request.args.get("status"), page, limit)
    return jsonify({"success": True, **result})


# ---------------------------------------------------------
# /api/v1/crops/<crop_id>
# ---------------------------------------------------------
@crop_bp.get("/<crop_id>")
def get_crop(crop_id):
    return jsonify({"success": True, "crop": CropService.get_crop(crop_id)})


@crop_bp.put("/<crop_id>")
def update_crop(crop_id):
    payload = CropUpdateModel(**(request.get_json(silent=True) or {}))
    crop = CropService.update_crop(crop_id, payload)
    return jsonify({"success": True, "message": "Crop updated successfully", "crop": crop})


@crop_bp.delete("/<crop_id>")
def delete_crop(crop_id):
    CropService.deactivate_crop(crop_id)
    return jsonify({"success": True, "message": "Crop deleted successfully"})
