# agritrace/routes/qr/qr_routes.py

from flask import Blueprint, jsonify

from agritrace.services.qr.qr_service import QRService
from agritrace.services.traceability.traceability_services import TraceabilityService

qr_bp = Blueprint("qr", __name__, url_prefix="/api/v1/qr")


# ---------------------------------------------------
# GENERATE QR IMAGE AND STORE IT ON THE CROP
# ---------------------------------------------------
@qr_bp.get("/generate/<crop_id>")
def generate_qr(crop_id):
    qr = QRService.generate(crop_id)
    return jsonify({"success": True, "message": "QR code generated successfully", "qr": qr})


# ---------------------------------------------------
# VERIFY (consumer scan)
# ---------------------------------------------------
@qr_bp.get("/verify/<code>")
def verify_qr(code):
    return jsonify({"success": True, "message": "QR code verified", "crop": QRService.verify(code)})


# ---------------------------------------------------
# FULL TRACE
# ---------------------------------------------------
@qr_bp.get("/trace/<traceability_id>")
def trace(traceability_id):
    vm = TraceabilityService.build_traceability(traceability_id)
    return jsonify({"success": True, "data": vm.to_dict()})
