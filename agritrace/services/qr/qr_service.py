# agritrace/services/qr/qr_service.py

import json
import os
from typing import Any, Dict

import qrcode
from flask import current_app

from agritrace.errors import NotFound, ServerError
from agritrace.mongo import USERS, mongo
from agritrace.services.crop.crop_service import CropService
from agritrace.utils import now_utc, public_user

QR_SUBDIR = "qr"


class QRService:

    @staticmethod
    def build_payload(crop: Dict[str, Any]) -> Dict[str, Any]:
        tid = crop["traceabilityId"]
        return {
            "traceabilityId": tid,
            "cropId": str(crop["_id"]),
            "type": "crop",
            "url": f"{current_app.config['FRONTEND_URL']}/trace/{tid}",
        }

    @staticmethod
    def file_name(traceability_id: str) -> str:
        # one file per crop; regeneration overwrites it
        return f"crop-{traceability_id}.png"

    @staticmethod
    def generate(crop_id: str) -> Dict[str, Any]:
        crop = CropService.require_crop(crop_id)
        payload = QRService.build_payload(crop)

        qr_dir = os.path.join(current_app.config["UPLOAD_FOLDER"], QR_SUBDIR)
        file_name = QRService.file_name(crop["traceabilityId"])

        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(json.dumps(payload))
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        try:
            os.makedirs(qr_dir, exist_ok=True)
            img.save(os.path.join(qr_dir, file_name))
        except OSError as e:
            current_app.logger.error("QR write failed for %s: %s", crop["traceabilityId"], e)
            raise ServerError("Failed to generate QR code")

        qr_code = {
            "code": crop["traceabilityId"],
            "imageUrl": f"/uploads/{QR_SUBDIR}/{file_name}",
            "generatedAt": now_utc(),
        }
        CropService.set_qr_code(crop["_id"], qr_code)

        return {"imageUrl": qr_code["imageUrl"], "code": qr_code["code"], "payload": payload}

    @staticmethod
    def verify(code: str) -> Dict[str, Any]:
        crop = CropService.find_by_identifier(code)
        if not crop:
            raise NotFound("QR not found")

        farmer = mongo.db[USERS].find_one({"_id": crop.get("farmer")})
        return {
            "id": crop["_id"],
            "traceabilityId": crop.get("traceabilityId"),
            "name": crop.get("name"),
            "variety": crop.get("variety"),
            "farmer": public_user(farmer, ("name", "phone", "address", "farmerDetails")),
            "status": crop.get("status"),
            "qrCode": crop.get("qrCode"),
        }
