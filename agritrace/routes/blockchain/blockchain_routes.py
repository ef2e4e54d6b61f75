# agritrace/routes/blockchain/blockchain_routes.py

from flask import Blueprint, current_app, jsonify

from agritrace.blockchain import LedgerError, get_ledger_writer
from agritrace.errors import ServerError

blockchain_bp = Blueprint("blockchain", __name__, url_prefix="/api/v1/blockchain")


# ---------------------------------------------------------
# GET /api/v1/blockchain/network
# ---------------------------------------------------------
@blockchain_bp.get("/network")
def network():
    try:
        info = get_ledger_writer().network_info()
    except LedgerError as e:
        current_app.logger.error("Network info unavailable: %s", e)
        raise ServerError("Failed to get network info")
    return jsonify({"success": True, "network": info})


# ---------------------------------------------------------
# GET /api/v1/blockchain/contracts
# ---------------------------------------------------------
@blockchain_bp.get("/contracts")
def contracts():
    return jsonify({
        "success": True,
        "contracts": {
            "produceLedger": current_app.config.get("PRODUCE_LEDGER_ADDRESS"),
            "paymentManager": current_app.config.get("PAYMENT_MANAGER_ADDRESS"),
        },
    })
