from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_auth
from ..services import ledger_service
from ..validation import ValidationError, parse_int, parse_currency


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.get("")
@require_auth
def list_transactions_route():
    """Query params: car_id, type (income|expense), currency, limit (default 100)."""
    try:
        limit = parse_int(request.args.get("limit"), "limit")
        rows = ledger_service.list_transactions(
            g.scope,
            car_id=parse_int(request.args.get("car_id"), "car_id"),
            type=request.args.get("type") or None,
            currency=parse_currency(request.args.get("currency"), required=False),
            limit=100 if limit is None else limit,
        )
        return jsonify([t.to_dict() for t in rows]), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch transactions")
        return jsonify({"error": "Failed to fetch transactions"}), 500
