# Overview: Flask API routes for parts inventory; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import parts_service
from ..validation import ValidationError, ConflictError, NotFoundError, require_payload
from ..decorators import require_auth


parts_bp = Blueprint("parts", __name__, url_prefix="/api/parts")


@parts_bp.get("")
@require_auth
def list_parts_route():
    """Query params: search, status (available|sold), currency."""
    try:
        parts = parts_service.list_parts(
            g.scope,
            search=request.args.get("search"),
            status=request.args.get("status"),
            currency=request.args.get("currency"),
        )
        return jsonify([p.to_list_dict() for p in parts]), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch parts")
        return jsonify({"error": "Failed to fetch parts"}), 500


@parts_bp.post("")
@require_auth
def create_part_route():
    """
    Request body:
    - car_id: int (required; car must be dismantled)
    - name: str (required)
    - currency: str (required)
    - estimated_price: decimal (optional)
    - storage_location: str (optional)
    - notes: str (optional)
    """
    try:
        data = require_payload(request.get_json(silent=True))
        part = parts_service.create_part(
            g.scope,
            g.current_user,
            car_id=data.get("car_id"),
            name=data.get("name"),
            currency=data.get("currency"),
            estimated_price=data.get("estimated_price"),
            storage_location=data.get("storage_location"),
            notes=data.get("notes"),
        )
        return jsonify(part.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create part")
        return jsonify({"error": "Failed to create part"}), 500


@parts_bp.post("/<int:part_id>/sell")
@require_auth
def sell_part_route(part_id: int):
    """
    Request body:
    - sale_price: decimal > 0 (required)
    - sale_currency: str (optional, defaults to the part's currency)
    - buyer: str (optional)
    - notes: str (optional)
    """
    try:
        data = require_payload(request.get_json(silent=True))
        part, tx = parts_service.sell_part(
            g.scope,
            g.current_user,
            part_id,
            sale_price=data.get("sale_price"),
            sale_currency=data.get("sale_currency"),
            buyer=data.get("buyer"),
            notes=data.get("notes"),
        )
        return jsonify({
            "success": True,
            "part": part.to_dict(),
            "transaction": tx.to_dict(),
        }), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to sell part")
        return jsonify({"error": "Failed to sell part"}), 500
