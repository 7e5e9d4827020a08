# Overview: Flask API routes for rentals; parses input and returns JSON responses.

# backend/autocrm/routes/rentals.py
"""
Rental API Routes

- GET  /api/rentals                          - list (query: status)
- POST /api/rentals                          - create (car active -> rented)
- POST /api/rentals/:id/complete             - complete (books income, car -> active)
- GET  /api/rentals/calendar/:year/:month    - rentals overlapping the month + per-day counts

CRITICAL: Completion is one-way. A second completion answers 409 and books
nothing.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import rental_service
from ..validation import ValidationError, ConflictError, NotFoundError, require_payload
from ..decorators import require_auth


rentals_bp = Blueprint("rentals", __name__, url_prefix="/api/rentals")


@rentals_bp.get("")
@require_auth
def list_rentals_route():
    try:
        rentals = rental_service.list_rentals(g.scope, status=request.args.get("status"))
        return jsonify([r.to_list_dict() for r in rentals]), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch rentals")
        return jsonify({"error": "Failed to fetch rentals"}), 500


@rentals_bp.post("")
@require_auth
def create_rental_route():
    """
    Request body:
    - car_id: int (required)
    - client_name: str (required)
    - client_phone: str (optional)
    - start_date, end_date: YYYY-MM-DD (required, end >= start, inclusive)
    - daily_price: decimal > 0 (required)
    - currency: str (required)

    Error responses:
        400: Validation error
        404: Car not found (or not yours)
        409: Car is not available for rental
    """
    try:
        data = require_payload(request.get_json(silent=True))
        rental = rental_service.create_rental(
            g.scope,
            g.current_user,
            car_id=data.get("car_id"),
            client_name=data.get("client_name"),
            client_phone=data.get("client_phone"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            daily_price=data.get("daily_price"),
            currency=data.get("currency"),
        )
        return jsonify(rental.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create rental")
        return jsonify({"error": "Failed to create rental"}), 500


@rentals_bp.post("/<int:rental_id>/complete")
@require_auth
def complete_rental_route(rental_id: int):
    """
    Response:
        {
            "success": true,
            "rental": {...},       // status=completed
            "transaction": {...}   // the income row booked for this rental
        }
    """
    try:
        rental, tx = rental_service.complete_rental(g.scope, g.current_user, rental_id)
        return jsonify({
            "success": True,
            "rental": rental.to_dict(),
            "transaction": tx.to_dict(),
        }), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to complete rental")
        return jsonify({"error": "Failed to complete rental"}), 500


@rentals_bp.get("/calendar/<int:year>/<int:month>")
@require_auth
def calendar_route(year: int, month: int):
    try:
        return jsonify(rental_service.calendar(g.scope, year, month)), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch calendar data")
        return jsonify({"error": "Failed to fetch calendar data"}), 500
