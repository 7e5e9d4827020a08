# Overview: Flask API routes for cars; parses input and returns JSON responses.

# backend/autocrm/routes/cars.py
"""
Car API Routes

- GET  /api/cars                 - list (query: search, status)
- POST /api/cars                 - create
- GET  /api/cars/:id/details     - car + transactions + rentals + parts + profitability
- POST /api/cars/:id/expense     - record an expense
- POST /api/cars/:id/dismantle   - active -> dismantled

SECURITY:
- All routes require authentication
- Every query is filtered by g.scope; another user's car is a 404
- The acting user is taken from the session, NOT from the request body
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import car_service
from ..validation import ValidationError, ConflictError, NotFoundError, require_payload
from ..decorators import require_auth


cars_bp = Blueprint("cars", __name__, url_prefix="/api/cars")


@cars_bp.get("")
@require_auth
def list_cars_route():
    try:
        cars = car_service.list_cars(
            g.scope,
            search=request.args.get("search"),
            status=request.args.get("status"),
        )
        return jsonify([car.to_dict() for car in cars]), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch cars")
        return jsonify({"error": "Failed to fetch cars"}), 500


@cars_bp.post("")
@require_auth
def create_car_route():
    """
    Request body:
    - brand: str (required)
    - model: str (required)
    - price: decimal (required)
    - currency: str (required, 3-letter code)
    - year: int (optional)
    - vin: str (optional)
    """
    try:
        data = require_payload(request.get_json(silent=True))
        car = car_service.create_car(
            g.current_user,
            brand=data.get("brand"),
            model=data.get("model"),
            price=data.get("price"),
            currency=data.get("currency"),
            year=data.get("year"),
            vin=data.get("vin"),
        )
        return jsonify(car.to_dict()), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create car")
        return jsonify({"error": "Failed to create car"}), 500


@cars_bp.get("/<int:car_id>/details")
@require_auth
def car_details_route(car_id: int):
    try:
        return jsonify(car_service.get_car_details(g.scope, car_id)), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch car details")
        return jsonify({"error": "Failed to fetch car details"}), 500


@cars_bp.post("/<int:car_id>/expense")
@require_auth
def add_expense_route(car_id: int):
    """
    Request body:
    - amount: decimal > 0 (required)
    - currency: str (required)
    - category: repair|fuel|insurance|maintenance|parking|wash|parts|other (required)
    - description: str (optional)
    """
    try:
        data = require_payload(request.get_json(silent=True))
        tx = car_service.record_expense(
            g.scope,
            car_id,
            g.current_user,
            amount=data.get("amount"),
            currency=data.get("currency"),
            category=data.get("category"),
            description=data.get("description"),
        )
        return jsonify({"success": True, "transaction": tx.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to add expense")
        return jsonify({"error": "Failed to add expense"}), 500


@cars_bp.post("/<int:car_id>/dismantle")
@require_auth
def dismantle_car_route(car_id: int):
    """
    active -> dismantled (irreversible).

    Error responses:
        404: Car not found (or not yours)
        409: Car is rented or already dismantled
    """
    try:
        car = car_service.dismantle_car(g.scope, car_id)
        return jsonify({"success": True, "car": car.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to dismantle car")
        return jsonify({"error": "Failed to dismantle car"}), 500
