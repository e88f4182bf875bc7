from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from database import get_db
from errors import PermissionDenied, ValidationError
from models import User
from services import bookings
from services.messages import participants
from utils.auth import current_user_id


booking_bp = Blueprint('booking', __name__)


# ---------- helpers ----------

def _visible_booking(db, booking_id, user_id):
    """ Tenant, property owner and admins can see a booking. """
    booking = bookings.get_booking(db, booking_id)
    user = db.get(User, user_id)
    if not user or (user.id not in participants(booking) and user.role != 'admin'):
        raise PermissionDenied('forbidden')
    return booking


def _owner_or_admin(db, booking_id, user_id):
    booking = bookings.get_booking(db, booking_id)
    user = db.get(User, user_id)
    if not user or (user.id != booking.listing.owner_id and user.role != 'admin'):
        raise PermissionDenied('Only the property owner or an admin can do this')
    return booking


# ---------- routes ----------

@booking_bp.route('/bookings', methods=['POST'])
@jwt_required()
def create_booking():
    """
    A tenant requests a stay. The booking starts pending and unpaid;
    it is confirmed once its payment is captured.
    """
    data = request.get_json(silent=True) or {}
    property_id = data.get('propertyId')

    if not isinstance(property_id, int):
        raise ValidationError([('propertyId', 'Booking must be associated with a property')])

    with get_db() as db:
        booking = bookings.create_booking(db, current_user_id(), property_id, data)
        return jsonify(bookings.booking_json(booking)), 201


@booking_bp.route('/bookings', methods=['GET'])
@jwt_required()
def my_bookings():
    with get_db() as db:
        return jsonify([bookings.booking_json(b) for b in bookings.bookings_for_tenant(db, current_user_id())]), 200


@booking_bp.route('/bookings/<int:booking_id>', methods=['GET'])
@jwt_required()
def get_booking(booking_id):
    with get_db() as db:
        booking = _visible_booking(db, booking_id, current_user_id())
        return jsonify(bookings.booking_json(booking)), 200


@booking_bp.route('/bookings/<int:booking_id>/confirm', methods=['POST'])
@jwt_required()
def confirm(booking_id):
    with get_db() as db:
        _owner_or_admin(db, booking_id, current_user_id())
        booking = bookings.confirm_booking(db, booking_id)
        return jsonify(bookings.booking_json(booking)), 200


@booking_bp.route('/bookings/<int:booking_id>/check-in', methods=['POST'])
@jwt_required()
def check_in(booking_id):
    with get_db() as db:
        _owner_or_admin(db, booking_id, current_user_id())
        booking = bookings.check_in(db, booking_id)
        return jsonify(bookings.booking_json(booking)), 200


@booking_bp.route('/bookings/<int:booking_id>/complete', methods=['POST'])
@jwt_required()
def complete(booking_id):
    with get_db() as db:
        _owner_or_admin(db, booking_id, current_user_id())
        booking = bookings.complete_booking(db, booking_id)
        return jsonify(bookings.booking_json(booking)), 200


@booking_bp.route('/bookings/<int:booking_id>/cancel', methods=['POST'])
@jwt_required()
def cancel(booking_id):
    with get_db() as db:
        booking = bookings.cancel_booking(db, booking_id, current_user_id())
        return jsonify(bookings.booking_json(booking)), 200


@booking_bp.route('/bookings/<int:booking_id>/amounts', methods=['PATCH'])
@jwt_required()
def update_amounts(booking_id):
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        _owner_or_admin(db, booking_id, current_user_id())
        booking = bookings.update_booking_amounts(db, booking_id, data)
        return jsonify(bookings.booking_json(booking)), 200
