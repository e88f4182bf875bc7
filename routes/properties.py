from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from database import get_db
from errors import ValidationError
from services import properties
from utils.auth import current_user_id


properties_bp = Blueprint('properties', __name__)


@properties_bp.route('/properties', methods=['POST'])
@jwt_required()
def create_property():
    """
    It creates 'Property' for who have the 'owner' role.
    :return: The property with its generated slug, otherwise error.
    """
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        prop = properties.create_property(db, current_user_id(), data)
        return jsonify({'msg': 'Property created successfully', 'property': properties.property_json(prop)}), 201


@properties_bp.route('/properties/<int:property_id>', methods=['PATCH'])
@jwt_required()
def update_property(property_id):
    """ Partial update. Changing the title gives the listing a new slug. """
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        prop = properties.update_property(db, property_id, current_user_id(), data)
        return jsonify(properties.property_json(prop)), 200


@properties_bp.route('/properties/nearby', methods=['GET'])
def nearby_properties():
    """
    Available properties around a point, nearest first.
    Query params: lng, lat (required), radius_km (default 5), limit (default 50, max 200).
    """
    lng = request.args.get('lng', type=float)
    lat = request.args.get('lat', type=float)
    radius_km = request.args.get('radius_km', default=5.0, type=float)
    limit = max(1, min(request.args.get('limit', default=50, type=int), 200))

    if lng is None or lat is None:
        raise ValidationError([('coordinates', 'lng and lat are required')])

    with get_db() as db:
        hits = properties.find_nearby(db, lng, lat, radius_km, limit)
        return jsonify([properties.property_json(p, distance_km=d) for d, p in hits]), 200


@properties_bp.route('/properties/<string:slug>', methods=['GET'])
def get_property(slug):
    """ Public listing page by slug. Counts a view. """
    with get_db() as db:
        prop = properties.get_property_by_slug(db, slug)
        properties.record_property_event(db, prop.id, 'view')
        return jsonify(properties.property_json(prop)), 200


@properties_bp.route('/properties/<int:property_id>/events', methods=['POST'])
def property_event(property_id):
    """ Front-end beacons for clicks and inquiries. """
    event = (request.get_json(silent=True) or {}).get('event')

    with get_db() as db:
        properties.record_property_event(db, property_id, event)

    return jsonify({'ok': True}), 200


@properties_bp.route('/properties/<int:property_id>/status', methods=['PUT'])
@jwt_required()
def set_status(property_id):
    status = (request.get_json(silent=True) or {}).get('status')

    with get_db() as db:
        prop = properties.set_property_status(db, property_id, current_user_id(), status)
        return jsonify({'id': prop.id, 'status': prop.status}), 200


@properties_bp.route('/properties/<int:property_id>/verify', methods=['POST'])
@jwt_required()
def verify(property_id):
    with get_db() as db:
        prop = properties.verify_property(db, property_id, current_user_id())
        return jsonify({'id': prop.id, 'verified': prop.verified}), 200


@properties_bp.route('/properties/<int:property_id>/save', methods=['POST'])
@jwt_required()
def save(property_id):
    with get_db() as db:
        properties.save_property(db, current_user_id(), property_id)

    return jsonify({'saved': True}), 200


@properties_bp.route('/properties/<int:property_id>/save', methods=['DELETE'])
@jwt_required()
def unsave(property_id):
    with get_db() as db:
        properties.unsave_property(db, current_user_id(), property_id)

    return jsonify({'saved': False}), 200
