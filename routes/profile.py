from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from database import get_db
from models import Property
from services import users
from services.properties import saved_property_ids, property_json
from utils.auth import current_user_id


profile_bp = Blueprint('profile', __name__)


@profile_bp.route('/profile', methods=['GET'])
@jwt_required()
def get_profile():
    with get_db() as db:
        user = users.get_user(db, current_user_id())
        return jsonify(users.user_json(user)), 200


@profile_bp.route('/profile', methods=['PUT'])
@jwt_required()
def update_profile():
    """
    Update user personal information.
    :return: Success msg and the updated profile, otherwise error.
    """
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        user = users.update_profile(db, current_user_id(), data)
        return jsonify({"msg": "Profile updated successfully", "user": users.user_json(user)}), 200


@profile_bp.route('/profile/password', methods=['PUT'])
@jwt_required()
def change_password():
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        users.change_password(db, current_user_id(), data.get('current_password'), data.get('new_password'))

    return jsonify({"msg": "Password changed successfully"}), 200


@profile_bp.route('/profile', methods=['DELETE'])
@jwt_required()
def deactivate():
    with get_db() as db:
        users.deactivate_user(db, current_user_id())

    return jsonify({"msg": "Account deactivated"}), 200


@profile_bp.route('/profile/saved', methods=['GET'])
@jwt_required()
def saved_properties():
    with get_db() as db:
        ids = saved_property_ids(db, current_user_id())
        props = {p.id: p for p in db.query(Property).filter(Property.id.in_(ids)).all()} if ids else {}
        return jsonify([property_json(props[i]) for i in ids if i in props]), 200
