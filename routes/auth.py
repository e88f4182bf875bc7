from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required

from database import get_db
from errors import PermissionDenied
from services import users
from utils.auth import issue_token, current_user_id


auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Registers a new owner or tenant. Admin accounts are provisioned, not self-registered.
    :return: The created user, 409 when email or phone is taken.
    """
    data = request.get_json(silent=True) or {}
    if data.get('role') == 'admin':
        raise PermissionDenied('Admin accounts cannot be self-registered')

    with get_db() as db:
        user = users.register_user(db, data)
        return jsonify({'msg': 'User registered successfully', 'user': users.user_json(user)}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Login a user with email and password.
    :return: Access token(JWT) and user's role, otherwise error.
    """
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        user = users.authenticate(db, data.get('email'), data.get('password'))
        return jsonify({
            'access_token': issue_token(user),
            'role': user.role
        }), 200


@auth_bp.route('/otp/request', methods=['POST'])
@jwt_required()
def request_otp():
    """ Generates an OTP for the email or phone channel and hands it to the sender. """
    channel = (request.get_json(silent=True) or {}).get('channel', 'email')

    with get_db() as db:
        code = users.issue_otp(db, current_user_id(), channel)

    # Delivery itself is done by the mail/SMS workers.
    current_app.logger.debug("OTP issued on %s channel", channel)
    payload = {'msg': f'OTP sent via {channel}'}
    if current_app.config.get('EXPOSE_OTP'):
        payload['code'] = code
    return jsonify(payload), 200


@auth_bp.route('/otp/verify', methods=['POST'])
@jwt_required()
def verify_otp():
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        user = users.verify_otp(db, current_user_id(), data.get('channel', 'email'), data.get('code'))
        return jsonify({'msg': 'Verified successfully', 'user': users.user_json(user)}), 200


@auth_bp.route('/password/forgot', methods=['POST'])
def forgot_password():
    """ Always answers the same way so registered emails cannot be discovered. """
    email = (request.get_json(silent=True) or {}).get('email')

    with get_db() as db:
        token = users.request_password_reset(db, email)

    payload = {'msg': 'If the account exists, a reset link has been sent'}
    if token and current_app.config.get('EXPOSE_RESET_TOKEN'):
        payload['token'] = token
    return jsonify(payload), 200


@auth_bp.route('/password/reset', methods=['POST'])
def reset_password():
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        users.reset_password(db, data.get('token'), data.get('password'))

    return jsonify({'msg': 'Password updated successfully'}), 200
