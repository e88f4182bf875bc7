from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from database import get_db
from errors import ValidationError
from services import messages
from utils.auth import current_user_id


messages_bp = Blueprint('messages', __name__)


@messages_bp.route('/bookings/<int:booking_id>/messages', methods=['POST'])
@jwt_required()
def send(booking_id):
    """ Sender is the caller; recipient must be the other side of the booking. """
    data = request.get_json(silent=True) or {}
    recipient = data.get('recipient')

    if not isinstance(recipient, int):
        raise ValidationError([('recipient', 'Message must have a recipient')])

    with get_db() as db:
        message = messages.send_message(db, booking_id, current_user_id(), recipient, data)
        return jsonify(messages.message_json(message)), 201


@messages_bp.route('/bookings/<int:booking_id>/messages', methods=['GET'])
@jwt_required()
def conversation(booking_id):
    limit = max(1, min(request.args.get('limit', default=100, type=int), 500))
    offset = max(0, request.args.get('offset', default=0, type=int))

    with get_db() as db:
        items = messages.list_conversation(db, booking_id, current_user_id(), limit=limit, offset=offset)
        return jsonify([messages.message_json(m) for m in items]), 200


@messages_bp.route('/messages/<int:message_id>/read', methods=['POST'])
@jwt_required()
def read(message_id):
    with get_db() as db:
        message = messages.mark_read(db, message_id, current_user_id())
        return jsonify({'id': message.id, 'read': message.read}), 200


@messages_bp.route('/messages/unread-count', methods=['GET'])
@jwt_required()
def unread():
    with get_db() as db:
        return jsonify({'unread': messages.unread_count(db, current_user_id())}), 200
