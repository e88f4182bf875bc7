from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from database import get_db
from services import notifications
from utils.auth import current_user_id, require_admin


notifications_bp = Blueprint('notifications', __name__, url_prefix='/notifications')


@notifications_bp.route('', methods=['GET'])
@jwt_required()
def list_notifications():
    unread_only = request.args.get('unread', 'false').lower() == 'true'
    limit = max(1, min(request.args.get('limit', default=50, type=int), 200))

    with get_db() as db:
        items = notifications.list_notifications(db, current_user_id(), unread_only=unread_only, limit=limit)
        return jsonify([notifications.notification_json(n) for n in items]), 200


@notifications_bp.route('/pending', methods=['GET'])
@jwt_required()
def pending():
    """ Delivery workers (admin tokens) pull what is still waiting on their channel. """
    require_admin('Only delivery workers can list pending deliveries')
    limit = max(1, min(request.args.get('limit', default=100, type=int), 500))

    with get_db() as db:
        items = notifications.pending_deliveries(db, request.args.get('channel'), limit=limit)
        return jsonify([notifications.notification_json(n) for n in items]), 200


@notifications_bp.route('/<int:notification_id>/read', methods=['POST'])
@jwt_required()
def read(notification_id):
    with get_db() as db:
        notification = notifications.mark_read(db, notification_id, current_user_id())
        return jsonify({'id': notification.id, 'read': notification.read}), 200


@notifications_bp.route('/read-all', methods=['POST'])
@jwt_required()
def read_all():
    with get_db() as db:
        updated = notifications.mark_all_read(db, current_user_id())

    return jsonify({'updated': updated}), 200


@notifications_bp.route('/<int:notification_id>/delivery', methods=['POST'])
@jwt_required()
def delivery(notification_id):
    """ Delivery workers (admin tokens) report a channel as sent. """
    require_admin('Only delivery workers can report deliveries')
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        notification = notifications.record_delivery(db, notification_id, data.get('channel'), data.get('sentAt'))
        return jsonify(notifications.notification_json(notification)), 200
