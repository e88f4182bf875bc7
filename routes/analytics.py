from datetime import date

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from database import get_db
from errors import PermissionDenied, ValidationError
from models import User
from services import analytics
from services.properties import get_property
from utils.auth import current_user_id


analytics_bp = Blueprint('analytics', __name__, url_prefix='/analytics')


def _ensure_can_view(db, property_id, user_id):
    prop = get_property(db, property_id)
    user = db.get(User, user_id)
    if not user or (prop.owner_id != user.id and user.role != 'admin'):
        raise PermissionDenied('forbidden')
    return prop


def _parse_day(value, field):
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError([(field, 'Invalid date format. Use YYYY-MM-DD')])


@analytics_bp.route('/properties/<int:property_id>', methods=['GET'])
@jwt_required()
def property_analytics(property_id):
    """
    Query params:
      - period: daily | weekly | monthly (default daily)
      - since / until: YYYY-MM-DD bounds on the bucket start date
    """
    period = request.args.get('period', 'daily')
    since = _parse_day(request.args.get('since'), 'since')
    until = _parse_day(request.args.get('until'), 'until')

    with get_db() as db:
        _ensure_can_view(db, property_id, current_user_id())
        rows = analytics.property_report(db, property_id, period, since, until)
        return jsonify([analytics.analytics_json(r) for r in rows]), 200


@analytics_bp.route('/properties/<int:property_id>/rollup', methods=['POST'])
@jwt_required()
def rollup(property_id):
    data = request.get_json(silent=True) or {}
    period = data.get('period', 'daily')
    day = _parse_day(data.get('date'), 'date') or date.today()

    with get_db() as db:
        _ensure_can_view(db, property_id, current_user_id())
        row = analytics.rollup_property(db, property_id, period, day)
        return jsonify(analytics.analytics_json(row)), 200
