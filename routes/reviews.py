from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from database import get_db
from errors import ValidationError
from services import reviews
from utils.auth import current_user_id


reviews_bp = Blueprint('reviews', __name__)


@reviews_bp.route('/reviews', methods=['POST'])
@jwt_required()
def create_review():
    data = request.get_json(silent=True) or {}
    booking_id = data.get('bookingId')

    if not isinstance(booking_id, int):
        raise ValidationError([('bookingId', 'Review must be linked to a booking')])

    with get_db() as db:
        review = reviews.create_review(db, current_user_id(), booking_id, data)
        return jsonify(reviews.review_json(review)), 201


@reviews_bp.route('/properties/<int:property_id>/reviews', methods=['GET'])
def property_reviews(property_id):
    limit = max(1, min(request.args.get('limit', default=20, type=int), 100))
    offset = max(0, request.args.get('offset', default=0, type=int))

    with get_db() as db:
        items = reviews.list_property_reviews(db, property_id, limit=limit, offset=offset)
        return jsonify([reviews.review_json(r) for r in items]), 200


@reviews_bp.route('/reviews/<int:review_id>/response', methods=['POST'])
@jwt_required()
def respond(review_id):
    comment = (request.get_json(silent=True) or {}).get('comment')

    with get_db() as db:
        review = reviews.respond_to_review(db, review_id, current_user_id(), comment)
        return jsonify(reviews.review_json(review)), 200


@reviews_bp.route('/reviews/<int:review_id>/vote', methods=['POST'])
@jwt_required()
def vote(review_id):
    helpful = (request.get_json(silent=True) or {}).get('helpful')

    if not isinstance(helpful, bool):
        raise ValidationError([('helpful', 'helpful must be true or false')])

    with get_db() as db:
        review = reviews.vote_review(db, review_id, helpful)
        return jsonify({'helpful': review.helpful, 'unhelpful': review.unhelpful}), 200


@reviews_bp.route('/reviews/<int:review_id>', methods=['DELETE'])
@jwt_required()
def delete(review_id):
    with get_db() as db:
        reviews.delete_review(db, review_id, current_user_id())

    return jsonify({'ok': True}), 200
