from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from database import get_db
from errors import ValidationError
from services import payments
from utils.auth import current_user_id, require_admin


payments_bp = Blueprint('payments', __name__, url_prefix='/payments')


@payments_bp.route('', methods=['POST'])
@jwt_required()
def create_payment():
    """ Records the gateway order the client is about to pay. """
    data = request.get_json(silent=True) or {}
    booking_id = data.get('bookingId')

    if not isinstance(booking_id, int):
        raise ValidationError([('bookingId', 'Payment must be linked to a booking')])

    with get_db() as db:
        payment = payments.create_payment(db, booking_id, current_user_id(), data)
        return jsonify(payments.payment_json(payment)), 201


@payments_bp.route('/<int:payment_id>/capture', methods=['POST'])
@jwt_required()
def capture(payment_id):
    """ Gateway success callback, relayed by an admin service account. """
    require_admin('Only the payment gateway relay can capture payments')
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        payment = payments.capture_payment(db, payment_id, data.get('razorpayPaymentId'))
        return jsonify(payments.payment_json(payment)), 200


@payments_bp.route('/<int:payment_id>/fail', methods=['POST'])
@jwt_required()
def fail(payment_id):
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        payments.ensure_payer(db, payment_id, current_user_id())
        payment = payments.fail_payment(db, payment_id, data.get('reason'))
        return jsonify(payments.payment_json(payment)), 200


@payments_bp.route('/<int:payment_id>/refund', methods=['POST'])
@jwt_required()
def refund(payment_id):
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        payments.ensure_payer(db, payment_id, current_user_id())
        payment = payments.initiate_refund(db, payment_id, data.get('amount'))
        return jsonify(payments.payment_json(payment)), 200


@payments_bp.route('/<int:payment_id>/refund/complete', methods=['POST'])
@jwt_required()
def refund_complete(payment_id):
    """ Gateway refund webhook, relayed by an admin service account. """
    require_admin('Only the payment gateway relay can complete refunds')
    data = request.get_json(silent=True) or {}

    with get_db() as db:
        payment = payments.complete_refund(db, payment_id, data.get('refundId'))
        return jsonify(payments.payment_json(payment)), 200


@payments_bp.route('/<int:payment_id>/refund/fail', methods=['POST'])
@jwt_required()
def refund_fail(payment_id):
    """ Gateway refund failure webhook, relayed by an admin service account. """
    require_admin('Only the payment gateway relay can fail refunds')
    with get_db() as db:
        payment = payments.fail_refund(db, payment_id)
        return jsonify(payments.payment_json(payment)), 200
