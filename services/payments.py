"""
Payments and refunds.

    payment: pending -> completed | failed, completed -> refunded
    refund:  none -> initiated -> completed | failed, failed -> initiated

Each move that touches the booking as well (capture, refund completion)
commits booking and payment in one transaction.
"""
import logging

from config import Config
from database import transaction
from errors import InvariantError, NotFoundError, PermissionDenied, TransitionError, ValidationError
from models import Booking, BookingStatus, BookingPaymentStatus, Payment, PaymentStatus, RefundStatus, User
from services.bookings import get_booking, mark_confirmed
from services.notifications import notify
from utils.clock import utcnow
from utils.validation import validate_payment


logger = logging.getLogger(__name__)

PAYMENT_TRANSITIONS = {
    PaymentStatus.pending: {PaymentStatus.completed, PaymentStatus.failed},
    PaymentStatus.completed: {PaymentStatus.refunded},
    PaymentStatus.failed: set(),
    PaymentStatus.refunded: set(),
}

REFUND_TRANSITIONS = {
    RefundStatus.none: {RefundStatus.initiated},
    RefundStatus.initiated: {RefundStatus.completed, RefundStatus.failed},
    RefundStatus.failed: {RefundStatus.initiated},
    RefundStatus.completed: set(),
}


def get_payment(db, payment_id, lock=False):
    q = db.query(Payment).filter(Payment.id == payment_id)
    if lock:
        q = q.with_for_update()
    payment = q.first()
    if not payment:
        raise NotFoundError('Payment not found')
    return payment


def _move_payment(payment, target):
    if target not in PAYMENT_TRANSITIONS[payment.status]:
        raise TransitionError(f'Cannot move payment from {payment.status.value} to {target.value}')
    logger.info("Payment %s: %s -> %s", payment.id, payment.status.value, target.value)
    payment.status = target


def _move_refund(payment, target):
    if target not in REFUND_TRANSITIONS[payment.refund_status]:
        raise TransitionError(f'Cannot move refund from {payment.refund_status.value} to {target.value}')
    logger.info("Refund on payment %s: %s -> %s", payment.id, payment.refund_status.value, target.value)
    payment.refund_status = target


def create_payment(db, booking_id, user_id, data):
    """
    Records a gateway order for a booking. The amount defaults to the
    booking total and only the booking's tenant can pay for it.
    """
    booking = get_booking(db, booking_id)
    if booking.tenant_id != user_id:
        raise InvariantError('Payment user must be the booking tenant')
    if booking.status == BookingStatus.cancelled:
        raise TransitionError('Cannot pay for a cancelled booking')
    if booking.payment_status != BookingPaymentStatus.unpaid:
        raise TransitionError(f'Booking is already {booking.payment_status.value}')

    clean = validate_payment(data)
    amount = clean.get('amount')
    payment = Payment(
        booking_id=booking.id,
        user_id=user_id,
        amount=booking.total_amount if amount is None else amount,
        currency=clean.get('currency') or Config.DEFAULT_CURRENCY,
        gateway_order_id=clean['razorpayOrderId'],
        method=clean['method'],
        tax=clean['tax'],
        gst=clean['gst'],
        status=PaymentStatus.pending,
        refund_status=RefundStatus.none,
        refund_amount=0,
        created_at=utcnow(),
    )
    with transaction(db):
        db.add(payment)
        db.flush()

    logger.info("Payment %s opened for booking %s (order %s)", payment.id, booking.id, payment.gateway_order_id)
    return payment


def capture_payment(db, payment_id, gateway_payment_id, confirm=True):
    """
    Marks the payment completed and the booking paid in one commit. With
    `confirm`, a pending booking is confirmed in the same commit too, so
    there is never a paid-but-unconfirmed or confirmed-but-unpaid state.
    When the stay overlaps a booking that is already confirmed, the whole
    capture is rejected with TransitionError.
    """
    if not gateway_payment_id:
        raise ValidationError([('razorpayPaymentId', 'Gateway payment ID is required')])

    with transaction(db):
        payment = get_payment(db, payment_id, lock=True)
        booking = get_booking(db, payment.booking_id, lock=True)
        if booking.status == BookingStatus.cancelled:
            raise TransitionError('Cannot capture a payment for a cancelled booking')
        if booking.payment_status != BookingPaymentStatus.unpaid:
            raise TransitionError(f'Booking is already {booking.payment_status.value}')

        _move_payment(payment, PaymentStatus.completed)
        payment.gateway_payment_id = gateway_payment_id
        payment.completed_at = utcnow()
        booking.payment_status = BookingPaymentStatus.paid

        notify(db, payment.user_id, 'payment_received', 'Payment received',
               f"We received {payment.total_with_tax} {payment.currency} for booking #{booking.id}.",
               related=('payment', payment.id))
        if confirm and booking.status == BookingStatus.pending:
            mark_confirmed(db, booking)
    return payment


def fail_payment(db, payment_id, reason=None):
    with transaction(db):
        payment = get_payment(db, payment_id, lock=True)
        _move_payment(payment, PaymentStatus.failed)
        payment.failure_reason = reason
    return payment


def initiate_refund(db, payment_id, amount=None):
    """
    Opens (or retries) a refund on a completed payment. The amount defaults
    to everything paid, tax included, and can never exceed it.
    """
    with transaction(db):
        payment = get_payment(db, payment_id, lock=True)
        if payment.status != PaymentStatus.completed:
            raise TransitionError(f'Only completed payments can be refunded (payment is {payment.status.value})')

        ceiling = payment.total_with_tax
        amount = ceiling if amount is None else amount
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            raise ValidationError([('refund.amount', 'Refund amount must be greater than 0')])
        if amount > ceiling:
            raise ValidationError([('refund.amount', f'Refund amount cannot exceed {ceiling}')])

        _move_refund(payment, RefundStatus.initiated)
        payment.refund_amount = amount
        payment.refund_initiated_at = utcnow()
    return payment


def complete_refund(db, payment_id, gateway_refund_id):
    """ Refund, payment and booking all flip to refunded in one commit. """
    if not gateway_refund_id:
        raise ValidationError([('refund.refundId', 'Gateway refund ID is required')])

    with transaction(db):
        payment = get_payment(db, payment_id, lock=True)
        booking = get_booking(db, payment.booking_id, lock=True)
        _move_refund(payment, RefundStatus.completed)
        _move_payment(payment, PaymentStatus.refunded)
        payment.refund_id = gateway_refund_id
        payment.refunded_at = utcnow()
        booking.payment_status = BookingPaymentStatus.refunded
        notify(db, payment.user_id, 'refund_completed', 'Refund completed',
               f"Your refund of {payment.refund_amount} {payment.currency} for booking #{booking.id} is complete.",
               related=('payment', payment.id), priority='high')
    return payment


def fail_refund(db, payment_id):
    """ A failed refund stays retryable through initiate_refund. """
    with transaction(db):
        payment = get_payment(db, payment_id, lock=True)
        _move_refund(payment, RefundStatus.failed)
    return payment


def ensure_payer(db, payment_id, user_id):
    """ Route helper: the paying tenant, or an admin. """
    payment = get_payment(db, payment_id)
    user = db.get(User, user_id)
    if not user or (payment.user_id != user.id and user.role != 'admin'):
        raise PermissionDenied('Payment does not belong to user')
    return payment


def payments_for_booking(db, booking_id):
    return (
        db.query(Payment)
        .join(Booking, Payment.booking_id == Booking.id)
        .filter(Booking.id == booking_id)
        .order_by(Payment.created_at)
        .all()
    )


def payment_json(payment):
    return {
        'id': payment.id,
        'bookingId': payment.booking_id,
        'userId': payment.user_id,
        'amount': payment.amount,
        'currency': payment.currency,
        'razorpayOrderId': payment.gateway_order_id,
        'razorpayPaymentId': payment.gateway_payment_id,
        'method': payment.method,
        'status': payment.status.value,
        'refund': {
            'amount': payment.refund_amount,
            'status': payment.refund_status.value,
            'refundId': payment.refund_id,
        },
        'tax': payment.tax,
        'gst': payment.gst,
        'totalWithTax': payment.total_with_tax,
        'createdAt': payment.created_at.isoformat() if payment.created_at else None,
        'completedAt': payment.completed_at.isoformat() if payment.completed_at else None,
    }
