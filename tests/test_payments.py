import pytest

from conftest import make_user
from errors import InvariantError, PermissionDenied, TransitionError, ValidationError
from models import BookingStatus, BookingPaymentStatus, PaymentStatus, RefundStatus
from services import bookings, payments


def _open(db, booking, tenant, **extra):
    data = {'razorpayOrderId': 'order_9A', 'method': 'card'}
    data.update(extra)
    return payments.create_payment(db, booking.id, tenant.id, data)


def test_payment_defaults_to_booking_total(db, tenant, booking):
    payment = _open(db, booking, tenant)

    assert payment.amount == booking.total_amount
    assert payment.currency == 'INR'
    assert payment.status == PaymentStatus.pending
    assert payment.refund_status == RefundStatus.none


def test_payer_must_be_booking_tenant(db, booking):
    stranger = make_user(db, firstname='Dev')
    with pytest.raises(InvariantError):
        _open(db, booking, stranger)


def test_payment_requires_order_and_method(db, tenant, booking):
    with pytest.raises(ValidationError) as exc:
        payments.create_payment(db, booking.id, tenant.id, {'method': 'cheque'})
    assert set(exc.value.fields) == {'razorpayOrderId', 'method'}


def test_capture_confirms_booking_in_one_step(db, tenant, booking, listing):
    payment = _open(db, booking, tenant)
    payments.capture_payment(db, payment.id, 'pay_XYZ')

    assert payment.status == PaymentStatus.completed
    assert payment.gateway_payment_id == 'pay_XYZ'
    assert payment.completed_at is not None
    assert booking.payment_status == BookingPaymentStatus.paid
    assert booking.status == BookingStatus.confirmed
    assert listing.status == 'Booked'


def test_capture_without_confirm_leaves_booking_pending(db, tenant, booking):
    payment = _open(db, booking, tenant)
    payments.capture_payment(db, payment.id, 'pay_XYZ', confirm=False)

    assert booking.payment_status == BookingPaymentStatus.paid
    assert booking.status == BookingStatus.pending


def test_capture_needs_gateway_id(db, tenant, booking):
    payment = _open(db, booking, tenant)
    with pytest.raises(ValidationError):
        payments.capture_payment(db, payment.id, '')


def test_capture_for_cancelled_booking_rolls_back(db, tenant, booking):
    payment = _open(db, booking, tenant)
    bookings.cancel_booking(db, booking.id, tenant.id)

    with pytest.raises(TransitionError):
        payments.capture_payment(db, payment.id, 'pay_late')
    assert payment.status == PaymentStatus.pending
    assert booking.payment_status == BookingPaymentStatus.unpaid


def test_second_payment_for_paid_booking_rejected(db, tenant, booking):
    payments.capture_payment(db, _open(db, booking, tenant).id, 'pay_1')
    with pytest.raises(TransitionError):
        _open(db, booking, tenant, razorpayOrderId='order_2')


def test_failed_payment_is_final(db, tenant, booking):
    payment = _open(db, booking, tenant)
    payments.fail_payment(db, payment.id, 'card declined')
    assert payment.status == PaymentStatus.failed
    assert payment.failure_reason == 'card declined'

    with pytest.raises(TransitionError):
        payments.capture_payment(db, payment.id, 'pay_1')


def test_total_with_tax(db, tenant, booking):
    payment = _open(db, booking, tenant, tax=100, gst=540)
    assert payment.total_with_tax == booking.total_amount + 640


def test_refund_flow(db, tenant, booking):
    payment = _open(db, booking, tenant, gst=90)
    payments.capture_payment(db, payment.id, 'pay_1')

    payments.initiate_refund(db, payment.id)
    assert payment.refund_status == RefundStatus.initiated
    assert payment.refund_amount == payment.total_with_tax

    payments.complete_refund(db, payment.id, 'rfnd_1')
    assert payment.refund_status == RefundStatus.completed
    assert payment.status == PaymentStatus.refunded
    assert payment.refund_id == 'rfnd_1'
    assert booking.payment_status == BookingPaymentStatus.refunded


def test_refund_amount_bounds(db, tenant, booking):
    payment = _open(db, booking, tenant)
    payments.capture_payment(db, payment.id, 'pay_1')

    with pytest.raises(ValidationError):
        payments.initiate_refund(db, payment.id, 0)
    with pytest.raises(ValidationError):
        payments.initiate_refund(db, payment.id, payment.total_with_tax + 1)

    payments.initiate_refund(db, payment.id, 500)
    assert payment.refund_amount == 500


def test_refund_needs_completed_payment(db, tenant, booking):
    payment = _open(db, booking, tenant)
    with pytest.raises(TransitionError):
        payments.initiate_refund(db, payment.id)


def test_failed_refund_can_be_retried(db, tenant, booking):
    payment = _open(db, booking, tenant)
    payments.capture_payment(db, payment.id, 'pay_1')
    payments.initiate_refund(db, payment.id, 1000)
    payments.fail_refund(db, payment.id)
    assert payment.refund_status == RefundStatus.failed
    assert payment.status == PaymentStatus.completed

    payments.initiate_refund(db, payment.id, 1000)
    assert payment.refund_status == RefundStatus.initiated


def test_completed_refund_is_final(db, tenant, booking):
    payment = _open(db, booking, tenant)
    payments.capture_payment(db, payment.id, 'pay_1')
    payments.initiate_refund(db, payment.id)
    payments.complete_refund(db, payment.id, 'rfnd_1')

    with pytest.raises(TransitionError):
        payments.initiate_refund(db, payment.id)


def test_ensure_payer(db, tenant, admin, booking):
    payment = _open(db, booking, tenant)
    stranger = make_user(db, firstname='Dev')

    assert payments.ensure_payer(db, payment.id, tenant.id).id == payment.id
    assert payments.ensure_payer(db, payment.id, admin.id).id == payment.id
    with pytest.raises(PermissionDenied):
        payments.ensure_payer(db, payment.id, stranger.id)


def test_payment_json_uses_gateway_names(db, tenant, booking):
    payload = payments.payment_json(_open(db, booking, tenant))
    assert payload['razorpayOrderId'] == 'order_9A'
    assert payload['refund'] == {'amount': 0, 'status': 'none', 'refundId': None}
    assert [p.id for p in payments.payments_for_booking(db, booking.id)] == [payload['id']]
