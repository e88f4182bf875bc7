import pytest

from conftest import make_booking, make_property, make_user
from errors import InvariantError, PermissionDenied, TransitionError, ValidationError
from models import Analytics, Booking, BookingStatus, BookingPaymentStatus, PaymentStatus
from services import bookings, payments, properties


def _pay(db, booking, tenant):
    payment = payments.create_payment(db, booking.id, tenant.id, {'razorpayOrderId': 'order_1', 'method': 'upi'})
    return payments.capture_payment(db, payment.id, 'pay_1', confirm=False)


def test_new_booking_is_pending_and_unpaid(db, booking, listing):
    assert booking.status == BookingStatus.pending
    assert booking.payment_status == BookingPaymentStatus.unpaid
    assert booking.number_of_nights == 3
    assert booking.duration_days == 3


def test_amounts_default_from_listing(db, booking):
    assert booking.monthly_rent == 30000
    assert booking.rent_amount == 3000
    assert booking.security_deposit == 0
    assert booking.platform_fee == 0
    assert booking.total_amount == 3000


def test_booking_counts_in_analytics(db, booking, listing):
    rows = db.query(Analytics).filter_by(property_id=listing.id).all()
    assert sorted(r.period for r in rows) == ['daily', 'monthly', 'weekly']
    assert all(r.bookings == 1 for r in rows)


def test_check_out_must_follow_check_in(db, tenant, listing):
    with pytest.raises(ValidationError) as exc:
        make_booking(db, tenant, listing, check_in='2030-01-13', check_out='2030-01-10')
    assert exc.value.fields == ['checkOutDate']


def test_number_of_nights_must_match_stay(db, tenant, listing):
    with pytest.raises(ValidationError) as exc:
        make_booking(db, tenant, listing, numberOfNights=5)
    assert exc.value.fields == ['numberOfNights']


def test_owner_cannot_book_own_property(db, owner, listing):
    with pytest.raises(InvariantError):
        make_booking(db, owner, listing)


def test_unavailable_property_cannot_be_booked(db, owner, tenant, listing):
    properties.set_property_status(db, listing.id, owner.id, 'Maintenance')
    with pytest.raises(InvariantError):
        make_booking(db, tenant, listing)


def test_confirm_requires_payment(db, booking):
    with pytest.raises(TransitionError):
        bookings.confirm_booking(db, booking.id)
    assert booking.status == BookingStatus.pending


def test_full_lifecycle(db, tenant, booking, listing):
    _pay(db, booking, tenant)
    bookings.confirm_booking(db, booking.id)
    assert booking.status == BookingStatus.confirmed
    assert booking.confirmed_at is not None
    assert listing.status == 'Booked'

    bookings.check_in(db, booking.id)
    assert booking.status == BookingStatus.ongoing
    assert booking.check_in_at is not None

    bookings.complete_booking(db, booking.id)
    assert booking.status == BookingStatus.completed
    assert booking.completed_at is not None
    assert listing.status == 'Available'
    assert listing.bookings_count == 1


def test_cannot_skip_states(db, tenant, booking):
    with pytest.raises(TransitionError):
        bookings.check_in(db, booking.id)
    with pytest.raises(TransitionError):
        bookings.complete_booking(db, booking.id)


def test_terminal_states_are_final(db, tenant, booking):
    bookings.cancel_booking(db, booking.id, tenant.id)
    assert booking.status == BookingStatus.cancelled
    assert booking.cancelled_at is not None

    with pytest.raises(TransitionError):
        bookings.cancel_booking(db, booking.id, tenant.id)
    with pytest.raises(TransitionError):
        bookings.confirm_booking(db, booking.id)


def test_cancelling_confirmed_booking_frees_property(db, owner, tenant, booking, listing):
    _pay(db, booking, tenant)
    bookings.confirm_booking(db, booking.id)

    bookings.cancel_booking(db, booking.id, owner.id)
    assert booking.status == BookingStatus.cancelled
    assert listing.status == 'Available'


def test_ongoing_booking_cannot_be_cancelled(db, tenant, booking):
    _pay(db, booking, tenant)
    bookings.confirm_booking(db, booking.id)
    bookings.check_in(db, booking.id)

    with pytest.raises(TransitionError):
        bookings.cancel_booking(db, booking.id, tenant.id)


def test_stranger_cannot_cancel(db, booking):
    stranger = make_user(db, firstname='Dev')
    with pytest.raises(PermissionDenied):
        bookings.cancel_booking(db, booking.id, stranger.id)


def test_amounts_editable_until_paid(db, tenant, booking):
    bookings.update_booking_amounts(db, booking.id, {'platformFee': 150, 'totalAmount': 3150})
    assert booking.platform_fee == 150
    assert booking.total_amount == 3150

    with pytest.raises(ValidationError):
        bookings.update_booking_amounts(db, booking.id, {'rentAmount': -1})

    _pay(db, booking, tenant)
    with pytest.raises(TransitionError):
        bookings.update_booking_amounts(db, booking.id, {'totalAmount': 1})


def test_amounts_frozen_after_cancel(db, tenant, booking):
    bookings.cancel_booking(db, booking.id, tenant.id)
    with pytest.raises(TransitionError):
        bookings.update_booking_amounts(db, booking.id, {'totalAmount': 1})


def test_booking_json_shape(db, booking):
    payload = bookings.booking_json(booking)
    assert payload['status'] == 'pending'
    assert payload['paymentStatus'] == 'unpaid'
    assert payload['durationDays'] == 3
    assert payload['checkInDate'].startswith('2030-01-10')


def test_tenant_history_lists_all_bookings(db, owner, tenant, listing):
    other = make_property(db, owner, title='Second Listing In Town')
    first = make_booking(db, tenant, listing)
    second = make_booking(db, tenant, other, check_in='2030-02-01', check_out='2030-02-05')

    ids = [b.id for b in bookings.bookings_for_tenant(db, tenant.id)]
    assert set(ids) == {first.id, second.id}


def test_overlapping_stay_cannot_be_confirmed(db, tenant, booking, listing):
    rival = make_user(db, firstname='Kiran')
    clash = make_booking(db, rival, listing, check_in='2030-01-12', check_out='2030-01-15')
    _pay(db, booking, tenant)
    _pay(db, clash, rival)

    bookings.confirm_booking(db, booking.id)
    with pytest.raises(TransitionError):
        bookings.confirm_booking(db, clash.id)

    assert clash.status == BookingStatus.pending
    confirmed = db.query(Booking).filter_by(property_id=listing.id, status=BookingStatus.confirmed).all()
    assert [b.id for b in confirmed] == [booking.id]


def test_capture_rejected_when_dates_already_confirmed(db, tenant, booking, listing):
    rival = make_user(db, firstname='Kiran')
    clash = make_booking(db, rival, listing, check_in='2030-01-11', check_out='2030-01-12')
    _pay(db, booking, tenant)
    bookings.confirm_booking(db, booking.id)

    payment = payments.create_payment(db, clash.id, rival.id, {'razorpayOrderId': 'order_2', 'method': 'card'})
    with pytest.raises(TransitionError):
        payments.capture_payment(db, payment.id, 'pay_2')

    assert clash.status == BookingStatus.pending
    assert clash.payment_status == BookingPaymentStatus.unpaid
    assert payment.status == PaymentStatus.pending


def test_back_to_back_stays_both_confirm(db, tenant, booking, listing):
    rival = make_user(db, firstname='Kiran')
    next_stay = make_booking(db, rival, listing, check_in='2030-01-13', check_out='2030-01-16')
    _pay(db, booking, tenant)
    _pay(db, next_stay, rival)

    bookings.confirm_booking(db, booking.id)
    bookings.confirm_booking(db, next_stay.id)
    assert next_stay.status == BookingStatus.confirmed


def test_confirmed_dates_cannot_be_requested_again(db, owner, tenant, booking, listing):
    _pay(db, booking, tenant)
    bookings.confirm_booking(db, booking.id)
    properties.set_property_status(db, listing.id, owner.id, 'Available')

    rival = make_user(db, firstname='Kiran')
    with pytest.raises(InvariantError):
        make_booking(db, rival, listing, check_in='2030-01-09', check_out='2030-01-11')
    later = make_booking(db, rival, listing, check_in='2030-02-01', check_out='2030-02-03')
    assert later.status == BookingStatus.pending


def test_cancel_keeps_listing_booked_while_another_stay_holds_it(db, owner, tenant, booking, listing):
    rival = make_user(db, firstname='Kiran')
    later = make_booking(db, rival, listing, check_in='2030-03-01', check_out='2030-03-05')
    _pay(db, booking, tenant)
    _pay(db, later, rival)
    bookings.confirm_booking(db, booking.id)
    bookings.confirm_booking(db, later.id)

    bookings.cancel_booking(db, booking.id, owner.id)
    assert listing.status == 'Booked'
    bookings.cancel_booking(db, later.id, owner.id)
    assert listing.status == 'Available'
