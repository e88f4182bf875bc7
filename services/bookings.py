"""
Booking lifecycle.

    pending -> confirmed -> ongoing -> completed
    pending | confirmed -> cancelled

`completed` and `cancelled` are terminal. Payment status moves separately
(unpaid -> paid -> refunded) but gates the status moves: a booking is only
confirmed once paid, and only completed when paid or refunded.
"""
import logging

from database import transaction
from errors import InvariantError, NotFoundError, PermissionDenied, TransitionError, ValidationError
from models import Booking, BookingStatus, BookingPaymentStatus, Property, User
from services.analytics import increment_metrics
from services.notifications import notify
from utils.availability import check_property_availability, holding_bookings, lock_property
from utils.clock import utcnow
from utils.derived import price_per_day
from utils.validation import validate_booking, validate_booking_amounts


logger = logging.getLogger(__name__)

BOOKING_TRANSITIONS = {
    BookingStatus.pending: {BookingStatus.confirmed, BookingStatus.cancelled},
    BookingStatus.confirmed: {BookingStatus.ongoing, BookingStatus.cancelled},
    BookingStatus.ongoing: {BookingStatus.completed},
    BookingStatus.completed: set(),
    BookingStatus.cancelled: set(),
}

TERMINAL_STATUSES = (BookingStatus.completed, BookingStatus.cancelled)

_AMOUNT_FIELDS = {
    'monthlyRent': 'monthly_rent',
    'rentAmount': 'rent_amount',
    'securityDeposit': 'security_deposit',
    'platformFee': 'platform_fee',
    'totalAmount': 'total_amount',
}


def get_booking(db, booking_id, lock=False):
    q = db.query(Booking).filter(Booking.id == booking_id)
    if lock:
        q = q.with_for_update()
    booking = q.first()
    if not booking:
        raise NotFoundError('Booking not found')
    return booking


def can_transition(current, target):
    return target in BOOKING_TRANSITIONS.get(current, set())


def apply_transition(booking, target):
    """ Moves the booking to `target` and stamps the matching lifecycle timestamp. """
    current = booking.status
    if not can_transition(current, target):
        raise TransitionError(f'Cannot move booking from {current.value} to {target.value}')

    if target == BookingStatus.confirmed and booking.payment_status != BookingPaymentStatus.paid:
        raise TransitionError('Booking cannot be confirmed before it is paid')
    if target == BookingStatus.completed and booking.payment_status == BookingPaymentStatus.unpaid:
        raise TransitionError('Booking cannot be completed while unpaid')

    now = utcnow()
    booking.status = target
    if target == BookingStatus.confirmed:
        booking.confirmed_at = now
    elif target == BookingStatus.ongoing:
        booking.check_in_at = now
    elif target == BookingStatus.completed:
        booking.completed_at = now
    elif target == BookingStatus.cancelled:
        booking.cancelled_at = now

    logger.info("Booking %s: %s -> %s", booking.id, current.value, target.value)
    return booking


def create_booking(db, tenant_id, property_id, data):
    """
    Reserves a property for a tenant. Starts pending and unpaid.
    Amounts left out of the payload are filled in from the listing.
    """
    tenant = db.get(User, tenant_id)
    if not tenant or not tenant.is_active:
        raise NotFoundError('Tenant not found')

    prop = db.get(Property, property_id)
    if not prop:
        raise NotFoundError('Property not found')
    if prop.owner_id == tenant.id:
        raise InvariantError('Owners cannot book their own property')
    if prop.status != 'Available':
        raise InvariantError(f'Property is not available for booking ({prop.status})')

    clean = validate_booking(data)
    free, _, message = check_property_availability(db, prop.id, clean['checkInDate'], clean['checkOutDate'])
    if not free:
        raise InvariantError(message)
    nights = clean['numberOfNights']

    monthly_rent = clean.get('monthlyRent')
    if monthly_rent is None:
        monthly_rent = prop.price_amount if prop.price_period == 'month' else 0
    rent_amount = clean.get('rentAmount')
    if rent_amount is None:
        rent_amount = price_per_day(prop.price_amount, prop.price_period) * nights
    security_deposit = clean.get('securityDeposit')
    if security_deposit is None:
        security_deposit = prop.security_deposit or 0
    platform_fee = clean.get('platformFee', 0)
    total_amount = clean.get('totalAmount')
    if total_amount is None:
        total_amount = rent_amount + security_deposit + platform_fee

    booking = Booking(
        property_id=prop.id,
        tenant_id=tenant.id,
        check_in_date=clean['checkInDate'],
        check_out_date=clean['checkOutDate'],
        number_of_nights=nights,
        monthly_rent=monthly_rent,
        rent_amount=rent_amount,
        security_deposit=security_deposit,
        platform_fee=platform_fee,
        total_amount=total_amount,
        status=BookingStatus.pending,
        payment_status=BookingPaymentStatus.unpaid,
        created_at=utcnow(),
    )

    with transaction(db):
        db.add(booking)
        db.flush()
        increment_metrics(db, prop.id, booking.created_at.date(), bookings=1)

    logger.info("Tenant %s requested booking %s for property %s", tenant.id, booking.id, prop.id)
    return booking


def _stay(booking):
    return f"{booking.check_in_date.date().isoformat()} to {booking.check_out_date.date().isoformat()}"


def mark_confirmed(db, booking):
    """
    Confirms a pending, paid booking inside the caller's transaction. The
    listing row is locked first, so of two overlapping stays only the one
    that gets the lock is confirmed.
    """
    prop = lock_property(db, booking.property_id)
    free, conflicts, message = check_property_availability(
        db, prop.id, booking.check_in_date, booking.check_out_date, exclude_booking_id=booking.id
    )
    if not free:
        logger.warning("Booking %s overlaps confirmed booking(s) %s", booking.id, [b.id for b in conflicts])
        raise TransitionError(message)

    apply_transition(booking, BookingStatus.confirmed)
    prop.status = 'Booked'
    notify(db, booking.tenant_id, 'booking_confirmed', 'Booking confirmed',
           f"Your stay at {prop.title} from {_stay(booking)} is confirmed.",
           related=('booking', booking.id), priority='high')
    notify(db, prop.owner_id, 'booking_confirmed', 'New confirmed booking',
           f"{prop.title} is booked from {_stay(booking)}.",
           related=('booking', booking.id))
    return booking


def _release(db, booking):
    """ The listing goes back to Available once no other stay holds it. """
    prop = booking.listing
    if prop.status == 'Booked' and holding_bookings(db, prop.id, booking.id).first() is None:
        prop.status = 'Available'
    return prop


def confirm_booking(db, booking_id):
    with transaction(db):
        booking = get_booking(db, booking_id, lock=True)
        mark_confirmed(db, booking)
    return booking


def check_in(db, booking_id):
    with transaction(db):
        booking = get_booking(db, booking_id, lock=True)
        apply_transition(booking, BookingStatus.ongoing)
    return booking


def complete_booking(db, booking_id):
    with transaction(db):
        booking = get_booking(db, booking_id, lock=True)
        apply_transition(booking, BookingStatus.completed)
        prop = _release(db, booking)
        prop.bookings_count = (prop.bookings_count or 0) + 1
    return booking


def cancel_booking(db, booking_id, user_id):
    """ The tenant, the property owner or an admin may cancel before check-in. """
    user = db.get(User, user_id)
    with transaction(db):
        booking = get_booking(db, booking_id, lock=True)
        prop = booking.listing
        if not user or (user.id not in (booking.tenant_id, prop.owner_id) and user.role != 'admin'):
            raise PermissionDenied('Only the tenant, the owner or an admin can cancel this booking')
        was_confirmed = booking.status == BookingStatus.confirmed
        apply_transition(booking, BookingStatus.cancelled)
        if was_confirmed:
            _release(db, booking)
        for party in (booking.tenant_id, prop.owner_id):
            if party != user.id:
                notify(db, party, 'booking_cancelled', 'Booking cancelled',
                       f"The booking of {prop.title} from {_stay(booking)} was cancelled.",
                       related=('booking', booking.id), priority='high')
    return booking


def update_booking_amounts(db, booking_id, data):
    """ Money on a booking is frozen once it is completed or cancelled. """
    clean = validate_booking_amounts(data)
    if not clean:
        raise ValidationError([('amounts', 'No amounts to update')])

    with transaction(db):
        booking = get_booking(db, booking_id, lock=True)
        if booking.status in TERMINAL_STATUSES:
            raise TransitionError(f'Amounts of a {booking.status.value} booking cannot change')
        if booking.payment_status != BookingPaymentStatus.unpaid:
            raise TransitionError('Amounts cannot change after payment')
        for field, column in _AMOUNT_FIELDS.items():
            if field in clean and clean[field] is not None:
                setattr(booking, column, clean[field])
    return booking


def bookings_for_tenant(db, tenant_id):
    return (
        db.query(Booking)
        .filter(Booking.tenant_id == tenant_id)
        .order_by(Booking.created_at.desc())
        .all()
    )


def booking_json(booking):
    return {
        'id': booking.id,
        'propertyId': booking.property_id,
        'tenantId': booking.tenant_id,
        'checkInDate': booking.check_in_date.isoformat(),
        'checkOutDate': booking.check_out_date.isoformat(),
        'numberOfNights': booking.number_of_nights,
        'durationDays': booking.duration_days,
        'monthlyRent': booking.monthly_rent,
        'rentAmount': booking.rent_amount,
        'securityDeposit': booking.security_deposit,
        'platformFee': booking.platform_fee,
        'totalAmount': booking.total_amount,
        'status': booking.status.value,
        'paymentStatus': booking.payment_status.value,
        'createdAt': booking.created_at.isoformat() if booking.created_at else None,
        'confirmedAt': booking.confirmed_at.isoformat() if booking.confirmed_at else None,
        'checkInAt': booking.check_in_at.isoformat() if booking.check_in_at else None,
        'completedAt': booking.completed_at.isoformat() if booking.completed_at else None,
        'cancelledAt': booking.cancelled_at.isoformat() if booking.cancelled_at else None,
    }
