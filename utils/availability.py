from models import Booking, BookingStatus, Property


# Bookings that hold the property for their dates.
HOLDING_STATUSES = (BookingStatus.confirmed, BookingStatus.ongoing)


def lock_property(db, property_id):
    """ Row-locks the listing so two confirmations for it run one after the other. """
    return db.query(Property).filter(Property.id == property_id).with_for_update().one()


def holding_bookings(db, property_id, exclude_booking_id=None):
    q = db.query(Booking).filter(
        Booking.property_id == property_id,
        Booking.status.in_(HOLDING_STATUSES),
    )
    if exclude_booking_id is not None:
        q = q.filter(Booking.id != exclude_booking_id)
    return q


def check_property_availability(db, property_id, check_in, check_out, exclude_booking_id=None):
    """
    Checks if a property is free of confirmed or ongoing bookings for the given range.
    Stays are half-open, so a check-out and a check-in on the same day do not clash.
    Returns a tuple: (success: bool, conflicts: list, message: str)
    """
    if check_out <= check_in:
        return False, [], 'Check-out must be after check-in'

    conflicts = holding_bookings(db, property_id, exclude_booking_id).filter(
        Booking.check_in_date < check_out,
        Booking.check_out_date > check_in,
    ).all()

    if conflicts:
        return False, conflicts, 'Property is already booked for these dates'

    return True, [], 'Dates are available'
