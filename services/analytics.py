"""
Time-bucketed property analytics.

Rows are keyed by (property, period, bucket start). Event counters (views,
clicks, inquiries, bookings) are bumped as events happen; money and occupancy
figures are recomputed from bookings and payments by rollup_property, so a
bucket may lag the operational tables until the next rollup.
"""
import calendar
import logging
import math
from datetime import date, datetime, timedelta, time, timezone

from sqlalchemy import func

from config import Config
from database import transaction
from errors import NotFoundError, ValidationError
from models import Analytics, Booking, BookingStatus, Payment, PaymentStatus, Property, ANALYTICS_PERIODS
from utils.clock import as_utc
from utils.validation import validate_analytics_counts


logger = logging.getLogger(__name__)

COUNTERS = ('views', 'clicks', 'inquiries', 'bookings')


def bucket_start(period, day):
    """ daily -> the day itself, weekly -> that week's Monday, monthly -> the 1st. """
    if isinstance(day, datetime):
        day = as_utc(day).date()
    if period == 'daily':
        return day
    if period == 'weekly':
        return day - timedelta(days=day.weekday())
    if period == 'monthly':
        return day.replace(day=1)
    raise ValidationError([('period', f'{period} is not a valid analytics period')])


def bucket_end(period, start):
    """ First day after the bucket. """
    if period == 'daily':
        return start + timedelta(days=1)
    if period == 'weekly':
        return start + timedelta(days=7)
    days_in_month = calendar.monthrange(start.year, start.month)[1]
    return start + timedelta(days=days_in_month)


def _midnight(day):
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def get_or_create_bucket(db, property_id, period, day):
    start = bucket_start(period, day)
    row = db.query(Analytics).filter_by(property_id=property_id, period=period, date=start).first()
    if row is None:
        row = Analytics(property_id=property_id, period=period, date=start)
        for counter in COUNTERS:
            setattr(row, counter, 0)
        row.revenue = 0
        row.commission = 0
        row.days_booked = 0
        row.days_available = 0
        db.add(row)
        db.flush()
    return row


def increment_metrics(db, property_id, day, **counts):
    """ Adds event counts to the daily, weekly and monthly buckets containing `day`. """
    unknown = set(counts) - set(COUNTERS)
    if unknown:
        raise ValidationError([(name, f'{name} is not an analytics counter') for name in sorted(unknown)])
    validate_analytics_counts(counts)

    with transaction(db):
        rows = []
        for period in ANALYTICS_PERIODS:
            row = get_or_create_bucket(db, property_id, period, day)
            for counter, amount in counts.items():
                setattr(row, counter, (getattr(row, counter) or 0) + amount)
            rows.append(row)
    return rows


def _nights_within(check_in, check_out, start, end):
    lo = max(as_utc(check_in), start)
    hi = min(as_utc(check_out), end)
    if hi <= lo:
        return 0
    return math.ceil((hi - lo).total_seconds() / 86400)


def rollup_property(db, property_id, period, day):
    """
    Recomputes the bucket's bookings, revenue, commission and occupancy from
    the operational rows. Event counters other than bookings are left alone.
    """
    prop = db.get(Property, property_id)
    if not prop:
        raise NotFoundError('Property not found')

    start_day = bucket_start(period, day)
    start, end = _midnight(start_day), _midnight(bucket_end(period, start_day))

    bookings_made = (
        db.query(func.count(Booking.id))
        .filter(Booking.property_id == property_id,
                Booking.created_at >= start, Booking.created_at < end)
        .scalar()
    ) or 0

    revenue = (
        db.query(func.coalesce(func.sum(Payment.amount), 0))
        .join(Booking, Payment.booking_id == Booking.id)
        .filter(Booking.property_id == property_id,
                Payment.status == PaymentStatus.completed,
                Payment.completed_at >= start, Payment.completed_at < end)
        .scalar()
    ) or 0

    stays = (
        db.query(Booking)
        .filter(Booking.property_id == property_id,
                Booking.status != BookingStatus.cancelled,
                Booking.check_in_date < end, Booking.check_out_date > start)
        .all()
    )

    open_from = max(start, as_utc(prop.available_from) or start)
    open_to = min(end, as_utc(prop.available_to) or end)
    days_available = _nights_within(open_from, open_to, start, end)
    days_booked = min(
        sum(_nights_within(b.check_in_date, b.check_out_date, start, end) for b in stays),
        days_available,
    )

    with transaction(db):
        row = get_or_create_bucket(db, property_id, period, start_day)
        row.bookings = bookings_made
        row.revenue = round(float(revenue), 2)
        row.commission = round(float(revenue) * Config.PLATFORM_COMMISSION_PERCENT / 100, 2)
        row.days_booked = days_booked
        row.days_available = days_available

    logger.info("Rolled up %s analytics for property %s at %s", period, property_id, start_day)
    return row


def property_report(db, property_id, period='daily', since=None, until=None):
    if period not in ANALYTICS_PERIODS:
        raise ValidationError([('period', f'{period} is not a valid analytics period')])
    q = db.query(Analytics).filter(Analytics.property_id == property_id, Analytics.period == period)
    if since is not None:
        q = q.filter(Analytics.date >= bucket_start(period, since))
    if until is not None:
        q = q.filter(Analytics.date <= until)
    return q.order_by(Analytics.date.desc()).all()


def analytics_json(row):
    return {
        'date': row.date.isoformat() if isinstance(row.date, date) else row.date,
        'period': row.period,
        'propertyId': row.property_id,
        'metrics': {
            'views': row.views,
            'clicks': row.clicks,
            'inquiries': row.inquiries,
            'bookings': row.bookings,
            'conversion': row.conversion,
        },
        'financial': {
            'revenue': row.revenue,
            'commission': row.commission,
            'netRevenue': row.net_revenue,
        },
        'occupancy': {
            'daysBooked': row.days_booked,
            'daysAvailable': row.days_available,
            'occupancyRate': row.occupancy_rate,
            'revenuePerAvailableDay': row.revenue_per_available_day,
        },
    }
