"""
Values computed from stored fields on read. Nothing here is persisted.

Every function is pure and never raises: missing or unusable inputs fall
back to 0 (or an empty string) instead.
"""
import math
from decimal import Decimal
from numbers import Number

from utils.clock import as_utc


SECONDS_PER_DAY = 24 * 60 * 60
DAYS_PER_MONTH = 30


def _num(value):
    if isinstance(value, bool) or not isinstance(value, Number):
        return 0
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return value


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def duration_days(check_in, check_out):
    """ Whole days between check-in and check-out, partial days rounded up. """
    start, end = as_utc(check_in), as_utc(check_out)
    if start is None or end is None:
        return 0
    return math.ceil((end - start).total_seconds() / SECONDS_PER_DAY)


def price_per_day(amount, period):
    """ Monthly rent spread over 30 days; other periods are returned as is. """
    amount = _num(amount)
    if period == 'month':
        return _round_half_up(amount / DAYS_PER_MONTH)
    return amount


def total_with_tax(amount, tax=None, gst=None):
    return _num(amount) + _num(tax) + _num(gst)


def average_sub_rating(cleanliness=0, communication=0, amenities=0, value=0):
    """ Mean of the sub-ratings that were actually given (0 means unset). """
    ratings = [r for r in (_num(cleanliness), _num(communication), _num(amenities), _num(value)) if r > 0]
    if not ratings:
        return 0
    return sum(ratings) / len(ratings)


def conversion_rate(bookings, clicks):
    """ Bookings per click as a percentage, 2 decimals. """
    clicks = _num(clicks)
    if clicks <= 0:
        return 0
    return round(_num(bookings) / clicks * 100, 2)


def occupancy_rate(days_booked, days_available):
    days_available = _num(days_available)
    if days_available <= 0:
        return 0
    return round(_num(days_booked) / days_available * 100, 2)


def revenue_per_available_day(revenue, days_available):
    days_available = _num(days_available)
    if days_available <= 0:
        return 0
    return round(_num(revenue) / days_available, 2)


def net_revenue(revenue, commission):
    return max(_num(revenue) - _num(commission), 0)


def notification_summary(title, message):
    return f"{title or ''} - {(message or '')[:80]}..."


def format_message_time(created_at):
    """ Short timestamp for chat bubbles, e.g. '19 Oct, 02:30 PM'. """
    moment = as_utc(created_at)
    if moment is None:
        return ''
    return moment.strftime('%d %b, %I:%M %p')
