from datetime import date

import pytest

from errors import NotFoundError, ValidationError
from models import Analytics
from services import analytics, bookings, payments


def test_bucket_start():
    thursday = date(2026, 10, 22)
    assert analytics.bucket_start('daily', thursday) == thursday
    assert analytics.bucket_start('weekly', thursday) == date(2026, 10, 19)
    assert analytics.bucket_start('monthly', thursday) == date(2026, 10, 1)
    with pytest.raises(ValidationError):
        analytics.bucket_start('hourly', thursday)


def test_bucket_end():
    assert analytics.bucket_end('daily', date(2026, 2, 28)) == date(2026, 3, 1)
    assert analytics.bucket_end('weekly', date(2026, 10, 19)) == date(2026, 10, 26)
    assert analytics.bucket_end('monthly', date(2028, 2, 1)) == date(2028, 3, 1)


def test_increment_updates_all_periods(db, listing):
    day = date(2026, 10, 22)
    analytics.increment_metrics(db, listing.id, day, views=3, clicks=2)
    analytics.increment_metrics(db, listing.id, date(2026, 10, 23), clicks=1, inquiries=1)

    daily = analytics.property_report(db, listing.id, 'daily')
    assert [(r.date, r.clicks) for r in daily] == [(date(2026, 10, 23), 1), (date(2026, 10, 22), 2)]
    weekly = analytics.property_report(db, listing.id, 'weekly')
    assert len(weekly) == 1
    assert (weekly[0].views, weekly[0].clicks, weekly[0].inquiries) == (3, 3, 1)


def test_increment_rejects_bad_counters(db, listing):
    with pytest.raises(ValidationError):
        analytics.increment_metrics(db, listing.id, date(2026, 10, 22), likes=1)
    with pytest.raises(ValidationError):
        analytics.increment_metrics(db, listing.id, date(2026, 10, 22), views=-1)
    assert db.query(Analytics).count() == 0


def test_rollup_computes_occupancy(db, listing, booking):
    row = analytics.rollup_property(db, listing.id, 'monthly', date(2030, 1, 15))

    assert row.date == date(2030, 1, 1)
    assert row.days_available == 31
    assert row.days_booked == 3
    assert row.occupancy_rate == 9.68


def test_rollup_ignores_cancelled_stays(db, tenant, listing, booking):
    bookings.cancel_booking(db, booking.id, tenant.id)
    row = analytics.rollup_property(db, listing.id, 'monthly', date(2030, 1, 15))
    assert row.days_booked == 0


def test_rollup_revenue_and_commission(db, tenant, listing, booking):
    payment = payments.create_payment(db, booking.id, tenant.id, {'razorpayOrderId': 'order_a', 'method': 'upi'})
    payments.capture_payment(db, payment.id, 'pay_a')
    today = payment.completed_at.date()

    row = analytics.rollup_property(db, listing.id, 'daily', today)
    assert row.revenue == 3000
    assert row.commission == 300
    assert row.net_revenue == 2700
    assert row.bookings == 1


def test_rollup_unknown_property(db):
    with pytest.raises(NotFoundError):
        analytics.rollup_property(db, 42, 'daily', date(2030, 1, 1))


def test_analytics_json(db, listing):
    analytics.increment_metrics(db, listing.id, date(2026, 10, 22), clicks=4, bookings=1)
    payload = analytics.analytics_json(analytics.property_report(db, listing.id, 'daily')[0])

    assert payload['date'] == '2026-10-22'
    assert payload['metrics']['conversion'] == 25.0
    assert payload['occupancy']['occupancyRate'] == 0
