import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Date, ForeignKey, Boolean, Enum, Numeric, Float,
    UniqueConstraint, Index, Table, JSON,
)
from sqlalchemy.orm import declarative_base, relationship

from utils import derived


Base = declarative_base()


def _now():
    return datetime.now(timezone.utc)


def Money():
    """ Monetary amounts: two decimals in the database, plain floats in Python. """
    return Numeric(12, 2, asdecimal=False)


USER_ROLES = ('owner', 'tenant', 'admin')

PROPERTY_TYPES = ('PG', '1BHK', '2BHK', '3BHK', 'Villa', 'Studio', 'Shared Room', 'Independent House')
PROPERTY_STATUSES = ('Available', 'Booked', 'Maintenance', 'Sold', 'Inactive')
FURNISHING_STATUSES = ('Fully Furnished', 'Semi Furnished', 'Unfurnished')
AREA_UNITS = ('sqft', 'sqm')
PRICE_PERIODS = ('month', 'year', 'one-time')
FOOD_TYPES = ('Veg', 'Non-Veg', 'Both')
PREFERRED_TENANTS = ('Boys', 'Girls', 'Both')
AMENITIES = (
    'WiFi', 'Parking', 'Lift', 'Power Backup', 'Security Guard', 'CCTV',
    'Kitchen', 'Modular Kitchen', 'Gas Pipeline', 'Refrigerator', 'Microwave',
    'AC', 'Heating', 'Geyser', 'Washing Machine', 'TV', 'Sofa', 'Bed', 'Wardrobe',
    'Garden', 'Swimming Pool', 'Gym', 'Club House', 'Kids Play Area',
    'Water Supply', 'Waste Disposal', 'Housekeeping', 'Laundry',
    'Pet Friendly', 'Visitor Parking', 'Intercom', 'Fire Safety',
)

PAYMENT_METHODS = ('card', 'netbanking', 'upi', 'wallet')
NOTIFICATION_PRIORITIES = ('low', 'medium', 'high')
NOTIFICATION_CHANNELS = ('email', 'sms', 'push', 'in_app')
MESSAGE_TYPES = ('text', 'image', 'file')
ATTACHMENT_TYPES = ('image', 'file', 'video')
ANALYTICS_PERIODS = ('daily', 'weekly', 'monthly')


# MANY TO MANY: users bookmark properties ("Save" / "Unsave").
saved_properties = Table(
    'saved_properties',
    Base.metadata,
    Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    Column('property_id', Integer, ForeignKey('properties.id', ondelete='CASCADE'), primary_key=True),
    Column('saved_at', DateTime, default=_now),
)


class User(Base):
    """
    This class defines the structure of the users table. Each user is an owner, a tenant or an admin.
    The password is only ever stored as a bcrypt hash.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    first_name = Column(String(20), nullable=False)
    last_name = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(10), nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String(10), nullable=False, default='tenant')

    avatar_url = Column(String)
    avatar_public_id = Column(String)

    is_email_verified = Column(Boolean, nullable=False, default=False)
    is_phone_verified = Column(Boolean, nullable=False, default=False)
    is_profile_complete = Column(Boolean, nullable=False, default=False)

    email_otp_code = Column(String(6))
    email_otp_expires_at = Column(DateTime)
    phone_otp_code = Column(String(6))
    phone_otp_expires_at = Column(DateTime)

    # SHA-256 of the token mailed to the user, never the token itself.
    password_reset_token = Column(String(64), index=True)
    password_reset_expires = Column(DateTime)

    google_id = Column(String)
    facebook_id = Column(String)

    street = Column(String)
    city = Column(String)
    state = Column(String)
    pincode = Column(String(6))
    country = Column(String, default='India')

    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    __table_args__ = (
        UniqueConstraint('email', name='uq_users_email'),
        UniqueConstraint('phone', name='uq_users_phone'),
        Index('ix_users_created_at', 'created_at'),
    )

    # ONE TO MANY: An owner can list multiple properties.
    properties = relationship('Property', back_populates='owner', foreign_keys='Property.owner_id')

    # ONE TO MANY: A tenant's booking history.
    bookings = relationship('Booking', back_populates='tenant', order_by='Booking.created_at.desc()')

    # MANY TO MANY: Properties this user bookmarked.
    saved = relationship('Property', secondary=saved_properties, back_populates='saved_by')


class Property(Base):
    """
    This class defines the structure of the properties table.
    Coordinates are stored longitude first, then latitude.
    """
    __tablename__ = 'properties'

    id = Column(Integer, primary_key=True)
    # Random public id; its last six hex characters end the slug.
    uid = Column(String(32), nullable=False, unique=True, default=lambda: uuid.uuid4().hex)
    owner_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    slug = Column(String(120))

    street = Column(String, nullable=False)
    locality = Column(String, nullable=False)
    city = Column(String, nullable=False, index=True)
    state = Column(String, nullable=False)
    pincode = Column(String(6), nullable=False)
    country = Column(String, default='India')
    landmark = Column(String)

    property_type = Column(String(20), nullable=False)
    bedrooms = Column(Integer)
    bathrooms = Column(Integer, nullable=False)
    balconies = Column(Integer, nullable=False, default=0)
    floor = Column(Integer)
    total_floors = Column(Integer)
    furnishing_status = Column(String(20), nullable=False)
    total_area = Column(Float, nullable=False)
    area_unit = Column(String(4), nullable=False, default='sqft')
    amenities = Column(JSON, nullable=False, default=list)

    price_amount = Column(Money(), nullable=False)
    price_currency = Column(String(3), nullable=False, default='INR')
    price_period = Column(String(10), nullable=False, default='month')
    security_deposit = Column(Money(), nullable=False, default=0)
    maintenance_charges = Column(Money(), nullable=False, default=0)

    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)

    available_from = Column(DateTime, default=_now)
    available_to = Column(DateTime, nullable=False)
    status = Column(String(12), nullable=False, default='Available', index=True)

    # PG / co-living details
    food_included = Column(Boolean, default=False)
    food_type = Column(String(8))
    preferred_tenant = Column(String(5))
    notice_period_days = Column(Integer, default=30)
    shared_room = Column(Boolean, default=False)
    roommates = Column(Integer)

    # House rules
    smoking_allowed = Column(Boolean, default=False)
    pets_allowed = Column(Boolean, default=False)
    non_veg_allowed = Column(Boolean, default=True)
    guests_allowed = Column(Boolean, default=True)
    gate_closing_time = Column(String(10))

    verified = Column(Boolean, nullable=False, default=False)
    verified_by_id = Column(Integer, ForeignKey('users.id'))
    verified_at = Column(DateTime)

    average_rating = Column(Float, nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    clicks = Column(Integer, nullable=False, default=0)
    inquiries = Column(Integer, nullable=False, default=0)
    bookings_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    __table_args__ = (
        UniqueConstraint('slug', name='uq_properties_slug'),
        Index('ix_properties_location', 'longitude', 'latitude'),
        Index('ix_properties_city_status_type', 'city', 'status', 'property_type'),
        Index('ix_properties_price_status', 'price_amount', 'status'),
        Index('ix_properties_owner_status', 'owner_id', 'status'),
    )

    # MANY TO ONE: Each property is owned by one user.
    owner = relationship('User', back_populates='properties', foreign_keys=[owner_id])
    verified_by = relationship('User', foreign_keys=[verified_by_id])

    # ONE TO MANY: Ordered listing photos.
    images = relationship(
        'PropertyImage', back_populates='listing',
        order_by='PropertyImage.sort_order', cascade='all, delete-orphan'
    )

    # ONE TO MANY: A property can be booked multiple times.
    bookings = relationship('Booking', back_populates='listing')

    reviews = relationship('Review', back_populates='listing')

    saved_by = relationship('User', secondary=saved_properties, back_populates='saved')

    @property
    def coordinates(self):
        return [self.longitude, self.latitude]

    @property
    def price_per_day(self):
        return derived.price_per_day(self.price_amount, self.price_period)


class PropertyImage(Base):
    """ A {url, publicId} pair supplied by the media store, plus its thumbnail and position. """
    __tablename__ = 'property_images'

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, index=True)
    url = Column(String, nullable=False)
    public_id = Column(String, nullable=False)
    thumbnail = Column(String)
    sort_order = Column(Integer, nullable=False, default=0)

    listing = relationship('Property', back_populates='images')


class BookingStatus(enum.Enum):
    """ Where a booking is in its life. `cancelled` is terminal, like `completed`. """
    pending = 'pending'
    confirmed = 'confirmed'
    ongoing = 'ongoing'
    completed = 'completed'
    cancelled = 'cancelled'


class BookingPaymentStatus(enum.Enum):
    """ The money side of a booking, mirrored from its Payment. """
    unpaid = 'unpaid'
    paid = 'paid'
    refunded = 'refunded'


class Booking(Base):
    """ This class defines the structure of the bookings table. """
    __tablename__ = 'bookings'

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey('properties.id'), nullable=False)
    tenant_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    check_in_date = Column(DateTime, nullable=False)
    check_out_date = Column(DateTime, nullable=False)
    number_of_nights = Column(Integer, nullable=False)

    monthly_rent = Column(Money(), nullable=False)
    rent_amount = Column(Money(), nullable=False)
    security_deposit = Column(Money(), nullable=False)
    platform_fee = Column(Money(), nullable=False, default=0)
    total_amount = Column(Money(), nullable=False)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.pending)
    payment_status = Column(Enum(BookingPaymentStatus), nullable=False, default=BookingPaymentStatus.unpaid)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)
    confirmed_at = Column(DateTime)
    check_in_at = Column(DateTime)
    completed_at = Column(DateTime)
    cancelled_at = Column(DateTime)

    __table_args__ = (
        Index('ix_bookings_property_status', 'property_id', 'status'),
        Index('ix_bookings_tenant_created', 'tenant_id', 'created_at'),
    )

    # MANY TO ONE: Each booking is made by one tenant.
    tenant = relationship('User', back_populates='bookings')

    # MANY TO ONE: Each booking is for one property.
    listing = relationship('Property', back_populates='bookings')

    # ONE TO MANY: Records scoped by this booking.
    payments = relationship('Payment', back_populates='booking', order_by='Payment.created_at')
    messages = relationship('Message', back_populates='booking', order_by='Message.created_at')
    review = relationship('Review', back_populates='booking', uselist=False)

    @property
    def duration_days(self):
        return derived.duration_days(self.check_in_date, self.check_out_date)


class PaymentStatus(enum.Enum):
    pending = 'pending'
    completed = 'completed'
    failed = 'failed'
    refunded = 'refunded'


class RefundStatus(enum.Enum):
    none = 'none'
    initiated = 'initiated'
    completed = 'completed'
    failed = 'failed'


class Payment(Base):
    """
    This class defines the structure of the payments table.
    Gateway identifiers are stored exactly as the gateway issued them.
    """
    __tablename__ = 'payments'

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey('bookings.id'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    amount = Column(Money(), nullable=False)
    currency = Column(String(3), nullable=False, default='INR')
    gateway_order_id = Column(String, nullable=False)
    gateway_payment_id = Column(String)
    method = Column(String(12), nullable=False)
    status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.pending, index=True)
    failure_reason = Column(String)

    refund_amount = Column(Money(), nullable=False, default=0)
    refund_status = Column(Enum(RefundStatus), nullable=False, default=RefundStatus.none)
    refund_id = Column(String)
    refund_initiated_at = Column(DateTime)
    refunded_at = Column(DateTime)

    tax = Column(Money(), nullable=False, default=0)
    gst = Column(Money(), nullable=False, default=0)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)
    completed_at = Column(DateTime)

    __table_args__ = (
        Index('ix_payments_booking_status', 'booking_id', 'status'),
        Index('ix_payments_user_created', 'user_id', 'created_at'),
    )

    booking = relationship('Booking', back_populates='payments')
    user = relationship('User')

    @property
    def total_with_tax(self):
        return derived.total_with_tax(self.amount, self.tax, self.gst)


class Review(Base):
    """
    This class defines the structure of the reviews table.
    Sub-ratings are 1-5, or 0 when the tenant skipped them. One review per booking.
    """
    __tablename__ = 'reviews'

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey('properties.id'), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey('bookings.id'), nullable=False)
    tenant_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    overall_rating = Column(Integer, nullable=False)
    cleanliness = Column(Integer, nullable=False, default=0)
    communication = Column(Integer, nullable=False, default=0)
    amenities = Column(Integer, nullable=False, default=0)
    value = Column(Integer, nullable=False, default=0)

    title = Column(String(100))
    comment = Column(Text)
    verified = Column(Boolean, nullable=False, default=False)
    helpful = Column(Integer, nullable=False, default=0)
    unhelpful = Column(Integer, nullable=False, default=0)

    owner_response = Column(Text)
    owner_responded_at = Column(DateTime)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    __table_args__ = (
        UniqueConstraint('booking_id', name='uq_reviews_booking'),
        Index('ix_reviews_property_created', 'property_id', 'created_at'),
    )

    listing = relationship('Property', back_populates='reviews')
    booking = relationship('Booking', back_populates='review')
    tenant = relationship('User')
    photos = relationship('ReviewPhoto', back_populates='review', cascade='all, delete-orphan')

    @property
    def average_sub_rating(self):
        return derived.average_sub_rating(self.cleanliness, self.communication, self.amenities, self.value)


class ReviewPhoto(Base):
    __tablename__ = 'review_photos'

    id = Column(Integer, primary_key=True)
    review_id = Column(Integer, ForeignKey('reviews.id', ondelete='CASCADE'), nullable=False, index=True)
    url = Column(String, nullable=False)

    review = relationship('Review', back_populates='photos')


class Notification(Base):
    """
    This class defines the structure of the notifications table.
    Each channel column pair is the delivery record reported back by the sender.
    The in-app channel counts as delivered the moment the row exists.
    """
    __tablename__ = 'notifications'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(150), nullable=False)
    message = Column(Text, nullable=False)

    # Tagged reference: resource_type picks the table, resource_id the row.
    resource_type = Column(String(20))
    resource_id = Column(Integer)

    email_sent = Column(Boolean, nullable=False, default=False)
    email_sent_at = Column(DateTime)
    sms_sent = Column(Boolean, nullable=False, default=False)
    sms_sent_at = Column(DateTime)
    push_sent = Column(Boolean, nullable=False, default=False)
    push_sent_at = Column(DateTime)
    in_app_sent = Column(Boolean, nullable=False, default=True)
    in_app_sent_at = Column(DateTime, default=_now)

    read = Column(Boolean, nullable=False, default=False)
    priority = Column(String(6), nullable=False, default='medium')

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    __table_args__ = (
        Index('ix_notifications_user_created', 'user_id', 'created_at'),
    )

    user = relationship('User')

    @property
    def summary(self):
        return derived.notification_summary(self.title, self.message)


class Message(Base):
    """ This class defines the structure of the messages table. The booking is the conversation key. """
    __tablename__ = 'messages'

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey('bookings.id'), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    recipient_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    content = Column(Text)
    type = Column(String(5), nullable=False, default='text')
    read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime)
    created_at = Column(DateTime, default=_now)

    __table_args__ = (
        Index('ix_messages_booking_created', 'booking_id', 'created_at'),
        Index('ix_messages_sender_recipient', 'sender_id', 'recipient_id'),
    )

    booking = relationship('Booking', back_populates='messages')
    sender = relationship('User', foreign_keys=[sender_id])
    recipient = relationship('User', foreign_keys=[recipient_id])
    attachments = relationship('MessageAttachment', back_populates='message', cascade='all, delete-orphan')

    @property
    def formatted_time(self):
        return derived.format_message_time(self.created_at)


class MessageAttachment(Base):
    __tablename__ = 'message_attachments'

    id = Column(Integer, primary_key=True)
    message_id = Column(Integer, ForeignKey('messages.id', ondelete='CASCADE'), nullable=False, index=True)
    type = Column(String(5))
    url = Column(String, nullable=False)
    size = Column(Integer)

    message = relationship('Message', back_populates='attachments')


class Analytics(Base):
    """
    One row per (property, period, bucket start date).
    Conversion, occupancy rate and revenue per available day are derived, not stored.
    """
    __tablename__ = 'analytics'

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey('properties.id'), nullable=False, index=True)
    period = Column(String(7), nullable=False, default='daily')
    date = Column(Date, nullable=False, index=True)

    views = Column(Integer, nullable=False, default=0)
    clicks = Column(Integer, nullable=False, default=0)
    inquiries = Column(Integer, nullable=False, default=0)
    bookings = Column(Integer, nullable=False, default=0)

    revenue = Column(Money(), nullable=False, default=0)
    commission = Column(Money(), nullable=False, default=0)

    days_booked = Column(Integer, nullable=False, default=0)
    days_available = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    __table_args__ = (
        UniqueConstraint('property_id', 'period', 'date', name='uq_analytics_bucket'),
        Index('ix_analytics_period_date', 'period', 'date'),
    )

    listing = relationship('Property')

    @property
    def conversion(self):
        return derived.conversion_rate(self.bookings, self.clicks)

    @property
    def net_revenue(self):
        return derived.net_revenue(self.revenue, self.commission)

    @property
    def occupancy_rate(self):
        return derived.occupancy_rate(self.days_booked, self.days_available)

    @property
    def revenue_per_available_day(self):
        return derived.revenue_per_available_day(self.revenue, self.days_available)
