"""
Request payload schemas for every entity, run by the write path before
anything touches the session.

Each validate_* function parses the payload with a pydantic model, turns
pydantic's error list into a single ValidationError of (field, message)
pairs, and returns the cleaned values as a camelCase dict (trimmed,
lowercased, defaulted).

Create payloads use the full models. Updates use the *Update variants, where
every field is optional and only the keys present in the payload come back.
"""
import math
import re
from datetime import datetime
from numbers import Number
from typing import Annotated, ClassVar, List, Literal, Optional

from pydantic import (
    BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, StrictBool, StringConstraints,
    ValidationInfo, field_validator, model_validator,
)
from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from errors import ValidationError
from models import (
    USER_ROLES, PROPERTY_TYPES, PROPERTY_STATUSES, FURNISHING_STATUSES, AREA_UNITS, PRICE_PERIODS,
    FOOD_TYPES, PREFERRED_TENANTS, AMENITIES, PAYMENT_METHODS, NOTIFICATION_PRIORITIES,
    MESSAGE_TYPES, ATTACHMENT_TYPES, ANALYTICS_PERIODS,
)
from utils.clock import parse_datetime
from utils.derived import duration_days


NAME_PATTERN = r'^[a-zA-Z\s]*$'
PHONE_PATTERN = r'^[6-9]\d{9}$'
PINCODE_PATTERN = r'^[0-9]{6}$'

MIN_PASSWORD_LENGTH = 8
MAX_MESSAGE_LENGTH = 5000

SUB_RATINGS = ('cleanliness', 'communication', 'amenities', 'value')

# Fallback wording per pydantic error type; {field} is the last path segment.
DEFAULT_MESSAGES = {
    'missing': '{field} is required',
    'number_type': '{field} must be a number',
    'finite_number': '{field} must be a finite number',
    'whole_number': '{field} must be a whole number',
    'bool_type': '{field} must be true or false',
    'string_type': '{field} must be a string',
    'list_type': '{field} must be a list',
    'model_type': '{field} must be an object',
    'dict_type': '{field} must be an object',
    'literal_error': '{value} is not a valid {field}',
    'date_format': '{field} must be a date (YYYY-MM-DD) or an ISO timestamp',
}


def _number(value):
    if isinstance(value, bool) or not isinstance(value, Number):
        raise PydanticCustomError('number_type', 'must be a number')
    if isinstance(value, float) and not math.isfinite(value):
        raise PydanticCustomError('finite_number', 'must be a finite number')
    return value


def _whole(value):
    value = _number(value)
    if int(value) != value:
        raise PydanticCustomError('whole_number', 'must be a whole number')
    return int(value)


def _moment(value):
    parsed = parse_datetime(value)
    if parsed is None:
        raise PydanticCustomError('date_format', 'must be a date (YYYY-MM-DD) or an ISO timestamp')
    return parsed


def _coordinates(value):
    if (not isinstance(value, (list, tuple)) or len(value) != 2
            or any(isinstance(v, bool) or not isinstance(v, Number) for v in value)):
        raise PydanticCustomError('coordinates', 'Coordinates must be [longitude, latitude]')
    longitude, latitude = value
    if not -180 <= longitude <= 180:
        raise PydanticCustomError('coordinates', 'Longitude must be between -180 and 180')
    if not -90 <= latitude <= 90:
        raise PydanticCustomError('coordinates', 'Latitude must be between -90 and 90')
    return [float(longitude), float(latitude)]


def text(**constraints):
    return Annotated[str, StringConstraints(strip_whitespace=True, **constraints)]


def number(**constraints):
    return Annotated[float, BeforeValidator(_number), Field(**constraints)]


def whole(**constraints):
    return Annotated[int, BeforeValidator(_whole), Field(**constraints)]


Moment = Annotated[datetime, BeforeValidator(_moment)]
Coordinates = Annotated[List[float], BeforeValidator(_coordinates)]
Name = text(min_length=2, max_length=20, pattern=NAME_PATTERN)


def required(field):
    """ Error for a field that was sent as null but may not be cleared. """
    return PydanticCustomError('missing', 'Field required', {'field': field})


class Payload(BaseModel):
    """ camelCase keys in and out. Blank strings count as absent. """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')

    partial: ClassVar[bool] = False
    # camelCase keys an update may not null out
    not_null: ClassVar[tuple] = ()
    messages: ClassVar[dict] = {}

    @model_validator(mode='before')
    @classmethod
    def _drop_blanks(cls, data):
        if not isinstance(data, dict):
            return data
        cleaned = {}
        for key, value in data.items():
            if isinstance(value, str) and not value.strip():
                value = None
            if value is None:
                if not cls.partial:
                    continue
                if key in cls.not_null:
                    raise required(key)
            cleaned[key] = value
        return cleaned


def _path(error):
    parts = [str(p) for p in error['loc']]
    field = (error.get('ctx') or {}).get('field')
    if field:
        parts.append(field)
    return parts


def _message(schema, parts, error):
    key = '.'.join('*' if p.isdigit() else p for p in parts)
    template = schema.messages.get(key, {}).get(error['type']) or DEFAULT_MESSAGES.get(error['type'])
    if template is None:
        return error['msg']
    return template.format(field=parts[-1] if parts else 'payload', value=error.get('input'))


def parse(schema, data, context=None):
    """
    Validates `data` against a Payload model and returns the cleaned dict.
    Every pydantic error becomes one (dotted.path, message) pair.
    """
    try:
        parsed = schema.model_validate(data if data is not None else {}, context=context)
    except SchemaError as exc:
        errors = []
        for error in exc.errors():
            parts = _path(error)
            errors.append(('.'.join(parts), _message(schema, parts, error)))
        raise ValidationError(errors) from None
    if schema.partial:
        return parsed.model_dump(by_alias=True, exclude_unset=True)
    return parsed.model_dump(by_alias=True, exclude_none=True)


# users

NAME_MESSAGES = {
    'string_too_short': 'Name must be atleast 2 charaters',
    'string_too_long': 'Name cannot exceeds 20 character',
    'string_pattern_mismatch': 'Name can only contain letters and spaces',
}

USER_MESSAGES = {
    'firstname': dict(NAME_MESSAGES, missing='Firstname is required'),
    'lastname': dict(NAME_MESSAGES, missing='Lastname is required'),
    'email': {'missing': 'Email is required', 'value_error': 'Please provide a valid email address',
              'string_type': 'Please provide a valid email address'},
    'phone': {'missing': 'Phone is required',
              'string_pattern_mismatch': 'Please provide a valid 10 digit phone number'},
    'password': {'missing': 'Password is required',
                 'string_too_short': 'Password must be at least 8 characters'},
    'role': {'literal_error': '{value} is not a valid role. Choose: owner, tenant, or admin'},
    'address.pincode': {'string_pattern_mismatch': 'Pincode must be 6 digits'},
    'avatar.url': {'missing': 'Avatar URL is required'},
}


class UserAddress(Payload):
    street: Optional[text()] = None
    city: Optional[text()] = None
    state: Optional[text()] = None
    pincode: Optional[text(pattern=PINCODE_PATTERN)] = None
    country: Optional[text()] = None


class Avatar(Payload):
    """ An empty object resets the avatar to the default image. """
    url: Optional[text()] = None
    public_id: Optional[text()] = None

    @model_validator(mode='after')
    def _url_when_set(self):
        if self.model_fields_set and not self.url:
            raise required('url')
        return self


class UserCreate(Payload):
    messages = USER_MESSAGES

    firstname: Name
    lastname: Name
    email: EmailStr
    phone: text(pattern=PHONE_PATTERN)
    password: Annotated[str, Field(min_length=MIN_PASSWORD_LENGTH)]
    role: Literal[USER_ROLES] = 'tenant'
    address: Optional[UserAddress] = None
    avatar: Optional[Avatar] = None

    @field_validator('email')
    @classmethod
    def _lower(cls, value):
        return value.lower() if value else value


class ProfileUpdate(UserCreate):
    partial = True
    not_null = ('firstname', 'lastname', 'email', 'phone', 'password', 'role', 'address', 'avatar')

    firstname: Optional[Name] = None
    lastname: Optional[Name] = None
    email: Optional[EmailStr] = None
    phone: Optional[text(pattern=PHONE_PATTERN)] = None
    password: Optional[Annotated[str, Field(min_length=MIN_PASSWORD_LENGTH)]] = None
    role: Optional[Literal[USER_ROLES]] = None


class PasswordIn(Payload):
    messages = USER_MESSAGES

    password: Annotated[str, Field(min_length=MIN_PASSWORD_LENGTH)]


def validate_user(data, partial=False):
    return parse(ProfileUpdate if partial else UserCreate, data)


def validate_password(password, field='password'):
    try:
        return parse(PasswordIn, {'password': password})['password']
    except ValidationError as exc:
        raise ValidationError([(field, message) for _, message in exc.errors]) from None


# properties

PROPERTY_MESSAGES = {
    'title': {'missing': 'Property title is required',
              'string_too_short': 'Title must be at least 5 characters',
              'string_too_long': 'Title cannot exceed 100 characters'},
    'description': {'missing': 'Property description is required',
                    'string_too_short': 'Description must be at least 20 characters',
                    'string_too_long': 'Description cannot exceed 2000 characters'},
    'propertyType': {'missing': 'Property type is required',
                     'literal_error': '{value} is not a valid property type'},
    'bedrooms': {'missing': 'Number of bedrooms is required',
                 'greater_than_equal': 'Bedrooms cannot be negative',
                 'less_than_equal': 'Bedrooms cannot exceed 20'},
    'bathrooms': {'missing': 'Number of bathrooms is required',
                  'greater_than_equal': 'At least 1 bathroom is required',
                  'less_than_equal': 'Bathrooms cannot exceed 10'},
    'balconies': {'greater_than_equal': 'Balconies cannot be negative'},
    'floor': {'greater_than_equal': 'Floor cannot be negative (0 is ground floor)'},
    'totalFloors': {'greater_than_equal': 'Building must have at least 1 floor'},
    'furnishingStatus': {'missing': 'Furnishing status is required',
                         'literal_error': '{value} is not a valid furnishing status'},
    'totalArea': {'missing': 'Property area is required',
                  'greater_than_equal': 'Area must be at least 50 square feet',
                  'less_than_equal': 'Area cannot exceed 100000'},
    'securityDeposit': {'greater_than_equal': 'Security deposit cannot be negative'},
    'maintenanceCharges': {'greater_than_equal': 'Maintenance charges cannot be negative'},
    'availableTo': {'missing': 'Available-to date is required'},
    'status': {'literal_error': '{value} is not a valid property status'},
    'amenities.*': {'literal_error': '{value} is not a valid amenity'},
    'address': {'missing': 'Property address is required'},
    'address.street': {'missing': 'Street address is required'},
    'address.locality': {'missing': 'Locality is required'},
    'address.city': {'missing': 'City is required'},
    'address.state': {'missing': 'State is required'},
    'address.pincode': {'missing': 'Pincode is required',
                        'string_pattern_mismatch': 'Pincode must be 6 digits (India)'},
    'price': {'missing': 'Property price is required'},
    'price.amount': {'missing': 'Price amount is required', 'greater_than_equal': 'Price cannot be negative'},
    'price.currency': {'string_too_long': 'Currency must be a 3 letter code'},
    'price.period': {'literal_error': '{value} is not a valid price period'},
    'coordinates': {'missing': 'Property coordinates are required'},
    'pgDetails.noticePeriod': {'greater_than_equal': 'Notice period cannot be negative'},
    'pgDetails.roommates': {'greater_than_equal': 'Roommates cannot be negative'},
    'rules.gateClosingTime': {'string_too_long': 'Gate closing time is too long'},
    'images.*.url': {'missing': 'Image URL is required'},
    'images.*.publicId': {'missing': 'Image public ID is required'},
}


class PropertyAddress(Payload):
    street: text()
    locality: text()
    city: text()
    state: text()
    pincode: text(pattern=PINCODE_PATTERN)
    country: Optional[text()] = None
    landmark: Optional[text()] = None


class PropertyAddressUpdate(PropertyAddress):
    partial = True
    not_null = ('street', 'locality', 'city', 'state', 'pincode')

    street: Optional[text()] = None
    locality: Optional[text()] = None
    city: Optional[text()] = None
    state: Optional[text()] = None
    pincode: Optional[text(pattern=PINCODE_PATTERN)] = None


class Price(Payload):
    amount: number(ge=0)
    currency: Optional[text(max_length=3)] = None
    period: Literal[PRICE_PERIODS] = 'month'

    @field_validator('currency')
    @classmethod
    def _upper(cls, value):
        return value.upper() if value else value


class PriceUpdate(Price):
    partial = True
    not_null = ('amount', 'period')

    amount: Optional[number(ge=0)] = None
    period: Optional[Literal[PRICE_PERIODS]] = None


class PgDetails(Payload):
    food_included: Optional[StrictBool] = None
    food_type: Optional[Literal[FOOD_TYPES]] = None
    preferred_tenant: Optional[Literal[PREFERRED_TENANTS]] = None
    notice_period: Optional[whole(ge=0)] = None
    shared_room: Optional[StrictBool] = None
    roommates: Optional[whole(ge=0)] = None


class HouseRules(Payload):
    smoking_allowed: Optional[StrictBool] = None
    pets_allowed: Optional[StrictBool] = None
    non_veg_allowed: Optional[StrictBool] = None
    guests_allowed: Optional[StrictBool] = None
    gate_closing_time: Optional[text(max_length=10)] = None


class Image(Payload):
    url: text()
    public_id: text()
    thumbnail: Optional[text()] = None
    order: Optional[whole(ge=0)] = None


class PropertyCreate(Payload):
    messages = PROPERTY_MESSAGES

    title: text(min_length=5, max_length=100)
    description: text(min_length=20, max_length=2000)
    property_type: Literal[PROPERTY_TYPES]
    bedrooms: Optional[whole(ge=0, le=20)] = None
    bathrooms: whole(ge=1, le=10)
    balconies: whole(ge=0) = 0
    floor: Optional[whole(ge=0)] = None
    total_floors: Optional[whole(ge=1)] = None
    furnishing_status: Literal[FURNISHING_STATUSES]
    total_area: number(ge=50, le=100000)
    area_unit: Literal[AREA_UNITS] = 'sqft'
    security_deposit: number(ge=0) = 0
    maintenance_charges: number(ge=0) = 0
    available_from: Optional[Moment] = None
    available_to: Moment
    status: Literal[PROPERTY_STATUSES] = 'Available'
    amenities: List[Literal[AMENITIES]] = []
    address: PropertyAddress
    price: Price
    coordinates: Coordinates
    pg_details: Optional[PgDetails] = None
    rules: Optional[HouseRules] = None
    images: Optional[List[Image]] = None

    @field_validator('amenities')
    @classmethod
    def _dedupe(cls, value):
        return list(dict.fromkeys(value)) if value is not None else value

    @field_validator('available_to')
    @classmethod
    def _not_before_start(cls, value, info: ValidationInfo):
        start = info.data.get('available_from')
        if value is not None and start is not None and value < start:
            raise PydanticCustomError('date_order', 'Available-to date cannot be before available-from date')
        return value

    @field_validator('images')
    @classmethod
    def _default_order(cls, value):
        for i, image in enumerate(value or []):
            if image.order is None:
                image.order = i
        return value

    @model_validator(mode='after')
    def _bedrooms(self, info: ValidationInfo):
        """
        Bedrooms are required unless the listing is a shared room. On updates
        the stored type and bedroom count come in through the context.
        """
        context = info.context or {}
        sent = self.model_fields_set
        if self.partial:
            property_type = self.property_type if 'property_type' in sent else context.get('current_type')
            needed = 'bedrooms' in sent or ('property_type' in sent and context.get('current_bedrooms') is None)
        else:
            property_type, needed = self.property_type, True
        if needed and self.bedrooms is None and property_type != 'Shared Room':
            raise required('bedrooms')
        return self


class PropertyUpdate(PropertyCreate):
    partial = True
    not_null = ('title', 'description', 'propertyType', 'bathrooms', 'balconies', 'furnishingStatus',
                'totalArea', 'areaUnit', 'securityDeposit', 'maintenanceCharges', 'availableTo',
                'status', 'amenities', 'address', 'price', 'coordinates')

    title: Optional[text(min_length=5, max_length=100)] = None
    description: Optional[text(min_length=20, max_length=2000)] = None
    property_type: Optional[Literal[PROPERTY_TYPES]] = None
    bathrooms: Optional[whole(ge=1, le=10)] = None
    balconies: Optional[whole(ge=0)] = None
    furnishing_status: Optional[Literal[FURNISHING_STATUSES]] = None
    total_area: Optional[number(ge=50, le=100000)] = None
    area_unit: Optional[Literal[AREA_UNITS]] = None
    security_deposit: Optional[number(ge=0)] = None
    maintenance_charges: Optional[number(ge=0)] = None
    available_to: Optional[Moment] = None
    status: Optional[Literal[PROPERTY_STATUSES]] = None
    amenities: Optional[List[Literal[AMENITIES]]] = None
    address: Optional[PropertyAddressUpdate] = None
    price: Optional[PriceUpdate] = None
    coordinates: Optional[Coordinates] = None


def validate_property(data, partial=False, current_type=None, current_bedrooms=None):
    """
    `current_type` and `current_bedrooms` are the stored values, used on updates
    to decide whether bedrooms may be left out.
    """
    if partial:
        return parse(PropertyUpdate, data,
                     context={'current_type': current_type, 'current_bedrooms': current_bedrooms})
    return parse(PropertyCreate, data)


# bookings

BOOKING_MESSAGES = {
    'checkInDate': {'missing': 'Check-in date is required'},
    'checkOutDate': {'missing': 'Check-out date is required'},
    'numberOfNights': {'greater_than_equal': 'Number of nights must be at least 1'},
    'monthlyRent': {'greater_than_equal': 'Monthly rent cannot be negative'},
    'rentAmount': {'greater_than_equal': 'Rent amount cannot be negative'},
    'securityDeposit': {'greater_than_equal': 'Security deposit cannot be negative'},
    'platformFee': {'greater_than_equal': 'Platform fee cannot be negative'},
    'totalAmount': {'greater_than_equal': 'Total amount cannot be negative'},
}


class BookingAmounts(Payload):
    messages = BOOKING_MESSAGES

    monthly_rent: Optional[number(ge=0)] = None
    rent_amount: Optional[number(ge=0)] = None
    security_deposit: Optional[number(ge=0)] = None
    platform_fee: Optional[number(ge=0)] = None
    total_amount: Optional[number(ge=0)] = None


class BookingCreate(BookingAmounts):
    check_in_date: Moment
    check_out_date: Moment
    number_of_nights: Optional[whole(ge=1)] = None
    platform_fee: number(ge=0) = 0

    @field_validator('check_out_date')
    @classmethod
    def _after_check_in(cls, value, info: ValidationInfo):
        check_in = info.data.get('check_in_date')
        if check_in is not None and value <= check_in:
            raise PydanticCustomError('stay_order', 'Check-out must be after check-in')
        return value

    @field_validator('number_of_nights')
    @classmethod
    def _matches_stay(cls, value, info: ValidationInfo):
        check_in, check_out = info.data.get('check_in_date'), info.data.get('check_out_date')
        if value is not None and check_in is not None and check_out is not None:
            nights = duration_days(check_in, check_out)
            if value != nights:
                raise PydanticCustomError(
                    'stay_length', 'Number of nights must equal the stay length ({nights})', {'nights': nights})
        return value

    @model_validator(mode='after')
    def _count_nights(self):
        self.number_of_nights = duration_days(self.check_in_date, self.check_out_date)
        return self


def validate_booking(data):
    return parse(BookingCreate, data)


def validate_booking_amounts(data):
    return parse(BookingAmounts, data)


# payments

class PaymentCreate(Payload):
    messages = {
        'amount': {'greater_than_equal': 'Amount cannot be negative'},
        'currency': {'string_too_long': 'Currency must be a 3 letter code'},
        'razorpayOrderId': {'missing': 'Razorpay order ID is required'},
        'method': {'missing': 'Payment method is required',
                   'literal_error': '{value} is not a valid payment method'},
        'tax': {'greater_than_equal': 'Tax cannot be negative'},
        'gst': {'greater_than_equal': 'GST cannot be negative'},
    }

    amount: Optional[number(ge=0)] = None
    currency: Optional[text(max_length=3)] = None
    razorpay_order_id: text()
    method: Literal[PAYMENT_METHODS]
    tax: number(ge=0) = 0
    gst: number(ge=0) = 0

    @field_validator('currency')
    @classmethod
    def _upper(cls, value):
        return value.upper() if value else value


def validate_payment(data):
    return parse(PaymentCreate, data)


# reviews

class RatingDetails(Payload):
    """ 0 means not rated. """
    cleanliness: whole() = 0
    communication: whole() = 0
    amenities: whole() = 0
    value: whole() = 0

    @field_validator(*SUB_RATINGS)
    @classmethod
    def _one_to_five(cls, value, info: ValidationInfo):
        if value != 0 and not 1 <= value <= 5:
            raise PydanticCustomError(
                'rating_range', '{name} rating must be between 1 and 5', {'name': info.field_name})
        return value


class ReviewPhoto(Payload):
    url: text()


class ReviewCreate(Payload):
    messages = {
        'overallRating': {'missing': 'Overall rating is required',
                          'greater_than_equal': 'Minimum rating is 1',
                          'less_than_equal': 'Maximum rating is 5'},
        'title': {'string_too_long': 'Title cannot exceed 100 characters'},
        'comment': {'string_too_long': 'Comment cannot exceed 2000 characters'},
        'photos.*.url': {'missing': 'Photo URL is required'},
    }

    overall_rating: whole(ge=1, le=5)
    rating_details: RatingDetails = Field(default_factory=RatingDetails)
    title: Optional[text(max_length=100)] = None
    comment: Optional[text(max_length=2000)] = None
    photos: List[ReviewPhoto] = []


def validate_review(data):
    clean = parse(ReviewCreate, data)
    clean['photos'] = [photo['url'] for photo in clean.get('photos', [])]
    return clean


# notifications

class RelatedResource(Payload):
    type: text()
    id: whole()

    @field_validator('type')
    @classmethod
    def _known_kind(cls, value, info: ValidationInfo):
        if value not in (info.context or {}).get('resource_types', ()):
            raise PydanticCustomError('resource_type', '{kind} is not a valid resource type', {'kind': value})
        return value


class NotificationCreate(Payload):
    messages = {
        'type': {'missing': 'Notification type is required'},
        'title': {'missing': 'Notification title is required',
                  'string_too_long': 'Title cannot exceed 150 characters'},
        'message': {'missing': 'Notification message is required',
                    'string_too_long': 'Message cannot exceed 2000 characters'},
        'relatedResource': {'model_type': 'Related resource must be an object with type and id'},
        'relatedResource.type': {'missing': 'Related resource type is required'},
        'relatedResource.id': {'missing': 'Related resource id is required'},
    }

    type: text()
    title: text(max_length=150)
    message: text(max_length=2000)
    priority: Literal[NOTIFICATION_PRIORITIES] = 'medium'
    related_resource: Optional[RelatedResource] = None


def validate_notification(data, resource_types):
    return parse(NotificationCreate, data, context={'resource_types': resource_types})


# messages

class Attachment(Payload):
    type: Optional[Literal[ATTACHMENT_TYPES]] = None
    url: text()
    size: Optional[whole(ge=0)] = None


class MessageCreate(Payload):
    messages = {
        'content': {'string_too_long': 'Message cannot exceed 5000 characters'},
        'attachments.*.url': {'missing': 'Attachment URL is required'},
        'attachments.*.type': {'literal_error': '{value} is not a valid attachment type'},
        'attachments.*.size': {'greater_than_equal': 'Attachment size must be a non-negative number of bytes',
                               'number_type': 'Attachment size must be a non-negative number of bytes',
                               'whole_number': 'Attachment size must be a non-negative number of bytes'},
    }

    content: Optional[text(max_length=MAX_MESSAGE_LENGTH)] = None
    type: Literal[MESSAGE_TYPES] = 'text'
    attachments: List[Attachment] = []

    @model_validator(mode='after')
    def _has_body(self):
        if not self.content and not self.attachments:
            raise PydanticCustomError(
                'empty_message', 'Message must have content or at least one attachment', {'field': 'content'})
        return self


def validate_message(data):
    return parse(MessageCreate, data)


# analytics

COUNT_FIELDS = ('views', 'clicks', 'inquiries', 'bookings', 'daysBooked', 'daysAvailable', 'revenue', 'commission')


class AnalyticsCounts(Payload):
    messages = {name: {'greater_than_equal': f'{name} cannot be negative'} for name in COUNT_FIELDS}

    views: Optional[whole(ge=0)] = None
    clicks: Optional[whole(ge=0)] = None
    inquiries: Optional[whole(ge=0)] = None
    bookings: Optional[whole(ge=0)] = None
    days_booked: Optional[whole(ge=0)] = None
    days_available: Optional[whole(ge=0)] = None
    revenue: Optional[number(ge=0)] = None
    commission: Optional[number(ge=0)] = None
    period: Optional[Literal[ANALYTICS_PERIODS]] = None


def validate_analytics_counts(data):
    return parse(AnalyticsCounts, data)
