import logging
import math

from sqlalchemy import delete, insert, select

from config import Config
from database import transaction
from errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from models import Property, PropertyImage, User, saved_properties, PROPERTY_STATUSES
from services.analytics import increment_metrics
from utils.clock import utcnow
from utils.slug import build_slug, new_public_id
from utils.validation import validate_property


logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
PROPERTY_EVENTS = {'view': 'views', 'click': 'clicks', 'inquiry': 'inquiries'}
LISTING_ROLES = ('owner', 'admin')

_SCALAR_FIELDS = {
    'title': 'title',
    'description': 'description',
    'propertyType': 'property_type',
    'bedrooms': 'bedrooms',
    'bathrooms': 'bathrooms',
    'balconies': 'balconies',
    'floor': 'floor',
    'totalFloors': 'total_floors',
    'furnishingStatus': 'furnishing_status',
    'totalArea': 'total_area',
    'areaUnit': 'area_unit',
    'amenities': 'amenities',
    'securityDeposit': 'security_deposit',
    'maintenanceCharges': 'maintenance_charges',
    'availableFrom': 'available_from',
    'availableTo': 'available_to',
    'status': 'status',
}
_ADDRESS_FIELDS = ('street', 'locality', 'city', 'state', 'pincode', 'country', 'landmark')
_PRICE_FIELDS = {'amount': 'price_amount', 'currency': 'price_currency', 'period': 'price_period'}
_PG_FIELDS = {
    'foodIncluded': 'food_included',
    'foodType': 'food_type',
    'preferredTenant': 'preferred_tenant',
    'noticePeriod': 'notice_period_days',
    'sharedRoom': 'shared_room',
    'roommates': 'roommates',
}
_RULE_FIELDS = {
    'smokingAllowed': 'smoking_allowed',
    'petsAllowed': 'pets_allowed',
    'nonVegAllowed': 'non_veg_allowed',
    'guestsAllowed': 'guests_allowed',
    'gateClosingTime': 'gate_closing_time',
}


def get_property(db, property_id):
    prop = db.get(Property, property_id)
    if not prop:
        raise NotFoundError('Property not found')
    return prop


def get_property_by_slug(db, slug):
    prop = db.query(Property).filter_by(slug=(slug or '').lower()).first()
    if not prop:
        raise NotFoundError('Property not found')
    return prop


def _ensure_owner(db, property_id, user_id):
    """ The listing's owner, or any admin, may change it. """
    prop = get_property(db, property_id)
    user = db.get(User, user_id)
    if not user or (prop.owner_id != user.id and user.role != 'admin'):
        raise PermissionDenied('Property not owned by user')
    return prop


def assign_slug(prop, title_changed):
    """
    Pre-save step: the slug follows the title. It is only rebuilt when the
    title changed, so saves that leave the title alone keep their URL.
    """
    if not prop.uid:
        prop.uid = new_public_id()
    if title_changed or not prop.slug:
        prop.slug = build_slug(prop.title, prop.uid)
    return prop.slug


def _apply(prop, clean):
    for field, column in _SCALAR_FIELDS.items():
        if field in clean:
            setattr(prop, column, clean[field])
    for field in _ADDRESS_FIELDS:
        if field in clean.get('address', {}):
            setattr(prop, field, clean['address'][field])
    for field, column in _PRICE_FIELDS.items():
        if field in clean.get('price', {}):
            setattr(prop, column, clean['price'][field])
    for field, column in _PG_FIELDS.items():
        if field in clean.get('pgDetails', {}):
            setattr(prop, column, clean['pgDetails'][field])
    for field, column in _RULE_FIELDS.items():
        if field in clean.get('rules', {}):
            setattr(prop, column, clean['rules'][field])
    if clean.get('coordinates'):
        prop.longitude, prop.latitude = clean['coordinates']
    if 'images' in clean:
        prop.images = [
            PropertyImage(
                url=image['url'],
                public_id=image['publicId'],
                thumbnail=image.get('thumbnail'),
                sort_order=image['order'],
            )
            for image in clean['images']
        ]


def create_property(db, owner_id, data):
    """ Lists a new property for an owner (or admin). The slug is derived from the title. """
    owner = db.get(User, owner_id)
    if not owner or owner.role not in LISTING_ROLES:
        raise PermissionDenied('Only owners can list properties')

    clean = validate_property(data)
    prop = Property(
        owner_id=owner.id,
        uid=new_public_id(),
        price_currency=Config.DEFAULT_CURRENCY,
        country=Config.DEFAULT_COUNTRY,
        available_from=utcnow(),
    )
    _apply(prop, clean)
    assign_slug(prop, title_changed=True)

    with transaction(db):
        db.add(prop)
        db.flush()

    logger.info("Owner %s listed property %s (%s)", owner.id, prop.id, prop.slug)
    return prop


def update_property(db, property_id, user_id, data):
    prop = _ensure_owner(db, property_id, user_id)
    clean = validate_property(
        data, partial=True, current_type=prop.property_type, current_bedrooms=prop.bedrooms
    )
    title_changed = 'title' in clean and clean['title'] != prop.title

    with transaction(db):
        _apply(prop, clean)
        assign_slug(prop, title_changed)
        db.flush()

    if title_changed:
        logger.info("Property %s retitled, slug is now %s", prop.id, prop.slug)
    return prop


def set_property_status(db, property_id, user_id, status):
    if status not in PROPERTY_STATUSES:
        raise ValidationError([('status', f'{status} is not a valid property status')])
    prop = _ensure_owner(db, property_id, user_id)
    with transaction(db):
        prop.status = status
    return prop


def verify_property(db, property_id, admin_id):
    admin = db.get(User, admin_id)
    if not admin or admin.role != 'admin':
        raise PermissionDenied('Only admins can verify properties')
    prop = get_property(db, property_id)
    with transaction(db):
        prop.verified = True
        prop.verified_by_id = admin.id
        prop.verified_at = utcnow()
    logger.info("Admin %s verified property %s", admin.id, prop.id)
    return prop


def _is_saved(db, user_id, property_id):
    return db.execute(
        select(saved_properties.c.user_id).where(
            saved_properties.c.user_id == user_id,
            saved_properties.c.property_id == property_id,
        )
    ).first() is not None


def save_property(db, user_id, property_id):
    """ Bookmarks a property. Saving twice is a no-op. """
    if not db.get(User, user_id):
        raise NotFoundError('User not found')
    get_property(db, property_id)
    try:
        with transaction(db):
            if not _is_saved(db, user_id, property_id):
                db.execute(insert(saved_properties).values(
                    user_id=user_id, property_id=property_id, saved_at=utcnow()
                ))
    except ConflictError:
        # A concurrent save got there first; the bookmark exists either way.
        logger.debug("Property %s already saved by user %s", property_id, user_id)
    return True


def unsave_property(db, user_id, property_id):
    """ Removes a bookmark. Removing a missing bookmark is a no-op. """
    with transaction(db):
        db.execute(delete(saved_properties).where(
            saved_properties.c.user_id == user_id,
            saved_properties.c.property_id == property_id,
        ))
    return False


def saved_property_ids(db, user_id):
    rows = db.execute(
        select(saved_properties.c.property_id)
        .where(saved_properties.c.user_id == user_id)
        .order_by(saved_properties.c.saved_at.desc())
    ).all()
    return [r.property_id for r in rows]


def record_property_event(db, property_id, event, when=None):
    """ Bumps the listing counter and the matching analytics buckets together. """
    column = PROPERTY_EVENTS.get(event)
    if column is None:
        raise ValidationError([('event', f'{event} is not a valid property event (view, click, inquiry)')])
    prop = get_property(db, property_id)
    with transaction(db):
        setattr(prop, column, (getattr(prop, column) or 0) + 1)
        increment_metrics(db, prop.id, (when or utcnow()).date(), **{column: 1})
    return prop


def haversine_km(lon1, lat1, lon2, lat2):
    lon1, lat1, lon2, lat2 = map(math.radians, (lon1, lat1, lon2, lat2))
    a = (math.sin((lat2 - lat1) / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin((lon2 - lon1) / 2) ** 2)
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def find_nearby(db, longitude, latitude, radius_km=5, limit=50):
    """
    Available properties within radius_km of (longitude, latitude), nearest first.
    A bounding box on the (longitude, latitude) index narrows the rows before
    the exact great-circle distance is checked.
    """
    if not -180 <= longitude <= 180 or not -90 <= latitude <= 90:
        raise ValidationError([('coordinates', 'Coordinates must be [longitude, latitude] within range')])
    if radius_km <= 0:
        raise ValidationError([('radius', 'Radius must be positive')])

    lat_delta = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = math.cos(math.radians(latitude))
    lon_delta = 180.0 if cos_lat < 1e-6 else min(180.0, lat_delta / cos_lat)

    q = db.query(Property).filter(
        Property.status == 'Available',
        Property.latitude >= latitude - lat_delta,
        Property.latitude <= latitude + lat_delta,
    )
    lon_min, lon_max = longitude - lon_delta, longitude + lon_delta
    if lon_min >= -180 and lon_max <= 180:
        q = q.filter(Property.longitude >= lon_min, Property.longitude <= lon_max)

    hits = []
    for prop in q.all():
        distance = haversine_km(longitude, latitude, prop.longitude, prop.latitude)
        if distance <= radius_km:
            hits.append((distance, prop))
    hits.sort(key=lambda pair: pair[0])
    return hits[:limit]


def property_json(prop, distance_km=None):
    item = {
        'id': prop.id,
        'slug': prop.slug,
        'owner': prop.owner_id,
        'title': prop.title,
        'description': prop.description,
        'address': {field: getattr(prop, field) for field in _ADDRESS_FIELDS},
        'propertyType': prop.property_type,
        'bedrooms': prop.bedrooms,
        'bathrooms': prop.bathrooms,
        'balconies': prop.balconies,
        'floor': prop.floor,
        'totalFloors': prop.total_floors,
        'furnishingStatus': prop.furnishing_status,
        'totalArea': prop.total_area,
        'areaUnit': prop.area_unit,
        'amenities': prop.amenities or [],
        'price': {
            'amount': prop.price_amount,
            'currency': prop.price_currency,
            'period': prop.price_period,
        },
        'pricePerDay': prop.price_per_day,
        'securityDeposit': prop.security_deposit,
        'maintenanceCharges': prop.maintenance_charges,
        'location': {'type': 'Point', 'coordinates': prop.coordinates},
        'availableFrom': prop.available_from.isoformat() if prop.available_from else None,
        'availableTo': prop.available_to.isoformat() if prop.available_to else None,
        'status': prop.status,
        'pgDetails': {field: getattr(prop, column) for field, column in _PG_FIELDS.items()},
        'rules': {field: getattr(prop, column) for field, column in _RULE_FIELDS.items()},
        'images': [
            {'url': i.url, 'publicId': i.public_id, 'thumbnail': i.thumbnail, 'order': i.sort_order}
            for i in prop.images
        ],
        'verified': prop.verified,
        'averageRating': prop.average_rating,
        'totalReviews': prop.total_reviews,
        'views': prop.views,
    }
    if distance_km is not None:
        item['distanceKm'] = round(distance_km, 3)
    return item
