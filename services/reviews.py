import logging

from sqlalchemy import func

from database import transaction
from errors import InvariantError, NotFoundError, PermissionDenied, ValidationError
from models import Booking, BookingStatus, Property, Review, ReviewPhoto, User
from services.notifications import notify
from utils.clock import utcnow
from utils.validation import validate_review, SUB_RATINGS


logger = logging.getLogger(__name__)


def get_review(db, review_id):
    review = db.get(Review, review_id)
    if not review:
        raise NotFoundError('Review not found')
    return review


def refresh_property_rating(db, property_id):
    """ Recomputes the listing's average overall rating (1 decimal) and review count. """
    avg, count = (
        db.query(func.avg(Review.overall_rating), func.count(Review.id))
        .filter(Review.property_id == property_id)
        .one()
    )
    prop = db.get(Property, property_id)
    prop.total_reviews = count or 0
    prop.average_rating = round(float(avg), 1) if avg is not None else 0
    return prop


def create_review(db, tenant_id, booking_id, data):
    """
    A tenant reviews the property of one of their bookings. The review is
    marked verified when the stay has completed. Only one review per booking.
    """
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError('Booking not found')
    if booking.tenant_id != tenant_id:
        logger.warning("User %s tried to review booking %s of tenant %s", tenant_id, booking.id, booking.tenant_id)
        raise InvariantError('Only the tenant of this booking can review it')
    property_id = (data or {}).get('propertyId')
    if property_id is not None and property_id != booking.property_id:
        raise InvariantError('Review property must match the booking property')
    if booking.status == BookingStatus.cancelled:
        raise InvariantError('Cancelled bookings cannot be reviewed')

    clean = validate_review(data)
    details = clean['ratingDetails']
    review = Review(
        property_id=booking.property_id,
        booking_id=booking.id,
        tenant_id=tenant_id,
        overall_rating=clean['overallRating'],
        title=clean.get('title'),
        comment=clean.get('comment'),
        verified=booking.status == BookingStatus.completed,
        helpful=0,
        unhelpful=0,
        photos=[ReviewPhoto(url=url) for url in clean.get('photos', [])],
        created_at=utcnow(),
    )
    for name in SUB_RATINGS:
        setattr(review, name, details[name])

    with transaction(db):
        db.add(review)
        db.flush()
        refresh_property_rating(db, booking.property_id)
        notify(db, booking.listing.owner_id, 'new_review', 'New review',
               f"{booking.listing.title} received a {review.overall_rating}-star review.",
               related=('review', review.id))

    logger.info("Review %s posted for property %s (verified=%s)", review.id, review.property_id, review.verified)
    return review


def respond_to_review(db, review_id, owner_id, comment):
    review = get_review(db, review_id)
    if review.listing.owner_id != owner_id:
        raise PermissionDenied('Only the property owner can respond to reviews')
    comment = (comment or '').strip()
    if not comment:
        raise ValidationError([('ownerResponse.comment', 'Response comment is required')])
    if len(comment) > 2000:
        raise ValidationError([('ownerResponse.comment', 'Response cannot exceed 2000 characters')])

    with transaction(db):
        review.owner_response = comment
        review.owner_responded_at = utcnow()
    return review


def vote_review(db, review_id, helpful):
    review = get_review(db, review_id)
    with transaction(db):
        if helpful:
            review.helpful = (review.helpful or 0) + 1
        else:
            review.unhelpful = (review.unhelpful or 0) + 1
    return review


def delete_review(db, review_id, user_id):
    review = get_review(db, review_id)
    user = db.get(User, user_id)
    if not user or (review.tenant_id != user.id and user.role != 'admin'):
        raise PermissionDenied('Only the author or an admin can delete a review')
    property_id = review.property_id
    with transaction(db):
        db.delete(review)
        db.flush()
        refresh_property_rating(db, property_id)
    return property_id


def list_property_reviews(db, property_id, limit=50, offset=0):
    return (
        db.query(Review)
        .filter(Review.property_id == property_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def review_json(review):
    return {
        'id': review.id,
        'propertyId': review.property_id,
        'bookingId': review.booking_id,
        'tenantId': review.tenant_id,
        'overallRating': review.overall_rating,
        'ratingDetails': {name: getattr(review, name) for name in SUB_RATINGS},
        'averageSubRating': review.average_sub_rating,
        'title': review.title,
        'comment': review.comment,
        'verified': review.verified,
        'helpful': review.helpful,
        'unhelpful': review.unhelpful,
        'photos': [{'url': p.url} for p in review.photos],
        'ownerResponse': {
            'comment': review.owner_response,
            'respondedAt': review.owner_responded_at.isoformat() if review.owner_responded_at else None,
        } if review.owner_response else None,
        'createdAt': review.created_at.isoformat() if review.created_at else None,
    }
