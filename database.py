import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker


from models import Base
from config import Config
from errors import ConflictError


logger = logging.getLogger(__name__)

engine = create_engine(Config.SQLALCHEMY_DATABASE_URI, echo=Config.SQLALCHEMY_ECHO)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Column names guarded by unique constraints, checked against the driver message.
_UNIQUE_FIELDS = (
    ('users.email', 'email', 'Email already registered'),
    ('users.phone', 'phone', 'Phone number already registered'),
    ('uq_users_email', 'email', 'Email already registered'),
    ('uq_users_phone', 'phone', 'Phone number already registered'),
    ('properties.slug', 'slug', 'Slug already in use'),
    ('uq_properties_slug', 'slug', 'Slug already in use'),
    ('properties.uid', 'slug', 'Slug already in use'),
    ('reviews.booking_id', 'bookingId', 'This booking has already been reviewed'),
    ('uq_reviews_booking', 'bookingId', 'This booking has already been reviewed'),
    ('analytics.property_id', 'date', 'Analytics bucket already exists'),
    ('saved_properties', 'propertyId', 'Property already saved'),
    ('uq_analytics_bucket', 'date', 'Analytics bucket already exists'),
)

# How SQLite, PostgreSQL and MySQL word a unique violation.
_UNIQUE_SIGNS = ('unique constraint', 'duplicate key', 'duplicate entry')


def init_db():
    """ It Creates the database. """
    Base.metadata.create_all(bind=engine)


@contextmanager
def get_db():
    """
    It creates a new session to work with the database and
    yields an object generator (session maker).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def conflict_from_integrity_error(exc):
    """
    Maps a unique-constraint IntegrityError onto a ConflictError naming the field.
    Returns None for every other integrity failure (NOT NULL, CHECK, foreign key).
    """
    text = str(getattr(exc, 'orig', exc))
    lowered = text.lower()
    if not any(sign in lowered for sign in _UNIQUE_SIGNS):
        return None
    for marker, field, message in _UNIQUE_FIELDS:
        if marker in text:
            return ConflictError(message, field=field)
    return ConflictError('Duplicate record not allowed')


@contextmanager
def transaction(db):
    """
    One unit of work: everything written inside the block commits together,
    or is rolled back together when anything raises.
    A block opened inside another one joins the outer unit instead of committing.
    Unique-constraint violations surface as ConflictError, other integrity
    errors propagate unchanged.
    """
    if db.info.get('unit_of_work'):
        yield db
        return

    db.info['unit_of_work'] = True
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        conflict = conflict_from_integrity_error(e)
        if conflict is None:
            logger.error("Write rejected by integrity constraint: %s", e.orig)
            raise
        logger.info("Write rejected by unique constraint: %s", conflict.field)
        raise conflict from e
    except Exception:
        db.rollback()
        raise
    finally:
        db.info.pop('unit_of_work', None)
