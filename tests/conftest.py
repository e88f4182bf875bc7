import os
import itertools

# Must be set before config.py is imported anywhere.
os.environ['SQLALCHEMY_DATABASE_URI'] = 'sqlite://'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-with-enough-length-for-hs256')

import pytest

import database
from models import Base
from services import bookings, properties, users


_phones = itertools.count(9000000001)


@pytest.fixture(autouse=True)
def schema():
    """ Fresh tables for every test. """
    Base.metadata.drop_all(bind=database.engine)
    Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture
def db():
    session = database.SessionLocal()
    yield session
    session.close()


@pytest.fixture
def app():
    from app import app as flask_app
    flask_app.config.update(TESTING=True, EXPOSE_OTP=True, EXPOSE_RESET_TOKEN=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


# ---------- TEST DATA HELPERS ----------

def user_dict(firstname='Asha', lastname='Rao', email=None, role='tenant', password='secret123'):
    phone = str(next(_phones))
    return {
        'firstname': firstname,
        'lastname': lastname,
        'email': email or f'user{phone}@example.com',
        'phone': phone,
        'password': password,
        'role': role,
    }


def property_dict(title='Sunny 2BHK near Park', **overrides):
    data = {
        'title': title,
        'description': 'A bright two bedroom flat close to the metro station.',
        'propertyType': '2BHK',
        'bedrooms': 2,
        'bathrooms': 2,
        'furnishingStatus': 'Semi Furnished',
        'totalArea': 900,
        'availableTo': '2030-12-31',
        'address': {
            'street': '12 MG Road',
            'locality': 'Indiranagar',
            'city': 'Bangalore',
            'state': 'Karnataka',
            'pincode': '560038',
        },
        'price': {'amount': 30000, 'period': 'month'},
        'coordinates': [77.64, 12.97],
        'amenities': ['WiFi', 'Parking'],
    }
    data.update(overrides)
    return data


def make_user(db, role='tenant', **kwargs):
    return users.register_user(db, user_dict(role=role, **kwargs))


def make_property(db, owner, **overrides):
    return properties.create_property(db, owner.id, property_dict(**overrides))


def make_booking(db, tenant, prop, check_in='2030-01-10', check_out='2030-01-13', **extra):
    data = {'checkInDate': check_in, 'checkOutDate': check_out}
    data.update(extra)
    return bookings.create_booking(db, tenant.id, prop.id, data)


@pytest.fixture
def owner(db):
    return make_user(db, role='owner', firstname='Ravi')


@pytest.fixture
def tenant(db):
    return make_user(db, role='tenant', firstname='Meera')


@pytest.fixture
def admin(db):
    return make_user(db, role='admin', firstname='Admin')


@pytest.fixture
def listing(db, owner):
    return make_property(db, owner)


@pytest.fixture
def booking(db, tenant, listing):
    return make_booking(db, tenant, listing)
