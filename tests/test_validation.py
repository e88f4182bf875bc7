import pytest

from conftest import property_dict, user_dict
from errors import ValidationError
from utils import validation


def _errors(func, *args, **kwargs):
    with pytest.raises(ValidationError) as exc:
        func(*args, **kwargs)
    return dict(exc.value.errors)


def test_user_messages_are_kept():
    errors = _errors(validation.validate_user, {
        'firstname': 'A', 'lastname': 'Rao1', 'email': 'nope', 'phone': '12345',
        'password': 'short', 'role': 'landlord', 'address': {'pincode': '12'},
    })
    assert errors == {
        'firstname': 'Name must be atleast 2 charaters',
        'lastname': 'Name can only contain letters and spaces',
        'email': 'Please provide a valid email address',
        'phone': 'Please provide a valid 10 digit phone number',
        'password': 'Password must be at least 8 characters',
        'role': 'landlord is not a valid role. Choose: owner, tenant, or admin',
        'address.pincode': 'Pincode must be 6 digits',
    }


def test_user_is_cleaned_and_defaulted():
    data = user_dict(email='Asha.Rao@Example.COM')
    del data['role']
    data['firstname'] = '  Asha  '
    clean = validation.validate_user(data)

    assert clean['email'] == 'asha.rao@example.com'
    assert clean['firstname'] == 'Asha'
    assert clean['role'] == 'tenant'
    assert 'address' not in clean


def test_blank_required_field_reads_as_missing():
    errors = _errors(validation.validate_user, dict(user_dict(), firstname='   '))
    assert errors == {'firstname': 'Firstname is required'}


def test_profile_update_only_returns_sent_keys():
    assert validation.validate_user({'lastname': 'Iyer'}, partial=True) == {'lastname': 'Iyer'}
    errors = _errors(validation.validate_user, {'phone': None}, partial=True)
    assert errors == {'phone': 'Phone is required'}


def test_password_field_name_follows_caller():
    errors = _errors(validation.validate_password, 'short', field='newPassword')
    assert errors == {'newPassword': 'Password must be at least 8 characters'}
    assert validation.validate_password('long-enough') == 'long-enough'


def test_property_numbers_reject_text_and_booleans():
    errors = _errors(validation.validate_property, property_dict(bathrooms='2', totalArea=True, balconies=1.5))
    assert errors == {
        'bathrooms': 'bathrooms must be a number',
        'totalArea': 'totalArea must be a number',
        'balconies': 'balconies must be a whole number',
    }


def test_property_create_fills_defaults():
    clean = validation.validate_property(property_dict(amenities=['WiFi', 'WiFi'], price={'amount': 100, 'currency': 'inr'}))
    assert clean['amenities'] == ['WiFi']
    assert clean['price'] == {'amount': 100, 'currency': 'INR', 'period': 'month'}
    assert (clean['status'], clean['areaUnit'], clean['balconies']) == ('Available', 'sqft', 0)
    assert clean['coordinates'] == [77.64, 12.97]
    assert 'pgDetails' not in clean


def test_property_update_is_partial():
    clean = validation.validate_property({'price': {'amount': 25000}, 'floor': None}, partial=True,
                                         current_type='2BHK', current_bedrooms=2)
    assert clean == {'price': {'amount': 25000}, 'floor': None}

    errors = _errors(validation.validate_property, {'title': None}, partial=True)
    assert errors == {'title': 'Property title is required'}


def test_switching_type_needs_bedrooms_when_none_stored():
    errors = _errors(validation.validate_property, {'propertyType': '1BHK'}, partial=True,
                     current_type='Shared Room', current_bedrooms=None)
    assert errors == {'bedrooms': 'Number of bedrooms is required'}

    clean = validation.validate_property({'propertyType': '1BHK'}, partial=True,
                                         current_type='Shared Room', current_bedrooms=1)
    assert clean == {'propertyType': '1BHK'}


def test_booking_counts_nights():
    clean = validation.validate_booking({'checkInDate': '2030-01-10', 'checkOutDate': '2030-01-13'})
    assert clean['numberOfNights'] == 3
    assert clean['platformFee'] == 0

    errors = _errors(validation.validate_booking, {
        'checkInDate': '2030-01-10', 'checkOutDate': '2030-01-13', 'numberOfNights': 4,
    })
    assert errors == {'numberOfNights': 'Number of nights must equal the stay length (3)'}


def test_booking_dates_must_parse():
    errors = _errors(validation.validate_booking, {'checkInDate': 'next tuesday'})
    assert errors == {
        'checkInDate': 'checkInDate must be a date (YYYY-MM-DD) or an ISO timestamp',
        'checkOutDate': 'Check-out date is required',
    }


def test_review_photos_become_urls():
    clean = validation.validate_review({'overallRating': 5, 'photos': [{'url': 'https://cdn.example.com/p.jpg'}]})
    assert clean['photos'] == ['https://cdn.example.com/p.jpg']
    assert clean['ratingDetails'] == {'cleanliness': 0, 'communication': 0, 'amenities': 0, 'value': 0}

    errors = _errors(validation.validate_review, {'overallRating': 0, 'ratingDetails': {'value': 9}})
    assert errors == {
        'overallRating': 'Minimum rating is 1',
        'ratingDetails.value': 'value rating must be between 1 and 5',
    }


def test_unknown_resource_type_named_in_message():
    errors = _errors(validation.validate_notification, {
        'type': 'x', 'title': 'y', 'message': 'z', 'relatedResource': {'type': 'invoice', 'id': 1},
    }, {'booking': object})
    assert errors == {'relatedResource.type': 'invoice is not a valid resource type'}


def test_message_needs_a_body():
    errors = _errors(validation.validate_message, {'content': ''})
    assert errors == {'content': 'Message must have content or at least one attachment'}


def test_analytics_counts_non_negative():
    errors = _errors(validation.validate_analytics_counts, {'views': -1, 'revenue': -2})
    assert errors == {'views': 'views cannot be negative', 'revenue': 'revenue cannot be negative'}
