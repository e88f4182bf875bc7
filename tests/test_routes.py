import re

from conftest import property_dict, user_dict
from database import get_db
from services import users


def _register(client, role='tenant', **kwargs):
    data = user_dict(role=role, **kwargs)
    r = client.post('/register', json=data)
    assert r.status_code == 201
    return data


def _login(client, data):
    r = client.post('/login', json={'email': data['email'], 'password': data['password']})
    assert r.status_code == 200
    return {'Authorization': f"Bearer {r.get_json()['access_token']}"}


def _account(client, role='tenant', **kwargs):
    return _login(client, _register(client, role=role, **kwargs))


def _admin(client):
    """ Admins are provisioned directly, then log in like anyone else. """
    data = user_dict(role='admin', firstname='Gateway')
    with get_db() as db:
        users.register_user(db, data)
    return _login(client, data)


def test_health(client):
    r = client.get('/')
    assert r.status_code == 200


def test_register_conflict_returns_409(client):
    _register(client, email='same@example.com')
    again = user_dict(email='SAME@example.com')
    r = client.post('/register', json=again)

    assert r.status_code == 409
    assert r.get_json()['fields'] == [{'field': 'email', 'message': 'Email already registered'}]


def test_validation_errors_list_fields(client):
    r = client.post('/register', json={'email': 'bad'})
    assert r.status_code == 400
    fields = {f['field'] for f in r.get_json()['fields']}
    assert {'firstname', 'lastname', 'email', 'phone', 'password'} <= fields


def test_login_wrong_password(client):
    data = _register(client)
    r = client.post('/login', json={'email': data['email'], 'password': 'nope-nope'})
    assert r.status_code == 401


def test_profile_requires_token(client):
    assert client.get('/profile').status_code == 401


def test_profile_roundtrip(client):
    headers = _account(client, firstname='Meera')
    r = client.get('/profile', headers=headers)
    assert r.status_code == 200
    assert r.get_json()['firstname'] == 'Meera'

    r = client.put('/profile', json={'lastname': 'Iyer'}, headers=headers)
    assert r.status_code == 200


def test_otp_over_http(client):
    headers = _account(client)
    code = client.post('/otp/request', json={'channel': 'email'}, headers=headers).get_json()['code']

    r = client.post('/otp/verify', json={'channel': 'email', 'code': code}, headers=headers)
    assert r.status_code == 200
    assert r.get_json()['user']['isEmailVerified'] is True


def test_booking_scenario(client):
    owner = _account(client, role='owner', firstname='Ravi')
    tenant = _account(client, firstname='Meera')

    r = client.post('/properties', json=property_dict(), headers=owner)
    assert r.status_code == 201
    prop = r.get_json()['property']
    assert re.match(r'^sunny-2bhk-near-park-[0-9a-f]{6}$', prop['slug'])

    r = client.get(f"/properties/{prop['slug']}")
    assert r.status_code == 200
    assert r.get_json()['views'] == 1

    r = client.post('/bookings', json={
        'propertyId': prop['id'], 'checkInDate': '2030-01-10', 'checkOutDate': '2030-01-13',
    }, headers=tenant)
    assert r.status_code == 201
    booking = r.get_json()
    assert booking['status'] == 'pending'
    assert booking['totalAmount'] == 3000

    r = client.post('/payments', json={
        'bookingId': booking['id'], 'razorpayOrderId': 'order_1', 'method': 'upi',
    }, headers=tenant)
    assert r.status_code == 201
    payment = r.get_json()

    r = client.post(f"/payments/{payment['id']}/capture", json={'razorpayPaymentId': 'pay_1'}, headers=_admin(client))
    assert r.status_code == 200
    assert r.get_json()['status'] == 'completed'

    r = client.get(f"/bookings/{booking['id']}", headers=owner)
    assert r.get_json()['status'] == 'confirmed'
    assert r.get_json()['paymentStatus'] == 'paid'

    r = client.post(f"/bookings/{booking['id']}/check-in", headers=tenant)
    assert r.status_code == 403
    assert client.post(f"/bookings/{booking['id']}/check-in", headers=owner).status_code == 200
    assert client.post(f"/bookings/{booking['id']}/complete", headers=owner).status_code == 200

    r = client.post('/reviews', json={'bookingId': booking['id'], 'overallRating': 5}, headers=tenant)
    assert r.status_code == 201
    assert r.get_json()['verified'] is True

    r = client.post('/reviews', json={'bookingId': booking['id'], 'overallRating': 3}, headers=tenant)
    assert r.status_code == 409

    r = client.get(f"/properties/{prop['id']}/reviews")
    assert [rv['overallRating'] for rv in r.get_json()] == [5]

    r = client.post(f"/bookings/{booking['id']}/messages", json={
        'recipient': prop['owner'], 'content': 'Thanks for hosting!',
    }, headers=tenant)
    assert r.status_code == 201
    r = client.get(f"/bookings/{booking['id']}/messages", headers=owner)
    assert [m['content'] for m in r.get_json()] == ['Thanks for hosting!']

    r = client.get(f"/analytics/properties/{prop['id']}?period=monthly", headers=owner)
    assert r.status_code == 200
    assert client.get(f"/analytics/properties/{prop['id']}", headers=tenant).status_code == 403


def test_illegal_transition_is_409(client):
    owner = _account(client, role='owner')
    tenant = _account(client)
    prop = client.post('/properties', json=property_dict(), headers=owner).get_json()['property']
    booking = client.post('/bookings', json={
        'propertyId': prop['id'], 'checkInDate': '2030-01-10', 'checkOutDate': '2030-01-13',
    }, headers=tenant).get_json()

    r = client.post(f"/bookings/{booking['id']}/complete", headers=owner)
    assert r.status_code == 409


def test_nearby(client):
    owner = _account(client, role='owner')
    client.post('/properties', json=property_dict(), headers=owner)

    r = client.get('/properties/nearby?lng=77.64&lat=12.97&radius_km=2')
    assert r.status_code == 200
    assert len(r.get_json()) == 1
    assert r.get_json()[0]['distanceKm'] == 0

    assert client.get('/properties/nearby?lng=77.64').status_code == 400


def test_notifications_listing(client):
    headers = _account(client)
    r = client.get('/notifications', headers=headers)
    assert r.status_code == 200
    assert r.get_json() == []
    assert client.post('/notifications/read-all', headers=headers).get_json() == {'updated': 0}


def _booking_with_open_payment(client):
    owner = _account(client, role='owner')
    tenant = _account(client)
    prop = client.post('/properties', json=property_dict(), headers=owner).get_json()['property']
    booking = client.post('/bookings', json={
        'propertyId': prop['id'], 'checkInDate': '2030-01-10', 'checkOutDate': '2030-01-13',
    }, headers=tenant).get_json()
    payment = client.post('/payments', json={
        'bookingId': booking['id'], 'razorpayOrderId': 'order_1', 'method': 'upi',
    }, headers=tenant).get_json()
    return owner, tenant, prop, booking, payment


def test_admin_accounts_cannot_self_register(client):
    r = client.post('/register', json=user_dict(role='admin'))
    assert r.status_code == 403


def test_gateway_callbacks_require_admin(client):
    owner, tenant, _, booking, payment = _booking_with_open_payment(client)
    url = f"/payments/{payment['id']}"

    for headers in (tenant, owner):
        r = client.post(f'{url}/capture', json={'razorpayPaymentId': 'pay_1'}, headers=headers)
        assert r.status_code == 403
    assert client.get(f"/bookings/{booking['id']}", headers=tenant).get_json()['paymentStatus'] == 'unpaid'

    admin = _admin(client)
    assert client.post(f'{url}/capture', json={'razorpayPaymentId': 'pay_1'}, headers=admin).status_code == 200
    assert client.post(f'{url}/refund', json={'amount': 500}, headers=tenant).status_code == 200

    for path in ('refund/complete', 'refund/fail'):
        r = client.post(f'{url}/{path}', json={'refundId': 'rfnd_1'}, headers=tenant)
        assert r.status_code == 403

    r = client.post(f'{url}/refund/complete', json={'refundId': 'rfnd_1'}, headers=admin)
    assert r.status_code == 200
    assert r.get_json()['status'] == 'refunded'


def test_overlapping_capture_is_409(client):
    _, _, prop, booking, payment = _booking_with_open_payment(client)
    rival = _account(client, firstname='Kiran')
    clash = client.post('/bookings', json={
        'propertyId': prop['id'], 'checkInDate': '2030-01-11', 'checkOutDate': '2030-01-14',
    }, headers=rival).get_json()
    clash_payment = client.post('/payments', json={
        'bookingId': clash['id'], 'razorpayOrderId': 'order_2', 'method': 'card',
    }, headers=rival).get_json()

    admin = _admin(client)
    r = client.post(f"/payments/{payment['id']}/capture", json={'razorpayPaymentId': 'pay_1'}, headers=admin)
    assert r.status_code == 200
    r = client.post(f"/payments/{clash_payment['id']}/capture", json={'razorpayPaymentId': 'pay_2'}, headers=admin)
    assert r.status_code == 409

    r = client.get(f"/bookings/{clash['id']}", headers=rival)
    assert (r.get_json()['status'], r.get_json()['paymentStatus']) == ('pending', 'unpaid')


def test_pending_deliveries_for_workers(client):
    _, tenant, _, _, payment = _booking_with_open_payment(client)
    admin = _admin(client)
    client.post(f"/payments/{payment['id']}/capture", json={'razorpayPaymentId': 'pay_1'}, headers=admin)

    assert client.get('/notifications/pending?channel=sms', headers=tenant).status_code == 403
    assert client.get('/notifications/pending?channel=fax', headers=admin).status_code == 400

    r = client.get('/notifications/pending?channel=sms', headers=admin)
    assert r.status_code == 200
    pending = r.get_json()
    assert {n['type'] for n in pending} == {'payment_received', 'booking_confirmed'}

    sent = pending[0]['id']
    client.post(f'/notifications/{sent}/delivery', json={'channel': 'sms'}, headers=admin)
    r = client.get('/notifications/pending?channel=sms', headers=admin)
    assert sent not in [n['id'] for n in r.get_json()]

    mine = client.get('/notifications', headers=tenant).get_json()
    assert sorted(n['type'] for n in mine) == ['booking_confirmed', 'payment_received']
