import logging

from config import Config
from database import transaction
from errors import AuthError, NotFoundError, ValidationError
from models import User
from utils.clock import utcnow, as_utc
from utils import security
from utils.validation import validate_user, validate_password


logger = logging.getLogger(__name__)

OTP_CHANNELS = ('email', 'phone')

_PROFILE_FIELDS = {
    'firstname': 'first_name',
    'lastname': 'last_name',
    'phone': 'phone',
}
_ADDRESS_FIELDS = ('street', 'city', 'state', 'pincode', 'country')


def get_user(db, user_id):
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError('User not found')
    return user


def prepare_user_password(user, password):
    """ Pre-save step: only the bcrypt hash of a new password reaches the row. """
    user.password_hash = security.hash_password(password)


def _apply_address(user, address):
    for field in _ADDRESS_FIELDS:
        if field in address:
            setattr(user, field, address[field])


def _apply_avatar(user, avatar):
    user.avatar_url = avatar.get('url') or Config.DEFAULT_AVATAR_URL
    user.avatar_public_id = avatar.get('publicId')


def refresh_profile_complete(user):
    """ A profile is complete once both channels are verified and the address is filled in. """
    user.is_profile_complete = bool(
        user.first_name and user.last_name
        and user.is_email_verified and user.is_phone_verified
        and user.street and user.city and user.state and user.pincode
    )
    return user.is_profile_complete


def register_user(db, data):
    """
    Creates an account. Duplicate email or phone is rejected by the unique
    constraints and comes back as ConflictError.
    """
    clean = validate_user(data)

    user = User(
        first_name=clean['firstname'],
        last_name=clean['lastname'],
        email=clean['email'],
        phone=clean['phone'],
        role=clean['role'],
        country=Config.DEFAULT_COUNTRY,
        avatar_url=Config.DEFAULT_AVATAR_URL,
    )
    prepare_user_password(user, clean['password'])
    if 'address' in clean:
        _apply_address(user, clean['address'])
    if clean.get('avatar'):
        _apply_avatar(user, clean['avatar'])

    with transaction(db):
        db.add(user)
        db.flush()

    logger.info("Registered user %s with role %s", user.id, user.role)
    return user


def authenticate(db, email, password):
    """ Returns the user for a matching email/password pair and stamps last_login. """
    if not email or not password:
        raise AuthError('Invalid credentials')

    user = db.query(User).filter_by(email=email.strip().lower()).first()
    if not user or not security.check_password(password, user.password_hash):
        raise AuthError('Invalid credentials')
    if not user.is_active:
        raise AuthError('Account is deactivated')

    with transaction(db):
        user.last_login = utcnow()
    return user


def issue_otp(db, user_id, channel):
    """
    Stores a fresh code for the channel and returns it so the caller can
    hand it to the email/SMS sender.
    """
    if channel not in OTP_CHANNELS:
        raise ValidationError([('channel', f'{channel} is not a valid OTP channel (email, phone)')])

    user = get_user(db, user_id)
    code = security.generate_otp()
    with transaction(db):
        setattr(user, f'{channel}_otp_code', code)
        setattr(user, f'{channel}_otp_expires_at', security.otp_expiry())

    logger.info("Issued %s OTP for user %s", channel, user.id)
    return code


def verify_otp(db, user_id, channel, code):
    """ A matching, unexpired code verifies the channel and is cleared right away. """
    if channel not in OTP_CHANNELS:
        raise ValidationError([('channel', f'{channel} is not a valid OTP channel (email, phone)')])

    user = get_user(db, user_id)
    stored = getattr(user, f'{channel}_otp_code')
    expires = getattr(user, f'{channel}_otp_expires_at')

    if stored and expires is not None and as_utc(expires) <= utcnow():
        raise AuthError('OTP expired, request a new one')
    if not security.otp_matches(stored, expires, code):
        raise AuthError('Invalid OTP')

    with transaction(db):
        setattr(user, f'{channel}_otp_code', None)
        setattr(user, f'{channel}_otp_expires_at', None)
        setattr(user, f'is_{channel}_verified', True)
        refresh_profile_complete(user)

    logger.info("Verified %s for user %s", channel, user.id)
    return user


def request_password_reset(db, email):
    """
    Returns the raw reset token for the mailer, or None when no active
    account has that email (callers should answer the same way either way).
    """
    user = db.query(User).filter_by(email=(email or '').strip().lower()).first()
    if not user or not user.is_active:
        return None

    token, token_hash, expires = security.generate_reset_token()
    with transaction(db):
        user.password_reset_token = token_hash
        user.password_reset_expires = expires
    return token


def reset_password(db, token, new_password):
    validate_password(new_password)
    if not token:
        raise AuthError('Invalid or expired reset token')

    user = db.query(User).filter_by(password_reset_token=security.hash_reset_token(token)).first()
    if not user or user.password_reset_expires is None:
        raise AuthError('Invalid or expired reset token')
    if as_utc(user.password_reset_expires) <= utcnow():
        raise AuthError('Token expired, request new reset')

    with transaction(db):
        prepare_user_password(user, new_password)
        user.password_reset_token = None
        user.password_reset_expires = None

    logger.info("Password reset for user %s", user.id)
    return user


def change_password(db, user_id, current_password, new_password):
    user = get_user(db, user_id)
    if not security.check_password(current_password, user.password_hash):
        raise AuthError('Current password is incorrect')
    validate_password(new_password)
    with transaction(db):
        prepare_user_password(user, new_password)
    return user


def update_profile(db, user_id, data):
    """
    Updates names, phone, address and avatar. A new phone number has to be
    verified again.
    """
    user = get_user(db, user_id)
    allowed = {k: v for k, v in (data or {}).items() if k in ('firstname', 'lastname', 'phone', 'address', 'avatar')}
    clean = validate_user(allowed, partial=True)

    with transaction(db):
        for field, column in _PROFILE_FIELDS.items():
            if field in clean:
                if field == 'phone' and clean['phone'] != user.phone:
                    user.is_phone_verified = False
                setattr(user, column, clean[field])
        if 'address' in clean:
            _apply_address(user, clean['address'])
        if 'avatar' in clean:
            _apply_avatar(user, clean['avatar'])
        refresh_profile_complete(user)
        db.flush()
    return user


def deactivate_user(db, user_id):
    """ Soft delete: the row stays so the account can be reactivated. """
    user = get_user(db, user_id)
    with transaction(db):
        user.is_active = False
    logger.info("Deactivated user %s", user.id)
    return user


def user_json(user):
    """ Public view of a user. Password hash, OTPs and reset tokens never leave this layer. """
    return {
        'id': user.id,
        'firstname': user.first_name,
        'lastname': user.last_name,
        'email': user.email,
        'phone': user.phone,
        'role': user.role,
        'avatar': {'url': user.avatar_url, 'publicId': user.avatar_public_id},
        'isEmailVerified': user.is_email_verified,
        'isPhoneVerified': user.is_phone_verified,
        'isProfileComplete': user.is_profile_complete,
        'address': {
            'street': user.street,
            'city': user.city,
            'state': user.state,
            'pincode': user.pincode,
            'country': user.country,
        },
        'isActive': user.is_active,
        'lastLogin': user.last_login.isoformat() if user.last_login else None,
        'createdAt': user.created_at.isoformat() if user.created_at else None,
    }
