import datetime

from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity

from config import Config
from errors import AuthError, PermissionDenied


def issue_token(user):
    return create_access_token(
        identity=str(user.id),
        additional_claims={"id": user.id, "role": user.role},
        expires_delta=datetime.timedelta(hours=Config.JWT_ACCESS_TOKEN_HOURS)
    )


def current_user_id():
    """
    Reads user_id from JWT:
    - the additional 'id' claim when present,
    - otherwise the identity (a string) converted to int.
    """
    claims = get_jwt()
    uid = claims.get("id")
    if uid is not None:
        return int(uid)
    ident = get_jwt_identity()
    try:
        return int(ident)
    except (TypeError, ValueError):
        raise AuthError('unauthorized')


def require_admin(message='Admin access required'):
    """ Gateway relays and delivery workers run on admin tokens. """
    if get_jwt().get("role") != 'admin':
        raise PermissionDenied(message)
