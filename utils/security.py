import hashlib
import hmac
import secrets
from datetime import timedelta

import bcrypt

from config import Config
from utils.clock import utcnow, as_utc


def hash_password(password):
    """ bcrypt hash (cost from BCRYPT_ROUNDS) as a str ready for the password_hash column. """
    hashed_pw = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=Config.BCRYPT_ROUNDS))
    return hashed_pw.decode('utf-8')


def check_password(password, password_hash):
    if not password or not password_hash:
        return False
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


def generate_otp(length=None):
    """ Numeric one-time code with no leading-zero loss, e.g. '423891'. """
    length = length or Config.OTP_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def otp_expiry(now=None):
    return (now or utcnow()) + timedelta(minutes=Config.OTP_TTL_MINUTES)


def otp_matches(stored_code, stored_expiry, candidate, now=None):
    if not stored_code or not candidate or stored_expiry is None:
        return False
    if as_utc(stored_expiry) <= (now or utcnow()):
        return False
    return hmac.compare_digest(str(stored_code), str(candidate))


def hash_reset_token(token):
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def generate_reset_token(now=None):
    """
    Returns (raw_token, token_hash, expires_at).
    Only the hash is stored; the raw token goes into the reset link.
    """
    token = secrets.token_hex(32)
    expires = (now or utcnow()) + timedelta(minutes=Config.PASSWORD_RESET_TTL_MINUTES)
    return token, hash_reset_token(token), expires
