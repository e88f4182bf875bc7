import re
import uuid


SUFFIX_LENGTH = 6
_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def new_public_id():
    return uuid.uuid4().hex


def slugify(title):
    """ 'Spacious 2BHK in CP' -> 'spacious-2bhk-in-cp' """
    return _NON_ALNUM.sub('-', (title or '').lower()).strip('-')


def build_slug(title, public_id):
    """ Lowercased, hyphenated title plus the last six hex characters of the public id. """
    base = slugify(title) or 'property'
    return f"{base}-{public_id[-SUFFIX_LENGTH:]}"
