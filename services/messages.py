import logging

from database import transaction
from errors import InvariantError, NotFoundError, PermissionDenied
from models import Booking, Message, MessageAttachment
from services.notifications import notify
from utils.clock import utcnow
from utils.validation import validate_message


logger = logging.getLogger(__name__)


def participants(booking):
    """ The two people allowed to talk about a booking: its tenant and the property owner. """
    return {booking.tenant_id, booking.listing.owner_id}


def _get_booking(db, booking_id):
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError('Booking not found')
    return booking


def send_message(db, booking_id, sender_id, recipient_id, data):
    """
    Every message belongs to one booking's thread, and sender and recipient
    must be that booking's tenant and owner (either way round).
    """
    booking = _get_booking(db, booking_id)
    if sender_id == recipient_id or {sender_id, recipient_id} != participants(booking):
        logger.warning("Rejected message on booking %s from %s to %s", booking.id, sender_id, recipient_id)
        raise InvariantError('Sender and recipient must be the tenant and the owner of this booking')

    clean = validate_message(data)
    message = Message(
        booking_id=booking.id,
        sender_id=sender_id,
        recipient_id=recipient_id,
        content=clean.get('content'),
        type=clean['type'],
        read=False,
        created_at=utcnow(),
        attachments=[
            MessageAttachment(type=a.get('type'), url=a['url'], size=a.get('size'))
            for a in clean['attachments']
        ],
    )
    with transaction(db):
        db.add(message)
        db.flush()
        notify(db, recipient_id, 'new_message', 'New message',
               message.content[:120] if message.content else 'You received an attachment.',
               related=('message', message.id), priority='low')
    return message


def list_conversation(db, booking_id, user_id, limit=100, offset=0):
    booking = _get_booking(db, booking_id)
    if user_id not in participants(booking):
        raise PermissionDenied('Not a participant of this conversation')
    return (
        db.query(Message)
        .filter(Message.booking_id == booking.id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def mark_read(db, message_id, user_id):
    message = db.get(Message, message_id)
    if not message:
        raise NotFoundError('Message not found')
    if message.recipient_id != user_id:
        raise PermissionDenied('Only the recipient can mark a message as read')
    if not message.read:
        with transaction(db):
            message.read = True
            message.read_at = utcnow()
    return message


def unread_count(db, user_id):
    return db.query(Message).filter(Message.recipient_id == user_id, Message.read.is_(False)).count()


def message_json(message):
    return {
        'id': message.id,
        'bookingId': message.booking_id,
        'sender': message.sender_id,
        'recipient': message.recipient_id,
        'content': message.content,
        'type': message.type,
        'attachments': [{'type': a.type, 'url': a.url, 'size': a.size} for a in message.attachments],
        'read': message.read,
        'formattedTime': message.formatted_time,
        'createdAt': message.created_at.isoformat() if message.created_at else None,
    }
