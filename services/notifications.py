"""
Notifications are a write-ahead record of what should reach a user and on
which channels. Sending happens elsewhere; senders report back through
record_delivery. The in-app channel is delivered as soon as the row exists.
"""
import logging

from database import transaction
from errors import NotFoundError, PermissionDenied, ValidationError
from models import Booking, Message, Notification, Payment, Property, Review, User, NOTIFICATION_CHANNELS
from utils.clock import utcnow, parse_datetime
from utils.validation import validate_notification


logger = logging.getLogger(__name__)

# Tag -> table for the related-resource reference.
RESOURCE_MODELS = {
    'user': User,
    'property': Property,
    'booking': Booking,
    'payment': Payment,
    'review': Review,
    'message': Message,
}

CHANNEL_ALIASES = {'inApp': 'in_app'}


def _channel(name):
    channel = CHANNEL_ALIASES.get(name, name)
    if channel not in NOTIFICATION_CHANNELS:
        raise ValidationError([('channel', f'{name} is not a valid channel (email, sms, push, inApp)')])
    return channel


def get_notification(db, notification_id, user_id=None):
    notification = db.get(Notification, notification_id)
    if not notification:
        raise NotFoundError('Notification not found')
    if user_id is not None and notification.user_id != user_id:
        raise PermissionDenied('Notification does not belong to user')
    return notification


def resolve_related_resource(db, notification):
    """ Loads the row the notification points at, or None when it has no reference. """
    if not notification.resource_type:
        return None
    model = RESOURCE_MODELS.get(notification.resource_type)
    if model is None:
        raise ValidationError([('relatedResource.type', f'{notification.resource_type} is not a valid resource type')])
    return db.get(model, notification.resource_id)


def create_notification(db, user_id, data):
    if not db.get(User, user_id):
        raise NotFoundError('User not found')
    clean = validate_notification(data, RESOURCE_MODELS)

    related = clean.get('relatedResource') or {}
    if related and db.get(RESOURCE_MODELS[related['type']], related['id']) is None:
        raise NotFoundError(f"Related {related['type']} not found")

    now = utcnow()
    notification = Notification(
        user_id=user_id,
        type=clean['type'],
        title=clean['title'],
        message=clean['message'],
        priority=clean['priority'],
        resource_type=related.get('type'),
        resource_id=related.get('id'),
        email_sent=False,
        sms_sent=False,
        push_sent=False,
        in_app_sent=True,
        in_app_sent_at=now,
        read=False,
        created_at=now,
    )
    with transaction(db):
        db.add(notification)
        db.flush()
    return notification


def notify(db, user_id, kind, title, message, related=None, priority='medium'):
    """
    Emits a notification from a lifecycle step. Called inside the step's own
    transaction, so the notification commits or rolls back with it.
    `related` is a (type, id) pair.
    """
    data = {'type': kind, 'title': title, 'message': message, 'priority': priority}
    if related:
        data['relatedResource'] = {'type': related[0], 'id': related[1]}
    notification = create_notification(db, user_id, data)
    logger.info("Queued %s notification %s for user %s", kind, notification.id, user_id)
    return notification


def record_delivery(db, notification_id, channel, sent_at=None):
    """ Called back by a sender once a channel went out. Reporting twice keeps the first time. """
    channel = _channel(channel)
    if isinstance(sent_at, str):
        sent_at = parse_datetime(sent_at)
    notification = get_notification(db, notification_id)
    with transaction(db):
        if not getattr(notification, f'{channel}_sent'):
            setattr(notification, f'{channel}_sent', True)
            setattr(notification, f'{channel}_sent_at', sent_at or utcnow())
    logger.info("Notification %s delivered via %s", notification.id, channel)
    return notification


def pending_deliveries(db, channel, limit=100):
    """ Oldest notifications still waiting on a channel, for the sender to pick up. """
    channel = _channel(channel)
    column = getattr(Notification, f'{channel}_sent')
    return (
        db.query(Notification)
        .filter(column.is_(False))
        .order_by(Notification.created_at.asc(), Notification.id.asc())
        .limit(limit)
        .all()
    )


def mark_read(db, notification_id, user_id):
    notification = get_notification(db, notification_id, user_id)
    with transaction(db):
        notification.read = True
    return notification


def mark_all_read(db, user_id):
    with transaction(db):
        updated = (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session=False)
        )
    return updated


def list_notifications(db, user_id, unread_only=False, limit=50):
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.read.is_(False))
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def _delivery(sent, sent_at):
    return {'sent': sent, 'sentAt': sent_at.isoformat() if sent_at else None}


def notification_json(notification):
    return {
        'id': notification.id,
        'userId': notification.user_id,
        'type': notification.type,
        'title': notification.title,
        'message': notification.message,
        'summary': notification.summary,
        'relatedResource': {
            'type': notification.resource_type,
            'id': notification.resource_id,
        } if notification.resource_type else None,
        'channels': {
            'email': _delivery(notification.email_sent, notification.email_sent_at),
            'sms': _delivery(notification.sms_sent, notification.sms_sent_at),
            'push': _delivery(notification.push_sent, notification.push_sent_at),
            'inApp': _delivery(notification.in_app_sent, notification.in_app_sent_at),
        },
        'read': notification.read,
        'priority': notification.priority,
        'createdAt': notification.created_at.isoformat() if notification.created_at else None,
    }
