"""Request helpers and the business event log"""
import logging
import uuid

from .models import EventLog

logger = logging.getLogger(__name__)

CORRELATION_HEADER = 'HTTP_X_CORRELATION_ID'


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def get_correlation_id(request=None):
    """
    Return the correlation id for a request.

    Uses the X-Correlation-ID header when the caller sent one, otherwise
    generates a uuid4 and remembers it on the request so every log line and
    error body of the same request carries the same value.
    """
    if request is None:
        return str(uuid.uuid4())
    # DRF Request wraps the Django HttpRequest
    raw = getattr(request, '_request', request)
    existing = getattr(raw, 'correlation_id', None)
    if existing:
        return existing
    correlation_id = raw.META.get(CORRELATION_HEADER) if hasattr(raw, 'META') else None
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
    try:
        raw.correlation_id = correlation_id
    except AttributeError:
        pass
    return correlation_id


def log_event(entity, entity_id, action, details=None, request=None, user=None, correlation_id=None):
    """
    Record a business event

    Args:
        entity: Kind of object (order, task, client, payment, ...)
        entity_id: Primary key of the object
        action: What happened (status_changed, intake_created, ...)
        details: Dictionary with event specific data
        request: Request the event belongs to (actor, IP, correlation id)
        user: Optional actor override
        correlation_id: Optional correlation id override

    Never raises: a failed event write must not fail the operation it describes.
    """
    try:
        actor = user
        if actor is None and request is not None and hasattr(request, 'user'):
            actor = request.user
        if actor is not None and not actor.is_authenticated:
            actor = None

        if not entity or entity_id is None or not action:
            logger.warning(f"Event log skipped: missing required fields (entity={entity}, entity_id={entity_id}, action={action})")
            return None

        if correlation_id is None and request is not None:
            correlation_id = get_correlation_id(request)

        return EventLog.objects.create(
            entity=entity,
            entity_id=str(entity_id),
            action=action,
            details=details or {},
            actor=actor,
            correlation_id=correlation_id,
            ip_address=get_client_ip(request) if request is not None else None,
        )
    except Exception as e:
        logger.error(f"Failed to log event {entity}:{entity_id} {action}: {str(e)}")
        return None
