"""
Domain events logging helpers.

Provides structured event logging for booking operations.
"""
from typing import Dict, Optional

from apps.core.redaction import safe_log_payload
from .logging import get_sanitized_logger

logger = get_sanitized_logger(__name__)


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    entity_ids: Optional[Dict[str, str]] = None,
    result: str = 'success',
    **extra_fields
):
    """
    Log a domain event with structured data.

    Args:
        event_name: Name of the event (e.g., 'booking_created', 'booking_effect_failed')
        entity_type: Type of entity (e.g., 'Booking')
        entity_id: ID of primary entity
        entity_ids: Dictionary of related entity IDs
        result: Result of operation (success, failure, warning, skipped)
        **extra_fields: Additional fields to log (will be redacted)

    Example:
        log_domain_event(
            'booking_created',
            entity_type='Booking',
            entity_id=str(booking.id),
            entity_ids={'provider_id': str(booking.provider_id)},
            modality=booking.modality,
        )
    """
    event_data = {
        'event': event_name,
        'result': result,
    }

    if entity_type:
        event_data['entity_type'] = entity_type

    if entity_id:
        event_data['entity_id'] = entity_id

    if entity_ids:
        event_data.update(entity_ids)

    event_data.update(safe_log_payload(extra_fields))

    if result in ['failure', 'error']:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in ['warning', 'blocked', 'degraded']:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def log_booking_transition(booking, from_status, to_status, result='success', **extra):
    """Log booking status transition event."""
    log_domain_event(
        'booking_transition',
        entity_type='Booking',
        entity_id=str(booking.id),
        entity_ids={'provider_id': str(booking.provider_id)},
        result=result,
        from_status=from_status,
        to_status=to_status,
        **extra
    )
