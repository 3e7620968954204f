"""
Booking orchestration service.

Owns the booking lifecycle: availability reconciliation against the
scheduling source, booking persistence, and the post-commit side effects
(external sync, patient notification, audit). Side effects are
best-effort: once the booking row is written, the caller always gets it
back, whatever the adapters do.
"""
import asyncio
import logging
import re
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List, Optional

from django.db.models import Count

from apps.clinical.models import (
    AppointmentType,
    Booking,
    BookingStatusChoices,
    ModalityChoices,
    NotificationChannelChoices,
    Patient,
    Provider,
)
from apps.core.config import get_integration_config
from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.observability.events import log_booking_transition, log_domain_event
from apps.core.observability.metrics import metrics
from apps.integrations.factory import build_adapters
from apps.integrations.notifications import (
    BOOKING_CANCELLATION,
    BOOKING_CONFIRMATION,
    SUBJECTS,
    NotificationAdapter,
    render_message,
)
from apps.integrations.scheduling import SchedulingAdapter, Slot, parse_date
from apps.ops.audit import AuditService
from apps.ops.models import AuditActionChoices

logger = logging.getLogger(__name__)

TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


@dataclass
class PostCommitEffect:
    """A side effect that runs after the booking row is committed."""
    name: str
    run: Callable[[], Awaitable[Any]]


class NotificationDispatcher:
    """
    Routes a booking notification to the patient's preferred channel.

    - email: always attempted
    - sms: only when the patient can receive SMS and has a number
    - voice: only when the patient has a number
    Skipped channels are counted, not raised.
    """

    def __init__(self, adapter: NotificationAdapter):
        self.adapter = adapter

    async def dispatch(self, patient: Patient, template: str, data: Dict[str, Any]) -> str:
        """Send one notification; returns 'sent' or 'skipped'. Adapter errors propagate."""
        channel = patient.notification_channel

        if channel == NotificationChannelChoices.SMS:
            if not (patient.can_receive_sms and patient.sms_number):
                return self._skipped(channel)
            await self._send(channel, self.adapter.send_sms(
                patient.sms_number, render_message(template, 'sms', data)
            ))
        elif channel == NotificationChannelChoices.VOICE:
            if not patient.sms_number:
                return self._skipped(channel)
            await self._send(channel, self.adapter.send_voice(
                patient.sms_number, render_message(template, 'voice', data)
            ))
        else:
            await self._send('email', self.adapter.send_email(
                patient.email, SUBJECTS[template], template, data
            ))
        return 'sent'

    async def _send(self, channel, call):
        try:
            await call
        except Exception:
            metrics.notifications_sent_total.labels(channel=channel, result='failed').inc()
            raise
        metrics.notifications_sent_total.labels(channel=channel, result='sent').inc()

    def _skipped(self, channel):
        metrics.notifications_sent_total.labels(channel=channel, result='skipped').inc()
        return 'skipped'


class BookingService:
    """
    Booking lifecycle over injected collaborators.

    Args:
        scheduling: SchedulingAdapter for the external system of record
        notifications: NotificationAdapter used for patient messages
        audit: AuditService (default: a fresh one)
        adapter_timeout: seconds allowed per side effect / adapter call, None for no limit
    """

    def __init__(
        self,
        scheduling: SchedulingAdapter,
        notifications: NotificationAdapter,
        audit: Optional[AuditService] = None,
        adapter_timeout: Optional[float] = None,
    ):
        self.scheduling = scheduling
        self.notifier = NotificationDispatcher(notifications)
        self.audit = audit or AuditService()
        self.adapter_timeout = adapter_timeout

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    async def get_availability(self, provider_id, date) -> List[Slot]:
        """
        Scheduling-source slots minus times already held by pending or
        confirmed bookings for this provider and date.

        Booked times are compared as exact "HH:MM" strings. A scheduling
        failure degrades to an empty list.
        """
        day = parse_date(date)
        provider_pk = _as_uuid(provider_id, 'Provider')
        if not await Provider.objects.filter(pk=provider_pk).aexists():
            raise NotFoundError('Provider', provider_id)

        try:
            slots = await self._bounded(
                self.scheduling.get_provider_availability(str(provider_pk), day)
            )
        except Exception as exc:
            metrics.availability_requests_total.labels(result='degraded').inc()
            logger.warning(
                'Scheduling source unavailable; returning no slots',
                extra={
                    'event': 'availability_degraded',
                    'provider_id': str(provider_pk),
                    'adapter': getattr(self.scheduling, 'name', 'scheduling'),
                    'error_type': exc.__class__.__name__,
                },
            )
            return []

        booked_times = {
            booked_time
            async for booked_time in Booking.objects.filter(
                provider_id=provider_pk,
                date=day,
                status__in=Booking.ACTIVE_STATUSES,
            ).values_list('time', flat=True)
        }

        metrics.availability_requests_total.labels(result='ok').inc()
        return [slot for slot in slots if slot.time not in booked_times]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_booking(
        self,
        *,
        provider_id,
        patient_id,
        appointment_type_id,
        date,
        time: str,
        modality: str = ModalityChoices.IN_PERSON,
        reason: Optional[str] = None,
        acting_user=None,
        request=None,
    ) -> Booking:
        """
        Persist a pending booking, then sync, notify and audit.

        Raises:
            ValidationError: malformed time, date or modality
            NotFoundError: provider, patient or appointment type missing
        """
        errors = {}
        if not isinstance(time, str) or not TIME_RE.match(time):
            errors['time'] = ['Expected HH:MM (24h)']
        if modality not in ModalityChoices.values:
            errors['modality'] = [f'Must be one of {", ".join(ModalityChoices.values)}']
        if errors:
            raise ValidationError('Invalid booking request', field_errors=errors)
        day = parse_date(date)

        provider = await Provider.objects.filter(pk=_as_uuid(provider_id, 'Provider')).afirst()
        if provider is None:
            raise NotFoundError('Provider', provider_id)
        patient = await Patient.objects.filter(pk=_as_uuid(patient_id, 'Patient')).afirst()
        if patient is None:
            raise NotFoundError('Patient', patient_id)
        appointment_type = await AppointmentType.objects.filter(
            pk=_as_uuid(appointment_type_id, 'AppointmentType')
        ).afirst()
        if appointment_type is None:
            raise NotFoundError('AppointmentType', appointment_type_id)

        booking = await Booking.objects.acreate(
            provider=provider,
            patient=patient,
            appointment_type=appointment_type,
            date=day,
            time=time,
            modality=modality,
            reason=reason or None,
            status=BookingStatusChoices.PENDING,
        )

        metrics.bookings_created_total.labels(modality=modality).inc()
        log_domain_event(
            'booking_created',
            entity_type='Booking',
            entity_id=str(booking.id),
            entity_ids={'provider_id': str(provider.id)},
            modality=modality,
        )

        await self._run_effects(booking, [
            PostCommitEffect('sync', lambda: self._sync_new_booking(booking)),
            PostCommitEffect('notify', lambda: self.notifier.dispatch(
                patient, BOOKING_CONFIRMATION, notification_data(booking)
            )),
            PostCommitEffect('audit', lambda: self.audit.log(
                action=AuditActionChoices.CREATE_BOOKING,
                resource='booking',
                resource_id=str(booking.id),
                user=acting_user,
                payload={
                    'provider_id': str(provider.id),
                    'date': day.isoformat(),
                    'time': time,
                },
                request=request,
            )),
        ])

        return booking

    async def cancel_booking(self, booking_id, reason: Optional[str] = None, acting_user=None, request=None) -> Booking:
        """
        Cancel a booking. Cancelling an already-cancelled booking changes
        nothing and calls no adapters, but is still audited.
        """
        booking = await self.get_booking(booking_id)

        if booking.status == BookingStatusChoices.CANCELLED:
            await self._run_effects(booking, [
                PostCommitEffect('audit', lambda: self.audit.log(
                    action=AuditActionChoices.CANCEL_BOOKING,
                    resource='booking',
                    resource_id=str(booking.id),
                    user=acting_user,
                    payload={
                        'cancellation_reason': booking.cancellation_reason,
                        'already_cancelled': True,
                    },
                    request=request,
                )),
            ])
            return booking

        old_status = booking.transition_to(BookingStatusChoices.CANCELLED, reason=reason or None)
        await booking.asave(update_fields=['status', 'cancellation_reason', 'updated_at'])
        self._record_transition(booking, old_status)

        await self._run_effects(booking, [
            PostCommitEffect('sync', lambda: self._cancel_external(booking)),
            PostCommitEffect('notify', lambda: self.notifier.dispatch(
                booking.patient, BOOKING_CANCELLATION, notification_data(booking)
            )),
            PostCommitEffect('audit', lambda: self.audit.log(
                action=AuditActionChoices.CANCEL_BOOKING,
                resource='booking',
                resource_id=str(booking.id),
                user=acting_user,
                payload={'cancellation_reason': booking.cancellation_reason},
                request=request,
            )),
        ])

        return booking

    async def confirm_booking(self, booking_id, acting_user=None, request=None) -> Booking:
        """
        pending -> confirmed (staff approval).

        Raises:
            BookingTransitionError: booking is not pending
        """
        booking = await self.get_booking(booking_id)
        old_status = booking.transition_to(BookingStatusChoices.CONFIRMED)
        await booking.asave(update_fields=['status', 'updated_at'])
        self._record_transition(booking, old_status)

        await self._run_effects(booking, [
            PostCommitEffect('sync', lambda: self._update_external(booking, {'status': booking.status})),
            PostCommitEffect('audit', lambda: self.audit.log(
                action=AuditActionChoices.APPROVE_BOOKING,
                resource='booking',
                resource_id=str(booking.id),
                user=acting_user,
                payload={'from_status': old_status, 'to_status': booking.status},
                request=request,
            )),
        ])

        return booking

    async def reconcile_booking(self, booking_id) -> Booking:
        """
        Pull the external status for one booking and apply it when it is a
        legal transition (e.g. the EMR cancelled the appointment).
        """
        booking = await self.get_booking(booking_id)
        record = await self._bounded(self.scheduling.sync_appointment_status(booking.id))

        if record.status != booking.status and booking.can_transition_to(record.status):
            old_status = booking.transition_to(record.status, reason='Updated by scheduling source')
            await booking.asave(update_fields=['status', 'cancellation_reason', 'updated_at'])
            self._record_transition(booking, old_status, source='reconcile')

        return booking

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    async def booking_stats(self, start_date=None, end_date=None) -> Dict[str, Any]:
        """Counts by status, provider display name and modality."""
        queryset = Booking.objects.all()
        if start_date:
            queryset = queryset.filter(date__gte=parse_date(start_date))
        if end_date:
            queryset = queryset.filter(date__lte=parse_date(end_date))

        async def grouped(field):
            return {
                row[field]: row['count']
                async for row in queryset.order_by().values(field).annotate(count=Count('id'))
            }

        return {
            'total': await queryset.acount(),
            'by_status': await grouped('status'),
            'by_provider': await grouped('provider__display_name'),
            'by_modality': await grouped('modality'),
        }

    async def get_booking(self, booking_id) -> Booking:
        booking = await Booking.objects.select_related(
            'provider', 'patient', 'appointment_type'
        ).filter(pk=_as_uuid(booking_id, 'Booking')).afirst()
        if booking is None:
            raise NotFoundError('Booking', booking_id)
        return booking

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _bounded(self, awaitable):
        if self.adapter_timeout:
            return await asyncio.wait_for(awaitable, timeout=self.adapter_timeout)
        return await awaitable

    async def _run_effects(self, booking: Booking, effects: List[PostCommitEffect]) -> None:
        """Run each effect in order; a failure is logged and counted, never raised."""
        for effect in effects:
            try:
                await self._bounded(effect.run())
            except Exception as exc:
                metrics.booking_effect_failures_total.labels(effect=effect.name).inc()
                log_domain_event(
                    'booking_effect_failed',
                    entity_type='Booking',
                    entity_id=str(booking.id),
                    result='warning',
                    effect=effect.name,
                    error_type=exc.__class__.__name__,
                )

    async def _sync_new_booking(self, booking: Booking) -> None:
        external_id = await self.scheduling.create_appointment(booking)
        booking.external_id = external_id
        await Booking.objects.filter(pk=booking.pk).aupdate(external_id=external_id)

    async def _cancel_external(self, booking: Booking) -> None:
        if not booking.external_id:
            logger.info(
                'Booking was never synced; skipping external cancel',
                extra={'event': 'external_cancel_skipped', 'booking_id': str(booking.id)},
            )
            return
        await self.scheduling.cancel_appointment(booking.external_id)

    async def _update_external(self, booking: Booking, changes: Dict[str, Any]) -> None:
        if not booking.external_id:
            logger.info(
                'Booking was never synced; skipping external update',
                extra={'event': 'external_update_skipped', 'booking_id': str(booking.id)},
            )
            return
        await self.scheduling.update_appointment(booking.external_id, changes)

    def _record_transition(self, booking, old_status, source='api'):
        metrics.booking_transitions_total.labels(
            from_status=old_status, to_status=booking.status, result='success'
        ).inc()
        log_booking_transition(booking, old_status, booking.status, source=source)


def notification_data(booking: Booking) -> Dict[str, str]:
    """Minimal template context; never includes the booking reason."""
    return {
        'patient_name': booking.patient.first_name,
        'provider_name': booking.provider.display_name,
        'date': booking.date.isoformat() if hasattr(booking.date, 'isoformat') else str(booking.date),
        'time': booking.time,
        'booking_id': str(booking.id),
    }


def _as_uuid(value, resource):
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError(resource, value)


@lru_cache(maxsize=1)
def get_booking_service() -> BookingService:
    """Process-wide service built from CLINIC_INTEGRATIONS."""
    config = get_integration_config()
    scheduling, notifications = build_adapters(config)
    return BookingService(
        scheduling=scheduling,
        notifications=notifications,
        adapter_timeout=config.adapter_timeout_seconds,
    )
