"""
HL7 FHIR R4 scheduling adapter.

Maps the scheduling contract onto FHIR REST resources:

    get_provider_availability -> GET  Slot?schedule.actor=Practitioner/<id>&start=ge..&start=lt..&status=free
    create_appointment        -> POST Appointment
    update_appointment        -> PATCH Appointment/<id>   (JSON Patch)
    cancel_appointment        -> PATCH Appointment/<id>   status=cancelled
    sync_appointment_status   -> GET  Appointment?identifier=<booking id>
"""
import logging
from datetime import datetime, timedelta

import httpx

from apps.core.exceptions import IntegrationError, NotFoundError
from apps.core.observability.metrics import metrics
from .scheduling import AppointmentRecord, SchedulingAdapter, Slot, parse_date

logger = logging.getLogger(__name__)

FHIR_JSON = 'application/fhir+json'
BOOKING_IDENTIFIER_SYSTEM = 'urn:clinic-booking:booking-id'

# FHIR Appointment.status <-> booking status
_STATUS_TO_FHIR = {
    'pending': 'proposed',
    'confirmed': 'booked',
    'cancelled': 'cancelled',
}
_STATUS_FROM_FHIR = {
    'proposed': 'pending',
    'pending': 'pending',
    'booked': 'confirmed',
    'arrived': 'confirmed',
    'fulfilled': 'confirmed',
    'cancelled': 'cancelled',
    'noshow': 'cancelled',
}


class FhirSchedulingAdapter(SchedulingAdapter):
    name = 'fhir'

    def __init__(self, base_url, access_token='', timeout=10.0, transport=None):
        self.base_url = base_url.rstrip('/')
        self.access_token = access_token
        self.timeout = timeout
        self._transport = transport

    def _client(self):
        headers = {'Accept': FHIR_JSON}
        if self.access_token:
            headers['Authorization'] = f'Bearer {self.access_token}'
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method, path, **kwargs):
        result = 'error'
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
            result = 'ok'
        except httpx.HTTPStatusError as exc:
            raise IntegrationError(self.name, f'{method} {path} returned {exc.response.status_code}') from exc
        except httpx.HTTPError as exc:
            raise IntegrationError(self.name, f'{method} {path} failed: {exc.__class__.__name__}') from exc
        finally:
            metrics.integration_calls_total.labels(
                adapter=self.name, operation=method.lower(), result=result
            ).inc()
        if not response.content:
            return {}
        return response.json()

    @metrics.track_duration(metrics.integration_call_duration_seconds, adapter='fhir', operation='get_provider_availability')
    async def get_provider_availability(self, provider_id, date):
        day = parse_date(date)
        next_day = day + timedelta(days=1)
        bundle = await self._request('GET', '/Slot', params=[
            ('schedule.actor', f'Practitioner/{provider_id}'),
            ('status', 'free'),
            ('start', f'ge{day.isoformat()}'),
            ('start', f'lt{next_day.isoformat()}'),
        ])

        slots = []
        for entry in bundle.get('entry', []):
            resource = entry.get('resource', {})
            if resource.get('resourceType') != 'Slot':
                continue
            start = _parse_instant(resource.get('start'))
            end = _parse_instant(resource.get('end'))
            if start is None:
                continue
            duration = int((end - start).total_seconds() // 60) if end else 15
            slots.append(Slot(
                provider_id=str(provider_id),
                date=start.date().isoformat(),
                time=start.strftime('%H:%M'),
                duration=duration,
                available=resource.get('status', 'free') == 'free',
            ))
        slots.sort(key=lambda s: s.time)
        return slots

    @metrics.track_duration(metrics.integration_call_duration_seconds, adapter='fhir', operation='create_appointment')
    async def create_appointment(self, booking):
        start = datetime.strptime(f'{booking.date} {booking.time}', '%Y-%m-%d %H:%M')
        duration = getattr(getattr(booking, 'appointment_type', None), 'duration_minutes', None) or 15
        resource = {
            'resourceType': 'Appointment',
            'status': _STATUS_TO_FHIR.get(booking.status, 'proposed'),
            'identifier': [{'system': BOOKING_IDENTIFIER_SYSTEM, 'value': str(booking.id)}],
            'start': start.isoformat(),
            'end': (start + timedelta(minutes=duration)).isoformat(),
            'minutesDuration': duration,
            'participant': [
                {'actor': {'reference': f'Practitioner/{booking.provider_id}'}, 'status': 'accepted'},
                {'actor': {'reference': f'Patient/{booking.patient_id}'}, 'status': 'needs-action'},
            ],
        }
        created = await self._request(
            'POST', '/Appointment', json=resource, headers={'Content-Type': FHIR_JSON}
        )
        external_id = created.get('id')
        if not external_id:
            raise IntegrationError(self.name, 'Appointment created without an id')
        return external_id

    @metrics.track_duration(metrics.integration_call_duration_seconds, adapter='fhir', operation='update_appointment')
    async def update_appointment(self, external_id, changes):
        patch = []
        if 'status' in changes:
            patch.append({
                'op': 'replace',
                'path': '/status',
                'value': _STATUS_TO_FHIR.get(changes['status'], changes['status']),
            })
        if not patch:
            return
        await self._request(
            'PATCH', f'/Appointment/{external_id}', json=patch,
            headers={'Content-Type': 'application/json-patch+json'},
        )

    async def cancel_appointment(self, external_id):
        await self.update_appointment(external_id, {'status': 'cancelled'})

    @metrics.track_duration(metrics.integration_call_duration_seconds, adapter='fhir', operation='sync_appointment_status')
    async def sync_appointment_status(self, booking_id):
        bundle = await self._request('GET', '/Appointment', params={
            'identifier': f'{BOOKING_IDENTIFIER_SYSTEM}|{booking_id}',
        })
        for entry in bundle.get('entry', []):
            resource = entry.get('resource', {})
            if resource.get('resourceType') != 'Appointment':
                continue
            start = _parse_instant(resource.get('start'))
            provider_ref = next(
                (
                    p['actor']['reference'] for p in resource.get('participant', [])
                    if p.get('actor', {}).get('reference', '').startswith('Practitioner/')
                ),
                '',
            )
            return AppointmentRecord(
                external_id=resource.get('id', ''),
                booking_id=str(booking_id),
                provider_id=provider_ref.split('/', 1)[-1],
                date=start.date().isoformat() if start else '',
                time=start.strftime('%H:%M') if start else '',
                status=_STATUS_FROM_FHIR.get(resource.get('status'), 'pending'),
            )
        raise NotFoundError('Appointment', booking_id)


def _parse_instant(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
