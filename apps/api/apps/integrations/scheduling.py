"""
Scheduling-source adapters.

The clinic's external system of record owns provider calendars. Adapters
expose a small async interface over it; ``LocalSchedulingSimulator`` is
the in-process stand-in used in development and tests.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import date as date_class, datetime, timedelta
from typing import Dict, List, Optional, Union

from apps.core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DateLike = Union[str, date_class]


@dataclass(frozen=True)
class Slot:
    provider_id: str
    date: str        # YYYY-MM-DD
    time: str        # HH:MM, clinic local time
    duration: int    # minutes
    available: bool = True

    def to_dict(self):
        return {
            'provider_id': self.provider_id,
            'date': self.date,
            'time': self.time,
            'duration': self.duration,
            'available': self.available,
        }


@dataclass
class AppointmentRecord:
    """An appointment as the external system of record sees it."""
    external_id: str
    booking_id: str
    provider_id: str
    date: str
    time: str
    status: str = 'pending'
    extra: Dict[str, str] = field(default_factory=dict)


def parse_date(value: DateLike) -> date_class:
    if isinstance(value, date_class):
        return value
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationError('Invalid date', field_errors={'date': ['Expected YYYY-MM-DD']})


class SchedulingAdapter(ABC):
    """Contract for the external scheduling source. All methods are coroutines."""

    name = 'scheduling'

    @abstractmethod
    async def get_provider_availability(self, provider_id, date: DateLike) -> List[Slot]:
        ...

    @abstractmethod
    async def create_appointment(self, booking) -> str:
        """Create the appointment externally and return its external id."""

    @abstractmethod
    async def update_appointment(self, external_id: str, changes: Dict) -> None:
        ...

    @abstractmethod
    async def cancel_appointment(self, external_id: str) -> None:
        ...

    @abstractmethod
    async def sync_appointment_status(self, booking_id) -> AppointmentRecord:
        ...


class LocalSchedulingSimulator(SchedulingAdapter):
    """
    Slots from provider booking windows plus an in-memory system of record.

    - Slots start every ``slot_minutes`` inside each active BookingWindow
      for the requested weekday; the last slot ends at or before the
      window's end time.
    - Providers with no windows at all fall back to the default day
      (09:00-16:00 unless configured otherwise).
    - Deterministic: every generated slot is available.
    """

    name = 'simulator'

    def __init__(self, slot_minutes=15, default_day_start='09:00', default_day_end='16:00'):
        self.slot_minutes = int(slot_minutes)
        self.default_day_start = datetime.strptime(default_day_start, '%H:%M').time()
        self.default_day_end = datetime.strptime(default_day_end, '%H:%M').time()
        self._appointments: Dict[str, AppointmentRecord] = {}

    async def get_provider_availability(self, provider_id, date: DateLike) -> List[Slot]:
        from apps.clinical.models import BookingWindow

        day = parse_date(date)
        weekday = day.strftime('%A').lower()

        windows = [
            (w.start_time, w.end_time)
            async for w in BookingWindow.objects.filter(
                provider_id=provider_id, day_of_week=weekday, is_active=True
            ).order_by('start_time')
        ]
        if not windows:
            has_any = await BookingWindow.objects.filter(provider_id=provider_id).aexists()
            if has_any:
                return []
            windows = [(self.default_day_start, self.default_day_end)]

        seen = set()
        slots = []
        for start, end in windows:
            for time_str in self._slot_times(day, start, end):
                if time_str in seen:
                    continue
                seen.add(time_str)
                slots.append(Slot(
                    provider_id=str(provider_id),
                    date=day.isoformat(),
                    time=time_str,
                    duration=self.slot_minutes,
                ))

        slots.sort(key=lambda s: s.time)
        logger.debug(
            'Simulator availability',
            extra={'event': 'simulator_availability', 'provider_id': str(provider_id), 'slot_count': len(slots)},
        )
        return slots

    def _slot_times(self, day, start, end):
        step = timedelta(minutes=self.slot_minutes)
        current = datetime.combine(day, start)
        stop = datetime.combine(day, end)
        while current + step <= stop:
            yield current.strftime('%H:%M')
            current += step

    async def create_appointment(self, booking) -> str:
        external_id = f'SIM-{uuid.uuid4().hex[:12].upper()}'
        self._appointments[external_id] = AppointmentRecord(
            external_id=external_id,
            booking_id=str(booking.id),
            provider_id=str(booking.provider_id),
            date=str(booking.date),
            time=booking.time,
            status=booking.status,
        )
        logger.info(
            'Simulator appointment created',
            extra={'event': 'simulator_create', 'booking_id': str(booking.id), 'external_id': external_id},
        )
        return external_id

    async def update_appointment(self, external_id: str, changes: Dict) -> None:
        record = self._appointments.get(external_id)
        if record is None:
            logger.info('Simulator update for unknown appointment', extra={'external_id': external_id})
            return
        known = {k: v for k, v in changes.items() if k in ('status', 'date', 'time')}
        self._appointments[external_id] = replace(record, **known)

    async def cancel_appointment(self, external_id: str) -> None:
        await self.update_appointment(external_id, {'status': 'cancelled'})

    async def sync_appointment_status(self, booking_id) -> AppointmentRecord:
        for record in self._appointments.values():
            if record.booking_id == str(booking_id):
                return record
        raise NotFoundError('Appointment', booking_id)

    def get_record(self, external_id: str) -> Optional[AppointmentRecord]:
        return self._appointments.get(external_id)
