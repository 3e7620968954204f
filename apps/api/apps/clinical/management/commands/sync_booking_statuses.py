"""
Pull appointment status from the scheduling source for synced bookings.

Usage:
    python manage.py sync_booking_statuses [--booking <uuid>] [--dry-run]

Only bookings that have an external_id and are still pending or confirmed
are checked. Legal transitions (e.g. cancelled in the EMR) are applied.
"""
from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from apps.clinical.models import Booking
from apps.clinical.services import get_booking_service
from apps.core.exceptions import ClinicError


class Command(BaseCommand):
    help = 'Reconcile booking statuses with the scheduling source'

    def add_arguments(self, parser):
        parser.add_argument('--booking', help='Reconcile a single booking id')
        parser.add_argument('--dry-run', action='store_true', help='List bookings without contacting the adapter')

    def handle(self, *args, **options):
        queryset = Booking.objects.filter(
            status__in=Booking.ACTIVE_STATUSES,
            external_id__isnull=False,
        ).exclude(external_id='')
        if options['booking']:
            queryset = queryset.filter(pk=options['booking'])

        booking_ids = list(queryset.values_list('id', 'status'))
        self.stdout.write(f'Found {len(booking_ids)} synced active booking(s)')

        if options['dry_run']:
            for booking_id, current in booking_ids:
                self.stdout.write(f'  {booking_id} ({current})')
            return

        service = get_booking_service()
        changed = failed = 0
        for booking_id, before in booking_ids:
            try:
                booking = async_to_sync(service.reconcile_booking)(booking_id)
            except ClinicError as exc:
                failed += 1
                self.stdout.write(self.style.WARNING(f'  {booking_id}: {exc.message}'))
                continue
            if booking.status != before:
                changed += 1
                self.stdout.write(f'  {booking_id}: {before} -> {booking.status}')

        self.stdout.write(self.style.SUCCESS(f'Reconciled: {changed} changed, {failed} failed'))
