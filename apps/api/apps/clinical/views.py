"""
Clinical views: public booking flow, staff patients, admin booking management.

Public endpoints (no authentication):
- providers, appointment types, availability
- booking create / detail / cancel

Staff endpoints (admin or clinic_staff):
- patients
- admin booking list, approve, decline, reports
"""
import logging

from asgiref.sync import async_to_sync
from rest_framework import mixins, status, viewsets
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from apps.authz.permissions import IsStaff
from apps.clinical.models import AppointmentType, Booking, Patient, Provider
from apps.clinical.serializers import (
    AdminBookingQuerySerializer,
    AdminBookingSerializer,
    AppointmentTypeSerializer,
    AvailabilityQuerySerializer,
    BookingCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    PatientSerializer,
    ProviderSerializer,
    ReportQuerySerializer,
    SlotSerializer,
)
from apps.clinical.services import get_booking_service
from apps.core.exceptions import NotFoundError
from apps.ops.audit import AuditService
from apps.ops.models import AuditActionChoices

logger = logging.getLogger(__name__)

ADMIN_LIST_LIMIT = 100
DEFAULT_DECLINE_REASON = 'Declined by staff'


class BookingSubmissionThrottle(AnonRateThrottle):
    """Rate limit for public booking submissions (per IP)."""
    scope = 'booking_submissions'


def _require_catalogue(data):
    """Fail before any write when the provider or appointment type is unknown."""
    if not Provider.objects.filter(pk=data['provider_id']).exists():
        raise NotFoundError('Provider', data['provider_id'])
    if not AppointmentType.objects.filter(pk=data['appointment_type_id']).exists():
        raise NotFoundError('AppointmentType', data['appointment_type_id'])


def _create_patient(validated_data, request):
    """Create a patient from validated serializer data and audit it."""
    patient = PatientSerializer().create(dict(validated_data))

    async_to_sync(AuditService().log)(
        action=AuditActionChoices.CREATE_PATIENT,
        resource='patient',
        resource_id=str(patient.id),
        user=request.user,
        payload={'is_synthetic': patient.is_synthetic, 'fake_mrn': patient.fake_mrn},
        request=request,
    )
    return patient


# ============================================================================
# Public catalogue
# ============================================================================

class ProviderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    GET /api/v1/providers/
    GET /api/v1/providers/{id}/
    """
    queryset = Provider.objects.filter(is_active=True)
    serializer_class = ProviderSerializer
    permission_classes = []
    authentication_classes = []

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'providers': serializer.data})

    def retrieve(self, request, *args, **kwargs):
        return Response({'provider': self.get_serializer(self.get_object()).data})


class AppointmentTypeViewSet(viewsets.ReadOnlyModelViewSet):
    """
    GET /api/v1/appointment-types/
    GET /api/v1/appointment-types/{id}/
    """
    queryset = AppointmentType.objects.filter(is_active=True)
    serializer_class = AppointmentTypeSerializer
    permission_classes = []
    authentication_classes = []

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({'appointment_types': serializer.data})

    def retrieve(self, request, *args, **kwargs):
        return Response({'appointment_type': self.get_serializer(self.get_object()).data})


class AvailabilityView(APIView):
    """
    GET /api/v1/availability/?provider_id=<uuid>&date=YYYY-MM-DD

    Returns only slots that are still free after subtracting active bookings.
    """
    permission_classes = []
    authentication_classes = []

    def get(self, request):
        params = AvailabilityQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        provider_id = params.validated_data['provider_id']
        day = params.validated_data['date']

        slots = async_to_sync(get_booking_service().get_availability)(provider_id, day)
        available = [slot.to_dict() for slot in slots if slot.available]

        return Response({
            'provider_id': str(provider_id),
            'date': day.isoformat(),
            'slots': SlotSerializer(available, many=True).data,
        })


# ============================================================================
# Public bookings
# ============================================================================

class BookingCreateView(APIView):
    """
    POST /api/v1/bookings/

    Body: provider_id, appointment_type_id, date, time, modality, reason and
    either patient_id or an inline patient object.
    The booking is always returned as pending; sync and notification
    failures do not fail the request.
    """
    permission_classes = []
    authentication_classes = []
    throttle_classes = [BookingSubmissionThrottle]

    def post(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        patient_id = data.get('patient_id')
        if patient_id is None:
            _require_catalogue(data)
            patient_id = _create_patient(data['patient'], request).id

        booking = async_to_sync(get_booking_service().create_booking)(
            provider_id=data['provider_id'],
            patient_id=patient_id,
            appointment_type_id=data['appointment_type_id'],
            date=data['date'],
            time=data['time'],
            modality=data['modality'],
            reason=data.get('reason'),
            acting_user=request.user,
            request=request,
        )

        return Response({'booking': BookingSerializer(booking).data}, status=status.HTTP_201_CREATED)


class BookingDetailView(APIView):
    """
    GET    /api/v1/bookings/{id}/
    DELETE /api/v1/bookings/{id}/   body: {"reason": "..."}
    """
    permission_classes = []
    authentication_classes = []

    def get(self, request, pk):
        booking = async_to_sync(get_booking_service().get_booking)(pk)
        return Response({'booking': BookingSerializer(booking).data})

    def delete(self, request, pk):
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = async_to_sync(get_booking_service().cancel_booking)(
            pk,
            reason=serializer.validated_data.get('reason'),
            acting_user=request.user,
            request=request,
        )

        return Response({
            'message': 'Booking cancelled successfully',
            'booking': {
                'id': str(booking.id),
                'status': booking.status,
                'cancellation_reason': booking.cancellation_reason,
            },
        })


# ============================================================================
# Staff: patients
# ============================================================================

class PatientViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    GET  /api/v1/patients/?q=<name or TEST-####>
    POST /api/v1/patients/
    GET  /api/v1/patients/{id}/
    """
    queryset = Patient.objects.all()
    serializer_class = PatientSerializer
    permission_classes = [IsStaff]

    def get_queryset(self):
        queryset = super().get_queryset()
        q = self.request.query_params.get('q', '').strip()
        if q:
            if q.upper().startswith('TEST-'):
                queryset = queryset.filter(fake_mrn__iexact=q)
            else:
                queryset = queryset.filter(last_name__icontains=q) | queryset.filter(first_name__icontains=q)
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        patient = _create_patient(serializer.validated_data, request)
        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)


# ============================================================================
# Staff: booking administration
# ============================================================================

class AdminBookingListView(APIView):
    """
    GET /api/v1/admin/bookings/

    Filters: status, provider_id, patient_id, start_date, end_date.
    Newest dates first, at most 100 rows.
    """
    permission_classes = [IsStaff]

    def get(self, request):
        params = AdminBookingQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        filters = params.validated_data

        queryset = Booking.objects.select_related('provider', 'patient', 'appointment_type')
        if filters.get('status'):
            queryset = queryset.filter(status=filters['status'])
        if filters.get('provider_id'):
            queryset = queryset.filter(provider_id=filters['provider_id'])
        if filters.get('patient_id'):
            queryset = queryset.filter(patient_id=filters['patient_id'])
        if filters.get('start_date'):
            queryset = queryset.filter(date__gte=filters['start_date'])
        if filters.get('end_date'):
            queryset = queryset.filter(date__lte=filters['end_date'])

        bookings = queryset.order_by('-date', '-time')[:ADMIN_LIST_LIMIT]
        return Response({'bookings': AdminBookingSerializer(bookings, many=True).data})


class AdminBookingApproveView(APIView):
    """PATCH /api/v1/admin/bookings/{id}/approve/  (pending -> confirmed)"""
    permission_classes = [IsStaff]

    def patch(self, request, pk):
        booking = async_to_sync(get_booking_service().confirm_booking)(
            pk, acting_user=request.user, request=request
        )
        return Response({
            'message': 'Booking approved',
            'booking': {'id': str(booking.id), 'status': booking.status},
        })


class AdminBookingDeclineView(APIView):
    """PATCH /api/v1/admin/bookings/{id}/decline/  body: {"reason": "..."}"""
    permission_classes = [IsStaff]

    def patch(self, request, pk):
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reason = serializer.validated_data.get('reason') or DEFAULT_DECLINE_REASON

        booking = async_to_sync(get_booking_service().cancel_booking)(
            pk, reason=reason, acting_user=request.user, request=request
        )
        return Response({
            'message': 'Booking declined',
            'booking': {
                'id': str(booking.id),
                'status': booking.status,
                'cancellation_reason': booking.cancellation_reason,
            },
        })


class BookingReportView(APIView):
    """GET /api/v1/admin/reports/bookings/?start_date=&end_date="""
    permission_classes = [IsStaff]

    def get(self, request):
        params = ReportQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        stats = async_to_sync(get_booking_service().booking_stats)(
            start_date=params.validated_data.get('start_date'),
            end_date=params.validated_data.get('end_date'),
        )
        return Response({'stats': stats})
