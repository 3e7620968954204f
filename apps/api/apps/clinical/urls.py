"""
Clinical URLs - providers, appointment types, availability, bookings, patients.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AppointmentTypeViewSet,
    AvailabilityView,
    BookingCreateView,
    BookingDetailView,
    PatientViewSet,
    ProviderViewSet,
)

router = DefaultRouter()
router.register(r'providers', ProviderViewSet, basename='provider')
router.register(r'appointment-types', AppointmentTypeViewSet, basename='appointment-type')
router.register(r'patients', PatientViewSet, basename='patient')

urlpatterns = [
    path('availability/', AvailabilityView.as_view(), name='availability'),
    path('bookings/', BookingCreateView.as_view(), name='booking-create'),
    path('bookings/<uuid:pk>/', BookingDetailView.as_view(), name='booking-detail'),

    path('', include(router.urls)),
]
