"""
Staff booking administration URLs (mounted under /api/v1/admin/).
"""
from django.urls import path

from .views import (
    AdminBookingApproveView,
    AdminBookingDeclineView,
    AdminBookingListView,
    BookingReportView,
)

urlpatterns = [
    path('bookings/', AdminBookingListView.as_view(), name='admin-booking-list'),
    path('bookings/<uuid:pk>/approve/', AdminBookingApproveView.as_view(), name='admin-booking-approve'),
    path('bookings/<uuid:pk>/decline/', AdminBookingDeclineView.as_view(), name='admin-booking-decline'),
    path('reports/bookings/', BookingReportView.as_view(), name='admin-booking-report'),
]
