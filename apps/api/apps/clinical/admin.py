from django.contrib import admin
from .models import AppointmentType, Booking, BookingWindow, Patient, Provider


class BookingWindowInline(admin.TabularInline):
    model = BookingWindow
    extra = 0


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ['display_name', 'specialty', 'team', 'accepts_new_patients', 'is_active']
    list_filter = ['specialty', 'accepts_new_patients', 'is_active']
    search_fields = ['name', 'display_name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [BookingWindowInline]


@admin.register(AppointmentType)
class AppointmentTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'duration_minutes', 'is_common', 'is_active']
    list_filter = ['is_common', 'is_active']
    search_fields = ['name']


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['last_name', 'first_name', 'fake_mrn', 'notification_channel', 'is_synthetic', 'created_at']
    list_filter = ['notification_channel', 'is_synthetic', 'can_receive_sms']
    search_fields = ['first_name', 'last_name', 'fake_mrn']
    readonly_fields = ['id', 'is_synthetic', 'created_at', 'updated_at']

    fieldsets = (
        ('Basic Info', {
            'fields': ('id', 'first_name', 'last_name', 'date_of_birth', 'gender', 'fake_mrn', 'is_synthetic')
        }),
        ('Contact', {
            'fields': ('email', 'sms_number', 'postal_code')
        }),
        ('Notifications', {
            'fields': ('notification_channel', 'can_receive_sms', 'consent_notifications')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at')
        }),
    )


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['date', 'time', 'provider', 'patient', 'modality', 'status', 'external_id']
    list_filter = ['status', 'modality', 'provider']
    search_fields = ['patient__last_name', 'patient__fake_mrn', 'external_id']
    readonly_fields = ['id', 'status', 'external_id', 'created_at', 'updated_at']
    date_hierarchy = 'date'
