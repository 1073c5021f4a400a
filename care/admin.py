"""
Django admin registrations for the care models.

Lets superusers inspect bed inventory, the IPD queue and the history
records at ``/admin/`` during development and support.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    Bed,
    Booking,
    Consultation,
    Document,
    Hospital,
    HospitalLocation,
    Prescription,
    QueueEntry,
    QueueEntryTransition,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name')


class HospitalLocationInline(admin.TabularInline):
    model = HospitalLocation
    extra = 0


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'owner', 'is_active', 'created_at')
    search_fields = ('name', 'owner__username')
    inlines = [HospitalLocationInline]


@admin.register(Bed)
class BedAdmin(admin.ModelAdmin):
    list_display = ('hospital', 'index', 'bed_number', 'bed_type', 'floor', 'ward', 'is_active', 'is_occupied', 'occupant')
    list_filter = ('hospital', 'bed_type', 'is_active', 'is_occupied')
    search_fields = ('bed_number', 'ward')


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'hospital', 'booking_type', 'status', 'booking_date')
    list_filter = ('booking_type', 'status', 'hospital')
    search_fields = ('id', 'patient__username', 'provider_name')


class QueueEntryTransitionInline(admin.TabularInline):
    model = QueueEntryTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'operator', 'timestamp', 'reason')


@admin.register(QueueEntry)
class QueueEntryAdmin(admin.ModelAdmin):
    list_display = ('booking', 'patient', 'hospital', 'bed_type', 'priority', 'priority_score', 'status', 'queue_position', 'assigned_bed')
    list_filter = ('hospital', 'status', 'priority', 'bed_type')
    search_fields = ('booking__id', 'patient__username')
    inlines = [QueueEntryTransitionInline]


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor_name', 'status', 'created_at')
    search_fields = ('patient__username', 'doctor_name')


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'title', 'document_type', 'created_at')
    search_fields = ('patient__username', 'title')


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor_name', 'mode', 'status', 'created_at')
    list_filter = ('mode', 'status')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id',)
