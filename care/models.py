"""
Database models for the care coordination backend.

A hospital owns its bed inventory and its inpatient (IPD) waiting queue.
Bookings, prescriptions, documents and consultations are the four record
kinds merged into a patient's medical-history timeline.  Choice values
mirror the constants shared with the front-end so JSON payloads can be
passed through without translation.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q


class User(AbstractUser):
    """Custom user model carrying the application role."""
    ROLE_CHOICES = [
        ('patient', 'Patient'),
        ('doctor', 'Doctor'),
        ('hospital', 'Hospital'),
        ('lab', 'Lab'),
        ('pharmacy', 'Pharmacy'),
        ('admin', 'Administrator'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='patient', db_index=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Hospital(models.Model):
    """A hospital (or the parent of a hospital chain)."""
    name = models.CharField(max_length=255)
    owner = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='hospitals'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} (#{self.pk})"


class HospitalLocation(models.Model):
    """A branch location of a hospital.  Beds and queue entries may be scoped to one."""
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='locations')
    name = models.CharField(max_length=255)
    code = models.CharField(max_length=50, blank=True)

    def __str__(self) -> str:
        return f"{self.hospital.name} / {self.name}"


class BedType(models.TextChoices):
    GENERAL = 'GENERAL', 'General'
    ICU = 'ICU', 'ICU'
    PRIVATE = 'PRIVATE', 'Private'
    SEMI_PRIVATE = 'SEMI_PRIVATE', 'Semi-Private'
    EMERGENCY = 'EMERGENCY', 'Emergency'


class Bed(models.Model):
    """One physical bed in a hospital's inventory.

    ``index`` is the bed's stable position in the hospital inventory and is
    what the API calls ``bedIndex``.  A bed is occupied exactly when it has
    an occupant; the check constraint below keeps the two in step.
    """
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='beds')
    location = models.ForeignKey(
        HospitalLocation, null=True, blank=True, on_delete=models.SET_NULL, related_name='beds'
    )
    index = models.PositiveIntegerField(blank=True)
    bed_number = models.CharField(max_length=32)
    bed_type = models.CharField(max_length=16, choices=BedType.choices, db_index=True)
    floor = models.CharField(max_length=32, blank=True)
    ward = models.CharField(max_length=64, blank=True)
    is_active = models.BooleanField(default=True)
    is_occupied = models.BooleanField(default=False, db_index=True)
    occupant = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='occupied_beds'
    )
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['hospital_id', 'index']
        constraints = [
            models.UniqueConstraint(fields=['hospital', 'index'], name='uniq_bed_index_per_hospital'),
            models.UniqueConstraint(fields=['hospital', 'bed_number'], name='uniq_bed_number_per_hospital'),
            models.CheckConstraint(
                condition=(Q(is_occupied=True, occupant__isnull=False) | Q(is_occupied=False, occupant__isnull=True)),
                name='bed_occupied_iff_occupant',
            ),
        ]

    def save(self, *args, **kwargs):
        self.bed_number = (self.bed_number or '').strip().upper()
        if self.index is None and self.hospital_id:
            last = Bed.objects.filter(hospital_id=self.hospital_id).aggregate(m=models.Max('index'))['m']
            self.index = 0 if last is None else last + 1
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"Bed {self.bed_number} [{self.bed_type}] @ {self.hospital_id}"


class Booking(models.Model):
    TYPE_CHOICES = [
        ('OPD', 'Outpatient'),
        ('IPD', 'Inpatient'),
        ('LAB', 'Lab'),
    ]
    STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('CONFIRMED', 'Confirmed'),
        ('CANCELLED', 'Cancelled'),
        ('COMPLETED', 'Completed'),
    ]
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='bookings')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='bookings'
    )
    location = models.ForeignKey(
        HospitalLocation, null=True, blank=True, on_delete=models.SET_NULL, related_name='bookings'
    )
    booking_type = models.CharField(max_length=8, choices=TYPE_CHOICES, default='OPD')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='PENDING', db_index=True)
    booking_date = models.DateTimeField(db_index=True)
    booking_time = models.CharField(max_length=32, blank=True)
    department = models.CharField(max_length=128, blank=True)
    provider_name = models.CharField(max_length=255, blank=True)
    payment_status = models.CharField(max_length=16, blank=True)
    payment_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=['patient', 'booking_date'], name='care_bookin_patient_7c1f0e_idx')]

    def __str__(self) -> str:
        return f"Booking #{self.pk} {self.booking_type} ({self.status})"


class QueueEntry(models.Model):
    """A patient waiting for an inpatient bed.

    ``assigned_bed`` is set exactly when the entry is ALLOCATED.  ALLOCATED
    and WITHDRAWN are terminal; a released bed leaves the entry ALLOCATED
    with ``released_at`` stamped.
    """
    STATUS_WAITING = 'WAITING'
    STATUS_ALLOCATED = 'ALLOCATED'
    STATUS_WITHDRAWN = 'WITHDRAWN'
    STATUS_CHOICES = [
        (STATUS_WAITING, 'Waiting'),
        (STATUS_ALLOCATED, 'Allocated'),
        (STATUS_WITHDRAWN, 'Withdrawn'),
    ]
    PRIORITY_CHOICES = [
        ('CRITICAL', 'Critical'),
        ('HIGH', 'High'),
        ('MEDIUM', 'Medium'),
        ('LOW', 'Low'),
    ]
    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, related_name='queue_entry')
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='queue_entries')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='queue_entries')
    location = models.ForeignKey(
        HospitalLocation, null=True, blank=True, on_delete=models.SET_NULL, related_name='queue_entries'
    )
    bed_type = models.CharField(max_length=16, choices=BedType.choices)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='MEDIUM', db_index=True)
    priority_score = models.FloatField(default=0)
    score_breakdown = models.JSONField(default=dict, blank=True)
    enqueued_at = models.DateTimeField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_WAITING, db_index=True)
    assigned_bed = models.ForeignKey(
        Bed, null=True, blank=True, on_delete=models.PROTECT, related_name='queue_entries'
    )
    queue_position = models.PositiveIntegerField(null=True, blank=True)
    estimated_wait_hours = models.PositiveIntegerField(null=True, blank=True)
    allocated_at = models.DateTimeField(null=True, blank=True)
    withdrawn_at = models.DateTimeField(null=True, blank=True)
    released_at = models.DateTimeField(null=True, blank=True)
    last_notified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['hospital', 'status', 'priority_score'], name='care_queuee_hospita_3b8d21_idx'),
            models.Index(fields=['location', 'status'], name='care_queuee_locatio_9e4a57_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(Q(status='ALLOCATED', assigned_bed__isnull=False) | (~Q(status='ALLOCATED') & Q(assigned_bed__isnull=True))),
                name='queue_entry_bed_iff_allocated',
            ),
        ]

    def __str__(self) -> str:
        return f"QueueEntry booking={self.booking_id} {self.priority} ({self.status})"


class QueueEntryTransition(models.Model):
    """Records a status transition for a queue entry."""
    entry = models.ForeignKey(QueueEntry, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=10, null=True, blank=True)
    to_status = models.CharField(max_length=10)
    operator = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='queue_transitions'
    )
    timestamp = models.DateTimeField(auto_now_add=True)
    reason = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:
        return f"{self.entry_id}: {self.from_status} → {self.to_status}"


class Prescription(models.Model):
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='prescriptions')
    doctor_name = models.CharField(max_length=255, blank=True)
    pharmacy_name = models.CharField(max_length=255, blank=True)
    # list of strings or {"name", "dosage", "frequency"} objects
    medicines = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=16, default='PENDING')
    created_at = models.DateTimeField(db_index=True)

    def __str__(self) -> str:
        return f"Prescription #{self.pk} for {self.patient_id}"


class Document(models.Model):
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='documents')
    title = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    document_type = models.CharField(max_length=32, blank=True)
    file_url = models.URLField(max_length=512, blank=True)
    uploaded_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='uploaded_documents'
    )
    created_at = models.DateTimeField(db_index=True)

    def __str__(self) -> str:
        return self.title or f"Document #{self.pk}"


class Consultation(models.Model):
    MODE_CHOICES = [
        ('VIDEO', 'Video'),
        ('CHAT', 'Chat'),
        ('IN_PERSON', 'In person'),
    ]
    patient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='patient_consultations')
    doctor_name = models.CharField(max_length=255, blank=True)
    mode = models.CharField(max_length=16, choices=MODE_CHOICES, blank=True)
    status = models.CharField(max_length=16, default='SCHEDULED')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(db_index=True)

    def __str__(self) -> str:
        return f"consult p={self.patient_id} {self.mode}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='care_audite_action_5d2c8a_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='care_audite_object__a41f6b_idx'),
        ]
