"""
Management command to populate the database with demo data.

Creates one hospital with two locations, a bed inventory, confirmed IPD
bookings waiting in the bed queue and a medical history for each demo
patient.  Safe to run repeatedly: existing demo users are reused.
"""
from datetime import timedelta
from decimal import Decimal
import random

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from care.models import (
    Bed, BedType, Booking, Consultation, Document, Hospital, HospitalLocation,
    Prescription, QueueEntry, User,
)
from care.services.queue import build_queue, enqueue

DEMO_PASSWORD = "demo12345"

BED_LAYOUT = [
    # (type, count, floor, ward)
    (BedType.GENERAL, 6, "1", "A"),
    (BedType.SEMI_PRIVATE, 2, "2", "B"),
    (BedType.PRIVATE, 2, "2", "C"),
    (BedType.ICU, 2, "3", "ICU"),
    (BedType.EMERGENCY, 1, "G", "ER"),
]


class Command(BaseCommand):
    help = "Populate the database with a demo hospital, beds, queue and patient histories"

    def add_arguments(self, parser):
        parser.add_argument("--patients", type=int, default=8, help="number of demo patients")
        parser.add_argument("--seed", type=int, default=None, help="random seed for repeatable data")

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options["seed"])
        now = timezone.now()

        staff = self.user("hospital1", "hospital")
        self.user("admin1", "admin", is_staff=True)
        hospital, _ = Hospital.objects.get_or_create(name="City General Hospital", defaults={"owner": staff})
        north, _ = HospitalLocation.objects.get_or_create(hospital=hospital, name="North Wing", defaults={"code": "N"})
        HospitalLocation.objects.get_or_create(hospital=hospital, name="South Wing", defaults={"code": "S"})

        if not hospital.beds.exists():
            for bed_type, count, floor, ward in BED_LAYOUT:
                for n in range(1, count + 1):
                    Bed.objects.create(
                        hospital=hospital, location=north, bed_type=bed_type,
                        bed_number=f"{ward}-{floor}{n:02d}", floor=floor, ward=ward,
                    )
        self.stdout.write(f"hospital #{hospital.id}: {hospital.beds.count()} beds")

        queued = 0
        for i in range(1, options["patients"] + 1):
            patient = self.user(f"patient{i}", "patient", first_name=f"Patient {i}")
            self.history(patient, hospital, rng, now)
            booking = Booking.objects.create(
                patient=patient, hospital=hospital, location=north,
                booking_type="IPD", status="CONFIRMED",
                booking_date=now + timedelta(days=rng.randint(0, 3)),
                department=rng.choice(["Cardiology", "Orthopedics", "General Medicine"]),
                provider_name=hospital.name,
                payment_status="PAID", payment_amount=Decimal("1500.00"),
            )
            enqueue(
                hospital.id, booking.id, rng.choice([BedType.GENERAL, BedType.ICU, BedType.PRIVATE]),
                priority=rng.choice([p for p, _ in QueueEntry.PRIORITY_CHOICES]),
                now=now - timedelta(hours=rng.randint(0, 72)),
            )
            queued += 1

        build_queue(hospital.id, now=now)
        self.stdout.write(self.style.SUCCESS(
            f"Demo data ready: {queued} patients queued (password for demo users: {DEMO_PASSWORD})"
        ))

    def user(self, username, role, **extra):
        u, created = User.objects.get_or_create(
            username=username,
            defaults={"role": role, "password": make_password(DEMO_PASSWORD), **extra},
        )
        if created:
            self.stdout.write(f"created {username} ({role})")
        return u

    def history(self, patient, hospital, rng, now):
        for _ in range(rng.randint(1, 3)):
            Booking.objects.create(
                patient=patient, hospital=hospital, booking_type=rng.choice(["OPD", "LAB"]),
                status="COMPLETED", booking_date=now - timedelta(days=rng.randint(5, 200)),
                booking_time="10:00", provider_name=hospital.name, payment_status="PAID",
                payment_amount=Decimal("300.00"),
            )
        Prescription.objects.create(
            patient=patient, doctor_name="Dr. Rao", pharmacy_name="Main Pharmacy",
            medicines=[{"name": "Paracetamol", "dosage": "500mg", "frequency": "TID"}, "Vitamin D"],
            status="DISPENSED", created_at=now - timedelta(days=rng.randint(1, 90)),
        )
        Document.objects.create(
            patient=patient, title="Blood test report", document_type="LAB_REPORT",
            file_url="https://files.example.org/reports/demo.pdf",
            created_at=now - timedelta(days=rng.randint(1, 60)),
        )
        Consultation.objects.create(
            patient=patient, doctor_name="Dr. Mehta", mode=rng.choice(["VIDEO", "CHAT", "IN_PERSON"]),
            status="COMPLETED", created_at=now - timedelta(days=rng.randint(1, 30)),
        )
