from django.core.management.base import BaseCommand
from django.utils import timezone

from care.models import Hospital
from care.services.queue import notify_queue_changed


class Command(BaseCommand):
    help = "Recompute queue scores and positions for every hospital; broadcast WebSocket updates."

    def add_arguments(self, parser):
        parser.add_argument("--hospital", type=int, default=None, help="only this hospital id")

    def handle(self, *args, **options):
        now = timezone.now()
        hospitals = Hospital.objects.filter(is_active=True)
        if options["hospital"]:
            hospitals = hospitals.filter(pk=options["hospital"])
        notified = 0
        count = 0
        for hospital_id in hospitals.values_list("id", flat=True):
            notified += notify_queue_changed(hospital_id, now=now)
            count += 1
        self.stdout.write(self.style.SUCCESS(
            f"Refreshed {count} hospital queue(s), {notified} position notification(s) at {now}"
        ))
