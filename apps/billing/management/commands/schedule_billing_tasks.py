"""
Register the billing app's recurring Django-Q2 schedules.

Usage:
    python manage.py schedule_billing_tasks
"""

from datetime import datetime, time, timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

SCHEDULES = [
    ("Mark overdue bills", "apps.billing.tasks.mark_overdue_bills", time(0, 15)),
    ("Prune activity logs", "apps.billing.tasks.prune_activity_logs", time(0, 30)),
]


class Command(BaseCommand):
    help = "Register daily billing schedules with Django-Q2 (safe to run repeatedly)"

    def handle(self, *args, **options):
        from django_q.models import Schedule
        from django_q.tasks import schedule

        tomorrow = timezone.localdate() + timedelta(days=1)
        for name, func, at in SCHEDULES:
            if Schedule.objects.filter(name=name).exists():
                self.stdout.write(f"  exists: {name}")
                continue
            schedule(
                func,
                name=name,
                schedule_type=Schedule.DAILY,
                repeats=-1,
                next_run=timezone.make_aware(datetime.combine(tomorrow, at)),
            )
            self.stdout.write(self.style.SUCCESS(f"  scheduled: {name}"))
