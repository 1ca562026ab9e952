"""
Django-Q2 tasks for the billing app.

Register the daily schedules with ``python manage.py schedule_billing_tasks``,
or run one ad hoc:
    from django_q.tasks import async_task
    async_task('apps.billing.tasks.mark_overdue_bills')
    async_task('apps.billing.tasks.prune_activity_logs')
"""

import logging

from django.db.models import F
from django.utils import timezone

logger = logging.getLogger(__name__)


def mark_overdue_bills(as_of=None):
    """
    Daily task: flag bills past their due date that still have money owed,
    counting any balance carried in from the month before.

    The flag is an overlay: the next recalculation of a bill re-derives its
    status from amounts, and this sweep re-applies it.

    Returns:
        Number of bills marked overdue.
    """
    from .models import Bill

    today = as_of or timezone.localdate()

    overdue_ids = list(
        Bill.objects.alias(owed=F("remaining_amount") + F("carry_forward"))
        .filter(status__in=["pending", "partial", "paid"], due_date__lt=today, owed__gt=0)
        .values_list("pk", flat=True)
    )
    count = Bill.objects.filter(pk__in=overdue_ids).update(status="overdue", updated_at=timezone.now())

    logger.info("mark_overdue_bills: %d bills marked overdue as of %s.", count, today)
    return count


def prune_activity_logs(now=None):
    """Daily task: drop activity logs past the retention window."""
    from apps.core.services.activity import prune_activity_logs as prune

    deleted = prune(now=now)
    logger.info("prune_activity_logs: %d logs deleted.", deleted)
    return deleted
