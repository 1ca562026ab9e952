import logging
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

logger = logging.getLogger(__name__)


def log_activity(property, type, description, related_id=None, date=None):
    """
    Record an ActivityLog row for a property.

    Runs in its own savepoint and never raises: an audit-trail failure must not
    undo the billing change that triggered it.
    """
    from apps.core.models import ActivityLog

    try:
        with transaction.atomic():
            return ActivityLog.objects.create(
                property=property,
                type=type,
                description=description,
                related_id=related_id,
                date=date or timezone.now(),
            )
    except DatabaseError:
        logger.exception("Failed to log %s activity for property %s", type, property.pk)
        return None


def prune_activity_logs(now=None, retention_days=None):
    """Delete activity logs older than the retention window. Returns the count."""
    from apps.core.models import ActivityLog

    now = now or timezone.now()
    if retention_days is None:
        retention_days = settings.ACTIVITY_LOG_RETENTION_DAYS
    cutoff = now - timedelta(days=retention_days)
    deleted, _ = ActivityLog.objects.filter(date__lt=cutoff).delete()
    return deleted
