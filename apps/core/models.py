import uuid

from django.db import models
from django.utils import timezone


class TimeStampedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(default=timezone.now, editable=False, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]


class ActivityLog(models.Model):
    """Property-scoped audit trail of billing and tenancy events."""

    TYPE_CHOICES = [
        ("TENANCY", "Tenancy"),
        ("BILL", "Bill"),
        ("LEDGER_ENTRY", "Ledger Entry"),
        ("LEDGER_VERIFIED", "Ledger Entry Verified"),
        ("PAYMENT", "Payment"),
        ("PAYMENT_VERIFIED", "Payment Verified"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    property = models.ForeignKey(
        "properties.Property", on_delete=models.CASCADE, related_name="activity_logs"
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    description = models.CharField(max_length=500)
    date = models.DateTimeField(default=timezone.now, db_index=True)
    related_id = models.UUIDField(null=True, blank=True)

    class Meta:
        ordering = ["-date"]

    def __str__(self):
        return f"{self.get_type_display()}: {self.description}"
