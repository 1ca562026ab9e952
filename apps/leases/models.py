import builtins

from django.conf import settings
from django.db import models
from django.db.models import Q

from apps.core.models import TimeStampedModel
from apps.core.money import CURRENCY_CHOICES


class Tenancy(TimeStampedModel):
    """A lease between one tenant and one property, owned by a landlord."""

    STATUS_CHOICES = [
        ("active", "Active"),
        ("ended", "Ended"),
    ]

    landlord = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="landlord_tenancies",
        limit_choices_to={"role": "landlord"},
    )
    tenant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="tenancies",
        limit_choices_to={"role": "tenant"},
    )
    property = models.ForeignKey(
        "properties.Property", on_delete=models.PROTECT, related_name="tenancies"
    )
    status = models.CharField(
        max_length=10, choices=STATUS_CHOICES, default="active", db_index=True
    )
    monthly_rent = models.DecimalField(max_digits=12, decimal_places=2)
    security_deposit = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    lease_start = models.DateField()
    lease_end = models.DateField(null=True, blank=True)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="INR")
    ended_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name_plural = "Tenancies"
        ordering = ["-lease_start"]
        constraints = [
            models.UniqueConstraint(
                fields=["property"],
                condition=Q(status="active"),
                name="one_active_tenancy_per_property",
            ),
        ]

    def __str__(self):
        return f"Tenancy: {self.tenant} @ {self.property} ({self.status})"

    # The ``property`` field shadows the builtin inside this class body
    @builtins.property
    def is_active(self):
        return self.status == "active"
