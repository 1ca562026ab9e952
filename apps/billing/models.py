from datetime import timedelta

from django.conf import settings
from django.db import models

from apps.core.models import TimeStampedModel
from apps.core.money import CURRENCY_CHOICES, ZERO
from apps.core.validators import validate_non_negative

PAYMENT_METHOD_CHOICES = [
    ("upi", "UPI"),
    ("cash", "Cash"),
    ("bank_transfer", "Bank Transfer"),
    ("cheque", "Cheque"),
    ("other", "Other"),
]


class Bill(TimeStampedModel):
    """Monthly statement for a tenancy. Totals are derived from its ledger entries."""

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("partial", "Partially Paid"),
        ("paid", "Paid"),
        ("overdue", "Overdue"),
    ]

    tenancy = models.ForeignKey(
        "leases.Tenancy", on_delete=models.PROTECT, related_name="bills"
    )
    month = models.DateField(help_text="First day of the billed calendar month.")
    due_date = models.DateField()

    # Component snapshots taken when the bill is created up front
    rent = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    electricity_units = models.PositiveIntegerField(default=0)
    electricity_rate = models.DecimalField(max_digits=12, decimal_places=4, default=0)
    electricity_total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    water_bill = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    # Signed: positive is debt brought forward, negative is tenant credit
    carry_forward = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    total_bill = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    remaining_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default="pending", db_index=True)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default="INR")
    note = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-month"]
        constraints = [
            models.UniqueConstraint(fields=["tenancy", "month"], name="unique_bill_per_tenancy_month"),
        ]

    def __str__(self):
        return f"Bill {self.period_label} - {self.tenancy}"

    @property
    def period_label(self):
        return self.month.strftime("%B %Y")

    @property
    def amount_due(self):
        """Balance owed for the period including the carried-forward balance."""
        return self.remaining_amount + self.carry_forward


class Payment(TimeStampedModel):
    """A payment received against a bill, confirmed one-way by the tenant."""

    bill = models.ForeignKey(Bill, on_delete=models.PROTECT, related_name="payments")
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[validate_non_negative])
    paid_at = models.DateTimeField()
    payment_method = models.CharField(max_length=15, choices=PAYMENT_METHOD_CHOICES)
    payment_proof = models.CharField(
        max_length=1024, blank=True, default="", help_text="Opaque storage key or URL of the proof."
    )
    note = models.TextField(blank=True, default="")
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recorded_payments",
    )
    verified_by_tenant = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-paid_at"]

    def __str__(self):
        return f"Payment {self.amount} on {self.bill}"


class LedgerEntry(TimeStampedModel):
    """One dated charge and/or payment line within a bill."""

    CREATED_BY_CHOICES = [
        ("landlord", "Landlord"),
        ("tenant", "Tenant"),
    ]

    bill = models.ForeignKey(Bill, on_delete=models.CASCADE, related_name="entries")
    sequence = models.PositiveIntegerField(help_text="Creation order within the bill.")
    entry_date = models.DateTimeField()
    description = models.CharField(max_length=255)

    # Electricity (derived from meter readings)
    electricity_previous_reading = models.PositiveIntegerField(null=True, blank=True)
    electricity_current_reading = models.PositiveIntegerField(null=True, blank=True)
    electricity_units_consumed = models.PositiveIntegerField(null=True, blank=True)
    electricity_rate = models.DecimalField(max_digits=12, decimal_places=4, null=True, blank=True)
    electricity_total = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    # Other charges
    water_bill = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    rent_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    debit_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    credit_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    payment_method = models.CharField(max_length=15, choices=PAYMENT_METHOD_CHOICES, blank=True, default="")
    payment_proof = models.CharField(max_length=1024, blank=True, default="")
    payment = models.OneToOneField(
        Payment, on_delete=models.PROTECT, null=True, blank=True, related_name="ledger_entry"
    )

    verified_by_tenant = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)
    is_edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)
    created_by = models.CharField(max_length=10, choices=CREATED_BY_CHOICES, default="landlord")

    class Meta:
        ordering = ["bill", "sequence"]
        verbose_name_plural = "Ledger entries"
        constraints = [
            models.UniqueConstraint(fields=["bill", "sequence"], name="unique_entry_sequence_per_bill"),
        ]

    def __str__(self):
        return f"#{self.sequence} {self.description}"

    @property
    def edit_deadline(self):
        return self.created_at + timedelta(hours=settings.LEDGER_EDIT_WINDOW_HOURS)

    def is_within_edit_window(self, now):
        return now <= self.edit_deadline

    def is_editable(self, now):
        return not self.verified_by_tenant and self.is_within_edit_window(now)

    @property
    def net_amount(self):
        return (self.debit_amount or ZERO) - (self.credit_amount or ZERO)
