from django.contrib import admin

from .models import Bill, LedgerEntry, Payment


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    extra = 0
    can_delete = False
    fields = (
        "sequence", "entry_date", "description", "electricity_units_consumed",
        "electricity_total", "water_bill", "rent_amount", "debit_amount",
        "credit_amount", "verified_by_tenant", "is_edited",
    )
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    """Bills change only through ledger recalculation, so the admin is read-only."""

    list_display = ("tenancy", "month", "status", "total_bill", "paid_amount", "remaining_amount", "carry_forward", "due_date")
    list_filter = ("status", "currency")
    search_fields = ("tenancy__property__name", "tenancy__tenant__username")
    date_hierarchy = "month"
    inlines = [LedgerEntryInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = ("bill", "sequence", "description", "debit_amount", "credit_amount", "net_amount", "verified_by_tenant", "is_edited", "created_at")
    list_filter = ("verified_by_tenant", "is_edited", "payment_method", "created_by")
    search_fields = ("description",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("bill", "amount", "payment_method", "paid_at", "verified_by_tenant")
    list_filter = ("payment_method", "verified_by_tenant")
    readonly_fields = ("bill", "amount", "paid_at", "payment_method", "payment_proof", "recorded_by", "verified_by_tenant", "verified_at")
