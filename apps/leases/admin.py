from django.contrib import admin

from .models import Tenancy


@admin.register(Tenancy)
class TenancyAdmin(admin.ModelAdmin):
    list_display = ("property", "tenant", "landlord", "status", "monthly_rent", "currency", "lease_start", "lease_end")
    list_filter = ("status", "currency")
    search_fields = ("property__name", "tenant__username", "tenant__email", "landlord__username")
    readonly_fields = ("ended_at",)
