from django.contrib import admin

from apps.core.models import ActivityLog

from .models import Property


class ActivityLogInline(admin.TabularInline):
    model = ActivityLog
    extra = 0
    can_delete = False
    readonly_fields = ("type", "description", "date", "related_id")


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("name", "landlord", "status", "address")
    list_filter = ("status",)
    search_fields = ("name", "address", "landlord__username")
    inlines = [ActivityLogInline]


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("property", "type", "description", "date")
    list_filter = ("type",)
    readonly_fields = ("property", "type", "description", "date", "related_id")
