from django.contrib import admin
from .models import CostEntry, CostRate, CostType, HourlyRate, TimeEntry


class CostRateInline(admin.TabularInline):
    model = CostRate
    extra = 1


@admin.register(CostType)
class CostTypeAdmin(admin.ModelAdmin):
    list_display = ["name", "unit", "unit_plural", "is_default", "is_locked"]
    list_filter = ["is_default", "is_locked"]
    search_fields = ["name"]
    inlines = [CostRateInline]


@admin.register(HourlyRate)
class HourlyRateAdmin(admin.ModelAdmin):
    list_display = ["user", "project", "valid_from", "rate"]
    list_filter = ["project"]
    search_fields = ["user__username", "project__name"]


@admin.register(CostEntry)
class CostEntryAdmin(admin.ModelAdmin):
    list_display = ["work_package", "cost_type", "units", "costs", "overridden_costs", "user", "spent_on"]
    list_filter = ["project", "cost_type"]
    readonly_fields = ["costs", "created_at", "updated_at"]
    date_hierarchy = "spent_on"


@admin.register(TimeEntry)
class TimeEntryAdmin(admin.ModelAdmin):
    list_display = ["work_package", "hours", "costs", "overridden_costs", "user", "spent_on"]
    list_filter = ["project"]
    readonly_fields = ["costs", "created_at", "updated_at"]
    date_hierarchy = "spent_on"
