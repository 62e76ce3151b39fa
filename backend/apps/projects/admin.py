from django.contrib import admin
from .models import Project, WorkPackage


class WorkPackageInline(admin.TabularInline):
    model = WorkPackage
    fk_name = "project"
    extra = 1


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ["name", "identifier", "start_date", "end_date", "is_active"]
    list_filter = ["is_active", "start_date"]
    search_fields = ["name", "identifier"]
    prepopulated_fields = {"identifier": ("name",)}
    inlines = [WorkPackageInline]


@admin.register(WorkPackage)
class WorkPackageAdmin(admin.ModelAdmin):
    list_display = ["project", "subject", "budget", "assigned_to", "start_date", "due_date"]
    list_filter = ["project"]
    search_fields = ["subject", "project__name"]
    date_hierarchy = "start_date"
