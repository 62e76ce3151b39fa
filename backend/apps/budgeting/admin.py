from django.contrib import admin, messages

from .models import Budget, LaborBudgetItem, MaterialBudgetItem


class MaterialBudgetItemInline(admin.TabularInline):
    model = MaterialBudgetItem
    extra = 0
    fields = ["units", "cost_type", "comments", "amount"]
    autocomplete_fields = ["cost_type"]


class LaborBudgetItemInline(admin.TabularInline):
    model = LaborBudgetItem
    extra = 0
    fields = ["hours", "user", "comments", "amount"]
    raw_id_fields = ["user"]


@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ["subject", "project", "author", "fixed_date", "planned", "actual", "ratio"]
    list_filter = ["project", "fixed_date"]
    search_fields = ["subject", "description", "project__name", "author__username"]
    readonly_fields = ["created_at", "updated_at", "planned", "actual", "ratio"]
    raw_id_fields = ["author"]
    inlines = [MaterialBudgetItemInline, LaborBudgetItemInline]
    actions = ["copy_budgets"]

    # Figures in the admin are unfiltered; staff see every cost.
    @admin.display(description="Budget")
    def planned(self, obj):
        return obj.budget() if obj.pk else None

    @admin.display(description="Spent")
    def actual(self, obj):
        return obj.spent() if obj.pk else None

    @admin.display(description="Ratio (%)")
    def ratio(self, obj):
        return obj.budget_ratio() if obj.pk else None

    def get_changeform_initial_data(self, request):
        initial = super().get_changeform_initial_data(request)
        initial.setdefault("author", request.user.pk)
        return initial

    def copy_budgets(self, request, queryset):
        copied = 0
        for source in queryset:
            budget = Budget.copy_from(source, actor=request.user)
            budget.subject = f"Copy of {source.subject}"[:255]
            budget.save()
            copied += 1
        self.message_user(request, f"{copied} budget(s) copied.", level=messages.SUCCESS)

    copy_budgets.short_description = "Copy selected budgets"
