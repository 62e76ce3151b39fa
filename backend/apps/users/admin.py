from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from .models import User, UserProjectRole


class UserProjectRoleInline(admin.TabularInline):
    model = UserProjectRole
    extra = 0


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    fieldsets = (
        (None, {"fields": ("username", "password")}),
        ("Personal info", {"fields": ("first_name", "last_name", "email", "phone")}),
        (
            "Permissions",
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                    "is_system_admin",
                    "is_deleted_user",
                )
            },
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    list_display = ("username", "email", "first_name", "last_name", "is_staff", "is_deleted_user")
    list_filter = ("is_staff", "is_superuser", "is_active", "is_deleted_user")
    search_fields = ("username", "first_name", "last_name", "email")
    ordering = ("username",)
    inlines = [UserProjectRoleInline]


@admin.register(UserProjectRole)
class UserProjectRoleAdmin(admin.ModelAdmin):
    list_display = ["user", "project", "role", "is_active", "assigned_at"]
    list_filter = ["project", "role", "is_active"]
    search_fields = ["user__username", "user__email", "project__name", "role__name"]
