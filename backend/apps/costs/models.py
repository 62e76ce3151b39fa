from __future__ import annotations

from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.permissions.permissions import has_permission

User = settings.AUTH_USER_MODEL

FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0.0000")


def money(value) -> Decimal:
    """Quantize a monetary value to the four fractional digits used for costs."""
    if value is None:
        return ZERO
    return Decimal(value).quantize(FOUR_PLACES)


class CostType(models.Model):
    """
    Kind of material cost (e.g. "Concrete", unit "m³") with dated unit prices.
    """
    name = models.CharField(max_length=255, unique=True)
    unit = models.CharField(max_length=255)
    unit_plural = models.CharField(max_length=255)
    is_default = models.BooleanField(default=False)
    is_locked = models.BooleanField(default=False, help_text="Locked types cannot be booked anymore")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def rate_at(self, on_date) -> Optional["CostRate"]:
        on_date = on_date or timezone.now().date()
        return self.rates.filter(valid_from__lte=on_date).order_by("-valid_from").first()

    def unit_price_at(self, on_date) -> Decimal:
        rate = self.rate_at(on_date)
        return rate.rate if rate else ZERO


class CostRate(models.Model):
    cost_type = models.ForeignKey(CostType, on_delete=models.CASCADE, related_name="rates")
    valid_from = models.DateField()
    rate = models.DecimalField(max_digits=15, decimal_places=4, validators=[MinValueValidator(Decimal("0"))])

    class Meta:
        ordering = ["-valid_from"]
        constraints = [
            models.UniqueConstraint(fields=["cost_type", "valid_from"], name="unique_cost_rate_per_day"),
        ]

    def __str__(self):
        return f"{self.cost_type} @ {self.rate} from {self.valid_from}"


class HourlyRate(models.Model):
    """
    Hourly rate of a user. Rates without a project are the user's default rate,
    used wherever no project-specific rate is in force.
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="hourly_rates")
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="hourly_rates",
    )
    valid_from = models.DateField()
    rate = models.DecimalField(max_digits=15, decimal_places=4, validators=[MinValueValidator(Decimal("0"))])

    class Meta:
        ordering = ["-valid_from"]
        indexes = [
            models.Index(fields=["user", "project", "valid_from"], name="costs_hourl_user_id_5b1f0e_idx"),
        ]

    def __str__(self):
        scope = self.project or "default"
        return f"{self.user} ({scope}) @ {self.rate} from {self.valid_from}"

    @classmethod
    def rate_for(cls, user, project, on_date) -> Optional["HourlyRate"]:
        if user is None:
            return None
        on_date = on_date or timezone.now().date()
        base = cls.objects.filter(user=user, valid_from__lte=on_date).order_by("-valid_from")
        if project is not None and project.pk is not None:
            project_rate = base.filter(project=project).first()
            if project_rate is not None:
                return project_rate
        return base.filter(project__isnull=True).first()

    @classmethod
    def amount_for(cls, user, project, on_date) -> Decimal:
        rate = cls.rate_for(user, project, on_date)
        return rate.rate if rate else ZERO


class CostEntryQuerySet(models.QuerySet):
    def visible_costs(self, actor, project):
        """
        Entries of ``project`` whose costs ``actor`` may see.

        ``actor=None`` is the system context and applies no permission filter.
        """
        qs = self.filter(project=project)
        if actor is None:
            return qs
        if not has_permission(actor, "view_cost_rates", project):
            return qs.none()
        if has_permission(actor, "view_cost_entries", project):
            return qs
        if has_permission(actor, "view_own_cost_entries", project):
            return qs.filter(user=actor)
        return qs.none()


class TimeEntryQuerySet(models.QuerySet):
    def visible_costs(self, actor, project):
        """
        Entries of ``project`` whose labor costs ``actor`` may see.

        Seeing an entry and seeing its costs are granted separately; both are
        required. ``actor=None`` is the system context.
        """
        qs = self.filter(project=project)
        if actor is None:
            return qs

        if not has_permission(actor, "view_time_entries", project):
            if not has_permission(actor, "view_own_time_entries", project):
                return qs.none()
            qs = qs.filter(user=actor)

        if not has_permission(actor, "view_hourly_rates", project):
            if not has_permission(actor, "view_own_hourly_rate", project):
                return qs.none()
            qs = qs.filter(user=actor)
        return qs


class CostEntry(models.Model):
    """Booked material cost on a work package."""
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="cost_entries")
    project = models.ForeignKey("projects.Project", on_delete=models.CASCADE, related_name="cost_entries")
    work_package = models.ForeignKey(
        "projects.WorkPackage",
        on_delete=models.CASCADE,
        related_name="cost_entries",
    )
    cost_type = models.ForeignKey(CostType, on_delete=models.PROTECT, related_name="cost_entries")
    units = models.DecimalField(max_digits=15, decimal_places=4, validators=[MinValueValidator(Decimal("0"))])
    spent_on = models.DateField(default=timezone.localdate)
    costs = models.DecimalField(max_digits=15, decimal_places=4, default=Decimal("0"))
    overridden_costs = models.DecimalField(max_digits=15, decimal_places=4, null=True, blank=True)
    comments = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CostEntryQuerySet.as_manager()

    class Meta:
        ordering = ["-spent_on", "-id"]
        verbose_name_plural = "cost entries"

    def __str__(self):
        return f"{self.units} {self.cost_type} on {self.work_package}"

    @property
    def real_costs(self) -> Decimal:
        return self.overridden_costs if self.overridden_costs is not None else self.costs

    def update_costs(self):
        self.costs = money((self.units or ZERO) * self.cost_type.unit_price_at(self.spent_on))

    def save(self, *args, **kwargs):
        self.update_costs()
        super().save(*args, **kwargs)


class TimeEntry(models.Model):
    """Booked working hours on a work package."""
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="time_entries")
    project = models.ForeignKey("projects.Project", on_delete=models.CASCADE, related_name="time_entries")
    work_package = models.ForeignKey(
        "projects.WorkPackage",
        on_delete=models.CASCADE,
        related_name="time_entries",
    )
    hours = models.DecimalField(max_digits=15, decimal_places=4, validators=[MinValueValidator(Decimal("0"))])
    spent_on = models.DateField(default=timezone.localdate)
    costs = models.DecimalField(max_digits=15, decimal_places=4, default=Decimal("0"))
    overridden_costs = models.DecimalField(max_digits=15, decimal_places=4, null=True, blank=True)
    comments = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TimeEntryQuerySet.as_manager()

    class Meta:
        ordering = ["-spent_on", "-id"]
        verbose_name_plural = "time entries"

    def __str__(self):
        return f"{self.hours}h by {self.user} on {self.work_package}"

    @property
    def real_costs(self) -> Decimal:
        return self.overridden_costs if self.overridden_costs is not None else self.costs

    def update_costs(self):
        rate = HourlyRate.amount_for(self.user, self.project, self.spent_on)
        self.costs = money((self.hours or ZERO) * rate)

    def save(self, *args, **kwargs):
        self.update_costs()
        super().save(*args, **kwargs)
