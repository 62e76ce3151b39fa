from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import DatabaseError, models, transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from apps.costs.models import ZERO, CostEntry, HourlyRate, TimeEntry, money
from apps.permissions.permissions import has_permission, projects_allowed_to

from .items import (
    ITEM_TYPES,
    LABOR,
    MATERIAL,
    BudgetItemCollection,
    ItemSaveResult,
    ReconcileResult,
    check_item_type,
    normalize_attributes,
    permitted_attributes,
    valid_attributes,
)

logger = logging.getLogger(__name__)

User = settings.AUTH_USER_MODEL

COPY_EXCLUDED_FIELDS = ("id", "created_at", "updated_at")


class BudgetQuerySet(models.QuerySet):
    def visible(self, actor):
        """Budgets in the projects where ``actor`` may view budgets."""
        return self.filter(project__in=projects_allowed_to(actor, "view_budgets"))

    def for_project(self, project):
        return self.filter(project=project)


class BudgetManager(models.Manager.from_queryset(BudgetQuerySet)):
    def create_budget(self, subject, project, fixed_date, author=None, *, actor=None, description=""):
        """
        Validate and save a new budget.

        Raises ``ValidationError`` without touching the database when a
        required field is missing or the subject is too long.
        """
        budget = self.model(
            subject=subject,
            project=project,
            fixed_date=fixed_date,
            author=author or actor,
            description=description,
        )
        budget.full_clean()
        budget.save()
        logger.info(f"Budget {budget.pk} '{budget.subject}' created in project {budget.project_id}")
        return budget


class Budget(models.Model):
    """
    Planned spending envelope of a project.

    The plan is made of material and labor line items; actual spending is read
    from the cost and time entries booked on the work packages assigned to the
    budget. Every financial figure takes the acting user so that costs the
    user may not see are left out; ``actor=None`` computes the unfiltered
    figure.
    """
    subject = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    project = models.ForeignKey("projects.Project", on_delete=models.CASCADE, related_name="budgets")
    author = models.ForeignKey(User, on_delete=models.PROTECT, related_name="authored_budgets")
    fixed_date = models.DateField(help_text="Date at which unit prices and hourly rates are looked up")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BudgetManager()

    class Meta:
        ordering = ["-fixed_date", "-id"]
        indexes = [
            models.Index(fields=["project", "fixed_date"], name="budgeting_b_project_3c9e1a_idx"),
        ]

    def __str__(self):
        return self.subject

    @property
    def name(self):
        return self.subject

    @property
    def type_label(self):
        return _("Budget")

    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)
        self.__dict__.pop("_item_collections", None)

    # ---- line item collections -------------------------------------------------

    def items(self, item_type: str) -> BudgetItemCollection:
        check_item_type(item_type)
        collections = self.__dict__.setdefault("_item_collections", {})
        if item_type not in collections:
            model = MaterialBudgetItem if item_type == MATERIAL else LaborBudgetItem
            collections[item_type] = BudgetItemCollection(self, item_type, model)
        return collections[item_type]

    @property
    def material_items(self) -> BudgetItemCollection:
        return self.items(MATERIAL)

    @property
    def labor_items(self) -> BudgetItemCollection:
        return self.items(LABOR)

    def _assignee_ids(self, item_type):
        if item_type != LABOR or self.project_id is None:
            return frozenset()
        return self.project.possible_assignee_ids()

    def apply_new_items(self, attributes_by_index, item_type: str) -> List:
        """
        Build pending items from client bags keyed by an arbitrary index.

        Bags with a non-positive quantity (or, for labor, a user who cannot be
        assigned in the project) are dropped without error. Nothing is saved.
        """
        collection = self.items(item_type)
        assignee_ids = self._assignee_ids(item_type)
        built = []
        for index, bag in (attributes_by_index or {}).items():
            attributes = normalize_attributes(item_type, bag)
            if not valid_attributes(item_type, attributes, assignee_ids):
                logger.debug(f"Dropped new {item_type} item {index!r} of budget {self.pk}")
                continue
            built.append(collection.build(**permitted_attributes(item_type, attributes)))
        return built

    def reconcile_existing_items(self, attributes_by_id, item_type: str, *, actor) -> ReconcileResult:
        """
        Apply client bags keyed by item id to the persisted items.

        Items with a valid bag are updated in memory only. Items without a
        bag, or with an invalid one, are removed from the collection and
        deleted immediately. Does nothing when ``actor`` may not edit.
        """
        result = ReconcileResult()
        if not self.edit_allowed(actor):
            logger.debug(f"User {getattr(actor, 'pk', None)} may not edit budget {self.pk}; items left as they are")
            return result

        collection = self.items(item_type)
        assignee_ids = self._assignee_ids(item_type)
        attributes_by_id = attributes_by_id or {}
        for item in collection.persisted():
            attributes = normalize_attributes(item_type, attributes_by_id.get(str(item.pk)))
            if valid_attributes(item_type, attributes, assignee_ids):
                for name, value in permitted_attributes(item_type, attributes).items():
                    setattr(item, name, value)
                result.updated.append(item)
            else:
                result.removed_ids.append(item.pk)
                collection.remove(item)

        if result.removed_ids:
            logger.info(f"Removed {item_type} items {result.removed_ids} from budget {self.pk}")
        return result

    def persist_items(self, item_type: str) -> List[ItemSaveResult]:
        """
        Save each item of the collection on its own, skipping validation.

        A database error on one item is logged and reported in the result
        list; the remaining items are still saved.
        """
        if self.pk is None:
            raise ValueError("Budget must be saved before its items can be persisted.")
        results = []
        for item in self.items(item_type):
            item.budget = self
            try:
                with transaction.atomic():
                    item.save()
            except DatabaseError as exc:
                logger.warning(f"Could not save {item_type} item of budget {self.pk}: {exc}")
                results.append(ItemSaveResult(item=item, saved=False, error=exc))
            else:
                results.append(ItemSaveResult(item=item, saved=True))
        return results

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        self.item_save_results = []
        if kwargs.get("update_fields") is not None:
            return
        collections = self.__dict__.get("_item_collections", {})
        for item_type in ITEM_TYPES:
            collection = collections.get(item_type)
            if collection is not None and collection.is_loaded:
                self.item_save_results.extend(self.persist_items(item_type))

    def clean(self):
        errors = {}
        if self.subject and not self.subject.strip():
            errors["subject"] = ["This field cannot be blank."]

        collections = self.__dict__.get("_item_collections", {})
        for item_type in ITEM_TYPES:
            collection = collections.get(item_type)
            if collection is None or not collection.is_loaded:
                continue
            assignee_ids = self._assignee_ids(item_type)
            messages = []
            for item in collection:
                try:
                    item.full_clean(exclude=["budget"])
                    if item_type == LABOR:
                        item.validate_assignee(assignee_ids)
                except ValidationError as exc:
                    messages.extend(exc.messages)
            if messages:
                errors[f"{item_type}_budget_items"] = messages

        if errors:
            raise ValidationError(errors)

    # ---- copying ---------------------------------------------------------------

    @classmethod
    def copy_from(cls, source, *, actor=None) -> "Budget":
        """
        Unsaved budget with the scalar values and copies of the items of
        ``source`` (a budget or its primary key).
        """
        if not isinstance(source, cls):
            source = cls.objects.get(pk=source)
        budget = cls(**{
            field.attname: getattr(source, field.attname)
            for field in cls._meta.concrete_fields
            if field.name not in COPY_EXCLUDED_FIELDS
        })
        if actor is not None:
            budget.author = actor
        for item_type in ITEM_TYPES:
            collection = budget.items(item_type)
            for item in source.items(item_type):
                collection.add(item.duplicate())
        return budget

    # ---- authorization ---------------------------------------------------------

    def edit_allowed(self, actor) -> bool:
        return has_permission(actor, "edit_budgets", self.project if self.project_id else None)

    # ---- financial figures -----------------------------------------------------

    def _budgeted(self, item_type, actor) -> Decimal:
        collection = self.items(item_type)
        project = self.project if self.project_id else None
        is_visible = collection.model.costs_visible_to(actor, project)
        return money(sum((item.costs for item in collection if is_visible(item)), ZERO))

    def material_budget(self, actor=None) -> Decimal:
        return self._budgeted(MATERIAL, actor)

    def labor_budget(self, actor=None) -> Decimal:
        return self._budgeted(LABOR, actor)

    def budget(self, actor=None) -> Decimal:
        return self.material_budget(actor) + self.labor_budget(actor)

    def _spent(self, entry_model, actor) -> Decimal:
        if self.pk is None:
            return ZERO
        entries = entry_model.objects.filter(work_package__budget=self)
        if not entries.exists():
            return ZERO
        total = (
            entries.visible_costs(actor, self.project)
            .aggregate(total=Sum(Coalesce("overridden_costs", "costs")))["total"]
        )
        return money(total)

    def spent_material(self, actor=None) -> Decimal:
        return self._spent(CostEntry, actor)

    def spent_labor(self, actor=None) -> Decimal:
        return self._spent(TimeEntry, actor)

    def spent(self, actor=None) -> Decimal:
        return self.spent_material(actor) + self.spent_labor(actor)

    def budget_ratio(self, actor=None) -> int:
        """Spent share of the budget in whole percent, 0 for an empty budget."""
        budgeted = self.budget(actor)
        if not budgeted:
            return 0
        ratio = (self.spent(actor) / budgeted) * 100
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    # ---- user removal ----------------------------------------------------------

    @classmethod
    def replace_author_with_deleted_user(cls, user) -> int:
        from apps.users.models import DeletedUser

        substitute = DeletedUser.objects.get_sentinel()
        return cls.objects.filter(author=user).update(author=substitute)


class BudgetItem(models.Model):
    """Fields and behaviour shared by material and labor line items."""
    comments = models.CharField(max_length=255, blank=True)
    amount = models.DecimalField(
        max_digits=15,
        decimal_places=4,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Manual cost that replaces the calculated one",
    )

    PRELOAD = ()

    class Meta:
        abstract = True
        ordering = ["id"]

    def calculated_costs(self) -> Decimal:
        raise NotImplementedError

    @property
    def costs(self) -> Decimal:
        if self.amount is not None:
            return money(self.amount)
        return self.calculated_costs()

    def duplicate(self):
        """Unsaved copy of the item without its budget."""
        return type(self)(**{
            field.attname: getattr(self, field.attname)
            for field in self._meta.concrete_fields
            if field.name not in ("id", "budget")
        })


class MaterialBudgetItem(BudgetItem):
    budget = models.ForeignKey(Budget, on_delete=models.CASCADE, related_name="material_budget_items")
    units = models.DecimalField(max_digits=15, decimal_places=4, validators=[MinValueValidator(Decimal("0"))])
    cost_type = models.ForeignKey("costs.CostType", on_delete=models.PROTECT, related_name="material_budget_items")

    PRELOAD = ("cost_type",)

    class Meta(BudgetItem.Meta):
        pass

    def __str__(self):
        return f"{self.units} x {self.cost_type}" if self.cost_type_id else f"{self.units} units"

    def calculated_costs(self) -> Decimal:
        if self.cost_type_id is None or self.units is None:
            return ZERO
        return money(self.units * self.cost_type.unit_price_at(self.budget.fixed_date))

    @staticmethod
    def costs_visible_to(actor, project):
        if actor is None:
            return lambda item: True
        allowed = has_permission(actor, "view_cost_rates", project)
        return lambda item: allowed


class LaborBudgetItem(BudgetItem):
    budget = models.ForeignKey(Budget, on_delete=models.CASCADE, related_name="labor_budget_items")
    hours = models.DecimalField(max_digits=15, decimal_places=4, validators=[MinValueValidator(Decimal("0"))])
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="labor_budget_items")

    PRELOAD = ("user",)

    class Meta(BudgetItem.Meta):
        pass

    def __str__(self):
        return f"{self.hours}h of {self.user}" if self.user_id else f"{self.hours}h"

    def calculated_costs(self) -> Decimal:
        if self.user_id is None or self.hours is None:
            return ZERO
        budget = self.budget
        return money(self.hours * HourlyRate.amount_for(self.user, budget.project, budget.fixed_date))

    def validate_assignee(self, assignee_ids):
        if self.user_id is not None and self.user_id not in assignee_ids:
            raise ValidationError({"user": "User cannot be assigned to work in this project."})

    @staticmethod
    def costs_visible_to(actor, project):
        if actor is None:
            return lambda item: True
        if has_permission(actor, "view_hourly_rates", project):
            return lambda item: True
        if has_permission(actor, "view_own_hourly_rate", project):
            return lambda item: item.user_id == actor.pk
        return lambda item: False

    @classmethod
    def replace_user_with_deleted_user(cls, user) -> int:
        from apps.users.models import DeletedUser

        substitute = DeletedUser.objects.get_sentinel()
        return cls.objects.filter(user=user).update(user=substitute)
