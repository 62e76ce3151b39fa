from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .items import ITEM_TYPES
from .models import Budget, LaborBudgetItem, MaterialBudgetItem

logger = logging.getLogger(__name__)


def _actor(serializer):
    request = serializer.context.get("request")
    return getattr(request, "user", None)


def _user_display(user) -> str | None:
    if not user:
        return None
    name = getattr(user, "get_full_name", lambda: None)()
    return name or getattr(user, "username", None)


class MaterialBudgetItemSerializer(serializers.ModelSerializer):
    cost_type_name = serializers.ReadOnlyField(source="cost_type.name")
    costs = serializers.SerializerMethodField()

    class Meta:
        model = MaterialBudgetItem
        fields = ["id", "units", "cost_type", "cost_type_name", "comments", "amount", "costs"]
        read_only_fields = fields

    def get_costs(self, obj: MaterialBudgetItem) -> str | None:
        visible = self.context.get("material_costs_visible")
        if visible is not None and not visible(obj):
            return None
        return str(obj.costs)


class LaborBudgetItemSerializer(serializers.ModelSerializer):
    user_display = serializers.SerializerMethodField()
    costs = serializers.SerializerMethodField()

    class Meta:
        model = LaborBudgetItem
        fields = ["id", "hours", "user", "user_display", "comments", "amount", "costs"]
        read_only_fields = fields

    def get_user_display(self, obj: LaborBudgetItem) -> str | None:
        return _user_display(obj.user)

    def get_costs(self, obj: LaborBudgetItem) -> str | None:
        visible = self.context.get("labor_costs_visible")
        if visible is not None and not visible(obj):
            return None
        return str(obj.costs)


class BudgetSerializer(serializers.ModelSerializer):
    """
    Budget with its line items and figures as seen by the requesting user.

    Items are written through index-keyed maps of attribute bags:
    ``new_<type>_budget_item_attributes`` adds items and
    ``existing_<type>_budget_item_attributes`` (keyed by item id) updates
    the listed items and removes every persisted item left out of the map.
    """
    author_display = serializers.SerializerMethodField()
    type_label = serializers.SerializerMethodField()
    material_budget_items = serializers.SerializerMethodField()
    labor_budget_items = serializers.SerializerMethodField()
    material_budget = serializers.SerializerMethodField()
    labor_budget = serializers.SerializerMethodField()
    budget = serializers.SerializerMethodField()
    spent_material = serializers.SerializerMethodField()
    spent_labor = serializers.SerializerMethodField()
    spent = serializers.SerializerMethodField()
    budget_ratio = serializers.SerializerMethodField()
    can_edit = serializers.SerializerMethodField()

    new_material_budget_item_attributes = serializers.DictField(
        child=serializers.DictField(), required=False, write_only=True
    )
    new_labor_budget_item_attributes = serializers.DictField(
        child=serializers.DictField(), required=False, write_only=True
    )
    existing_material_budget_item_attributes = serializers.DictField(
        child=serializers.DictField(), required=False, write_only=True
    )
    existing_labor_budget_item_attributes = serializers.DictField(
        child=serializers.DictField(), required=False, write_only=True
    )

    class Meta:
        model = Budget
        fields = [
            "id",
            "subject",
            "description",
            "project",
            "author",
            "author_display",
            "fixed_date",
            "type_label",
            "material_budget_items",
            "labor_budget_items",
            "material_budget",
            "labor_budget",
            "budget",
            "spent_material",
            "spent_labor",
            "spent",
            "budget_ratio",
            "can_edit",
            "created_at",
            "updated_at",
            "new_material_budget_item_attributes",
            "new_labor_budget_item_attributes",
            "existing_material_budget_item_attributes",
            "existing_labor_budget_item_attributes",
        ]
        read_only_fields = ["author", "created_at", "updated_at"]

    # ---- read side -------------------------------------------------------------

    def _item_context(self, obj: Budget):
        actor = _actor(self)
        project = obj.project if obj.project_id else None
        return {
            **self.context,
            "material_costs_visible": MaterialBudgetItem.costs_visible_to(actor, project),
            "labor_costs_visible": LaborBudgetItem.costs_visible_to(actor, project),
        }

    def get_author_display(self, obj: Budget) -> str | None:
        return _user_display(obj.author)

    def get_type_label(self, obj: Budget) -> str:
        return str(obj.type_label)

    def get_material_budget_items(self, obj: Budget):
        return MaterialBudgetItemSerializer(list(obj.material_items), many=True, context=self._item_context(obj)).data

    def get_labor_budget_items(self, obj: Budget):
        return LaborBudgetItemSerializer(list(obj.labor_items), many=True, context=self._item_context(obj)).data

    def get_material_budget(self, obj: Budget) -> str:
        return str(obj.material_budget(_actor(self)))

    def get_labor_budget(self, obj: Budget) -> str:
        return str(obj.labor_budget(_actor(self)))

    def get_budget(self, obj: Budget) -> str:
        return str(obj.budget(_actor(self)))

    def get_spent_material(self, obj: Budget) -> str:
        return str(obj.spent_material(_actor(self)))

    def get_spent_labor(self, obj: Budget) -> str:
        return str(obj.spent_labor(_actor(self)))

    def get_spent(self, obj: Budget) -> str:
        return str(obj.spent(_actor(self)))

    def get_budget_ratio(self, obj: Budget) -> int:
        return obj.budget_ratio(_actor(self))

    def get_can_edit(self, obj: Budget) -> bool:
        return obj.edit_allowed(_actor(self))

    # ---- write side ------------------------------------------------------------

    def validate_project(self, value):
        if self.instance is not None and value != self.instance.project:
            raise serializers.ValidationError("A budget cannot be moved to another project.")
        return value

    @staticmethod
    def _pop_item_bags(validated_data, prefix):
        return {
            item_type: validated_data.pop(f"{prefix}_{item_type}_budget_item_attributes", None)
            for item_type in ITEM_TYPES
        }

    @staticmethod
    def _save(budget: Budget) -> Budget:
        try:
            budget.full_clean()
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.message_dict) from exc
        budget.save()
        failed = [result for result in budget.item_save_results if not result.saved]
        if failed:
            logger.warning(f"Budget {budget.pk} saved with {len(failed)} line items that could not be stored")
        return budget

    def create(self, validated_data):
        new_items = self._pop_item_bags(validated_data, "new")
        self._pop_item_bags(validated_data, "existing")
        budget = Budget(author=_actor(self), **validated_data)
        for item_type, bags in new_items.items():
            budget.apply_new_items(bags, item_type)
        return self._save(budget)

    def update(self, instance: Budget, validated_data):
        new_items = self._pop_item_bags(validated_data, "new")
        existing_items = self._pop_item_bags(validated_data, "existing")
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        actor = _actor(self)
        for item_type, bags in existing_items.items():
            if bags is not None:
                instance.reconcile_existing_items(bags, item_type, actor=actor)
        for item_type, bags in new_items.items():
            instance.apply_new_items(bags, item_type)
        return self._save(instance)
