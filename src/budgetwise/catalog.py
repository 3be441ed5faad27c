"""Registry of transaction categories, subcategories and labels."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from budgetwise.config import get_logger
from budgetwise.errors import ConflictError, NotFoundError, ValidationError
from budgetwise.models import (
    TRANSFER_CATEGORY,
    Transaction,
    TransactionCategory,
    TransactionLabel,
)

logger = get_logger(__name__)


def _require_name(name: str, field: str = "name") -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError(f"{field} must not be empty", field=field, value=name)
    return cleaned


class CategoryCatalog:
    """Categories (each with sorted subcategories) and labels (sorted by name).

    Categories keep their insertion order, matching how they are listed in
    forms.
    """

    def __init__(
        self,
        categories: Iterable[TransactionCategory] = (),
        labels: Iterable[TransactionLabel] = (),
        transfer_category: str = TRANSFER_CATEGORY,
    ):
        self._categories: dict[str, TransactionCategory] = {}
        self._labels: dict[str, TransactionLabel] = {}
        self._transfer_category = transfer_category
        self._logger = logger.bind(component="category_catalog")
        for category in categories:
            self.add_category(category.name)
            for sub in category.subcategories:
                self.add_subcategory(category.name, sub)
        for label in labels:
            self.add_label(label.name, label.description)

    # Categories

    @property
    def categories(self) -> list[TransactionCategory]:
        return list(self._categories.values())

    def get_category(self, name: str) -> TransactionCategory:
        category = self._categories.get(name)
        if category is None:
            raise NotFoundError("category", name)
        return category

    def add_category(self, name: str) -> TransactionCategory:
        name = _require_name(name)
        if name in self._categories:
            raise ValidationError(f"Category {name!r} already exists", field="name", value=name)
        category = TransactionCategory(name=name)
        self._categories[name] = category
        return category

    def rename_category(self, old_name: str, new_name: str) -> TransactionCategory:
        category = self.get_category(old_name)
        new_name = _require_name(new_name)
        if old_name == self._transfer_category:
            raise ConflictError(f"The {old_name!r} category is reserved for transfers")
        if new_name != old_name and new_name in self._categories:
            raise ValidationError(
                f"Category {new_name!r} already exists", field="name", value=new_name
            )
        renamed = replace(category, name=new_name)
        # Rebuild to keep the category in its original position.
        self._categories = {
            (new_name if key == old_name else key): (renamed if key == old_name else value)
            for key, value in self._categories.items()
        }
        self._logger.info("category_renamed", old_name=old_name, new_name=new_name)
        return renamed

    def remove_category(self, name: str) -> None:
        self.get_category(name)
        if name == self._transfer_category:
            raise ConflictError(f"The {name!r} category is reserved for transfers")
        del self._categories[name]

    # Subcategories

    def add_subcategory(self, category_name: str, name: str) -> TransactionCategory:
        category = self.get_category(category_name)
        name = _require_name(name, "subcategory")
        if name in category.subcategories:
            raise ValidationError(
                f"Subcategory {name!r} already exists in {category_name!r}",
                field="subcategory",
                value=name,
            )
        updated = replace(category, subcategories=tuple(sorted((*category.subcategories, name))))
        self._categories[category_name] = updated
        return updated

    def rename_subcategory(
        self, category_name: str, old_name: str, new_name: str
    ) -> TransactionCategory:
        category = self.get_category(category_name)
        if old_name not in category.subcategories:
            raise NotFoundError("subcategory", f"{category_name}/{old_name}")
        new_name = _require_name(new_name, "subcategory")
        if new_name != old_name and new_name in category.subcategories:
            raise ValidationError(
                f"Subcategory {new_name!r} already exists in {category_name!r}",
                field="subcategory",
                value=new_name,
            )
        subs = sorted(new_name if s == old_name else s for s in category.subcategories)
        updated = replace(category, subcategories=tuple(subs))
        self._categories[category_name] = updated
        return updated

    def remove_subcategory(self, category_name: str, name: str) -> TransactionCategory:
        category = self.get_category(category_name)
        if name not in category.subcategories:
            raise NotFoundError("subcategory", f"{category_name}/{name}")
        updated = replace(
            category, subcategories=tuple(s for s in category.subcategories if s != name)
        )
        self._categories[category_name] = updated
        return updated

    # Labels

    @property
    def labels(self) -> list[TransactionLabel]:
        return sorted(self._labels.values(), key=lambda label: label.name)

    def get_label(self, name: str) -> TransactionLabel:
        label = self._labels.get(name)
        if label is None:
            raise NotFoundError("label", name)
        return label

    def add_label(self, name: str, description: str = "") -> TransactionLabel:
        name = _require_name(name)
        if name in self._labels:
            raise ValidationError(f"Label {name!r} already exists", field="name", value=name)
        label = TransactionLabel(name=name, description=description)
        self._labels[name] = label
        return label

    def update_label(
        self, name: str, new_name: str | None = None, description: str | None = None
    ) -> TransactionLabel:
        label = self.get_label(name)
        target = _require_name(new_name) if new_name is not None else name
        if target != name and target in self._labels:
            raise ValidationError(f"Label {target!r} already exists", field="name", value=target)
        updated = TransactionLabel(
            name=target,
            description=label.description if description is None else description,
        )
        del self._labels[name]
        self._labels[target] = updated
        return updated

    def remove_label(self, name: str) -> None:
        self.get_label(name)
        del self._labels[name]

    # Validation

    def check_transaction(self, tx: Transaction) -> None:
        """Raise NotFoundError when ``tx`` names an unknown category, subcategory or label."""
        category = self.get_category(tx.category)
        if tx.subcategory and tx.subcategory not in category.subcategories:
            raise NotFoundError("subcategory", f"{tx.category}/{tx.subcategory}")
        if tx.label:
            self.get_label(tx.label)
