"""Data models for products, recipes and stock batches."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Generic, Iterable, TypeVar

from .validator import (
    ErrorDetails,
    ValidationError,
    validate_alphanumeric_name,
    validate_id,
    validate_not_zero,
    validate_string_length,
)

T = TypeVar("T")
_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass(kw_only=True)
class Unit:
    id: int | None = None
    name: str = ""
    symbol: str = ""


@dataclass(kw_only=True)
class Category:
    id: int | None = None
    name: str | None = None


@dataclass(kw_only=True)
class PaginationParams:
    page_size: int = 10
    cursor: tuple[str, ...] | None = None
    backwards: bool = False


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results with the cursors of its first and last items."""

    items: list[T]
    page_size: int
    start_cursor: list[str] | None = None
    end_cursor: list[str] | None = None


def paginate(items: Iterable[Any], page_size: int) -> Page:
    """Wrap items in a page whose cursors come from its first and last item."""
    listed = list(items)
    if not listed:
        return Page([], page_size)
    return Page(
        listed,
        page_size,
        start_cursor=listed[0].cursor_value(),
        end_cursor=listed[-1].cursor_value(),
    )


def _require_id(value: int | None) -> int:
    if value is None:
        raise ValueError("record has no id")
    return value


@dataclass(kw_only=True)
class UpdateSkuInput:
    old_sku: str
    new_sku: str


@dataclass(kw_only=True)
class ProductOptionValue:
    id: int | None = None
    value: str = ""


@dataclass(kw_only=True)
class ProductOption:
    id: int | None = None
    name: str = ""
    values: list[ProductOptionValue] = field(default_factory=list)


@dataclass(kw_only=True)
class AddVariantValueInput:
    product_option_id: int
    value: str

    def to_option_value(self) -> ProductOptionValue:
        return ProductOptionValue(value=self.value)


@dataclass(kw_only=True)
class ProductBase:
    id: int | None = None
    name: str | None = None
    description: str = ""
    image: str = ""
    is_archived: bool = False
    category_id: int | None = None
    is_ingredient: bool = False

    def cursor_value(self) -> list[str]:
        return [str(_require_id(self.id))]


@dataclass(kw_only=True)
class ProductVariantBase:
    id: int | None = None
    product_id: int | None = None
    name: str = ""
    sku: str = ""
    image: str = ""
    price: float = 0.0
    width_in_cm: float | None = None
    height_in_cm: float | None = None
    depth_in_cm: float | None = None
    weight_in_g: float | None = None
    standard_unit_id: int | None = None
    is_archived: bool = False
    is_default: bool = False
    expires_in_days: int = 0


@dataclass(kw_only=True)
class RecipeBase:
    id: int | None = None
    result_variant_sku: str = ""
    quantity: float = 0.0
    unit_id: int | None = None
    recipe_variant_sku: str = ""

    def lookup_key(self) -> str:
        return recipe_lookup_key(self.result_variant_sku, self.recipe_variant_sku)


@dataclass(kw_only=True)
class Recipe:
    id: int | None = None
    result_variant_id: int | None = None
    result_variant_name: str = ""
    result_variant_sku: str = ""
    product_name: str = ""
    quantity: float = 0.0
    unit: Unit = field(default_factory=Unit)
    recipe_variant_id: int | None = None
    recipe_variant_name: str = ""
    recipe_variant_sku: str = ""
    ingredient_cost: float = 0.0
    ingredient_standard_unit: Unit | None = None

    def lookup_key(self) -> str:
        return recipe_lookup_key(self.result_variant_sku, self.recipe_variant_sku)


def recipe_lookup_key(result_variant_sku: str, recipe_variant_sku: str) -> str:
    return f"{result_variant_sku}-{recipe_variant_sku}"


@dataclass(kw_only=True)
class ProductVariant(ProductVariantBase):
    product_name: str = ""
    is_ingredient: bool = False
    total_cost: float = 0.0
    recipes: list[Recipe] = field(default_factory=list)
    standard_unit: Unit | None = None

    def cursor_value(self) -> list[str]:
        return [str(_require_id(self.id))]

    def add_value_to_name(self, value: str) -> ProductVariant:
        """Return a copy whose name also holds ``value``, re-sorted."""
        parts = [*self.name.split("_"), value]
        name = generate_name([ProductOptionValue(value=part) for part in parts])
        return replace(self, name=name)


@dataclass(kw_only=True)
class Product(ProductBase):
    category: Category | None = None
    options: dict[str, ProductOption] = field(default_factory=dict)
    product_variants: list[ProductVariant] = field(default_factory=list)


@dataclass(kw_only=True)
class ProductInput(ProductBase):
    expires_in_days: int = 0
    standard_unit_id: int | None = None
    price: float = 0.0
    options: list[ProductOption] = field(default_factory=list)
    product_variants: list[ProductVariant] = field(default_factory=list)
    sku_option_values: dict[str, list[ProductOptionValue]] = field(
        default_factory=dict, repr=False
    )

    def generate_product_details(self) -> ProductInput:
        """Return a copy holding the product's default variant."""
        if not self.options:
            variant = self._create_variant("normal", is_default=True)
            return replace(self, product_variants=[variant], sku_option_values={})
        first_values = []
        for option in self.options:
            if not option.values:
                raise ValueError(f"option {option.name!r} has no values")
            first_values.append(option.values[0])
        variant = self._create_variant(generate_name(first_values), is_default=True)
        return replace(self, product_variants=[variant], sku_option_values={})

    def _create_variant(self, name: str, is_default: bool) -> ProductVariant:
        return ProductVariant(
            price=self.price,
            is_archived=self.is_archived,
            is_default=is_default,
            image=self.image,
            standard_unit_id=self.standard_unit_id,
            expires_in_days=self.expires_in_days,
            name=name,
            sku=str(uuid.uuid4()),
        )


def _as_int(text: str) -> int | None:
    return int(text) if _INTEGER.fullmatch(text) else None


def _comes_before(first: str, second: str) -> bool:
    first_number = _as_int(first)
    if first_number is not None:
        second_number = _as_int(second)
        if second_number is not None:
            return second_number < first_number
        return True
    return second > first


def _compare(first: ProductOptionValue, second: ProductOptionValue) -> int:
    if _comes_before(first.value, second.value):
        return -1
    if _comes_before(second.value, first.value):
        return 1
    return 0


def sort_option_values(values: list[ProductOptionValue]) -> None:
    """Sort in place: numbers first, largest first, then words alphabetically."""
    values.sort(key=cmp_to_key(_compare))


def generate_name(values: Iterable[ProductOptionValue]) -> str:
    """Join the sorted option values with underscores."""
    ordered = list(values)
    if not ordered:
        raise ValueError("cannot generate a name from no values")
    sort_option_values(ordered)
    return "_".join(value.value for value in ordered)


@dataclass(kw_only=True)
class ProductVariantUpdate:
    id: int = 0
    price: float = 0.0
    width_in_cm: float | None = None
    height_in_cm: float | None = None
    depth_in_cm: float | None = None
    weight_in_g: float | None = None
    is_archived: bool = False


@dataclass(kw_only=True)
class ProductVariantInput:
    product_variant: ProductVariant
    option_value_ids: list[int] = field(default_factory=list)
    option_values: list[ProductOptionValue] = field(default_factory=list)


@dataclass(kw_only=True)
class ProductOptionValueInput:
    value: str
    is_default: bool = False


@dataclass(kw_only=True)
class ProductOptionInput:
    product_id: int
    name: str
    values: list[ProductOptionValueInput] = field(default_factory=list)


@dataclass(kw_only=True)
class BatchInput:
    id: int | None = None
    sku: str = ""
    quantity: float = 0.0
    unit_id: int = 0
    reason: str = ""
    comment: str = ""


@dataclass(kw_only=True)
class BatchBase:
    id: int | None = None
    warehouse_id: int | None = None
    sku: str = ""
    quantity: float = 0.0
    unit_id: int = 0
    expires_at: datetime | None = None


@dataclass(kw_only=True)
class Batch(BatchBase):
    product_variant: ProductVariantBase | None = None
    unit: Unit = field(default_factory=Unit)
    product_name: str = ""
    is_ingredient: bool = False

    def cursor_value(self) -> list[str]:
        """The batch's UTC expiry date and id, the keys batches are paged by."""
        if self.expires_at is None:
            raise ValueError("batch has no expiry date")
        expires = self.expires_at
        if expires.tzinfo is not None:
            expires = expires.astimezone(timezone.utc)
        return [expires.date().isoformat(), str(_require_id(self.id))]


@dataclass(kw_only=True)
class BatchVariantMetaInfo:
    unit_id: int
    expires_in_days: int
    cost: float


@dataclass(kw_only=True)
class BulkBatchUpdateInfo:
    recipes: dict[str, Recipe] = field(default_factory=dict)
    batch_bases: dict[str, BatchBase] = field(default_factory=dict)
    variant_meta_info: dict[str, BatchVariantMetaInfo] = field(default_factory=dict)
    inputs_to_update: dict[str, BatchInput] = field(default_factory=dict)
    inputs_to_create: dict[str, BatchInput] = field(default_factory=dict)
    skus: list[str] = field(default_factory=list)
    ids: list[int] = field(default_factory=list)
    locks: list[Any] = field(default_factory=list)


@dataclass(kw_only=True)
class BatchUpdateRequest:
    batch_id: int | None
    new_value: float
    reason: str
    sku: str
    modified_by: float


@dataclass(kw_only=True)
class BatchCreateRequest:
    batch_sku: str
    quantity: float
    unit_id: int
    expiry_date: datetime


@dataclass(kw_only=True)
class WarehouseTransaction:
    sku: str
    quantity: float
    unit_id: int
    reason: str
    cost: float
    comment: str = ""
    batch_id: int | None = None


@dataclass(kw_only=True)
class BulkBatchUpdateUnitOfWork:
    update_requests: dict[str, BatchUpdateRequest] = field(default_factory=dict)
    create_requests: dict[str, BatchCreateRequest] = field(default_factory=dict)
    transaction_history: list[WarehouseTransaction] = field(default_factory=list)


def _check(results: list[ErrorDetails | None]) -> None:
    errors = [result for result in results if result is not None]
    if errors:
        raise ValidationError("invalid batch input", errors)


def _require_inputs(inputs: list[BatchInput]) -> None:
    if not inputs:
        raise ValidationError(
            "invalid batch input", [ErrorDetails("batch input cannot be empty")]
        )


def validate_batch_input_increment(batch_input: BatchInput) -> None:
    """Raise ValidationError if an input cannot add stock."""
    _check(
        [
            validate_id(batch_input.unit_id, "unitId"),
            validate_not_zero(batch_input.quantity, "quantity"),
            validate_string_length(batch_input.sku, "sku", 10, 36),
            validate_alphanumeric_name(batch_input.reason, "reason"),
        ]
    )


def validate_batch_inputs_increment(inputs: list[BatchInput]) -> None:
    _require_inputs(inputs)
    for batch_input in inputs:
        validate_batch_input_increment(batch_input)


def validate_batch_input_decrement(batch_input: BatchInput) -> None:
    """Raise ValidationError if an input cannot remove stock; it needs a batch id."""
    _check(
        [
            validate_id(batch_input.unit_id, "unitId"),
            validate_not_zero(batch_input.quantity, "quantity"),
            validate_string_length(batch_input.sku, "sku", 10, 36),
            validate_id(batch_input.id, "id"),
            validate_alphanumeric_name(batch_input.reason, "reason"),
        ]
    )


def validate_batch_inputs_decrement(inputs: list[BatchInput]) -> None:
    _require_inputs(inputs)
    for batch_input in inputs:
        validate_batch_input_decrement(batch_input)