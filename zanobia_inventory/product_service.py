"""Products, their variants and options."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from contextlib import AbstractContextManager
from dataclasses import replace
from datetime import datetime
from typing import Any, Protocol

from .models import (
    AddVariantValueInput,
    Page,
    PaginationParams,
    Product,
    ProductBase,
    ProductInput,
    ProductOptionInput,
    ProductOptionValue,
    ProductVariant,
    ProductVariantInput,
    ProductVariantUpdate,
    Recipe,
    UpdateSkuInput,
    generate_name,
    paginate,
)
from .validator import (
    BadRequestError,
    ErrorDetails,
    NotFoundError,
    ValidationError,
    validate_product,
    validate_product_option_input,
    validate_product_variant,
    validate_string_length,
)

logger = logging.getLogger(__name__)


class ProductRepository(Protocol):
    def transaction(self) -> AbstractContextManager[Any]: ...

    def create_product(self, product: ProductInput) -> Any: ...

    def translate_product(self, product: ProductInput, language_code: str) -> Any: ...

    def get_products(
        self, params: PaginationParams, is_archive: bool, is_ingredient: bool
    ) -> list[ProductBase]: ...

    def get_product(self, product_id: int) -> Product: ...

    def get_product_variants_of_product(self, product_id: int) -> list[ProductVariant]: ...

    def get_product_variant(self, variant_id: int) -> ProductVariant: ...

    def add_product_variant(self, variant_input: ProductVariantInput) -> Any: ...

    def get_unit_id_of_product_variant_by_sku(self, sku: str) -> int: ...

    def get_product_variant_expiration_date_and_cost(
        self, sku: str
    ) -> tuple[datetime, float]: ...

    def get_product_selected_values(
        self, product_id: int, option_value_ids: list[int]
    ) -> dict[str, ProductOptionValue]: ...

    def insert_product_option_value(
        self, option_id: int, option_value: ProductOptionValue
    ) -> int: ...

    def update_product_variant_details(self, update: ProductVariantUpdate) -> Any: ...

    def get_product_variant_sku_and_is_default(self, variant_id: int) -> tuple[str, bool]: ...

    def delete_product_variant(self, variant_id: int, sku: str) -> Any: ...

    def update_product_variant_sku(self, old_sku: str, new_sku: str) -> Any: ...

    def get_original_units_by_sku_list(self, skus: list[str]) -> dict[str, int]: ...

    def delete_product(self, product: Product) -> Any: ...

    def update_product_archive_status(self, product_id: int, is_archive: bool) -> Any: ...

    def update_product_variant_archive_status(
        self, variant_id: int, is_archive: bool
    ) -> Any: ...

    def get_product_variant_by_sku(self, sku: str) -> ProductVariant: ...

    def search_product_variants_by_name(
        self, params: PaginationParams, name: str
    ) -> list[ProductVariant]: ...

    def add_product_option(self, option_input: ProductOptionInput) -> Any: ...


class RecipeLookup(Protocol):
    def recipe_of_product_variant_sku(self, sku: str) -> list[Recipe]: ...

    def total_cost_of_recipes(self, recipes: Iterable[Recipe]) -> float: ...


class ProductService:
    """Validates product changes and reads products with their recipes."""

    def __init__(self, repository: ProductRepository, recipe_service: RecipeLookup) -> None:
        self.repository = repository
        self.recipe_service = recipe_service

    def create_product(self, product: ProductInput) -> None:
        validate_product(product)
        self.repository.create_product(product)

    def translate_product(self, product: ProductInput, language_code: str) -> None:
        validate_product(product)
        self.repository.translate_product(product, language_code)

    def get_products(
        self, params: PaginationParams, is_archive: bool, is_ingredient: bool
    ) -> Page:
        products = self.repository.get_products(params, is_archive, is_ingredient)
        return paginate(products, params.page_size)

    def get_product(self, product_id: int) -> Product:
        """The product with its variants; raises NotFoundError if it does not exist."""
        product = self.repository.get_product(product_id)
        if product.id is None:
            raise NotFoundError("product not found")
        variants = self.repository.get_product_variants_of_product(product.id)
        return replace(product, product_variants=list(variants))

    def get_product_variant(self, variant_id: int) -> ProductVariant:
        """The variant with its recipes and their total cost."""
        variant = self.repository.get_product_variant(variant_id)
        if variant.id is None:
            raise NotFoundError("product variant not found")
        recipes, total_cost = self._recipes_of(variant.sku)
        return replace(variant, recipes=recipes, total_cost=total_cost)

    def _recipes_of(self, sku: str) -> tuple[list[Recipe], float]:
        """Recipes of a variant and their cost; failures are logged, not raised."""
        try:
            recipes = list(self.recipe_service.recipe_of_product_variant_sku(sku))
        except Exception as exc:
            logger.error("failed to get recipe of product variant: %s", exc)
            return [], 0.0
        if not recipes:
            return recipes, 0.0
        try:
            total_cost = self.recipe_service.total_cost_of_recipes(recipes)
        except Exception as exc:
            logger.error("failed to get total cost of recipes: %s", exc)
            total_cost = 0.0
        return recipes, total_cost

    def add_product_variant(self, variant_input: ProductVariantInput) -> None:
        """Add a non-default variant picking exactly one value of every option."""
        variant = variant_input.product_variant
        if variant.product_id is None:
            raise ValidationError(
                "invalid product variant",
                [ErrorDetails("product id cannot be empty", "productId")],
            )
        product = self.repository.get_product(variant.product_id)
        options = product.options
        if not options:
            raise BadRequestError("product has no options")
        validate_product_variant(variant_input, len(options), len(options))
        selected = self.repository.get_product_selected_values(
            variant.product_id, variant_input.option_value_ids
        )
        option_values = list(selected.values())
        if len(option_values) != len(options):
            raise ValidationError(
                "invalid product variant",
                [ErrorDetails("invalid variant values", "variantValues")],
            )
        new_variant = replace(
            variant,
            sku=variant.sku or str(uuid.uuid4()),
            name=generate_name(option_values),
            is_default=False,
            is_ingredient=product.is_ingredient,
        )
        self.repository.add_product_variant(
            replace(variant_input, product_variant=new_variant, option_values=option_values)
        )

    def get_unit_id_of_product_variant_by_sku(self, sku: str) -> int:
        return self.repository.get_unit_id_of_product_variant_by_sku(sku)

    def get_product_variant_expiration_date_and_cost(self, sku: str) -> tuple[datetime, float]:
        return self.repository.get_product_variant_expiration_date_and_cost(sku)

    def add_variant_option_value(self, value_input: AddVariantValueInput) -> None:
        if not 1 <= len(value_input.value) <= 50:
            raise ValidationError(
                "invalid product option value",
                [ErrorDetails("option value must be between 1 and 50 characters", "options")],
            )
        self.repository.insert_product_option_value(
            value_input.product_option_id, value_input.to_option_value()
        )

    def update_product_variant_details(self, update: ProductVariantUpdate) -> None:
        if update.id == 0:
            raise ValidationError(
                "invalid product variant",
                [ErrorDetails("product variant id cannot be empty", "productVariantId")],
            )
        if update.price < 0:
            raise ValidationError(
                "invalid product variant",
                [ErrorDetails("price cannot be negative", "price")],
            )
        self.repository.update_product_variant_details(update)

    def delete_product_variant(self, variant_id: int) -> None:
        """Delete a variant and everything tied to it; the default one cannot go."""
        with self.repository.transaction():
            sku, is_default = self.repository.get_product_variant_sku_and_is_default(variant_id)
            if not sku:
                raise NotFoundError("product variant not found")
            if is_default:
                raise BadRequestError("cannot delete default variant")
            self.repository.delete_product_variant(variant_id, sku)

    def update_product_variant_sku(self, sku_input: UpdateSkuInput) -> None:
        details = validate_string_length(sku_input.new_sku, "sku", 10, 36)
        if details is not None:
            raise ValidationError("invalid sku", [details])
        self.repository.update_product_variant_sku(sku_input.old_sku, sku_input.new_sku)

    def get_original_units_by_sku_list(self, skus: Iterable[str]) -> dict[str, int]:
        return self.repository.get_original_units_by_sku_list(list(skus))

    def delete_product(self, product_id: int) -> None:
        with self.repository.transaction():
            product = self.get_product(product_id)
            self.repository.delete_product(product)

    def update_product_archive_status(self, product_id: int, is_archive: bool) -> None:
        with self.repository.transaction():
            self.repository.update_product_archive_status(product_id, is_archive)

    def update_product_variant_archive_status(self, variant_id: int, is_archive: bool) -> None:
        _, is_default = self.repository.get_product_variant_sku_and_is_default(variant_id)
        if is_default:
            raise BadRequestError("cannot archive default variant")
        self.repository.update_product_variant_archive_status(variant_id, is_archive)

    def search_product_variant_by_name(self, params: PaginationParams, name: str) -> Page:
        variants = self.repository.search_product_variants_by_name(params, name)
        return paginate(variants, params.page_size)

    def get_product_variant_by_sku(self, sku: str, with_recipe: bool = False) -> ProductVariant:
        """The variant with this sku; recipes are added for non-ingredients on request."""
        variant = self.repository.get_product_variant_by_sku(sku)
        if variant.id is None:
            raise NotFoundError("product variant not found")
        if with_recipe and not variant.is_ingredient:
            recipes, total_cost = self._recipes_of(sku)
            variant = replace(variant, recipes=recipes, total_cost=total_cost)
        return variant

    def add_product_option(self, option_input: ProductOptionInput) -> None:
        validate_product_option_input(option_input)
        self.repository.add_product_option(option_input)