"""Recipes: the ingredients that go into a product variant and their cost."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from .models import Recipe, RecipeBase
from .validator import BadRequestError, validate_recipe, validate_recipes

logger = logging.getLogger(__name__)


class RecipeRepository(Protocol):
    def create_recipes(self, recipes: list[RecipeBase]) -> Any: ...

    def add_ingredient_to_recipe(self, recipe: RecipeBase) -> Any: ...

    def delete_recipe(self, recipe_id: int) -> Any: ...

    def recipe_of_product_variant_sku(self, sku: str) -> list[Recipe]: ...

    def recipes_lookup_from_skus(
        self, skus: list[str]
    ) -> tuple[dict[str, Recipe], list[str]]: ...


class UnitConverter(Protocol):
    def convert(self, quantity: float, from_unit_id: int, to_unit_id: int) -> float: ...


class RecipeService:
    """Validates recipe changes and works out what recipes cost."""

    def __init__(self, repository: RecipeRepository, unit_converter: UnitConverter) -> None:
        self.repository = repository
        self.unit_converter = unit_converter

    def create_recipes(self, recipes: Iterable[RecipeBase]) -> None:
        listed = list(recipes)
        validate_recipes(listed)
        if not listed:
            raise BadRequestError("cannot create empty recipes")
        self.repository.create_recipes(listed)

    def add_ingredient_to_recipe(self, recipe: RecipeBase) -> None:
        validate_recipe(recipe)
        self.repository.add_ingredient_to_recipe(recipe)

    def delete_recipe(self, recipe_id: int) -> None:
        self.repository.delete_recipe(recipe_id)

    def total_cost_of_recipes(self, recipes: Iterable[Recipe]) -> float:
        """The summed cost of every ingredient, priced in its standard unit."""
        return sum((self._cost_of_recipe(recipe) for recipe in recipes), 0.0)

    def _cost_of_recipe(self, recipe: Recipe) -> float:
        standard_unit = recipe.ingredient_standard_unit
        if standard_unit is None:
            raise BadRequestError("ingredient standard unit cannot be empty")
        if recipe.unit.id is None:
            raise BadRequestError("unit id cannot be empty")
        if recipe.unit.id == standard_unit.id:
            return recipe.quantity * recipe.ingredient_cost
        try:
            quantity = self.unit_converter.convert(
                recipe.quantity, recipe.unit.id, standard_unit.id
            )
        except Exception as exc:
            logger.error("failed to convert unit: %s", exc)
            raise
        return quantity * recipe.ingredient_cost

    def recipe_of_product_variant_sku(self, sku: str) -> list[Recipe]:
        return self.repository.recipe_of_product_variant_sku(sku)

    def recipes_lookup_from_skus(
        self, skus: Iterable[str]
    ) -> tuple[dict[str, Recipe], list[str]]:
        return self.repository.recipes_lookup_from_skus(list(skus))