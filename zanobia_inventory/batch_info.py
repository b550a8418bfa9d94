"""Gather what a bulk batch update needs from the rows the database returns."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from .models import (
    BatchBase,
    BatchInput,
    BatchVariantMetaInfo,
    BulkBatchUpdateInfo,
    Recipe,
    Unit,
)
from .validator import BadRequestError

logger = logging.getLogger(__name__)

Row = Sequence[Any]


def _unpack(row: Row, width: int) -> tuple[Any, ...]:
    try:
        values = tuple(row)
    except TypeError as exc:
        logger.error("Failed to scan row: %s", exc)
        raise BadRequestError("Failed to scan batch bases") from exc
    if len(values) != width:
        logger.error("Failed to scan row: expected %d columns, got %d", width, len(values))
        raise BadRequestError("Failed to scan batch bases")
    return values


def extract_batch_info(
    inputs: Iterable[BatchInput],
) -> tuple[list[int], list[str], dict[str, BatchInput], dict[str, BatchInput]]:
    """Split inputs into ids, skus, inputs that update a batch and inputs that create one."""
    ids: list[int] = []
    skus: list[str] = []
    to_update: dict[str, BatchInput] = {}
    to_create: dict[str, BatchInput] = {}
    for batch_input in inputs:
        if batch_input.id is None:
            to_create[batch_input.sku] = batch_input
        else:
            ids.append(batch_input.id)
            to_update[batch_input.sku] = batch_input
        skus.append(batch_input.sku)
    return ids, skus, to_update, to_create


def parse_batch_bases(rows: Iterable[Row]) -> dict[str, BatchBase]:
    """Map sku to batch from rows of (id, warehouse_id, sku, quantity, unit_id).

    Rows with any empty column are skipped.
    """
    bases: dict[str, BatchBase] = {}
    for row in rows:
        batch_id, warehouse_id, sku, quantity, unit_id = _unpack(row, 5)
        if None in (batch_id, warehouse_id, sku, quantity, unit_id):
            continue
        bases[sku] = BatchBase(
            id=batch_id,
            warehouse_id=warehouse_id,
            sku=sku,
            quantity=quantity,
            unit_id=unit_id,
        )
    return bases


def parse_variant_meta_info(rows: Iterable[Row]) -> dict[str, BatchVariantMetaInfo]:
    """Map sku to variant meta info from rows of (sku, unit_id, expires_in_days, cost)."""
    meta: dict[str, BatchVariantMetaInfo] = {}
    for row in rows:
        sku, unit_id, expires_in_days, cost = _unpack(row, 4)
        if None in (sku, unit_id, expires_in_days, cost):
            continue
        meta[sku] = BatchVariantMetaInfo(
            unit_id=unit_id, expires_in_days=expires_in_days, cost=cost
        )
    return meta


def parse_variant_info_and_recipes(
    rows: Iterable[Row],
) -> tuple[dict[str, BatchVariantMetaInfo], dict[str, Recipe]]:
    """Read variant meta info joined with the recipes that produce each variant.

    Each row holds the variant's sku, unit id, expiry days and cost, then the
    recipe's id, result sku, ingredient sku, quantity and unit id, then the
    ingredient's standard unit id and cost.  Ingredients get meta info of their
    own so their quantities can be converted later.
    """
    meta: dict[str, BatchVariantMetaInfo] = {}
    recipes: dict[str, Recipe] = {}
    for row in rows:
        (
            sku,
            unit_id,
            expires_in_days,
            cost,
            recipe_id,
            result_sku,
            ingredient_sku,
            recipe_quantity,
            recipe_unit_id,
            ingredient_unit_id,
            ingredient_cost,
        ) = _unpack(row, 11)
        if None not in (sku, unit_id, expires_in_days, cost):
            meta[sku] = BatchVariantMetaInfo(
                unit_id=unit_id, expires_in_days=expires_in_days, cost=cost
            )
        recipe_columns = (
            recipe_id,
            result_sku,
            ingredient_sku,
            recipe_quantity,
            recipe_unit_id,
            ingredient_unit_id,
            ingredient_cost,
            expires_in_days,
        )
        if None in recipe_columns:
            continue
        recipe = Recipe(
            id=recipe_id,
            result_variant_sku=result_sku,
            recipe_variant_sku=ingredient_sku,
            quantity=recipe_quantity,
            unit=Unit(id=recipe_unit_id),
            ingredient_cost=ingredient_cost,
            ingredient_standard_unit=Unit(id=ingredient_unit_id),
        )
        recipes[recipe.lookup_key()] = recipe
        meta[ingredient_sku] = BatchVariantMetaInfo(
            unit_id=ingredient_unit_id,
            expires_in_days=expires_in_days,
            cost=ingredient_cost,
        )
    return meta, recipes


def recipes_included(rows: Iterable[Row]) -> bool:
    """Whether any row names an ingredient sku, i.e. an input is itself an ingredient."""
    for row in rows:
        try:
            (ingredient_sku,) = tuple(row)
        except (TypeError, ValueError) as exc:
            logger.error("Failed to scan recipes: %s", exc)
            return True
        if ingredient_sku is not None:
            return True
    return False


def build_update_info(
    inputs: Iterable[BatchInput],
    batch_rows: Iterable[Row],
    meta_rows: Iterable[Row],
) -> BulkBatchUpdateInfo:
    """Assemble the information a plain bulk increment or decrement needs."""
    ids, skus, to_update, to_create = extract_batch_info(inputs)
    return BulkBatchUpdateInfo(
        batch_bases=parse_batch_bases(batch_rows),
        variant_meta_info=parse_variant_meta_info(meta_rows),
        inputs_to_update=to_update,
        inputs_to_create=to_create,
        skus=skus,
        ids=ids,
    )


def build_recipe_update_info(
    inputs: Iterable[BatchInput],
    recipe_rows: Iterable[Row],
    batch_rows: Iterable[Row],
    meta_rows: Iterable[Row],
    recipe_batch_rows: Iterable[Row],
) -> BulkBatchUpdateInfo:
    """Assemble the information a bulk increment that consumes recipes needs.

    Raises BadRequestError if any input is itself an ingredient of a recipe.
    """
    ids, skus, to_update, to_create = extract_batch_info(inputs)
    if recipes_included(recipe_rows):
        raise BadRequestError(
            "bulk update with recipes cannot include recipes in inputs"
        )
    batch_bases = parse_batch_bases(batch_rows)
    meta, recipes = parse_variant_info_and_recipes(meta_rows)
    ingredient_bases = parse_batch_bases(recipe_batch_rows)
    return BulkBatchUpdateInfo(
        recipes=recipes,
        batch_bases={**ingredient_bases, **batch_bases},
        variant_meta_info=meta,
        inputs_to_update=to_update,
        inputs_to_create=to_create,
        skus=skus,
        ids=ids,
    )