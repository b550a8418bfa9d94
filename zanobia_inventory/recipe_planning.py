"""Plan how much of each ingredient a production run consumes."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from .models import (
    BatchCreateRequest,
    BatchInput,
    BatchUpdateRequest,
    BatchVariantMetaInfo,
    BulkBatchUpdateInfo,
    Recipe,
    WarehouseTransaction,
)
from .validator import BadRequestError

RECIPE_USE_REASON = "recipe_use"

Converter = Callable[[BatchInput, BatchVariantMetaInfo], BatchInput]
RecipePlan = tuple[dict[str, BatchUpdateRequest], list[WarehouseTransaction]]


def _plan_ingredient(
    info: BulkBatchUpdateInfo,
    recipe: Recipe,
    requests: dict[str, BatchUpdateRequest],
    unit_id: int | None,
    produced: float,
    convert: Converter,
) -> WarehouseTransaction:
    """Record the decrement of one recipe's ingredient in ``requests``."""
    sku = recipe.recipe_variant_sku
    meta = info.variant_meta_info.get(sku)
    if meta is None:
        raise BadRequestError("variant meta info not found")
    base = info.batch_bases.get(sku)
    if base is None:
        raise BadRequestError("batch to update not found")
    recipe_input = BatchInput(
        id=base.id,
        sku=sku,
        quantity=recipe.quantity,
        unit_id=unit_id if unit_id is not None else 0,
        reason=RECIPE_USE_REASON,
    )
    converted = convert(recipe_input, meta)
    consumed = converted.quantity * produced
    previous = requests.get(sku)
    current = previous.new_value if previous is not None else base.quantity
    updated = current - consumed
    if updated < 0:
        raise BadRequestError("insufficient quantity")
    requests[sku] = BatchUpdateRequest(
        batch_id=base.id,
        new_value=updated,
        reason=RECIPE_USE_REASON,
        sku=sku,
        modified_by=consumed,
    )
    return WarehouseTransaction(
        batch_id=base.id,
        quantity=consumed,
        unit_id=meta.unit_id,
        reason=RECIPE_USE_REASON,
        comment=recipe_input.comment,
        cost=consumed * meta.cost,
        sku=sku,
    )


def plan_recipe_updates_from_update(
    info: BulkBatchUpdateInfo,
    update_requests: Mapping[str, BatchUpdateRequest],
    convert: Converter,
) -> RecipePlan:
    """Decrement ingredients for batches whose quantity is being increased.

    Returns the update requests, extended with the ingredient decrements, and
    the transactions recording them. The mapping passed in is not changed.
    """
    requests = dict(update_requests)
    if not requests:
        return requests, []
    history = []
    for recipe in info.recipes.values():
        result = requests.get(recipe.result_variant_sku)
        produced = result.modified_by if result is not None else 0.0
        history.append(
            _plan_ingredient(info, recipe, requests, recipe.unit.id, produced, convert)
        )
    return requests, history


def plan_recipe_updates_from_create(
    info: BulkBatchUpdateInfo,
    update_requests: Mapping[str, BatchUpdateRequest],
    create_requests: Mapping[str, BatchCreateRequest],
    convert: Converter,
) -> RecipePlan:
    """Decrement ingredients for batches that are being created.

    The ingredient quantity is read in the ingredient's own standard unit.
    Returns the update requests, extended with the decrements, and the
    transactions recording them. The mappings passed in are not changed.
    """
    requests = dict(update_requests)
    if not create_requests:
        return requests, []
    history = []
    for recipe in info.recipes.values():
        meta = info.variant_meta_info.get(recipe.recipe_variant_sku)
        unit_id = meta.unit_id if meta is not None else None
        created = create_requests.get(recipe.result_variant_sku)
        produced = created.quantity if created is not None else 0.0
        history.append(
            _plan_ingredient(info, recipe, requests, unit_id, produced, convert)
        )
    return requests, history


def plan_recipe_updates(
    info: BulkBatchUpdateInfo,
    update_requests: Mapping[str, BatchUpdateRequest],
    create_requests: Mapping[str, BatchCreateRequest],
    convert: Converter,
) -> RecipePlan:
    """Plan every ingredient decrement for both updated and created batches.

    Decrements of the same ingredient accumulate. The returned requests hold
    the given update requests together with the ingredient decrements.
    """
    requests, history = plan_recipe_updates_from_update(info, update_requests, convert)
    requests, create_history = plan_recipe_updates_from_create(
        info, requests, create_requests, convert
    )
    return requests, history + create_history