import pytest

from zanobia_inventory.models import (
    BatchBase,
    BatchCreateRequest,
    BatchUpdateRequest,
    BatchVariantMetaInfo,
    BulkBatchUpdateInfo,
    Recipe,
    Unit,
)
from zanobia_inventory.recipe_planning import (
    RECIPE_USE_REASON,
    plan_recipe_updates,
    plan_recipe_updates_from_create,
    plan_recipe_updates_from_update,
)
from zanobia_inventory.validator import BadRequestError

RESULT_A = "RESULT-SKU-A"
RESULT_B = "RESULT-SKU-B"
INGREDIENT = "INGREDIENT-1"


def identity(batch_input, meta):
    return batch_input


def make_info(base_quantity=100.0, with_meta=True, with_base=True):
    recipes = {}
    for result in (RESULT_A, RESULT_B):
        recipe = Recipe(
            id=1,
            result_variant_sku=result,
            recipe_variant_sku=INGREDIENT,
            quantity=2.0,
            unit=Unit(id=7),
            ingredient_cost=1.5,
            ingredient_standard_unit=Unit(id=3),
        )
        recipes[recipe.lookup_key()] = recipe
    meta = {INGREDIENT: BatchVariantMetaInfo(unit_id=3, expires_in_days=5, cost=1.5)}
    bases = {
        INGREDIENT: BatchBase(id=42, warehouse_id=1, sku=INGREDIENT, quantity=base_quantity, unit_id=3)
    }
    return BulkBatchUpdateInfo(
        recipes=recipes,
        variant_meta_info=meta if with_meta else {},
        batch_bases=bases if with_base else {},
    )


def update_for_a(modified_by=5.0):
    return {
        RESULT_A: BatchUpdateRequest(
            batch_id=9, new_value=50.0, reason="produced", sku=RESULT_A, modified_by=modified_by
        )
    }


def create_for_b(quantity=3.0):
    return {RESULT_B: BatchCreateRequest(batch_sku=RESULT_B, quantity=quantity, unit_id=3, expiry_date=None)}


def test_no_updates_plans_nothing():
    requests, history = plan_recipe_updates_from_update(make_info(), {}, identity)
    assert requests == {}
    assert history == []


def test_no_creates_returns_updates_unchanged():
    updates = update_for_a()
    requests, history = plan_recipe_updates_from_create(make_info(), updates, {}, identity)
    assert requests == updates
    assert history == []


def test_original_update_request_is_kept_and_input_not_mutated():
    updates = update_for_a()
    requests, _ = plan_recipe_updates_from_update(make_info(), updates, identity)
    assert requests[RESULT_A] == updates[RESULT_A]
    assert INGREDIENT not in updates


def test_update_converts_from_recipe_unit():
    calls = []

    def recording(batch_input, meta):
        calls.append((batch_input.unit_id, meta.unit_id))
        return batch_input

    requests, history = plan_recipe_updates_from_update(make_info(), update_for_a(), recording)
    assert requests[INGREDIENT].new_value == 90.0
    assert len(history) == len(calls)
    assert calls and all(call == (7, 3) for call in calls)


def test_create_converts_from_ingredient_standard_unit():
    calls = []

    def recording(batch_input, meta):
        calls.append(batch_input.unit_id)
        return batch_input

    info = make_info()
    requests, history = plan_recipe_updates_from_create(info, {}, create_for_b(), recording)
    consumed = sum(t.quantity for t in history)
    assert requests[INGREDIENT].new_value == info.batch_bases[INGREDIENT].quantity - consumed
    assert len(history) == len(calls)
    assert calls and all(unit_id == 3 for unit_id in calls)


def test_combined_plan_accumulates_ingredient_use():
    info = make_info()
    requests, history = plan_recipe_updates(info, update_for_a(), create_for_b(), identity)
    consumed = sum(t.quantity for t in history)
    assert requests[INGREDIENT].new_value == info.batch_bases[INGREDIENT].quantity - consumed
    assert RESULT_A in requests
    assert len(history) == 2 * len(info.recipes)


def test_conversion_scales_consumption():
    def doubling(batch_input, meta):
        return type(batch_input)(**{**batch_input.__dict__, "quantity": batch_input.quantity * 2})

    _, plain = plan_recipe_updates_from_update(make_info(), update_for_a(), identity)
    _, doubled = plan_recipe_updates_from_update(make_info(), update_for_a(), doubling)
    assert sum(t.quantity for t in doubled) == 2 * sum(t.quantity for t in plain)


def test_insufficient_quantity():
    with pytest.raises(BadRequestError, match="insufficient quantity"):
        plan_recipe_updates_from_update(make_info(base_quantity=1.0), update_for_a(), identity)


def test_insufficient_quantity_on_create():
    with pytest.raises(BadRequestError, match="insufficient quantity"):
        plan_recipe_updates(make_info(base_quantity=1.0), {}, create_for_b(), identity)


def test_missing_meta_info():
    with pytest.raises(BadRequestError, match="variant meta info not found"):
        plan_recipe_updates_from_update(make_info(with_meta=False), update_for_a(), identity)


def test_missing_batch_base():
    with pytest.raises(BadRequestError, match="batch to update not found"):
        plan_recipe_updates_from_create(make_info(with_base=False), {}, create_for_b(), identity)


def test_converter_error_propagates():
    def failing(batch_input, meta):
        raise BadRequestError("cannot convert")

    with pytest.raises(BadRequestError, match="cannot convert"):
        plan_recipe_updates_from_update(make_info(), update_for_a(), failing)