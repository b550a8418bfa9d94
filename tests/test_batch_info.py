import pytest

from zanobia_inventory.batch_info import (
    build_recipe_update_info,
    build_update_info,
    extract_batch_info,
    parse_batch_bases,
    parse_variant_info_and_recipes,
    parse_variant_meta_info,
    recipes_included,
)
from zanobia_inventory.models import BatchInput
from zanobia_inventory.validator import BadRequestError

SKU_A = "sku-aaaaaaaa"
SKU_B = "sku-bbbbbbbb"
SKU_C = "sku-cccccccc"


def test_extract_batch_info_splits_by_id():
    inputs = [
        BatchInput(id=7, sku=SKU_A, quantity=2, unit_id=1),
        BatchInput(sku=SKU_B, quantity=3, unit_id=1),
    ]
    ids, skus, to_update, to_create = extract_batch_info(inputs)
    assert ids == [7]
    assert skus == [SKU_A, SKU_B]
    assert list(to_update) == [SKU_A]
    assert to_create[SKU_B] is inputs[1]


def test_parse_batch_bases_skips_incomplete_rows():
    rows = [(1, 2, SKU_A, 5.0, 3), (None, 2, SKU_B, 1.0, 3)]
    bases = parse_batch_bases(rows)
    assert list(bases) == [SKU_A]
    base = bases[SKU_A]
    assert (base.id, base.warehouse_id, base.quantity, base.unit_id) == (1, 2, 5.0, 3)


def test_parse_batch_bases_rejects_malformed_row():
    with pytest.raises(BadRequestError):
        parse_batch_bases([(1, 2, SKU_A)])


def test_parse_variant_meta_info():
    meta = parse_variant_meta_info([(SKU_A, 4, 30, 1.5), (SKU_B, None, 30, 1.5)])
    assert set(meta) == {SKU_A}
    assert (meta[SKU_A].unit_id, meta[SKU_A].expires_in_days, meta[SKU_A].cost) == (4, 30, 1.5)


def test_parse_variant_info_and_recipes_adds_ingredient_meta():
    rows = [
        (SKU_A, 4, 30, 1.5, 9, SKU_A, SKU_C, 0.25, 6, 8, 2.5),
        (SKU_B, 4, 10, 1.0, None, None, None, None, None, None, None),
    ]
    meta, recipes = parse_variant_info_and_recipes(rows)
    assert set(meta) == {SKU_A, SKU_B, SKU_C}
    assert meta[SKU_C].unit_id == 8
    assert meta[SKU_C].cost == 2.5
    assert meta[SKU_C].expires_in_days == 30
    recipe = recipes[f"{SKU_A}-{SKU_C}"]
    assert recipe.id == 9
    assert recipe.unit.id == 6
    assert recipe.ingredient_standard_unit.id == 8
    assert recipe.quantity == 0.25


def test_recipes_included():
    assert recipes_included([(None,), (SKU_A,)]) is True
    assert recipes_included([(None,)]) is False
    assert recipes_included([]) is False


def test_build_update_info():
    inputs = [BatchInput(id=1, sku=SKU_A, quantity=2, unit_id=4)]
    info = build_update_info(inputs, [(1, 2, SKU_A, 5.0, 4)], [(SKU_A, 4, 30, 1.5)])
    assert info.ids == [1]
    assert info.skus == [SKU_A]
    assert info.batch_bases[SKU_A].quantity == 5.0
    assert info.variant_meta_info[SKU_A].cost == 1.5
    assert info.recipes == {}


def test_build_recipe_update_info_merges_bases_preferring_inputs():
    inputs = [BatchInput(sku=SKU_A, quantity=2, unit_id=4)]
    info = build_recipe_update_info(
        inputs,
        recipe_rows=[],
        batch_rows=[(1, 2, SKU_A, 5.0, 4)],
        meta_rows=[(SKU_A, 4, 30, 1.5, 9, SKU_A, SKU_C, 0.25, 6, 8, 2.5)],
        recipe_batch_rows=[(3, 2, SKU_C, 40.0, 8), (4, 2, SKU_A, 99.0, 4)],
    )
    assert info.batch_bases[SKU_A].id == 1
    assert info.batch_bases[SKU_C].id == 3
    assert set(info.recipes) == {f"{SKU_A}-{SKU_C}"}
    assert SKU_A in info.inputs_to_create


def test_build_recipe_update_info_rejects_ingredient_inputs():
    inputs = [BatchInput(sku=SKU_C, quantity=2, unit_id=4)]
    with pytest.raises(BadRequestError) as excinfo:
        build_recipe_update_info(inputs, [(SKU_C,)], [], [], [])
    assert excinfo.value.message == "bulk update with recipes cannot include recipes in inputs"