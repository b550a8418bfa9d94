import pytest

from zanobia_inventory.models import (
    ProductInput,
    ProductOption,
    ProductOptionInput,
    ProductOptionValue,
    ProductOptionValueInput,
    ProductVariant,
    ProductVariantInput,
    RecipeBase,
)
from zanobia_inventory.validator import (
    ApiError,
    BadRequestError,
    ErrorDetails,
    NotFoundError,
    ValidationError,
    validate_alphanumeric_name,
    validate_id,
    validate_not_zero,
    validate_product,
    validate_product_category_id,
    validate_product_description,
    validate_product_dimension,
    validate_product_option_input,
    validate_product_standard_unit_id,
    validate_product_variant,
    validate_product_variant_selected_values,
    validate_recipe,
    validate_recipes,
    validate_string_length,
)


def _product(**overrides):
    values = dict(
        name="Chocolate Cake",
        description="rich",
        price=4.5,
        standard_unit_id=1,
        expires_in_days=3,
    )
    values.update(overrides)
    return ProductInput(**values)


def test_not_zero():
    assert validate_not_zero(0, "price").field == "price"
    assert validate_not_zero(None, "price").field == "price"
    assert validate_not_zero(3, "price") is None


@pytest.mark.parametrize("value", [None, 0, -1])
def test_invalid_ids(value):
    assert validate_id(value, "unitId").field == "unitId"


def test_valid_id():
    assert validate_id(5, "unitId") is None
    assert validate_id(0, "unitId") is not None


def test_string_length_bounds():
    assert validate_string_length("a" * 10, "sku", 10, 36) is None
    assert validate_string_length("a" * 36, "sku", 10, 36) is None
    assert validate_string_length("a" * 9, "sku", 10, 36).field == "sku"
    assert validate_string_length("a" * 37, "sku", 10, 36).field == "sku"


@pytest.mark.parametrize("value", ["", None, "drop;table", "a/b"])
def test_alphanumeric_rejects(value):
    assert validate_alphanumeric_name(value, "reason").field == "reason"


def test_alphanumeric_accepts():
    assert validate_alphanumeric_name("Dark chocolate 70", "name") is None
    assert validate_alphanumeric_name("recipe_use", "reason") is None


def test_validate_product_collects_errors():
    with pytest.raises(ValidationError) as info:
        validate_product(_product(price=0, description="x" * 256))
    assert info.value.message == "invalid product input"
    assert "price" in info.value.fields
    assert "description" in info.value.fields
    assert "name" not in info.value.fields


def test_validate_product_accepts_good_input():
    validate_product(_product())
    with pytest.raises(ValidationError):
        validate_product(_product(standard_unit_id=None))


def test_validate_product_option_name():
    product = _product(options=[ProductOption(name="", values=[])])
    with pytest.raises(ValidationError) as info:
        validate_product(product)
    assert ErrorDetails(
        "option name must be between 1 and 50 characters", "options"
    ) in info.value.details


def test_validate_product_option_value():
    option = ProductOption(name="size", values=[ProductOptionValue(value="v" * 51)])
    with pytest.raises(ValidationError) as info:
        validate_product(_product(options=[option]))
    assert ErrorDetails(
        "option value must be between 1 and 50 characters", "options"
    ) in info.value.details


def test_description():
    assert validate_product_description("d" * 255) is None
    assert validate_product_description("d" * 256) == ErrorDetails(
        "description cannot be more than 255 characters", "description"
    )


def test_dimension():
    assert validate_product_dimension(None, "widthInCm") is None
    assert validate_product_dimension(2.5, "widthInCm") is None
    assert validate_product_dimension(0, "widthInCm") == ErrorDetails(
        "widthInCm must be greater than 0", "widthInCm"
    )


def test_standard_unit_id():
    assert validate_product_standard_unit_id(None) == ErrorDetails(
        "unit id cannot be empty", "standardUnitId"
    )
    assert validate_product_standard_unit_id(3) is None


def test_category_id():
    assert validate_product_category_id(None) is None
    assert validate_product_category_id(0) == ErrorDetails(
        "category id must be greater than 0", "categoryId"
    )


def test_recipe_quantity_required():
    with pytest.raises(ValidationError) as info:
        validate_recipe(RecipeBase(result_variant_sku="a", recipe_variant_sku="b"))
    assert info.value.message == "invalid recipe input"
    assert info.value.fields == ("quantity",)


def test_recipes_stop_at_invalid():
    good = RecipeBase(quantity=2, result_variant_sku="a", recipe_variant_sku="b")
    bad = RecipeBase(quantity=0, result_variant_sku="a", recipe_variant_sku="c")
    with pytest.raises(ValidationError) as info:
        validate_recipes([good, bad])
    assert info.value.fields == ("quantity",)


def _variant_input(ids):
    variant = ProductVariant(price=2.0, standard_unit_id=1, product_id=4, expires_in_days=5)
    return ProductVariantInput(product_variant=variant, option_value_ids=ids)


def test_variant_value_count():
    validate_product_variant(_variant_input([1, 2]), 2, 2)
    with pytest.raises(ValidationError) as info:
        validate_product_variant(_variant_input([1]), 2, 2)
    assert info.value.fields == ("variantValues",)


def test_variant_selected_value_ids():
    assert validate_product_variant_selected_values([1, -3], 2, 2) == ErrorDetails(
        "invalid variant id", "variantValues"
    )
    assert validate_product_variant_selected_values([1, 3], 1, 2) is None


def test_option_input_empty_values():
    with pytest.raises(ValidationError) as info:
        validate_product_option_input(ProductOptionInput(product_id=1, name="size"))
    assert info.value.message == "invalid product option input"
    assert ErrorDetails("values cannot be empty", "values") in info.value.details


def test_option_input_bad_values():
    option_input = ProductOptionInput(
        product_id=0,
        name="size",
        values=[ProductOptionValueInput(value=""), ProductOptionValueInput(value="big")],
    )
    with pytest.raises(ValidationError) as info:
        validate_product_option_input(option_input)
    assert "productId" in info.value.fields
    assert info.value.details.count(
        ErrorDetails("value must be between 1 and 50 characters", "values")
    ) == 1


def test_bad_request_error_fields():
    error = BadRequestError("insufficient quantity")
    assert isinstance(error, ApiError)
    assert error.message == "insufficient quantity"
    assert error.status == 400


def test_not_found_error_fields():
    error = NotFoundError("product not found")
    assert isinstance(error, ApiError)
    assert error.message == "product not found"
    assert error.status == 404