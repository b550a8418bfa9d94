"""Input validation helpers and the errors the service layer raises."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sized
from dataclasses import dataclass
from typing import Any

_ALPHANUMERIC = re.compile(r"[\w\s\-]+")


@dataclass(frozen=True)
class ErrorDetails:
    """One problem found in an input, tied to the field it concerns."""

    message: str
    field: str = ""


class ApiError(Exception):
    """Base error carrying a message and an HTTP-like status."""

    status = 500

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class BadRequestError(ApiError):
    """The request cannot be carried out as given."""

    status = 400


class NotFoundError(ApiError):
    """The requested record does not exist."""

    status = 404


class ValidationError(ApiError):
    """An input failed validation; ``details`` lists every problem found."""

    status = 422

    def __init__(self, message: str, details: Iterable[ErrorDetails] = ()) -> None:
        super().__init__(message)
        self.details = tuple(details)

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(detail.field for detail in self.details)


def _raise_for(message: str, results: Iterable[ErrorDetails | None]) -> None:
    errors = [result for result in results if result is not None]
    if errors:
        raise ValidationError(message, errors)


def validate_not_zero(value: Any, field: str) -> ErrorDetails | None:
    """Report a missing or zero numeric value."""
    if value is None or value == 0:
        return ErrorDetails(f"{field} cannot be zero", field)
    return None


def validate_id(value: int | None, field: str) -> ErrorDetails | None:
    """Report an identifier that is missing or not positive."""
    if value is None or value <= 0:
        return ErrorDetails(f"{field} must be a valid id", field)
    return None


def validate_string_length(
    value: str | None, field: str, minimum: int, maximum: int
) -> ErrorDetails | None:
    """Report a string whose length falls outside ``minimum..maximum``."""
    length = len(value or "")
    if length < minimum or length > maximum:
        return ErrorDetails(
            f"{field} must be between {minimum} and {maximum} characters", field
        )
    return None


def validate_alphanumeric_name(value: str | None, field: str) -> ErrorDetails | None:
    """Report an empty name or one holding characters other than letters, digits, spaces, '_' and '-'."""
    if not value or not _ALPHANUMERIC.fullmatch(value):
        return ErrorDetails(f"{field} must be a non-empty alphanumeric name", field)
    return None


def _validate_product_options(options: Iterable[Any]) -> ErrorDetails | None:
    for option in options or ():
        if not 1 <= len(option.name) <= 50:
            return ErrorDetails(
                "option name must be between 1 and 50 characters", "options"
            )
        for value in option.values:
            if not 1 <= len(value.value) <= 50:
                return ErrorDetails(
                    "option value must be between 1 and 50 characters", "options"
                )
    return None


def validate_product(product: Any) -> None:
    """Raise ValidationError if a product input is not acceptable."""
    _raise_for(
        "invalid product input",
        [
            validate_alphanumeric_name(product.name, "name"),
            validate_string_length(product.description, "description", 0, 255),
            validate_not_zero(product.price, "price"),
            validate_id(product.standard_unit_id, "standardUnitId"),
            validate_not_zero(product.expires_in_days, "expiresInDays"),
            _validate_product_options(product.options),
        ],
    )


def validate_product_description(description: str) -> ErrorDetails | None:
    if len(description) > 255:
        return ErrorDetails(
            "description cannot be more than 255 characters", "description"
        )
    return None


def validate_product_dimension(value: float | None, field: str) -> ErrorDetails | None:
    if value is None:
        return None
    if value <= 0:
        return ErrorDetails(f"{field} must be greater than 0", field)
    return None


def validate_product_standard_unit_id(unit_id: int | None) -> ErrorDetails | None:
    if unit_id is None:
        return ErrorDetails("unit id cannot be empty", "standardUnitId")
    return None


def validate_product_category_id(category_id: int | None) -> ErrorDetails | None:
    if category_id is None:
        return None
    if category_id <= 0:
        return ErrorDetails("category id must be greater than 0", "categoryId")
    return None


def validate_recipe(recipe: Any) -> None:
    """Raise ValidationError if a recipe line has no quantity."""
    _raise_for(
        "invalid recipe input", [validate_not_zero(recipe.quantity, "quantity")]
    )


def validate_recipes(recipes: Iterable[Any]) -> None:
    for recipe in recipes:
        validate_recipe(recipe)


def _validate_size(
    items: Sized, field: str, minimum: int, maximum: int
) -> ErrorDetails | None:
    size = len(items)
    if size < minimum or size > maximum:
        return ErrorDetails(
            f"{field} must have between {minimum} and {maximum} items", field
        )
    return None


def validate_product_variant_selected_values(
    value_ids: list[int] | None, minimum: int, maximum: int
) -> ErrorDetails | None:
    ids = value_ids or []
    size_error = _validate_size(ids, "variantValues", minimum, maximum)
    if size_error is not None:
        return size_error
    if any(value_id <= 0 for value_id in ids):
        return ErrorDetails("invalid variant id", "variantValues")
    return None


def validate_product_variant(variant_input: Any, minimum: int, maximum: int) -> None:
    """Raise ValidationError if a new product variant is not acceptable."""
    variant = variant_input.product_variant
    _raise_for(
        "invalid product input",
        [
            validate_not_zero(variant.price, "price"),
            validate_id(variant.standard_unit_id, "standardUnitId"),
            validate_id(variant.product_id, "productId"),
            validate_not_zero(variant.expires_in_days, "expiresInDays"),
            validate_product_variant_selected_values(
                variant_input.option_value_ids, minimum, maximum
            ),
        ],
    )


def validate_product_option_input(option_input: Any) -> None:
    """Raise ValidationError if a new product option is not acceptable."""
    details: list[ErrorDetails | None] = [
        validate_id(option_input.product_id, "productId"),
        validate_string_length(option_input.name, "name", 1, 50),
    ]
    if not option_input.values:
        details.append(ErrorDetails("values cannot be empty", "values"))
    details.extend(
        ErrorDetails("value must be between 1 and 50 characters", "values")
        for value in option_input.values
        if not 1 <= len(value.value) <= 50
    )
    _raise_for("invalid product option input", details)