# zanobia_inventory

Domain logic for a small production inventory. It covers products and their
variants, and recipes that turn ingredient variants into finished goods. It
also covers stock batches held in a warehouse. You supply storage, unit
conversion and locking as plain objects. The package calls them and never
talks to a database or lock server itself.

## Install

```
pip install .
pip install ".[test]"   # adds pytest, to run the test suite
```

## Modules

### `zanobia_inventory.validator`

Checks on input values:

- `validate_not_zero`
- `validate_id`
- `validate_string_length`
- `validate_alphanumeric_name`
- `validate_product_description`
- `validate_product_dimension`
- `validate_product_standard_unit_id`
- `validate_product_category_id`

Each of these returns an `ErrorDetails(message, field)`, or `None` when the
value is acceptable.

The following check a whole input and raise `ValidationError` on failure:

- `validate_product`
- `validate_recipe` and `validate_recipes`
- `validate_product_variant`
- `validate_product_option_input`

`validate_product_variant_selected_values` checks the option value ids of a
variant and returns an `ErrorDetails` or `None`, like the value checks.

Errors are `ApiError` subclasses that carry a `status`:

| Error | `status` |
| --- | --- |
| `BadRequestError` | 400 |
| `NotFoundError` | 404 |
| `ValidationError` | 422 |

A `ValidationError` also carries `details` (every `ErrorDetails` found) and
`fields`.

### `zanobia_inventory.models`

Dataclasses for:

- units and categories;
- products, options and option values;
- variants;
- recipes;
- batches;
- the bulk update plan: `BulkBatchUpdateInfo`, `BatchUpdateRequest`,
  `BatchCreateRequest`, `WarehouseTransaction` and
  `BulkBatchUpdateUnitOfWork`.

The module also holds:

- `generate_name` and `sort_option_values`. Numeric values come first,
  largest first, then words in alphabetical order. The sorted values are
  joined with `_`.
- `paginate(items, page_size)`, which returns a `Page` whose cursors come
  from the first and last items.
- `recipe_lookup_key`.
- The batch validators `validate_batch_input(s)_increment` and
  `validate_batch_input(s)_decrement`. A decrement also needs a batch id.

### `zanobia_inventory.batch_info`

Builds a `BulkBatchUpdateInfo` from batch inputs and query rows, with
`build_update_info` and `build_recipe_update_info`.

Batch rows are `(id, warehouse_id, sku, quantity, unit_id)`. Variant rows
are `(sku, unit_id, expires_in_days, cost)`. Rows with empty columns are
skipped. A production request is refused if any input is itself a recipe
ingredient.

### `zanobia_inventory.locking`

`BatchLocker` takes a lock for every batch id and sku in an update, through a
lock service with `acquire(key)` and `release(lock)`. Its `hold(info)`
context manager releases those locks even when the block fails.
`batch_lock_key` gives names such as `batch:42:lock`.

### `zanobia_inventory.recipe_planning`

`plan_recipe_updates` works out how much of each ingredient batch
production uses up. Uses of the same ingredient add up. It raises
`BadRequestError("insufficient quantity")` if stock would go below zero.

### `zanobia_inventory.recipe_service`

`RecipeService(repository, unit_converter)` validates new recipes and
deletes them. It also prices them: `total_cost_of_recipes` converts each
ingredient quantity to the ingredient's standard unit before multiplying
by its cost.

### `zanobia_inventory.batch_service`

`BatchService(repository, lock_service, unit_converter)` changes stock:

- `increment_batch` and `bulk_increment_batch`;
- `decrement_batch` and `bulk_decrement_batch`;
- `increment_batch_with_recipe` and `bulk_increment_with_recipe`. These set
  each input's reason to `produced` and draw down the ingredients.

It also reads batches, with `get_batches`, `search_batches_by_sku` and
`get_batch_by_id`.

The repository must provide:

- `transaction()`, a context manager;
- `get_bulk_batch_update_info` and
  `get_bulk_batch_update_info_with_recipe`;
- `process_unit_of_work`;
- the read methods.

The unit converter must provide `convert(quantity, from_unit_id,
to_unit_id)`.

### `zanobia_inventory.product_service`

`ProductService(repository, recipe_service)` handles:

- product creation and translation;
- listing and reading products;
- variants, options and option values;
- archiving and deletion;
- SKU changes.

It refuses to delete or archive a default variant.

## Example

```python
from zanobia_inventory.batch_service import BatchService
from zanobia_inventory.models import BatchInput, validate_batch_inputs_increment
from zanobia_inventory.validator import ValidationError

try:
    validate_batch_inputs_increment([BatchInput(sku="short", quantity=0, unit_id=1)])
except ValidationError as error:
    for detail in error.details:
        print(detail.field, detail.message)

service = BatchService(repository, lock_service, unit_converter)
service.increment_batch(
    BatchInput(sku="SKU-0000000001", quantity=5, unit_id=1, reason="restock")
)
service.increment_batch_with_recipe(
    BatchInput(sku="SKU-0000000002", quantity=2, unit_id=1), use_most_expired=True
)
```

Here `repository`, `lock_service` and `unit_converter` are your own objects
with the methods listed above.

Every quantity is converted to the variant's standard unit. Stock that would
go below zero is refused. Each change is recorded as a `WarehouseTransaction`
in the unit of work handed to the repository.

## What this package does not do

It has:

- no database layer: no SQL, no schema, no stored records;
- no unit conversion tables;
- no lock server;
- no HTTP API and no command-line tool.

It is the logic that sits between those pieces. You connect them through the
repository, converter and lock service objects described above.