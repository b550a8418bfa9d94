"""Stock batches: adding, removing and producing stock in a warehouse."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Protocol

from .locking import BatchLocker, LockService
from .models import (
    Batch,
    BatchCreateRequest,
    BatchInput,
    BatchUpdateRequest,
    BatchVariantMetaInfo,
    BulkBatchUpdateInfo,
    BulkBatchUpdateUnitOfWork,
    Page,
    PaginationParams,
    WarehouseTransaction,
    paginate,
    validate_batch_inputs_decrement,
    validate_batch_inputs_increment,
)
from .recipe_planning import plan_recipe_updates
from .validator import ApiError, BadRequestError

logger = logging.getLogger(__name__)

PRODUCED_REASON = "produced"

Converter = Callable[[BatchInput, BatchVariantMetaInfo], BatchInput]
UpdatePlan = tuple[dict[str, BatchUpdateRequest], list[WarehouseTransaction]]
CreatePlan = tuple[dict[str, BatchCreateRequest], list[WarehouseTransaction]]


class BatchRepository(Protocol):
    def transaction(self) -> AbstractContextManager[Any]: ...

    def get_bulk_batch_update_info(
        self, inputs: list[BatchInput]
    ) -> BulkBatchUpdateInfo: ...

    def get_bulk_batch_update_info_with_recipe(
        self, inputs: list[BatchInput], use_most_expired: bool
    ) -> BulkBatchUpdateInfo: ...

    def process_unit_of_work(self, unit_of_work: BulkBatchUpdateUnitOfWork) -> Any: ...

    def get_batches(self, params: PaginationParams) -> list[Batch]: ...

    def search_batches_by_sku(
        self, sku: str, params: PaginationParams
    ) -> list[Batch]: ...

    def get_batch_by_id(self, batch_id: int) -> Batch: ...


class UnitConverter(Protocol):
    def convert(self, quantity: float, from_unit_id: int, to_unit_id: int) -> float: ...


def _plan_updates(
    info: BulkBatchUpdateInfo, convert: Converter, decrement: bool
) -> UpdatePlan:
    requests: dict[str, BatchUpdateRequest] = {}
    history: list[WarehouseTransaction] = []
    for batch_input in info.inputs_to_update.values():
        base = info.batch_bases.get(batch_input.sku)
        if base is None:
            raise BadRequestError("batch to update not found")
        meta = info.variant_meta_info.get(batch_input.sku)
        if meta is None:
            raise BadRequestError("variant meta info not found")
        converted = convert(batch_input, meta)
        if decrement:
            new_value = base.quantity - converted.quantity
            if new_value < 0:
                raise BadRequestError("insufficient quantity")
        else:
            new_value = base.quantity + converted.quantity
        requests[converted.sku] = BatchUpdateRequest(
            batch_id=converted.id,
            new_value=new_value,
            reason=converted.reason,
            sku=converted.sku,
            modified_by=converted.quantity,
        )
        history.append(
            WarehouseTransaction(
                batch_id=base.id,
                quantity=converted.quantity,
                unit_id=meta.unit_id,
                reason=converted.reason,
                comment=converted.comment,
                cost=meta.cost * converted.quantity,
                sku=converted.sku,
            )
        )
    return requests, history


def plan_increment_updates(info: BulkBatchUpdateInfo, convert: Converter) -> UpdatePlan:
    """Plan the increase of every existing batch named in ``info``."""
    return _plan_updates(info, convert, decrement=False)


def plan_decrement_updates(info: BulkBatchUpdateInfo, convert: Converter) -> UpdatePlan:
    """Plan the decrease of every existing batch; no batch may drop below zero."""
    return _plan_updates(info, convert, decrement=True)


def plan_batch_creates(
    info: BulkBatchUpdateInfo, convert: Converter, today: datetime
) -> CreatePlan:
    """Plan new batches, each expiring its variant's shelf life after ``today``."""
    requests: dict[str, BatchCreateRequest] = {}
    history: list[WarehouseTransaction] = []
    for batch_input in info.inputs_to_create.values():
        meta = info.variant_meta_info.get(batch_input.sku)
        if meta is None:
            raise BadRequestError("variant meta info not found")
        converted = convert(batch_input, meta)
        requests[converted.sku] = BatchCreateRequest(
            batch_sku=converted.sku,
            quantity=converted.quantity,
            unit_id=meta.unit_id,
            expiry_date=today + timedelta(days=meta.expires_in_days),
        )
        history.append(
            WarehouseTransaction(
                quantity=converted.quantity,
                unit_id=meta.unit_id,
                reason=converted.reason,
                comment=converted.comment,
                cost=meta.cost * converted.quantity,
                sku=converted.sku,
            )
        )
    return requests, history


class BatchService:
    """Carries out stock changes on batches under locks and a transaction."""

    def __init__(
        self,
        repository: BatchRepository,
        lock_service: LockService,
        unit_converter: UnitConverter,
    ) -> None:
        self.repository = repository
        self.locker = BatchLocker(lock_service)
        self.unit_converter = unit_converter

    def convert_batch_input(
        self, batch_input: BatchInput, meta_info: BatchVariantMetaInfo
    ) -> BatchInput:
        """Return a copy of the input expressed in the variant's standard unit."""
        quantity = self.unit_converter.convert(
            batch_input.quantity, batch_input.unit_id, meta_info.unit_id
        )
        return replace(batch_input, quantity=quantity, unit_id=meta_info.unit_id)

    def increment_batch(self, batch_input: BatchInput) -> None:
        self.bulk_increment_batch([batch_input])

    def decrement_batch(self, batch_input: BatchInput) -> None:
        self.bulk_decrement_batch([batch_input])

    def bulk_increment_batch(self, inputs: Iterable[BatchInput]) -> None:
        listed = list(inputs)
        validate_batch_inputs_increment(listed)
        try:
            info = self.repository.get_bulk_batch_update_info(listed)
        except Exception as exc:
            raise BadRequestError("failed to process batch increment") from exc
        with self.repository.transaction(), self.locker.hold(info) as held:
            updates, update_history = plan_increment_updates(
                held, self.convert_batch_input
            )
            creates, create_history = plan_batch_creates(
                held, self.convert_batch_input, datetime.now()
            )
            self.repository.process_unit_of_work(
                BulkBatchUpdateUnitOfWork(
                    update_requests=updates,
                    create_requests=creates,
                    transaction_history=update_history + create_history,
                )
            )

    def bulk_decrement_batch(self, inputs: Iterable[BatchInput]) -> None:
        listed = list(inputs)
        validate_batch_inputs_decrement(listed)
        try:
            info = self.repository.get_bulk_batch_update_info(listed)
        except Exception as exc:
            logger.error("failed to process batch decrement: %s", exc)
            raise BadRequestError("failed to process batch decrement") from exc
        with self.repository.transaction(), self.locker.hold(info) as held:
            updates, history = plan_decrement_updates(held, self.convert_batch_input)
            self.repository.process_unit_of_work(
                BulkBatchUpdateUnitOfWork(
                    update_requests=updates, transaction_history=history
                )
            )

    def increment_batch_with_recipe(
        self, batch_input: BatchInput, use_most_expired: bool = False
    ) -> None:
        self.bulk_increment_with_recipe([batch_input], use_most_expired)

    def bulk_increment_with_recipe(
        self, inputs: Iterable[BatchInput], use_most_expired: bool = False
    ) -> None:
        """Produce stock, consuming the ingredients its recipes call for."""
        listed = [replace(item, reason=PRODUCED_REASON) for item in inputs]
        validate_batch_inputs_increment(listed)
        try:
            info = self.repository.get_bulk_batch_update_info_with_recipe(
                listed, use_most_expired
            )
        except ApiError:
            raise
        except Exception as exc:
            raise BadRequestError("failed to process batch increment") from exc
        with self.repository.transaction(), self.locker.hold(info) as held:
            convert = self.convert_batch_input
            updates, update_history = plan_increment_updates(held, convert)
            creates, create_history = plan_batch_creates(held, convert, datetime.now())
            all_updates, recipe_history = plan_recipe_updates(
                held, updates, creates, convert
            )
            self.repository.process_unit_of_work(
                BulkBatchUpdateUnitOfWork(
                    update_requests=all_updates,
                    create_requests=creates,
                    transaction_history=update_history
                    + create_history
                    + recipe_history,
                )
            )

    def get_batches(self, params: PaginationParams) -> Page:
        batches = self.repository.get_batches(params)
        return paginate(batches, params.page_size)

    def search_batches_by_sku(self, sku: str, params: PaginationParams) -> Page:
        batches = self.repository.search_batches_by_sku(sku, params)
        return paginate(batches, params.page_size)

    def get_batch_by_id(self, batch_id: int) -> Batch:
        return self.repository.get_batch_by_id(batch_id)