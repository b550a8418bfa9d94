"""Distributed locks around the batches a bulk update touches."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from .models import BatchInput, BulkBatchUpdateInfo
from .validator import BadRequestError

logger = logging.getLogger(__name__)


class LockService(Protocol):
    def acquire(self, key: str) -> Any: ...

    def release(self, lock: Any) -> Any: ...


def batch_lock_key(id_or_sku: str | int) -> str:
    """The lock key for a batch id or sku."""
    return f"batch:{id_or_sku}:lock"


def generate_batch_lock_key(batch_input: BatchInput) -> str:
    """The lock key for an input: by batch id when it has one, otherwise by sku."""
    if batch_input.id is not None:
        return batch_lock_key(batch_input.id)
    return batch_lock_key(batch_input.sku)


class BatchLocker:
    """Acquires and releases the locks for every batch id and sku in an update."""

    def __init__(self, lock_service: LockService) -> None:
        self.lock_service = lock_service

    def _acquire_all(
        self, info: BulkBatchUpdateInfo, keys: Iterable[str | int], kind: str
    ) -> None:
        for key in keys:
            try:
                lock = self.lock_service.acquire(batch_lock_key(key))
            except Exception as exc:
                raise BadRequestError(
                    f"Failed to acquire lock for {kind}: {key}"
                ) from exc
            info.locks.append(lock)

    def lock(self, info: BulkBatchUpdateInfo) -> BulkBatchUpdateInfo:
        """Lock every id, then every sku; the acquired locks are kept in ``info.locks``.

        Raises BadRequestError on the first lock that cannot be taken; the locks
        already taken stay in ``info.locks`` so they can be released.
        """
        info.locks = []
        self._acquire_all(info, info.ids, "id")
        self._acquire_all(info, info.skus, "sku")
        return info

    def unlock(self, info: BulkBatchUpdateInfo) -> None:
        """Release every lock held in ``info.locks``."""
        for lock in info.locks:
            try:
                self.lock_service.release(lock)
            except Exception as exc:  # a failed release must not stop the others
                logger.error("Failed to release lock %r: %s", lock, exc)
        info.locks = []

    @contextmanager
    def hold(self, info: BulkBatchUpdateInfo) -> Iterator[BulkBatchUpdateInfo]:
        """Hold the locks for the duration of the block, releasing them even on error."""
        try:
            yield self.lock(info)
        finally:
            self.unlock(info)