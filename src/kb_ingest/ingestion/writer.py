"""Batched persistence of chunk records."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from kb_ingest.ingestion.errors import UpstreamStorageError

if TYPE_CHECKING:
    from kb_ingest.ingestion.models import ChunkRecord
    from kb_ingest.storage.base import ChunkStoreBase

logger = logging.getLogger(__name__)


def store_in_batches(records: list[ChunkRecord], store: ChunkStoreBase, *, batch_size: int) -> int:
    """Insert *records* into *store* in sequential batches of *batch_size*.

    Returns the number of records committed. On the first failing batch an
    :class:`UpstreamStorageError` is raised; earlier batches stay committed
    and are reported as ``records_committed``.
    """
    total_batches = math.ceil(len(records) / batch_size)
    committed = 0

    for batch_number, start in enumerate(range(0, len(records), batch_size), 1):
        batch = records[start : start + batch_size]
        logger.info("Inserting storage batch %d of %d (%d records)", batch_number, total_batches, len(batch))
        try:
            store.insert_batch(batch)
        except Exception as exc:
            logger.error("Storage batch %d of %d failed", batch_number, total_batches, exc_info=True)
            raise UpstreamStorageError(
                str(exc),
                batch_index=batch_number,
                total_batches=total_batches,
                records_committed=committed,
            ) from exc
        committed += len(batch)

    logger.info("Stored %d records in %d batches", committed, total_batches)
    return committed
