from __future__ import annotations

from enum import Enum
from typing import Any

from esmapper.core.data_model import DataModel


class BulkOperationKind(str, Enum):
    """Bulk operation kind.

    Attributes:
        INDEX: Create or replace a document.
        UPDATE: Partially update a document.
        DELETE: Delete a document.
    """

    INDEX = "index"
    UPDATE = "update"
    DELETE = "delete"


class BulkOperation(DataModel):
    """One item of a bulk request."""

    kind: BulkOperationKind
    """Operation kind."""

    index: str
    """Target index."""

    id: str | None = None
    """Document identifier. Required for update and delete."""

    document: dict[str, Any] | None = None
    """Document source for index, partial fields for update."""


class BatchPolicy(str, Enum):
    """Batch reconciliation policy.

    Attributes:
        FAIL_FAST: Any failed item fails the whole batch.
        TALLY: Count succeeded items, log failed ones.
    """

    FAIL_FAST = "fail_fast"
    TALLY = "tally"


class BulkOutcome(DataModel):
    """Reconciled bulk response."""

    count: int = 0
    """Number of succeeded items."""

    ids: list[str | None] = []
    """Identifiers by position, None for failed items."""

    failures: list[dict[str, Any]] = []
    """Failed items with identifier, status and error."""


class WriteResult(DataModel):
    """Write result."""

    count: int = 0
    """Number of documents written."""

    ids: list[str | None] = []
    """Identifiers of written documents by position."""


class SearchResult(DataModel):
    """Search result."""

    total: int | None = None
    """Total number of matching documents."""

    hits: list[dict[str, Any]] = []
    """Raw hits."""

    aggregations: dict[str, Any] | None = None
    """Aggregation results by name."""
