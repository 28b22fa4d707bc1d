from ._bulk import BulkExecutor
from ._models import (
    BatchPolicy,
    BulkOperation,
    BulkOperationKind,
    BulkOutcome,
    SearchResult,
    WriteResult,
)
from .component import DocumentMapper

__all__ = [
    "BatchPolicy",
    "BulkExecutor",
    "BulkOperation",
    "BulkOperationKind",
    "BulkOutcome",
    "DocumentMapper",
    "SearchResult",
    "WriteResult",
]
