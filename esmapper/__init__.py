from .core import IdType, MapperConfig, Response
from .core.exceptions import (
    BaseError,
    BatchFailureError,
    NotFoundError,
    SerializationError,
    TransportError,
    UnsupportedOperationError,
    ValidationError,
)
from .document import (
    DocumentField,
    FieldStrategy,
    IndexParam,
    IndexSettings,
    document,
)
from .mapper import DocumentMapper, SearchResult, WriteResult
from .query import ConditionList, UpdateConditionList

__all__ = [
    "BaseError",
    "BatchFailureError",
    "ConditionList",
    "DocumentField",
    "DocumentMapper",
    "FieldStrategy",
    "IdType",
    "IndexParam",
    "IndexSettings",
    "MapperConfig",
    "NotFoundError",
    "Response",
    "SearchResult",
    "SerializationError",
    "TransportError",
    "UnsupportedOperationError",
    "UpdateConditionList",
    "ValidationError",
    "WriteResult",
    "document",
]
