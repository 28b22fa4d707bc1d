from ._codec import DocumentCodec
from ._mapping import MappingBuilder
from ._metadata import DocumentInfoRegistry, to_snake_case
from ._models import (
    DocumentConfig,
    DocumentField,
    DocumentFieldInfo,
    DocumentInfo,
    FieldStrategy,
    IndexParam,
    IndexResult,
    IndexSettings,
    document,
)

__all__ = [
    "DocumentCodec",
    "DocumentConfig",
    "DocumentField",
    "DocumentFieldInfo",
    "DocumentInfo",
    "DocumentInfoRegistry",
    "FieldStrategy",
    "IndexParam",
    "IndexResult",
    "IndexSettings",
    "MappingBuilder",
    "document",
    "to_snake_case",
]
