from __future__ import annotations

from enum import Enum
from typing import Any, Callable, TypeVar

from pydantic import Field
from pydantic_core import PydanticUndefined

from esmapper.core.config import IdType
from esmapper.core.data_model import DataModel, FrozenDataModel

FIELD_METADATA_KEY = "esmapper"

T = TypeVar("T", bound=type)


class FieldStrategy(str, Enum):
    """Write strategy of a document field.

    Attributes:
        DEFAULT: Always written.
        IGNORED: Always written, nulls included.
        NOT_NULL: Written when not null.
        NOT_EMPTY: Written when not null and, for strings, not empty.
    """

    DEFAULT = "default"
    IGNORED = "ignored"
    NOT_NULL = "not_null"
    NOT_EMPTY = "not_empty"


def DocumentField(
    default: Any = PydanticUndefined,
    *,
    strategy: FieldStrategy = FieldStrategy.DEFAULT,
    exist: bool = True,
    column: str | None = None,
    date_format: str | None = None,
    **kwargs: Any,
) -> Any:
    """Declare a document field.

    Args:
        default:
            Field default.
        strategy:
            Write strategy.
        exist:
            False for fields that live only on the entity
            and are never written to the index.
        column:
            Field name in the index, when it differs.
        date_format:
            strftime format for date and time values.
        kwargs:
            Passed to pydantic Field.

    Returns:
        Pydantic field info.
    """
    return Field(
        default,
        json_schema_extra={
            FIELD_METADATA_KEY: {
                "strategy": FieldStrategy(strategy).value,
                "exist": exist,
                "column": column,
                "date_format": date_format,
            }
        },
        **kwargs,
    )


class DocumentConfig(FrozenDataModel):
    """Document type declaration."""

    index: str | None = None
    """Index name. Defaults to the snake_case type name."""

    id_field: str = "id"
    """Key field carrying the document identifier."""

    id_type: IdType | None = None
    """Identifier mode. Defaults to the mapper config."""


def document(
    index: str | None = None,
    id_field: str = "id",
    id_type: IdType | str | None = None,
) -> Callable[[T], T]:
    """Declare a data model as a document type.

    Args:
        index:
            Index name.
        id_field:
            Key field carrying the document identifier.
        id_type:
            Identifier mode.
    """

    def decorator(cls: T) -> T:
        setattr(
            cls,
            "__document__",
            DocumentConfig(
                index=index,
                id_field=id_field,
                id_type=IdType(id_type) if id_type is not None else None,
            ),
        )
        return cls

    return decorator


class DocumentFieldInfo(FrozenDataModel):
    """Resolved metadata of one written field.

    Attributes:
        name: Attribute name on the entity.
        column: Field name in the index.
        strategy: Write strategy.
        date_format: Explicit date format.
        temporal: datetime, date or time for temporal fields.
    """

    name: str
    column: str
    strategy: FieldStrategy = FieldStrategy.DEFAULT
    date_format: str | None = None
    temporal: str | None = None


class DocumentInfo(FrozenDataModel):
    """Resolved metadata of a document type.

    Attributes:
        document_type: Entity class.
        index: Index name.
        id_field: Key field.
        id_type: Identifier mode.
        fields: Written fields, key field excluded.
    """

    document_type: Any
    index: str
    id_field: str
    id_type: IdType
    fields: tuple[DocumentFieldInfo, ...] = ()

    def get_field(self, name: str) -> DocumentFieldInfo | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def get_column(self, name: str) -> str:
        field = self.get_field(name)
        return field.column if field is not None else name


class IndexParam(DataModel):
    """Field mapping of an index.

    Attributes:
        field_name: Field name.
        field_type: Backend field type, e.g. keyword, text, date.
        index: Whether the field is indexed.
        ignore_above: Keyword length above which values are not indexed.
        format: Date format.
        copy_to: Fields the value is copied to.
        analyzer: Index time analyzer for text fields.
        search_analyzer: Search time analyzer for text fields.
        properties: Sub-field mappings of an object field.
        fields: Multi-field mappings.
    """

    field_name: str
    field_type: str | None = None
    index: bool | None = None
    ignore_above: int | None = None
    format: str | None = None
    copy_to: str | list[str] | None = None
    analyzer: str | None = None
    search_analyzer: str | None = None
    properties: list[IndexParam] | None = None
    fields: list[IndexParam] | None = None


class IndexSettings(DataModel):
    number_of_shards: int | None = None
    number_of_replicas: int | None = None
    analysis: dict[str, Any] | None = None


class IndexResult(DataModel):
    """Index management result.

    Attributes:
        index: Index name.
        acknowledged: Whether the backend acknowledged the change.
    """

    index: str
    acknowledged: bool
