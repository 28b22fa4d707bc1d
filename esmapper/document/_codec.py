from __future__ import annotations

import datetime
import json
import uuid
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from esmapper.core.config import IdType, MapperConfig
from esmapper.core.exceptions import SerializationError, ValidationError

from ._models import DocumentFieldInfo, DocumentInfo, FieldStrategy


class DocumentCodec:
    """Converts entities to and from wire documents.

    Field strategies decide which fields are written. Date and time values,
    alone or in a list, use the field date format, then the configured one,
    then ISO 8601. Values inside nested models are always ISO 8601.
    The key field is never written to the document source.
    """

    info: DocumentInfo
    config: MapperConfig

    def __init__(
        self,
        info: DocumentInfo,
        config: MapperConfig | None = None,
    ):
        self.info = info
        self.config = config or MapperConfig()

    def to_wire_fields(self, entity: Any) -> dict[str, Any]:
        self._check_type(entity)
        fields: dict[str, Any] = {}
        for field in self.info.fields:
            value = getattr(entity, field.name, None)
            if not self._should_write(field, value):
                continue
            fields[field.column] = self._encode_value(field, value)
        return fields

    def to_wire_document(self, entity: Any) -> bytes:
        return self._dump(self.to_wire_fields(entity))

    def to_partial_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Encode update-by-fields values.

        Nulls are always emitted so they clear the stored value.
        """
        partial: dict[str, Any] = {}
        for name, value in fields.items():
            if name == self.info.id_field:
                continue
            field = self.info.get_field(name)
            if field is None:
                partial[name] = self._encode_value(None, value)
            else:
                partial[field.column] = self._encode_value(field, value)
        return partial

    def to_partial_document(self, fields: dict[str, Any]) -> bytes:
        return self._dump(self.to_partial_fields(fields))

    def from_wire_hit(
        self,
        source: dict[str, Any] | None,
        identifier: str | None,
        include_identifier: bool = True,
    ) -> Any:
        """Decode a hit source into an entity.

        Args:
            source:
                Hit source.
            identifier:
                Hit identifier.
            include_identifier:
                Whether the identifier is assigned to the key field.

        Returns:
            Entity.
        """
        source = source or {}
        data: dict[str, Any] = {}
        try:
            for field in self.info.fields:
                if field.column not in source:
                    continue
                data[field.name] = self._decode_value(
                    field, source[field.column]
                )
            if include_identifier and identifier is not None:
                data[self.info.id_field] = identifier
            return self.info.document_type.model_validate(data)
        except (PydanticValidationError, ValueError, TypeError) as e:
            raise SerializationError(
                f"Cannot decode {self.info.document_type.__name__} "
                f"from hit {identifier}: {e}"
            ) from e

    def assign_id(self, entity: Any, identifier: str | None) -> None:
        if identifier is None:
            return
        setattr(entity, self.info.id_field, identifier)

    def get_id(self, entity: Any) -> str | None:
        value = getattr(entity, self.info.id_field, None)
        if value is None:
            return None
        return str(value)

    def generate_id(self, entity: Any) -> str | None:
        """Identifier sent with an insert.

        Returns:
            None when the backend assigns the identifier.

        Raises:
            ValidationError:
                Custom identifier missing or blank.
        """
        if self.info.id_type == IdType.UUID:
            return str(uuid.uuid4())
        if self.info.id_type == IdType.CUSTOM:
            identifier = self.get_id(entity)
            if identifier is None or not identifier.strip():
                raise ValidationError(
                    f"{self.info.document_type.__name__}."
                    f"{self.info.id_field} must be set for custom ids"
                )
            return identifier
        return None

    def _should_write(self, field: DocumentFieldInfo, value: Any) -> bool:
        if field.strategy == FieldStrategy.NOT_NULL:
            return value is not None
        if field.strategy == FieldStrategy.NOT_EMPTY:
            if value is None:
                return False
            if isinstance(value, str):
                return value != ""
        return True

    def _get_date_format(self, field: DocumentFieldInfo | None) -> str | None:
        if field is not None and field.date_format:
            return field.date_format
        return self.config.date_format

    def _encode_value(
        self, field: DocumentFieldInfo | None, value: Any
    ) -> Any:
        date_format = self._get_date_format(field)
        if date_format:
            value = self._format_temporal(value, date_format)
        try:
            return to_jsonable_python(value)
        except PydanticSerializationError as e:
            raise SerializationError(
                f"Cannot encode {self.info.document_type.__name__} value "
                f"{value!r}: {e}"
            ) from e

    def _format_temporal(self, value: Any, date_format: str) -> Any:
        # nested models keep their own ISO encoding
        if isinstance(value, (datetime.date, datetime.time)):
            return value.strftime(date_format)
        if isinstance(value, (list, tuple, set)):
            return [self._format_temporal(v, date_format) for v in value]
        return value

    def _decode_value(self, field: DocumentFieldInfo, value: Any) -> Any:
        if field.temporal is None:
            return value
        date_format = self._get_date_format(field)
        if not date_format:
            return value
        if isinstance(value, list):
            return [self._parse_temporal(field, v, date_format) for v in value]
        return self._parse_temporal(field, value, date_format)

    def _parse_temporal(
        self, field: DocumentFieldInfo, value: Any, date_format: str
    ) -> Any:
        if not isinstance(value, str):
            return value
        parsed = datetime.datetime.strptime(value, date_format)
        if field.temporal == "date":
            return parsed.date()
        if field.temporal == "time":
            return parsed.time()
        return parsed

    def _check_type(self, entity: Any) -> None:
        if not isinstance(entity, self.info.document_type):
            raise ValidationError(
                f"Expected {self.info.document_type.__name__}, "
                f"got {type(entity).__name__}"
            )

    def _dump(self, fields: dict[str, Any]) -> bytes:
        try:
            return json.dumps(fields, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Cannot encode {self.info.document_type.__name__}: {e}"
            ) from e
