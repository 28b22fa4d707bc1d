from __future__ import annotations

import datetime
import re
import threading
import typing
from typing import Any

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from esmapper.core.config import IdType
from esmapper.core.exceptions import ValidationError

from ._models import (
    FIELD_METADATA_KEY,
    DocumentConfig,
    DocumentFieldInfo,
    DocumentInfo,
    FieldStrategy,
)


class DocumentInfoRegistry:
    """Compute-once metadata per document type.

    Metadata is resolved on first use under a lock and shared read-only
    afterwards.
    """

    default_id_type: IdType

    _lock: threading.Lock
    _cache: dict[type, DocumentInfo]

    def __init__(self, default_id_type: IdType = IdType.BACKEND):
        self.default_id_type = default_id_type
        self._lock = threading.Lock()
        self._cache = dict()

    def get(self, document_type: type) -> DocumentInfo:
        info = self._cache.get(document_type)
        if info is not None:
            return info
        with self._lock:
            info = self._cache.get(document_type)
            if info is None:
                info = self._resolve(document_type)
                self._cache[document_type] = info
        return info

    def get_field_list(self, document_type: type) -> list[DocumentFieldInfo]:
        return list(self.get(document_type).fields)

    def get_key_field(self, document_type: type) -> str:
        return self.get(document_type).id_field

    def get_id_type(self, document_type: type) -> IdType:
        return self.get(document_type).id_type

    def get_index_name(self, document_type: type) -> str:
        return self.get(document_type).index

    def _resolve(self, document_type: type) -> DocumentInfo:
        if not (
            isinstance(document_type, type)
            and issubclass(document_type, BaseModel)
        ):
            raise ValidationError(
                f"{document_type!r} is not a data model type"
            )
        config: DocumentConfig = getattr(
            document_type, "__document__", DocumentConfig()
        )
        model_fields = document_type.model_fields
        if config.id_field not in model_fields:
            raise ValidationError(
                f"{document_type.__name__} has no key field "
                f"{config.id_field}"
            )
        fields = []
        for name, field_info in model_fields.items():
            if name == config.id_field:
                continue
            metadata = self._get_field_metadata(field_info)
            if not metadata.get("exist", True):
                continue
            fields.append(
                DocumentFieldInfo(
                    name=name,
                    column=metadata.get("column") or name,
                    strategy=FieldStrategy(
                        metadata.get("strategy", FieldStrategy.DEFAULT)
                    ),
                    date_format=metadata.get("date_format"),
                    temporal=self._get_temporal_kind(field_info.annotation),
                )
            )
        return DocumentInfo(
            document_type=document_type,
            index=config.index or to_snake_case(document_type.__name__),
            id_field=config.id_field,
            id_type=config.id_type or self.default_id_type,
            fields=tuple(fields),
        )

    def _get_field_metadata(self, field_info: FieldInfo) -> dict[str, Any]:
        extra = field_info.json_schema_extra
        if isinstance(extra, dict):
            metadata = extra.get(FIELD_METADATA_KEY)
            if isinstance(metadata, dict):
                return metadata
        return {}

    def _get_temporal_kind(self, annotation: Any) -> str | None:
        # datetime is a subclass of date, check it first
        if typing.get_origin(annotation) is None and isinstance(
            annotation, type
        ):
            if issubclass(annotation, datetime.datetime):
                return "datetime"
            if issubclass(annotation, datetime.date):
                return "date"
            if issubclass(annotation, datetime.time):
                return "time"
            return None
        for arg in typing.get_args(annotation):
            kind = self._get_temporal_kind(arg)
            if kind is not None:
                return kind
        return None


def to_snake_case(name: str) -> str:
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()
