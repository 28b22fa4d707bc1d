from __future__ import annotations

from typing import Any

from ._models import IndexParam, IndexSettings


class MappingBuilder:
    @staticmethod
    def build_mapping(params: list[IndexParam]) -> dict[str, Any]:
        """Build an index mapping from field params.

        Object sub-fields nest under properties, multi-fields
        under fields, both built the same way.
        """
        properties: dict[str, Any] = {}
        for param in params:
            field_mapping: dict[str, Any] = {}
            if param.field_type is not None:
                field_mapping["type"] = param.field_type
            if param.index is not None:
                field_mapping["index"] = param.index
            if param.field_type == "keyword" and param.ignore_above:
                field_mapping["ignore_above"] = param.ignore_above
            if param.field_type == "date" and param.format:
                field_mapping["format"] = param.format
            if param.copy_to is not None:
                field_mapping["copy_to"] = param.copy_to
            if param.field_type == "text":
                if param.analyzer is not None:
                    field_mapping["analyzer"] = param.analyzer
                if param.search_analyzer is not None:
                    field_mapping["search_analyzer"] = param.search_analyzer
            if param.properties:
                field_mapping["properties"] = MappingBuilder.build_mapping(
                    param.properties
                )["properties"]
            if param.fields:
                field_mapping["fields"] = MappingBuilder.build_mapping(
                    param.fields
                )["properties"]
            properties[param.field_name] = field_mapping
        return {"properties": properties}

    @staticmethod
    def build_settings(settings: IndexSettings | None) -> dict[str, Any]:
        if settings is None:
            return {}
        args: dict[str, Any] = {}
        if settings.number_of_shards is not None:
            args["number_of_shards"] = settings.number_of_shards
        if settings.number_of_replicas is not None:
            args["number_of_replicas"] = settings.number_of_replicas
        if settings.analysis is not None:
            args["analysis"] = settings.analysis
        return args
