from __future__ import annotations

from typing import Any

from esmapper.core.config import DEFAULT_SIZE
from esmapper.core.exceptions import UnsupportedOperationError

from ._compiler import QueryTreeCompiler
from ._models import AggregationKind, ConditionList


class RequestAssembler:
    """Builds the search request body from a condition list."""

    compiler: QueryTreeCompiler
    default_size: int

    def __init__(
        self,
        compiler: QueryTreeCompiler | None = None,
        default_size: int = DEFAULT_SIZE,
    ):
        self.compiler = compiler or QueryTreeCompiler()
        self.default_size = default_size

    def assemble(self, conditions: ConditionList) -> dict:
        body: dict[str, Any] = {
            "query": self.compiler.compile(
                conditions.entries, conditions.geo
            ),
        }
        if conditions.from_ is not None:
            body["from"] = conditions.from_
        body["size"] = (
            conditions.size
            if conditions.size is not None
            else self.default_size
        )
        sort = self.convert_sort(conditions)
        if sort:
            body["sort"] = sort
        source = self.convert_source(conditions)
        if source:
            body["_source"] = source
        highlight = self.convert_highlight(conditions)
        if highlight:
            body["highlight"] = highlight
        aggs = self.convert_aggregations(conditions)
        if aggs:
            body["aggs"] = aggs
        return body

    def convert_sort(self, conditions: ConditionList) -> list:
        args: list = []
        for directive in conditions.sorts:
            for field in directive.fields:
                args.append({field: {"order": directive.order.value}})
        return args

    def convert_source(self, conditions: ConditionList) -> dict | None:
        source: dict[str, Any] = {}
        if conditions.include_fields:
            source["includes"] = list(conditions.include_fields)
        if conditions.exclude_fields:
            source["excludes"] = list(conditions.exclude_fields)
        return source or None

    def convert_highlight(self, conditions: ConditionList) -> dict | None:
        if not conditions.highlights:
            return None
        fields: dict[str, dict] = {}
        for directive in conditions.highlights:
            for field in directive.fields:
                fields[field] = {}
        # tags are request-wide, the last directive sets them
        last = conditions.highlights[-1]
        return {
            "pre_tags": [last.pre_tag],
            "post_tags": [last.post_tag],
            "fields": fields,
        }

    def convert_aggregations(self, conditions: ConditionList) -> dict:
        supported = {kind.value for kind in AggregationKind}
        aggs: dict[str, Any] = {}
        for spec in conditions.aggregations:
            if spec.kind not in supported:
                raise UnsupportedOperationError(
                    f"Aggregation {spec.kind} not supported"
                )
            aggs[spec.name] = {spec.kind: {"field": spec.field}}
        return aggs

    @staticmethod
    def include_identifier(id_field: str, conditions: ConditionList) -> bool:
        """Whether decoded hits get the hit identifier assigned.

        Args:
            id_field:
                Identifier field of the document type.
            conditions:
                Conditions carrying the projection.

        Returns:
            True with no projection, or when the include list names the
            identifier field. Otherwise true only if an exclude list is
            set and does not name it.
        """
        include = conditions.include_fields
        exclude = conditions.exclude_fields
        if not include and not exclude:
            return True
        if include and id_field in include:
            return True
        if exclude:
            return id_field not in exclude
        return False
