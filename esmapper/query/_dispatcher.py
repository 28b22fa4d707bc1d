from __future__ import annotations

from typing import Any, Callable

from esmapper.core.data_model import DataModel
from esmapper.core.exceptions import (
    UnsupportedOperationError,
    ValidationError,
)

from ._models import (
    ClauseKind,
    FieldValuePredicate,
    GeoDirective,
    GeoPoint,
    Occur,
    OperatorKind,
)


class QueryFragment(DataModel):
    """Rendered predicate.

    Attributes:
        occur: Boolean slot the query is attached under.
        query: Backend query fragment.
    """

    occur: Occur
    query: dict[str, Any]


class QueryTypeDispatcher:
    """Maps predicates to backend query fragments.

    Stateless; one instance can be shared by any number of compilers.
    """

    _range_bounds = {
        ClauseKind.GT: "gt",
        ClauseKind.LT: "lt",
        ClauseKind.GE: "gte",
        ClauseKind.LE: "lte",
    }

    def __init__(self) -> None:
        self._clause_renderers: dict[
            ClauseKind, Callable[[FieldValuePredicate], dict]
        ] = {
            ClauseKind.MUST: self.convert_operator,
            ClauseKind.FILTER: self.convert_operator,
            ClauseKind.SHOULD: self.convert_operator,
            ClauseKind.MUST_NOT: self.convert_operator,
            ClauseKind.GT: self.convert_range_bound,
            ClauseKind.LT: self.convert_range_bound,
            ClauseKind.GE: self.convert_range_bound,
            ClauseKind.LE: self.convert_range_bound,
            ClauseKind.BETWEEN: self.convert_between,
            ClauseKind.NOT_BETWEEN: lambda p: self.negate(
                self.convert_between(p)
            ),
            ClauseKind.IN: self.convert_terms,
            ClauseKind.NOT_IN: lambda p: self.negate(self.convert_terms(p)),
            ClauseKind.EXISTS: self.convert_exists,
            ClauseKind.NOT_EXISTS: lambda p: self.negate(
                self.convert_exists(p)
            ),
            ClauseKind.LIKE_LEFT: lambda p: self.convert_single(
                "wildcard", p.field, f"*{p.value}", p.boost
            ),
            ClauseKind.LIKE_RIGHT: lambda p: self.convert_single(
                "wildcard", p.field, f"{p.value}*", p.boost
            ),
        }

    def render(self, predicate: FieldValuePredicate) -> QueryFragment:
        renderer = self._clause_renderers.get(predicate.clause)
        if renderer is None:
            raise UnsupportedOperationError(
                f"Clause {predicate.clause} not supported"
            )
        query = renderer(predicate)
        occur = predicate.occur or Occur.MUST
        # must_not semantics survive a move into the should slot
        if (
            predicate.clause == ClauseKind.MUST_NOT
            and occur != Occur.MUST_NOT
        ):
            query = self.negate(query)
        return QueryFragment(occur=occur, query=query)

    def convert_operator(self, predicate: FieldValuePredicate) -> dict:
        operator = predicate.operator
        if operator == OperatorKind.EQ:
            return self.convert_single(
                "term", predicate.field, predicate.value, predicate.boost
            )
        if operator == OperatorKind.MATCH:
            return self.convert_single(
                "match",
                predicate.field,
                predicate.value,
                predicate.boost,
                value_key="query",
            )
        if operator == OperatorKind.PREFIX:
            return self.convert_single(
                "prefix", predicate.field, predicate.value, predicate.boost
            )
        if operator == OperatorKind.WILDCARD:
            return self.convert_single(
                "wildcard", predicate.field, predicate.value, predicate.boost
            )
        if operator == OperatorKind.TERMS:
            return self.convert_terms(predicate)
        if operator == OperatorKind.EXISTS:
            return self.convert_exists(predicate)
        if operator == OperatorKind.RANGE:
            if predicate.low is not None or predicate.high is not None:
                return self.convert_between(predicate)
        raise UnsupportedOperationError(
            f"Operator {operator} not supported for clause "
            f"{predicate.clause}"
        )

    def convert_single(
        self,
        kind: str,
        field: str,
        value: Any,
        boost: float | None,
        value_key: str = "value",
    ) -> dict:
        if boost is None:
            return {kind: {field: value}}
        return {kind: {field: {value_key: value, "boost": boost}}}

    def convert_range_bound(self, predicate: FieldValuePredicate) -> dict:
        spec: dict[str, Any] = {
            self._range_bounds[predicate.clause]: predicate.value
        }
        if predicate.boost is not None:
            spec["boost"] = predicate.boost
        return {"range": {predicate.field: spec}}

    def convert_between(self, predicate: FieldValuePredicate) -> dict:
        spec: dict[str, Any] = {}
        if predicate.low is not None:
            spec["gte"] = predicate.low
        if predicate.high is not None:
            spec["lte"] = predicate.high
        if predicate.boost is not None:
            spec["boost"] = predicate.boost
        return {"range": {predicate.field: spec}}

    def convert_terms(self, predicate: FieldValuePredicate) -> dict:
        terms: dict[str, Any] = {predicate.field: list(predicate.values or [])}
        if predicate.boost is not None:
            terms["boost"] = predicate.boost
        return {"terms": terms}

    def convert_exists(self, predicate: FieldValuePredicate) -> dict:
        exists: dict[str, Any] = {"field": predicate.field}
        if predicate.boost is not None:
            exists["boost"] = predicate.boost
        return {"exists": exists}

    def negate(self, query: dict) -> dict:
        return {"bool": {"must_not": [query]}}

    def render_geo(self, geo: GeoDirective) -> dict:
        """Render the geo directive as a filter query.

        Args:
            geo:
                Geo directive. The first populated shape wins:
                bounding box, distance, polygon, shape.

        Returns:
            Geo query fragment.
        """
        if geo.top_left is not None and geo.bottom_right is not None:
            kind = "geo_bounding_box"
            body: dict[str, Any] = {
                geo.field: {
                    "top_left": self._convert_point(geo.top_left),
                    "bottom_right": self._convert_point(geo.bottom_right),
                }
            }
        elif geo.distance is not None and geo.center is not None:
            kind = "geo_distance"
            distance = geo.distance
            if not isinstance(distance, str):
                distance = f"{distance}{geo.distance_unit}"
            body = {
                "distance": distance,
                geo.field: self._convert_point(geo.center),
            }
        elif geo.points:
            kind = "geo_polygon"
            body = {
                geo.field: {
                    "points": [self._convert_point(p) for p in geo.points]
                }
            }
        elif geo.shape is not None or geo.indexed_shape_id is not None:
            kind = "geo_shape"
            spec: dict[str, Any] = {}
            if geo.shape is not None:
                spec["shape"] = geo.shape
            else:
                indexed: dict[str, Any] = {"id": geo.indexed_shape_id}
                if geo.indexed_shape_index is not None:
                    indexed["index"] = geo.indexed_shape_index
                indexed["path"] = geo.field
                spec["indexed_shape"] = indexed
            if geo.relation is not None:
                spec["relation"] = geo.relation
            body = {geo.field: spec}
        else:
            raise ValidationError(
                f"Geo directive on {geo.field} has no shape to render"
            )
        if geo.boost is not None:
            body["boost"] = geo.boost
        return {kind: body}

    def _convert_point(self, point: GeoPoint) -> dict:
        return {"lat": point.lat, "lon": point.lon}
