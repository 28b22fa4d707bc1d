from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Union

from pydantic import model_validator

from esmapper.core.data_model import DataModel
from esmapper.core.exceptions import ValidationError


class OperatorKind(str, Enum):
    """Operator kind.

    Attributes:
        EQ: Exact match.
        MATCH: Analyzed full-text match.
        PREFIX: Prefix match.
        WILDCARD: Wildcard pattern match.
        RANGE: Range match.
        TERMS: Exact match against a set of values.
        EXISTS: Field presence.
    """

    EQ = "eq"
    MATCH = "match"
    PREFIX = "prefix"
    WILDCARD = "wildcard"
    RANGE = "range"
    TERMS = "terms"
    EXISTS = "exists"


class ClauseKind(str, Enum):
    """Clause kind.

    The first four select a boolean slot directly.
    The rest are comparison, range and membership variants
    that land in the must slot unless reclassified.
    """

    MUST = "must"
    FILTER = "filter"
    SHOULD = "should"
    MUST_NOT = "must_not"
    GT = "gt"
    LT = "lt"
    GE = "ge"
    LE = "le"
    BETWEEN = "between"
    NOT_BETWEEN = "not_between"
    IN = "in"
    NOT_IN = "not_in"
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"
    LIKE_LEFT = "like_left"
    LIKE_RIGHT = "like_right"


class Occur(str, Enum):
    """Boolean query slot.

    Attributes:
        MUST: Required and scored.
        FILTER: Required, not scored.
        SHOULD: Optional, or one-of when alone.
        MUST_NOT: Excluded.
    """

    MUST = "must"
    FILTER = "filter"
    SHOULD = "should"
    MUST_NOT = "must_not"


class MarkerKind(str, Enum):
    """Structural marker kind.

    Attributes:
        AND_GROUP_OPEN: Opens a group merged as must.
        OR_GROUP_OPEN: Opens a group merged as should.
        AND_GROUP_CLOSE: Closes an and group.
        OR_GROUP_CLOSE: Closes an or group.
        OR_CHAIN: Turns the rest of the current scope disjunctive.
    """

    AND_GROUP_OPEN = "and_group_open"
    OR_GROUP_OPEN = "or_group_open"
    AND_GROUP_CLOSE = "and_group_close"
    OR_GROUP_CLOSE = "or_group_close"
    OR_CHAIN = "or_chain"


GROUP_OPEN_MARKERS = (MarkerKind.AND_GROUP_OPEN, MarkerKind.OR_GROUP_OPEN)
GROUP_CLOSE_MARKERS = (MarkerKind.AND_GROUP_CLOSE, MarkerKind.OR_GROUP_CLOSE)
GROUP_CLOSE_FOR = {
    MarkerKind.AND_GROUP_OPEN: MarkerKind.AND_GROUP_CLOSE,
    MarkerKind.OR_GROUP_OPEN: MarkerKind.OR_GROUP_CLOSE,
}

_SLOT_OCCUR = {
    ClauseKind.MUST: Occur.MUST,
    ClauseKind.FILTER: Occur.FILTER,
    ClauseKind.SHOULD: Occur.SHOULD,
    ClauseKind.MUST_NOT: Occur.MUST_NOT,
}


class FieldValuePredicate(DataModel):
    """Single search condition.

    Attributes:
        field: Field name.
        operator: Operator kind.
        clause: Clause kind.
        value: Scalar value.
        values: Value set for IN and NOT_IN.
        low: Lower bound for BETWEEN and NOT_BETWEEN.
        high: Upper bound for BETWEEN and NOT_BETWEEN.
        boost: Optional weight, backend default when unset.
        occur: Boolean slot the predicate currently lands in.
    """

    field: str
    operator: OperatorKind
    clause: ClauseKind
    value: Any = None
    values: list[Any] | None = None
    low: Any = None
    high: Any = None
    boost: float | None = None
    occur: Occur | None = None

    @model_validator(mode="after")
    def _check_arity(self) -> FieldValuePredicate:
        if not self.field:
            raise ValidationError("Predicate field must not be blank")
        if self.clause in (ClauseKind.BETWEEN, ClauseKind.NOT_BETWEEN):
            if self.low is None or self.high is None:
                raise ValidationError(
                    f"{self.clause.value} on {self.field} "
                    "requires both low and high"
                )
        elif self.clause in (ClauseKind.IN, ClauseKind.NOT_IN) or (
            self.operator == OperatorKind.TERMS
        ):
            if not self.values:
                raise ValidationError(
                    f"{self.clause.value} on {self.field} "
                    "requires a non-empty value set"
                )
        elif self.clause in (ClauseKind.EXISTS, ClauseKind.NOT_EXISTS) or (
            self.operator == OperatorKind.EXISTS
        ):
            if self.value is not None:
                raise ValidationError(
                    f"{self.clause.value} on {self.field} takes no value"
                )
        elif self.value is None or isinstance(
            self.value, (list, tuple, set, dict)
        ):
            raise ValidationError(
                f"{self.clause.value} on {self.field} "
                "requires exactly one scalar value"
            )
        if self.occur is None:
            self.occur = _SLOT_OCCUR.get(self.clause, Occur.MUST)
        return self

    def to_should(self) -> FieldValuePredicate:
        return self.model_copy(update={"occur": Occur.SHOULD})


class PredicateBatch(DataModel):
    """Predicates appended together under one clause kind.

    Attributes:
        original_clause: Clause kind the batch was created with.
        predicates: Predicates in the batch.
    """

    original_clause: ClauseKind
    predicates: list[FieldValuePredicate] = []

    def to_should(self) -> PredicateBatch:
        return self.model_copy(
            update={"predicates": [p.to_should() for p in self.predicates]}
        )


class Marker(DataModel):
    """Structural marker.

    Attributes:
        kind: Marker kind.
    """

    kind: MarkerKind


Entry = Union[PredicateBatch, Marker]


class SortOrder(str, Enum):
    """Sort order.

    Attributes:
        ASC: Ascending.
        DESC: Descending.
    """

    ASC = "asc"
    DESC = "desc"


class SortDirective(DataModel):
    fields: list[str]
    order: SortOrder = SortOrder.ASC


class HighlightDirective(DataModel):
    fields: list[str]
    pre_tag: str = "<em>"
    post_tag: str = "</em>"


class AggregationKind(str, Enum):
    """Aggregation kind.

    Attributes:
        AVG: Average of a numeric field.
        MIN: Minimum of a numeric field.
        MAX: Maximum of a numeric field.
        SUM: Sum of a numeric field.
        TERMS: Buckets per distinct value.
    """

    AVG = "avg"
    MIN = "min"
    MAX = "max"
    SUM = "sum"
    TERMS = "terms"


class AggregationSpec(DataModel):
    """Aggregation request.

    Attributes:
        kind: Aggregation kind, see AggregationKind.
        field: Aggregated field.
        name: Aggregation name in the response.
    """

    kind: str
    field: str
    name: str


class GeoPoint(DataModel):
    """Geo point.

    Attributes:
        lat: Latitude.
        lon: Longitude.
    """

    lat: float
    lon: float


class GeoDirective(DataModel):
    """Geo filter.

    Exactly one shape of filter is populated:
    bounding box, distance, polygon or shape.
    """

    field: str
    top_left: GeoPoint | None = None
    bottom_right: GeoPoint | None = None
    distance: float | str | None = None
    distance_unit: str = "km"
    center: GeoPoint | None = None
    points: list[GeoPoint] | None = None
    shape: dict[str, Any] | None = None
    indexed_shape_id: str | None = None
    indexed_shape_index: str | None = None
    relation: str | None = None
    boost: float | None = None


class ConditionList(DataModel):
    """Ordered search conditions and request directives.

    Predicates and grouping markers are appended in call order.
    Builder methods return the list itself so calls can be chained.

    Attributes:
        entries: Predicate batches and markers.
        include_fields: Source fields to return.
        exclude_fields: Source fields not to return.
        sorts: Sort directives.
        highlights: Highlight directives.
        aggregations: Aggregation requests.
        geo: Geo filter.
        size: Maximum number of hits.
        from_: Offset of the first hit.
    """

    entries: list[Entry] = []
    include_fields: list[str] | None = None
    exclude_fields: list[str] | None = None
    sorts: list[SortDirective] = []
    highlights: list[HighlightDirective] = []
    aggregations: list[AggregationSpec] = []
    geo: GeoDirective | None = None
    size: int | None = None
    from_: int | None = None

    def add(
        self,
        clause: ClauseKind,
        operator: OperatorKind,
        field: str,
        **kwargs: Any,
    ) -> ConditionList:
        self.entries.append(
            PredicateBatch(
                original_clause=clause,
                predicates=[
                    FieldValuePredicate(
                        field=field,
                        operator=operator,
                        clause=clause,
                        **kwargs,
                    )
                ],
            )
        )
        return self

    def eq(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.MUST, OperatorKind.EQ, field, value=value, boost=boost
        )

    def ne(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.MUST_NOT,
            OperatorKind.EQ,
            field,
            value=value,
            boost=boost,
        )

    def match(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.MUST,
            OperatorKind.MATCH,
            field,
            value=value,
            boost=boost,
        )

    def not_match(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.MUST_NOT,
            OperatorKind.MATCH,
            field,
            value=value,
            boost=boost,
        )

    def filter(self, field: str, value: Any) -> ConditionList:
        return self.add(ClauseKind.FILTER, OperatorKind.EQ, field, value=value)

    def should(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.SHOULD,
            OperatorKind.EQ,
            field,
            value=value,
            boost=boost,
        )

    def prefix(
        self, field: str, value: str, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.MUST,
            OperatorKind.PREFIX,
            field,
            value=value,
            boost=boost,
        )

    def like(
        self, field: str, value: str, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.MUST,
            OperatorKind.WILDCARD,
            field,
            value=f"*{value}*",
            boost=boost,
        )

    def like_left(
        self, field: str, value: str, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.LIKE_LEFT,
            OperatorKind.WILDCARD,
            field,
            value=value,
            boost=boost,
        )

    def like_right(
        self, field: str, value: str, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.LIKE_RIGHT,
            OperatorKind.WILDCARD,
            field,
            value=value,
            boost=boost,
        )

    def gt(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.GT, OperatorKind.RANGE, field, value=value, boost=boost
        )

    def lt(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.LT, OperatorKind.RANGE, field, value=value, boost=boost
        )

    def ge(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.GE, OperatorKind.RANGE, field, value=value, boost=boost
        )

    def le(
        self, field: str, value: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.LE, OperatorKind.RANGE, field, value=value, boost=boost
        )

    def between(
        self, field: str, low: Any, high: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.BETWEEN,
            OperatorKind.RANGE,
            field,
            low=low,
            high=high,
            boost=boost,
        )

    def not_between(
        self, field: str, low: Any, high: Any, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.NOT_BETWEEN,
            OperatorKind.RANGE,
            field,
            low=low,
            high=high,
            boost=boost,
        )

    def in_(
        self, field: str, values: list[Any], boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.IN,
            OperatorKind.TERMS,
            field,
            values=list(values),
            boost=boost,
        )

    def not_in(
        self, field: str, values: list[Any], boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.NOT_IN,
            OperatorKind.TERMS,
            field,
            values=list(values),
            boost=boost,
        )

    def exists(self, field: str, boost: float | None = None) -> ConditionList:
        return self.add(
            ClauseKind.EXISTS, OperatorKind.EXISTS, field, boost=boost
        )

    def not_exists(
        self, field: str, boost: float | None = None
    ) -> ConditionList:
        return self.add(
            ClauseKind.NOT_EXISTS, OperatorKind.EXISTS, field, boost=boost
        )

    def open_group(self, kind: MarkerKind) -> ConditionList:
        if kind not in GROUP_OPEN_MARKERS:
            raise ValidationError(f"{kind.value} does not open a group")
        if self._open_group() is not None:
            raise ValidationError("Condition groups cannot be nested")
        self.entries.append(Marker(kind=kind))
        return self

    def close_group(self) -> ConditionList:
        opened = self._open_group()
        if opened is None:
            raise ValidationError("No condition group is open")
        self.entries.append(Marker(kind=GROUP_CLOSE_FOR[opened]))
        return self

    def or_chain(self) -> ConditionList:
        self.entries.append(Marker(kind=MarkerKind.OR_CHAIN))
        return self

    def and_(self, group: Callable[[ConditionList], Any]) -> ConditionList:
        """Append conditions added by group as one must sub-query."""
        self.open_group(MarkerKind.AND_GROUP_OPEN)
        group(self)
        return self.close_group()

    def or_(
        self, group: Callable[[ConditionList], Any] | None = None
    ) -> ConditionList:
        """Append conditions added by group as one should sub-query.

        Without a group, appends a chain break: every condition that
        follows in the same scope becomes part of one disjunction.
        """
        if group is None:
            return self.or_chain()
        self.open_group(MarkerKind.OR_GROUP_OPEN)
        group(self)
        return self.close_group()

    def select(self, *fields: str) -> ConditionList:
        self.include_fields = [*(self.include_fields or []), *fields]
        return self

    def exclude(self, *fields: str) -> ConditionList:
        self.exclude_fields = [*(self.exclude_fields or []), *fields]
        return self

    def order_by_asc(self, *fields: str) -> ConditionList:
        self.sorts.append(SortDirective(fields=list(fields)))
        return self

    def order_by_desc(self, *fields: str) -> ConditionList:
        self.sorts.append(
            SortDirective(fields=list(fields), order=SortOrder.DESC)
        )
        return self

    def highlight(
        self,
        *fields: str,
        pre_tag: str = "<em>",
        post_tag: str = "</em>",
    ) -> ConditionList:
        self.highlights.append(
            HighlightDirective(
                fields=list(fields), pre_tag=pre_tag, post_tag=post_tag
            )
        )
        return self

    def limit(self, size: int) -> ConditionList:
        self.size = size
        return self

    def offset(self, from_: int) -> ConditionList:
        self.from_ = from_
        return self

    def aggregate(
        self, kind: str, field: str, name: str | None = None
    ) -> ConditionList:
        kind = kind.value if isinstance(kind, AggregationKind) else kind
        self.aggregations.append(
            AggregationSpec(
                kind=kind, field=field, name=name or f"{field}_{kind}"
            )
        )
        return self

    def avg(self, field: str, name: str | None = None) -> ConditionList:
        return self.aggregate(AggregationKind.AVG, field, name)

    def min(self, field: str, name: str | None = None) -> ConditionList:
        return self.aggregate(AggregationKind.MIN, field, name)

    def max(self, field: str, name: str | None = None) -> ConditionList:
        return self.aggregate(AggregationKind.MAX, field, name)

    def sum(self, field: str, name: str | None = None) -> ConditionList:
        return self.aggregate(AggregationKind.SUM, field, name)

    def terms(self, field: str, name: str | None = None) -> ConditionList:
        return self.aggregate(AggregationKind.TERMS, field, name)

    def geo_bounding_box(
        self,
        field: str,
        top_left: GeoPoint | dict,
        bottom_right: GeoPoint | dict,
        boost: float | None = None,
    ) -> ConditionList:
        self.geo = GeoDirective.model_validate(
            dict(
                field=field,
                top_left=top_left,
                bottom_right=bottom_right,
                boost=boost,
            )
        )
        return self

    def geo_distance(
        self,
        field: str,
        distance: float | str,
        center: GeoPoint | dict,
        distance_unit: str = "km",
        boost: float | None = None,
    ) -> ConditionList:
        self.geo = GeoDirective.model_validate(
            dict(
                field=field,
                distance=distance,
                distance_unit=distance_unit,
                center=center,
                boost=boost,
            )
        )
        return self

    def geo_polygon(
        self,
        field: str,
        points: list[GeoPoint | dict],
        boost: float | None = None,
    ) -> ConditionList:
        if not points:
            raise ValidationError("Geo polygon requires points")
        self.geo = GeoDirective.model_validate(
            dict(field=field, points=points, boost=boost)
        )
        return self

    def geo_shape(
        self,
        field: str,
        shape: dict[str, Any] | None = None,
        indexed_shape_id: str | None = None,
        indexed_shape_index: str | None = None,
        relation: str | None = None,
        boost: float | None = None,
    ) -> ConditionList:
        if shape is None and indexed_shape_id is None:
            raise ValidationError(
                "Geo shape requires a shape or an indexed shape id"
            )
        self.geo = GeoDirective(
            field=field,
            shape=shape,
            indexed_shape_id=indexed_shape_id,
            indexed_shape_index=indexed_shape_index,
            relation=relation,
            boost=boost,
        )
        return self

    def _open_group(self) -> MarkerKind | None:
        for entry in reversed(self.entries):
            if isinstance(entry, Marker):
                if entry.kind in GROUP_CLOSE_MARKERS:
                    return None
                if entry.kind in GROUP_OPEN_MARKERS:
                    return entry.kind
        return None


class UpdateConditionList(ConditionList):
    """Conditions selecting documents plus the fields to set on them.

    Attributes:
        updates: Field values to write, nulls included.
    """

    updates: dict[str, Any] = {}

    def set(self, field: str, value: Any) -> UpdateConditionList:
        self.updates[field] = value
        return self
