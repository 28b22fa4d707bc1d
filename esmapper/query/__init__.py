from ._compiler import BoolQuery, QueryTreeCompiler
from ._dispatcher import QueryFragment, QueryTypeDispatcher
from ._models import (
    AggregationKind,
    AggregationSpec,
    ClauseKind,
    ConditionList,
    Entry,
    FieldValuePredicate,
    GeoDirective,
    GeoPoint,
    HighlightDirective,
    Marker,
    MarkerKind,
    Occur,
    OperatorKind,
    PredicateBatch,
    SortDirective,
    SortOrder,
    UpdateConditionList,
)
from ._request import RequestAssembler

__all__ = [
    "AggregationKind",
    "AggregationSpec",
    "BoolQuery",
    "ClauseKind",
    "ConditionList",
    "Entry",
    "FieldValuePredicate",
    "GeoDirective",
    "GeoPoint",
    "HighlightDirective",
    "Marker",
    "MarkerKind",
    "Occur",
    "OperatorKind",
    "PredicateBatch",
    "QueryFragment",
    "QueryTreeCompiler",
    "QueryTypeDispatcher",
    "RequestAssembler",
    "SortDirective",
    "SortOrder",
    "UpdateConditionList",
]
