# type: ignore

from esmapper.query import (
    ClauseKind,
    ConditionList,
    Marker,
    MarkerKind,
    Occur,
    OperatorKind,
    PredicateBatch,
    UpdateConditionList,
)


def test_entries_in_call_order():
    conditions = (
        ConditionList()
        .eq("a", 1)
        .and_(lambda c: c.gt("b", 2).or_().lt("b", 0))
        .in_("c", (1, 2))
    )

    kinds = [
        e.kind if isinstance(e, Marker) else e.original_clause
        for e in conditions.entries
    ]
    assert kinds == [
        ClauseKind.MUST,
        MarkerKind.AND_GROUP_OPEN,
        ClauseKind.GT,
        MarkerKind.OR_CHAIN,
        ClauseKind.LT,
        MarkerKind.AND_GROUP_CLOSE,
        ClauseKind.IN,
    ]
    assert conditions.entries[-1].predicates[0].values == [1, 2]


def test_predicate_defaults():
    batch = ConditionList().between("age", 1, 9, boost=3).entries[0]
    assert isinstance(batch, PredicateBatch)
    predicate = batch.predicates[0]
    assert predicate.operator == OperatorKind.RANGE
    assert predicate.occur == Occur.MUST
    assert (predicate.low, predicate.high, predicate.boost) == (1, 9, 3.0)


def test_to_should_keeps_original_clause():
    batch = ConditionList().ne("a", 1).entries[0]
    reclassified = batch.to_should()
    assert reclassified.original_clause == ClauseKind.MUST_NOT
    assert reclassified.predicates[0].occur == Occur.SHOULD
    assert batch.predicates[0].occur == Occur.MUST_NOT


def test_projection_accumulates():
    conditions = ConditionList().select("a").select("b").exclude("c")
    assert conditions.include_fields == ["a", "b"]
    assert conditions.exclude_fields == ["c"]


def test_update_condition_list():
    conditions = UpdateConditionList().eq("a", 1).set("b", None).set("c", 2)
    assert conditions.updates == {"b": None, "c": 2}
    assert len(conditions.entries) == 1


def test_condition_lists_are_independent():
    first = ConditionList().eq("a", 1)
    second = ConditionList()
    assert second.entries == []
    assert len(first.entries) == 1
