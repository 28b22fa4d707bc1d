from __future__ import annotations

from typing import Any, Sequence

from esmapper.core.exceptions import ValidationError

from ._dispatcher import QueryTypeDispatcher
from ._models import (
    GROUP_CLOSE_FOR,
    GROUP_CLOSE_MARKERS,
    GROUP_OPEN_MARKERS,
    ConditionList,
    Entry,
    GeoDirective,
    Marker,
    MarkerKind,
    Occur,
    PredicateBatch,
)


class BoolQuery:
    """Collects fragments per boolean slot."""

    clauses: dict[Occur, list[dict]]

    def __init__(self) -> None:
        self.clauses = {occur: [] for occur in Occur}

    def add(self, occur: Occur, query: dict) -> None:
        self.clauses[occur].append(query)

    def to_dict(self) -> dict:
        body: dict[str, Any] = {}
        for occur in Occur:
            if self.clauses[occur]:
                body[occur.value] = self.clauses[occur]
        return {"bool": body}


class QueryTreeCompiler:
    """Compiles a condition list into one boolean query.

    Entries are folded left to right. A group collects its predicates in
    its own boolean query, attached to the outer one when the group
    closes: as must for an and group, as should for an or group. An or
    chain marker makes every later batch in its scope land in should;
    inside a group the scope ends at the group close, outside a group it
    runs to the end of the list. When a group contains an or chain, the
    batches between the group open and the chain are moved to should as
    well, so the whole group reads as one disjunction.
    """

    dispatcher: QueryTypeDispatcher

    def __init__(self, dispatcher: QueryTypeDispatcher | None = None):
        self.dispatcher = dispatcher or QueryTypeDispatcher()

    def compile(
        self,
        conditions: ConditionList | Sequence[Entry],
        geo: GeoDirective | None = None,
    ) -> dict:
        """Compile conditions.

        Args:
            conditions:
                Condition list or its entries.
            geo:
                Geo directive attached as an extra filter.

        Returns:
            Boolean query document. An empty list compiles
            to an empty boolean query, which matches all documents.

        Raises:
            ValidationError:
                Groups are nested, unbalanced or mismatched.
        """
        if isinstance(conditions, ConditionList):
            entries = list(conditions.entries)
        else:
            entries = list(conditions)
        self.validate(entries)

        outer = BoolQuery()
        inner: BoolQuery | None = None
        outer_chaining = False
        inner_chaining = False
        reclassify_until = -1
        for i, entry in enumerate(entries):
            if isinstance(entry, Marker):
                if entry.kind in GROUP_OPEN_MARKERS:
                    inner = BoolQuery()
                    inner_chaining = False
                    reclassify_until = self._find_group_chain(entries, i)
                elif entry.kind == MarkerKind.OR_CHAIN:
                    if inner is not None:
                        inner_chaining = True
                    else:
                        outer_chaining = True
                elif inner is not None:
                    occur = (
                        Occur.MUST
                        if entry.kind == MarkerKind.AND_GROUP_CLOSE
                        else Occur.SHOULD
                    )
                    outer.add(occur, inner.to_dict())
                    inner = None
                    inner_chaining = False
                continue

            batch = entry
            chaining = inner_chaining if inner is not None else outer_chaining
            if chaining or i < reclassify_until:
                batch = batch.to_should()
            target = inner if inner is not None else outer
            self._attach(target, batch)

        if geo is not None:
            outer.add(Occur.FILTER, self.dispatcher.render_geo(geo))
        return outer.to_dict()

    def validate(self, entries: Sequence[Entry]) -> None:
        opened: MarkerKind | None = None
        for entry in entries:
            if not isinstance(entry, Marker):
                continue
            if entry.kind in GROUP_OPEN_MARKERS:
                if opened is not None:
                    raise ValidationError("Condition groups cannot be nested")
                opened = entry.kind
            elif entry.kind in GROUP_CLOSE_MARKERS:
                if opened is None:
                    raise ValidationError(
                        f"{entry.kind.value} without an open group"
                    )
                if GROUP_CLOSE_FOR[opened] != entry.kind:
                    raise ValidationError(
                        f"{opened.value} closed by {entry.kind.value}"
                    )
                opened = None
        if opened is not None:
            raise ValidationError(f"{opened.value} is never closed")

    def _find_group_chain(self, entries: Sequence[Entry], start: int) -> int:
        chain = -1
        for j in range(start + 1, len(entries)):
            entry = entries[j]
            if isinstance(entry, Marker):
                if entry.kind in GROUP_CLOSE_MARKERS:
                    break
                if entry.kind == MarkerKind.OR_CHAIN:
                    chain = j
        return chain

    def _attach(self, target: BoolQuery, batch: PredicateBatch) -> None:
        for predicate in batch.predicates:
            fragment = self.dispatcher.render(predicate)
            target.add(fragment.occur, fragment.query)
