from __future__ import annotations

from typing import Any

from elasticsearch import ApiError
from elasticsearch import TransportError as ESTransportError

from esmapper.core._log_helper import debug, warn
from esmapper.core.exceptions import (
    BatchFailureError,
    TransportError,
    ValidationError,
)

from ._models import BatchPolicy, BulkOperation, BulkOperationKind, BulkOutcome


class BulkExecutor:
    """Sends a list of operations as one bulk request.

    There is no retry. Under the fail-fast policy any failed item fails the
    batch; under the tally policy failed items are logged and not counted.
    """

    client: Any
    refresh: bool | str | None

    def __init__(self, client: Any, refresh: bool | str | None = None):
        self.client = client
        self.refresh = refresh

    def execute(
        self,
        operations: list[BulkOperation],
        policy: BatchPolicy,
    ) -> BulkOutcome:
        if not operations:
            return BulkOutcome()
        args: dict[str, Any] = {
            "operations": self.convert_operations(operations)
        }
        if self.refresh is not None:
            args["refresh"] = self.refresh
        debug("bulk request with %s operations", len(operations))
        try:
            resp = self.client.bulk(**args)
        except (ApiError, ESTransportError) as e:
            raise TransportError(f"Bulk request failed: {e}", e) from e
        return self.reconcile(getattr(resp, "body", resp), policy)

    def convert_operations(
        self, operations: list[BulkOperation]
    ) -> list[dict[str, Any]]:
        lines: list[dict[str, Any]] = []
        for op in operations:
            meta: dict[str, Any] = {"_index": op.index}
            if op.id is not None:
                meta["_id"] = op.id
            elif op.kind != BulkOperationKind.INDEX:
                raise ValidationError(f"{op.kind.value} requires an id")
            lines.append({op.kind.value: meta})
            if op.kind == BulkOperationKind.INDEX:
                lines.append(op.document or {})
            elif op.kind == BulkOperationKind.UPDATE:
                lines.append({"doc": op.document or {}})
        return lines

    def reconcile(self, response: Any, policy: BatchPolicy) -> BulkOutcome:
        items = response.get("items", [])
        count = 0
        ids: list[str | None] = []
        failures: list[dict[str, Any]] = []
        for position, item in enumerate(items):
            result = next(iter(item.values()), {})
            status = result.get("status", 0)
            if 200 <= status < 300:
                count += 1
                ids.append(result.get("_id"))
            else:
                ids.append(None)
                failures.append(
                    {
                        "position": position,
                        "id": result.get("_id"),
                        "status": status,
                        "error": result.get("error"),
                    }
                )
        if policy == BatchPolicy.FAIL_FAST and (
            failures or response.get("errors")
        ):
            raise BatchFailureError(
                f"Bulk request failed for {len(failures)} "
                f"of {len(items)} items",
                failures,
            )
        for failure in failures:
            warn(
                "Bulk item %s failed with status %s: %s",
                failure["id"],
                failure["status"],
                failure["error"],
            )
        return BulkOutcome(count=count, ids=ids, failures=failures)
