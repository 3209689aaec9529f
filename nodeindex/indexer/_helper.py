from __future__ import annotations

from typing import Any, Sequence

from nodeindex.core.exceptions import BadRequestError

from ._models import (
    BulkFailure,
    BulkOperation,
    FlushResult,
    IndexingSettings,
    UpsertMergeOperation,
)


class Helper:
    @staticmethod
    def get_settings(
        settings: dict | IndexingSettings | None,
    ) -> IndexingSettings:
        if settings is None:
            return IndexingSettings()
        if isinstance(settings, dict):
            return IndexingSettings.from_dict(settings)
        if isinstance(settings, IndexingSettings):
            return settings
        raise BadRequestError("Indexing settings format error")

    @staticmethod
    def convert_node_type_name_to_kind(node_type_name: str) -> str:
        return node_type_name.replace(":", "-").replace(".", "-")

    @staticmethod
    def get_index_name(alias: str, postfix: str | None) -> str:
        if postfix:
            return f"{alias}-{postfix}"
        return alias

    @staticmethod
    def get_bulk_action(operation: BulkOperation) -> str:
        if isinstance(operation, UpsertMergeOperation):
            return "update"
        return operation.op

    @staticmethod
    def build_alias_actions(
        alias: str,
        index: str,
        current_indices: Sequence[str],
    ) -> list[dict[str, Any]]:
        """Build the actions that move the alias onto a single index.

        Every current target except the new index is removed and the
        new index is added last, so the engine can apply the list as
        one atomic change.
        """
        actions: list[dict[str, Any]] = [
            {"remove": {"index": name, "alias": alias}}
            for name in current_indices
            if name != index
        ]
        actions.append({"add": {"index": index, "alias": alias}})
        return actions

    @staticmethod
    def get_stale_indices(
        alias: str,
        all_indices: Sequence[str],
        live_indices: Sequence[str],
    ) -> list[str]:
        prefix = f"{alias}-"
        live = set(live_indices)
        return sorted(
            name
            for name in all_indices
            if name.startswith(prefix) and name not in live
        )

    @staticmethod
    def convert_bulk_response(
        response: Any,
        operations: Sequence[BulkOperation],
    ) -> FlushResult:
        items = response.get("items", []) if response else []
        failures: list[BulkFailure] = []
        for position, item in enumerate(items):
            for action, result in item.items():
                if not isinstance(result, dict) or "error" not in result:
                    continue
                operation = (
                    operations[position]
                    if position < len(operations)
                    else None
                )
                failures.append(
                    BulkFailure(
                        action=action,
                        kind=(
                            operation.kind
                            if operation
                            else result.get("_type")
                        ),
                        id=operation.id if operation else result.get("_id"),
                        status=result.get("status"),
                        error=result.get("error"),
                    )
                )
        return FlushResult(
            count=len(operations),
            took=response.get("took") if response else None,
            failures=failures,
        )
