from __future__ import annotations

import json
import re
from threading import Lock
from typing import Any

from elastic_transport import JsonSerializer, SerializationError
from pydantic import PrivateAttr

from nodeindex.core import DataModel
from nodeindex.core.exceptions import BadRequestError

from ._models import (
    FULLTEXT_FIELD,
    BulkOperation,
    DeleteOperation,
    IndexOperation,
    SearchDocument,
    UpsertMergeOperation,
)

MERGE_SCRIPT = (
    "def fulltext = ctx._source.{field}; "
    "ctx._source = params.newData; "
    "ctx._source.{field} = fulltext"
)
MERGE_SCRIPT_RECOGNIZER = re.compile(
    r"^def fulltext = ctx\._source\.(?P<field>[\w.]+);"
)

_serializer = JsonSerializer()


class BulkRequest(DataModel):
    """Ordered bulk operations of one indexing session.

    Operations are kept in enqueue order, which is also the order in
    which the search engine applies them. Enqueueing and draining are
    guarded by a lock, so a single request may be shared by threads
    of one session.
    """

    operations: list[BulkOperation] = []
    """Pending operations."""

    fulltext_field: str = FULLTEXT_FIELD
    """Reserved field preserved for full-text root documents."""

    _lock: Lock = PrivateAttr(default_factory=Lock)

    def enqueue_upsert(
        self,
        document: SearchDocument,
        is_fulltext_root: bool = False,
    ) -> BulkRequest:
        """Add or replace a document.

        Full-text root documents are merged on the server so that the
        reserved full-text field survives the replace.

        Args:
            document:
                Search document.
            is_fulltext_root:
                A value indicating whether the document
                is a full-text root.
        """
        operation: BulkOperation
        if is_fulltext_root:
            operation = UpsertMergeOperation(
                kind=document.kind,
                id=document.id,
                new_data=dict(document.fields),
                fulltext_field=self.fulltext_field,
            )
        else:
            operation = IndexOperation(
                kind=document.kind,
                id=document.id,
                payload=dict(document.fields),
            )
        with self._lock:
            self.operations.append(operation)
        return self

    def enqueue_delete(self, kind: str, id: str) -> BulkRequest:
        """Remove a document.

        Args:
            kind:
                Document kind.
            id:
                Document id.
        """
        with self._lock:
            self.operations.append(DeleteOperation(kind=kind, id=id))
        return self

    def pending_count(self) -> int:
        with self._lock:
            return len(self.operations)

    def snapshot(self) -> list[BulkOperation]:
        with self._lock:
            return list(self.operations)

    def detach(self) -> list[BulkOperation]:
        """Remove and return every pending operation.

        Concurrent flushes of one request each submit a disjoint set
        of operations. Operations enqueued afterwards stay pending.
        """
        with self._lock:
            operations = list(self.operations)
            self.operations.clear()
            return operations

    def restore(self, operations: list[BulkOperation]) -> None:
        """Put detached operations back in front of the pending ones."""
        with self._lock:
            self.operations[:0] = operations

    def clear(self) -> None:
        with self._lock:
            self.operations.clear()

    def serialize(self, include_type: bool = True) -> str:
        return BulkRequest.serialize_operations(
            self.snapshot(), include_type=include_type
        )

    @staticmethod
    def serialize_operations(
        operations: list[BulkOperation],
        include_type: bool = True,
    ) -> str:
        """Serialize operations into a newline delimited bulk body.

        Dates, datetimes, decimals and UUIDs are encoded the way the
        search engine client encodes them.

        Args:
            operations:
                Operations in submission order.
            include_type:
                Carry the document kind as "_type" in action lines.
                Engines without mapping types reject the key.

        Raises:
            BadRequestError:
                A field value cannot be encoded as JSON.
        """
        lines: list[dict[str, Any]] = []
        for operation in operations:
            meta = {"_id": operation.id}
            if include_type:
                meta = {"_type": operation.kind, **meta}
            if isinstance(operation, IndexOperation):
                lines.append({"index": meta})
                lines.append(operation.payload)
            elif isinstance(operation, UpsertMergeOperation):
                field = operation.fulltext_field
                data = {**operation.new_data, field: {}}
                lines.append({"update": meta})
                lines.append(
                    {
                        "script": MERGE_SCRIPT.format(field=field),
                        "params": {"newData": data},
                        "upsert": data,
                    }
                )
            else:
                lines.append({"delete": meta})
        try:
            return "".join(
                f"{_serializer.dumps(line).decode('utf-8')}\n" for line in lines
            )
        except SerializationError as e:
            raise BadRequestError(f"Bulk body could not be encoded: {e}") from e

    @staticmethod
    def parse(body: str) -> list[BulkOperation]:
        """Parse a bulk body produced by serialize."""
        lines = [json.loads(line) for line in body.splitlines() if line]
        operations: list[BulkOperation] = []
        position = 0
        while position < len(lines):
            action_line = lines[position]
            if len(action_line) != 1:
                raise BadRequestError(f"Malformed action line {action_line}")
            action, meta = next(iter(action_line.items()))
            kind = meta.get("_type", "_doc")
            id = meta.get("_id")
            if id is None:
                raise BadRequestError(f"Action line without _id {meta}")
            if action == "delete":
                operations.append(DeleteOperation(kind=kind, id=id))
                position += 1
                continue
            if position + 1 >= len(lines):
                raise BadRequestError(f"Missing source line for {action}")
            source = lines[position + 1]
            position += 2
            if action in ("index", "create"):
                operations.append(
                    IndexOperation(kind=kind, id=id, payload=source)
                )
            elif action == "update":
                operations.append(
                    BulkRequest._parse_merge(kind=kind, id=id, source=source)
                )
            else:
                raise BadRequestError(f"Unknown bulk action {action}")
        return operations

    @staticmethod
    def _parse_merge(
        kind: str, id: str, source: dict[str, Any]
    ) -> UpsertMergeOperation:
        script = source.get("script")
        if isinstance(script, dict):
            script = script.get("source")
        match = MERGE_SCRIPT_RECOGNIZER.match(script or "")
        if match is None:
            raise BadRequestError(f"Unsupported update source for {id}")
        field = match.group("field")
        new_data = dict(source.get("params", {}).get("newData", {}))
        new_data.pop(field, None)
        return UpsertMergeOperation(
            kind=kind, id=id, new_data=new_data, fulltext_field=field
        )
