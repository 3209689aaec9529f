"""
In Memory search engine.
"""

from __future__ import annotations

__all__ = ["Memory"]

import copy
import time
from threading import Lock
from typing import Any

from nodeindex.core import Context
from nodeindex.core.exceptions import BadRequestError, NotFoundError

from .._bulk import BulkRequest
from .._models import (
    BulkOperation,
    DeleteOperation,
    IndexOperation,
    UpsertMergeOperation,
)
from .._provider import IndexerProvider


class Memory(IndexerProvider):
    auto_create_index: bool

    # index -> (kind, id) -> source
    _indices: dict[str, dict[tuple[str, str], dict[str, Any]]]
    _aliases: dict[str, set[str]]
    _lock: Lock

    def __init__(
        self,
        auto_create_index: bool = True,
        **kwargs,
    ):
        """Initialize.

        Args:
            auto_create_index:
                Create missing indices on bulk writes,
                as the search engine does by default.
        """
        self.auto_create_index = auto_create_index
        self._indices = dict()
        self._aliases = dict()
        self._lock = Lock()

    def __setup__(self, context: Context | None = None) -> None:
        pass

    def get_document(
        self, kind: str, id: str, index: str | None = None
    ) -> dict[str, Any] | None:
        """Return a stored document, resolving aliases."""
        with self._lock:
            name = self._resolve_write_index(
                index or self.__component__.get_index_name()
            )
            source = self._indices.get(name, {}).get((kind, id))
            return copy.deepcopy(source)

    def put_document(
        self,
        kind: str,
        id: str,
        source: dict[str, Any],
        index: str | None = None,
    ) -> None:
        """Store a document directly, bypassing the bulk endpoint."""
        with self._lock:
            name = self._resolve_write_index(
                index or self.__component__.get_index_name()
            )
            self._indices.setdefault(name, {})[(kind, id)] = copy.deepcopy(
                source
            )

    def count(self, index: str | None = None) -> int:
        with self._lock:
            name = self._resolve_write_index(
                index or self.__component__.get_index_name()
            )
            return len(self._indices.get(name, {}))

    def _bulk(self, index: str, body: str) -> dict[str, Any]:
        start = time.monotonic()
        operations = BulkRequest.parse(body)
        with self._lock:
            name = self._resolve_write_index(index)
            if name not in self._indices:
                if not self.auto_create_index:
                    raise NotFoundError(f"Index {name} does not exist")
                self._indices[name] = dict()
            documents = self._indices[name]
            items = [
                self._apply(documents, name, operation)
                for operation in operations
            ]
        return {
            "took": int((time.monotonic() - start) * 1000),
            "errors": any("error" in next(iter(i.values())) for i in items),
            "items": items,
        }

    def _apply(
        self,
        documents: dict[tuple[str, str], dict[str, Any]],
        index: str,
        operation: BulkOperation,
    ) -> dict[str, Any]:
        key = (operation.kind, operation.id)
        meta = {"_index": index, "_type": operation.kind, "_id": operation.id}
        if isinstance(operation, IndexOperation):
            status = 200 if key in documents else 201
            documents[key] = copy.deepcopy(operation.payload)
            return {"index": {**meta, "status": status}}
        if isinstance(operation, UpsertMergeOperation):
            field = operation.fulltext_field
            new_data = copy.deepcopy(operation.new_data)
            if key in documents:
                new_data[field] = documents[key].get(field)
                documents[key] = new_data
                return {"update": {**meta, "status": 200}}
            new_data[field] = {}
            documents[key] = new_data
            return {"update": {**meta, "status": 201}}
        if isinstance(operation, DeleteOperation):
            if documents.pop(key, None) is None:
                return {
                    "delete": {**meta, "status": 404, "result": "not_found"}
                }
            return {"delete": {**meta, "status": 200, "result": "deleted"}}
        raise BadRequestError(f"Unsupported bulk operation {operation}")

    def _create_index(self, index: str, body: dict[str, Any]) -> bool:
        with self._lock:
            if index in self._indices:
                return False
            self._indices[index] = dict()
            return True

    def _index_exists(self, index: str) -> bool:
        with self._lock:
            return index in self._indices

    def _get_alias_targets(self, alias: str) -> list[str]:
        with self._lock:
            return sorted(self._aliases.get(alias, set()))

    def _list_indices(self) -> list[str]:
        with self._lock:
            return sorted(self._indices.keys())

    def _update_aliases(self, actions: list[dict[str, Any]]) -> None:
        with self._lock:
            aliases = copy.deepcopy(self._aliases)
            for action in actions:
                for name, args in action.items():
                    index, alias = args["index"], args["alias"]
                    if index not in self._indices:
                        raise NotFoundError(f"Index {index} does not exist")
                    targets = aliases.setdefault(alias, set())
                    if name == "add":
                        targets.add(index)
                    elif name == "remove":
                        if index not in targets:
                            raise NotFoundError(
                                f"Alias {alias} is not set on {index}"
                            )
                        targets.discard(index)
                    else:
                        raise BadRequestError(f"Unknown alias action {name}")
            self._aliases = {k: v for k, v in aliases.items() if v}

    def _delete_indices(self, indices: list[str]) -> None:
        with self._lock:
            missing = [name for name in indices if name not in self._indices]
            if missing:
                raise NotFoundError(f"Indices {missing} do not exist")
            for name in indices:
                del self._indices[name]
                for targets in self._aliases.values():
                    targets.discard(name)
            self._aliases = {k: v for k, v in self._aliases.items() if v}

    def _resolve_write_index(self, name: str) -> str:
        targets = self._aliases.get(name)
        if not targets:
            return name
        if len(targets) > 1:
            raise BadRequestError(
                f"Alias {name} points to more than one index"
            )
        return next(iter(targets))
