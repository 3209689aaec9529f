from __future__ import annotations

import asyncio
from typing import Any

import structlog

from nodeindex.core import Provider, Response
from nodeindex.core.exceptions import (
    InvalidStateError,
    PartialFlushError,
    PreconditionError,
)

from ._bulk import BulkRequest
from ._helper import Helper
from ._models import (
    AliasUpdateResult,
    BulkOperation,
    FlushResult,
    IndexResult,
    IndexStatus,
)

logger = structlog.get_logger()


class IndexerProvider(Provider):
    """Search engine provider for the node indexer.

    Implements bulk flushing and the alias lifecycle on top of a small
    set of transport hooks. Providers implement the synchronous hooks
    and may override the asynchronous ones with native async clients.
    """

    mapping_types: bool = True
    """Carry the document kind as "_type" in bulk action lines."""

    def _get_alias(self) -> str:
        return self.__component__.index_name

    def _get_index_name(self) -> str:
        return self.__component__.get_index_name()

    def flush(
        self,
        bulk: BulkRequest,
        raise_on_error: bool = True,
        **kwargs: Any,
    ) -> Response[FlushResult]:
        operations = bulk.detach()
        if not operations:
            return Response(result=FlushResult())
        try:
            response = self._bulk(
                index=self._get_index_name(),
                body=self._serialize(operations),
            )
        except BaseException:
            bulk.restore(operations)
            raise
        return self._convert_flush(response, operations, raise_on_error)

    async def aflush(
        self,
        bulk: BulkRequest,
        raise_on_error: bool = True,
        **kwargs: Any,
    ) -> Response[FlushResult]:
        operations = bulk.detach()
        if not operations:
            return Response(result=FlushResult())
        try:
            response = await self._abulk(
                index=self._get_index_name(),
                body=self._serialize(operations),
            )
        except BaseException:
            bulk.restore(operations)
            raise
        return self._convert_flush(response, operations, raise_on_error)

    def create_index(
        self,
        config: dict | None = None,
        **kwargs: Any,
    ) -> Response[IndexResult]:
        index = self._get_index_name()
        created = self._create_index(index=index, body=config or {})
        return Response(result=self._convert_create_index(index, created))

    async def acreate_index(
        self,
        config: dict | None = None,
        **kwargs: Any,
    ) -> Response[IndexResult]:
        index = self._get_index_name()
        created = await self._acreate_index(index=index, body=config or {})
        return Response(result=self._convert_create_index(index, created))

    def has_index(self, **kwargs: Any) -> Response[bool]:
        return Response(result=self._index_exists(self._get_index_name()))

    async def ahas_index(self, **kwargs: Any) -> Response[bool]:
        exists = await self._aindex_exists(self._get_index_name())
        return Response(result=exists)

    def update_index_alias(self, **kwargs: Any) -> Response[AliasUpdateResult]:
        alias, index = self._validate_alias_candidate()
        if not self._index_exists(index):
            raise PreconditionError(
                f"The target index {index} of the alias update does not exist"
            )
        actions = Helper.build_alias_actions(
            alias=alias,
            index=index,
            current_indices=self._get_alias_targets(alias),
        )
        self._update_aliases(actions)
        return self._convert_alias_update(alias, index, actions)

    async def aupdate_index_alias(
        self, **kwargs: Any
    ) -> Response[AliasUpdateResult]:
        alias, index = self._validate_alias_candidate()
        if not await self._aindex_exists(index):
            raise PreconditionError(
                f"The target index {index} of the alias update does not exist"
            )
        actions = Helper.build_alias_actions(
            alias=alias,
            index=index,
            current_indices=await self._aget_alias_targets(alias),
        )
        await self._aupdate_aliases(actions)
        return self._convert_alias_update(alias, index, actions)

    def remove_old_indices(self, **kwargs: Any) -> Response[list[str]]:
        alias = self._get_alias()
        stale = Helper.get_stale_indices(
            alias=alias,
            all_indices=self._list_indices(),
            live_indices=self._get_alias_targets(alias),
        )
        if stale:
            self._delete_indices(stale)
            logger.info("old_indices_removed", alias=alias, indices=stale)
        return Response(result=stale)

    async def aremove_old_indices(self, **kwargs: Any) -> Response[list[str]]:
        alias = self._get_alias()
        stale = Helper.get_stale_indices(
            alias=alias,
            all_indices=await self._alist_indices(),
            live_indices=await self._aget_alias_targets(alias),
        )
        if stale:
            await self._adelete_indices(stale)
            logger.info("old_indices_removed", alias=alias, indices=stale)
        return Response(result=stale)

    def close(self, **kwargs: Any) -> Response[None]:
        return Response(result=None)

    async def aclose(self, **kwargs: Any) -> Response[None]:
        return Response(result=None)

    def _validate_alias_candidate(self) -> tuple[str, str]:
        alias = self._get_alias()
        index = self._get_index_name()
        if index == alias:
            raise InvalidStateError(
                "The index alias can only be updated "
                "when an index name postfix is set"
            )
        return alias, index

    def _serialize(self, operations: list[BulkOperation]) -> str:
        return BulkRequest.serialize_operations(
            operations, include_type=self.mapping_types
        )

    def _convert_flush(
        self,
        response: Any,
        operations: list[BulkOperation],
        raise_on_error: bool,
    ) -> Response[FlushResult]:
        result = Helper.convert_bulk_response(response, operations)
        for failure in result.failures:
            logger.error(
                "bulk_item_failed",
                action=failure.action,
                kind=failure.kind,
                document_id=failure.id,
                status=failure.status,
                error=failure.error,
            )
        logger.info(
            "bulk_flushed",
            index=self._get_index_name(),
            count=result.count,
            failed=len(result.failures),
        )
        if result.failures and raise_on_error:
            raise PartialFlushError(
                f"{len(result.failures)} of {result.count} "
                "bulk operations failed",
                result=result,
            )
        return Response(result=result, native=dict(result=response))

    def _convert_create_index(self, index: str, created: bool) -> IndexResult:
        return IndexResult(
            index=index,
            status=IndexStatus.CREATED if created else IndexStatus.EXISTS,
        )

    def _convert_alias_update(
        self,
        alias: str,
        index: str,
        actions: list[dict[str, Any]],
    ) -> Response[AliasUpdateResult]:
        removed = [a["remove"]["index"] for a in actions if "remove" in a]
        logger.info(
            "index_alias_updated", alias=alias, index=index, removed=removed
        )
        return Response(
            result=AliasUpdateResult(alias=alias, index=index, removed=removed),
            native=dict(actions=actions),
        )

    def _bulk(self, index: str, body: str) -> dict[str, Any]:
        raise NotImplementedError

    def _create_index(self, index: str, body: dict[str, Any]) -> bool:
        raise NotImplementedError

    def _index_exists(self, index: str) -> bool:
        raise NotImplementedError

    def _get_alias_targets(self, alias: str) -> list[str]:
        raise NotImplementedError

    def _list_indices(self) -> list[str]:
        raise NotImplementedError

    def _update_aliases(self, actions: list[dict[str, Any]]) -> None:
        raise NotImplementedError

    def _delete_indices(self, indices: list[str]) -> None:
        raise NotImplementedError

    async def _abulk(self, index: str, body: str) -> dict[str, Any]:
        return await asyncio.to_thread(self._bulk, index, body)

    async def _acreate_index(self, index: str, body: dict[str, Any]) -> bool:
        return await asyncio.to_thread(self._create_index, index, body)

    async def _aindex_exists(self, index: str) -> bool:
        return await asyncio.to_thread(self._index_exists, index)

    async def _aget_alias_targets(self, alias: str) -> list[str]:
        return await asyncio.to_thread(self._get_alias_targets, alias)

    async def _alist_indices(self) -> list[str]:
        return await asyncio.to_thread(self._list_indices)

    async def _aupdate_aliases(self, actions: list[dict[str, Any]]) -> None:
        await asyncio.to_thread(self._update_aliases, actions)

    async def _adelete_indices(self, indices: list[str]) -> None:
        await asyncio.to_thread(self._delete_indices, indices)
