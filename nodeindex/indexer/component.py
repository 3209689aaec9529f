from __future__ import annotations

from typing import Any

import structlog

from nodeindex.core import Component, Response, operation

from ._builder import DocumentBuilder
from ._bulk import BulkRequest
from ._evaluator import ExpressionEvaluator
from ._helper import Helper
from ._models import (
    AliasUpdateResult,
    DocumentBuildResult,
    FlushResult,
    IndexingSettings,
    IndexResult,
    Node,
)

logger = structlog.get_logger()


class NodeIndexer(Component):
    index_name: str
    index_name_postfix: str | None
    settings: IndexingSettings
    builder: DocumentBuilder

    def __init__(
        self,
        index_name: str,
        index_name_postfix: str | None = None,
        settings: dict | IndexingSettings | None = None,
        evaluator: ExpressionEvaluator | None = None,
        **kwargs,
    ):
        """Initialize.

        Args:
            index_name:
                Index alias clients query against. Physical
                indices are named "<index_name>-<postfix>".
            index_name_postfix:
                Postfix of the physical index written to,
                e.g. a timestamp during a full reindex.
            settings:
                Indexing settings.
            evaluator:
                Expression evaluator for indexing rules.
        """
        self.index_name = index_name
        self.index_name_postfix = index_name_postfix
        self.settings = Helper.get_settings(settings)
        self.builder = DocumentBuilder(
            settings=self.settings, evaluator=evaluator
        )
        super().__init__(**kwargs)

    def get_index_name(self) -> str:
        """Name of the index written to, with the postfix appended."""
        return Helper.get_index_name(
            self.index_name, self.index_name_postfix
        )

    def set_index_name_postfix(self, index_name_postfix: str | None) -> None:
        self.index_name_postfix = index_name_postfix

    def create_bulk_request(self) -> BulkRequest:
        return BulkRequest(fulltext_field=self.settings.fulltext_field)

    def build_document(self, node: Node) -> DocumentBuildResult:
        return self.builder.build(node)

    def index_node(self, node: Node, bulk: BulkRequest) -> DocumentBuildResult:
        """Build a node and add it to the bulk request.

        Nodes flagged as removed are scheduled for deletion instead.

        Args:
            node:
                Node to index.
            bulk:
                Bulk request of the current session.

        Returns:
            Build result.
        """
        result = self.builder.build(node)
        document = result.document
        if result.removed:
            bulk.enqueue_delete(kind=document.kind, id=document.id)
            logger.debug(
                "node_removed",
                path=node.get_context_path(),
                document_id=document.id,
                reason="node flagged as removed",
            )
            return result
        bulk.enqueue_upsert(document, is_fulltext_root=result.is_fulltext_root)
        logger.debug(
            "node_indexed",
            path=node.get_context_path(),
            document_id=document.id,
            kind=document.kind,
            fulltext_root=result.is_fulltext_root,
        )
        return result

    def remove_node(self, node: Node, bulk: BulkRequest) -> None:
        """Schedule the removal of a deleted node.

        Args:
            node:
                Node that was removed from the content repository.
            bulk:
                Bulk request of the current session.
        """
        kind = Helper.convert_node_type_name_to_kind(node.node_type.name)
        bulk.enqueue_delete(kind=kind, id=node.identifier)
        logger.debug(
            "node_removed",
            path=node.get_context_path(),
            document_id=node.identifier,
            reason="node removed",
        )

    @operation()
    def flush(
        self,
        bulk: BulkRequest,
        raise_on_error: bool = True,
        **kwargs: Any,
    ) -> Response[FlushResult]:
        """Submit the pending operations as one bulk request.

        The submitted operations are removed from the bulk request
        once the search engine answered. On transport failure they
        stay in place and the same batch can be retried.

        Args:
            bulk:
                Bulk request to flush.
            raise_on_error:
                Raise PartialFlushError when single
                operations failed.

        Returns:
            Flush result.
        """
        raise NotImplementedError

    @operation()
    def create_index(
        self,
        config: dict | None = None,
        **kwargs: Any,
    ) -> Response[IndexResult]:
        """Create the physical index.

        Args:
            config:
                Native index settings and mappings.

        Returns:
            Index result.
        """
        raise NotImplementedError

    @operation()
    def has_index(self, **kwargs: Any) -> Response[bool]:
        """Check if the physical index exists.

        Returns:
            A value indicating whether the index exists.
        """
        raise NotImplementedError

    @operation()
    def update_index_alias(self, **kwargs: Any) -> Response[AliasUpdateResult]:
        """Point the alias at the postfixed index only.

        Returns:
            Alias update result.
        """
        raise NotImplementedError

    @operation()
    def remove_old_indices(self, **kwargs: Any) -> Response[list[str]]:
        """Delete postfixed indices the alias does not point to.

        Returns:
            Names of the removed indices.
        """
        raise NotImplementedError

    @operation()
    def close(self, **kwargs: Any) -> Response[None]:
        """Close the client."""
        raise NotImplementedError

    @operation()
    async def aflush(
        self,
        bulk: BulkRequest,
        raise_on_error: bool = True,
        **kwargs: Any,
    ) -> Response[FlushResult]:
        """Submit the pending operations as one bulk request.

        Args:
            bulk:
                Bulk request to flush.
            raise_on_error:
                Raise PartialFlushError when single
                operations failed.

        Returns:
            Flush result.
        """
        raise NotImplementedError

    @operation()
    async def acreate_index(
        self,
        config: dict | None = None,
        **kwargs: Any,
    ) -> Response[IndexResult]:
        """Create the physical index.

        Args:
            config:
                Native index settings and mappings.

        Returns:
            Index result.
        """
        raise NotImplementedError

    @operation()
    async def ahas_index(self, **kwargs: Any) -> Response[bool]:
        """Check if the physical index exists.

        Returns:
            A value indicating whether the index exists.
        """
        raise NotImplementedError

    @operation()
    async def aupdate_index_alias(
        self, **kwargs: Any
    ) -> Response[AliasUpdateResult]:
        """Point the alias at the postfixed index only.

        Returns:
            Alias update result.
        """
        raise NotImplementedError

    @operation()
    async def aremove_old_indices(self, **kwargs: Any) -> Response[list[str]]:
        """Delete postfixed indices the alias does not point to.

        Returns:
            Names of the removed indices.
        """
        raise NotImplementedError

    @operation()
    async def aclose(self, **kwargs: Any) -> Response[None]:
        """Close the client."""
        raise NotImplementedError
