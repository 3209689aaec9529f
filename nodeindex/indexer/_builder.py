from __future__ import annotations

from typing import Any

import structlog

from ._evaluator import ExpressionEvaluator
from ._helper import Helper
from ._models import (
    DocumentBuildResult,
    IndexingSettings,
    Node,
    PropertyConfiguration,
    SearchDocument,
)

logger = structlog.get_logger()


class DocumentBuilder:
    """Builds search documents from nodes."""

    settings: IndexingSettings
    evaluator: ExpressionEvaluator

    def __init__(
        self,
        settings: IndexingSettings,
        evaluator: ExpressionEvaluator | None = None,
    ):
        self.settings = settings
        self.evaluator = evaluator or ExpressionEvaluator(
            default_context=settings.default_context
        )

    def build(self, node: Node) -> DocumentBuildResult:
        """Build the search document of a node.

        Removed nodes are not evaluated. The result is flagged as
        removed and carries the identity to delete.

        Args:
            node:
                Node to build.

        Returns:
            Build result.

        Raises:
            ConfigurationError:
                An indexing expression is invalid.
        """
        node_type = node.node_type
        document = SearchDocument(
            id=node.identifier,
            kind=Helper.convert_node_type_name_to_kind(node_type.name),
        )
        if node.removed:
            return DocumentBuildResult(document=document, removed=True)

        fields: dict[str, Any] = {}
        for property_name, configuration in node_type.properties.items():
            rule = self.resolve_rule(configuration)
            if rule is None:
                logger.debug(
                    "property_not_indexed",
                    document_id=document.id,
                    property=property_name,
                    reason="no configuration found",
                )
                continue
            if rule == "":
                logger.debug(
                    "property_indexing_disabled",
                    document_id=document.id,
                    property=property_name,
                )
                continue
            fields[property_name] = self.evaluator.evaluate_property(
                expression=rule,
                node=node,
                property_name=property_name,
                value=(
                    node.get_property(property_name)
                    if node.has_property(property_name)
                    else None
                ),
                document_id=document.id,
            )
        document.fields = fields
        return DocumentBuildResult(
            document=document,
            is_fulltext_root=node_type.is_fulltext_root(),
        )

    def resolve_rule(self, configuration: PropertyConfiguration) -> str | None:
        """Resolve the indexing rule of a property.

        An explicit rule wins over the default of the property type.
        An empty rule opts the property out of indexing and is
        returned as "". None means no rule is configured.
        """
        search = configuration.search
        if search is not None and search.indexing is not None:
            return search.indexing
        if configuration.type is not None:
            default = self.settings.default_configuration_per_type.get(
                configuration.type
            )
            if default is not None and default.indexing is not None:
                return default.indexing
        return None
