from nodeindex.core.exceptions import (
    BadRequestError,
    ConfigurationError,
    InvalidStateError,
    NotFoundError,
    PartialFlushError,
    PreconditionError,
    TransportError,
)

from ._builder import DocumentBuilder
from ._bulk import BulkRequest
from ._evaluator import ExpressionEvaluator
from ._models import (
    FULLTEXT_FIELD,
    AliasUpdateResult,
    BulkAction,
    BulkFailure,
    BulkOperation,
    DeleteOperation,
    DocumentBuildResult,
    FlushResult,
    IndexingSettings,
    IndexOperation,
    IndexResult,
    IndexStatus,
    Node,
    NodeType,
    NodeTypeSearchConfiguration,
    PropertyConfiguration,
    PropertySearchConfiguration,
    PropertyTypeConfiguration,
    SearchDocument,
    UpsertMergeOperation,
)
from .component import NodeIndexer

__all__ = [
    "FULLTEXT_FIELD",
    "AliasUpdateResult",
    "BulkAction",
    "BulkFailure",
    "BulkOperation",
    "BulkRequest",
    "DeleteOperation",
    "DocumentBuilder",
    "DocumentBuildResult",
    "ExpressionEvaluator",
    "FlushResult",
    "IndexingSettings",
    "IndexOperation",
    "IndexResult",
    "IndexStatus",
    "Node",
    "NodeIndexer",
    "NodeType",
    "NodeTypeSearchConfiguration",
    "PropertyConfiguration",
    "PropertySearchConfiguration",
    "PropertyTypeConfiguration",
    "SearchDocument",
    "UpsertMergeOperation",
    "BadRequestError",
    "ConfigurationError",
    "InvalidStateError",
    "NotFoundError",
    "PartialFlushError",
    "PreconditionError",
    "TransportError",
]
