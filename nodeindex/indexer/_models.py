from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import Field

from nodeindex.core import DataModel, YamlLoader

FULLTEXT_FIELD = "__fulltext"


class PropertySearchConfiguration(DataModel):
    """Search configuration of a single node type property."""

    indexing: str | None = None
    """Indexing expression. An empty string disables indexing."""


class PropertyConfiguration(DataModel):
    """Node type property declaration."""

    type: str | None = None
    """Declared property type, e.g. "string" or "DateTime"."""

    search: PropertySearchConfiguration | None = None
    """Search configuration."""


class NodeTypeSearchConfiguration(DataModel):
    """Search configuration of a node type."""

    is_fulltext_root: bool = False
    """A value indicating whether documents of this type
    accumulate full-text from descendant content."""


class NodeType(DataModel):
    """Node type."""

    name: str
    """Fully qualified node type name, e.g. "Acme.Site:Page"."""

    super_types: list[str] = []
    """Names of the direct super types."""

    properties: dict[str, PropertyConfiguration] = {}
    """Declared properties."""

    search: NodeTypeSearchConfiguration | None = None
    """Search configuration."""

    def is_fulltext_root(self) -> bool:
        return self.search is not None and self.search.is_fulltext_root


class Node(DataModel):
    """Read-only view of a content repository node."""

    identifier: str
    """Persistent identifier."""

    node_type: NodeType
    """Node type."""

    path: str = "/"
    """Node path."""

    context_path: str | None = None
    """Node path qualified with its context, used for logging."""

    properties: dict[str, Any] = {}
    """Property values."""

    removed: bool = False
    """A value indicating whether the node is flagged as removed."""

    def has_property(self, name: str) -> bool:
        return name in self.properties

    def get_property(self, name: str) -> Any:
        return self.properties.get(name)

    def get_context_path(self) -> str:
        return self.context_path or self.path


class PropertyTypeConfiguration(DataModel):
    """Default indexing configuration for a property type."""

    indexing: str | None = None
    """Indexing expression."""


class IndexingSettings(DataModel):
    """Indexing settings."""

    default_configuration_per_type: dict[str, PropertyTypeConfiguration] = {}
    """Indexing rule per declared property type, used when a property
    has no search configuration of its own."""

    default_context: dict[str, str] = {}
    """Variables available in every indexing expression. The key is
    a dotted variable path, the value the importable class path
    ("module:Class") instantiated for it."""

    fulltext_field: str = FULLTEXT_FIELD
    """Reserved field holding the accumulated full-text."""

    @classmethod
    def from_yaml(cls, path: str) -> IndexingSettings:
        return cls.from_dict(YamlLoader.load(path))


class SearchDocument(DataModel):
    """Search document built from a node."""

    id: str
    """Document id."""

    kind: str
    """Document kind (mapping type)."""

    fields: dict[str, Any] = {}
    """Indexed field values."""


class DocumentBuildResult(DataModel):
    """Result of building a node."""

    document: SearchDocument
    """Search document. Fields are empty for removed nodes."""

    is_fulltext_root: bool = False
    """A value indicating whether the document is a full-text root."""

    removed: bool = False
    """A value indicating whether the node must be removed
    from the index instead."""


class BulkAction(str, Enum):
    INDEX = "index"
    UPDATE = "update"
    DELETE = "delete"


class IndexOperation(DataModel):
    """Replace the stored document with the payload."""

    op: Literal["index"] = "index"
    kind: str
    id: str
    payload: dict[str, Any]


class UpsertMergeOperation(DataModel):
    """Replace the stored document while preserving
    its reserved full-text field."""

    op: Literal["upsert_merge"] = "upsert_merge"
    kind: str
    id: str
    new_data: dict[str, Any]
    fulltext_field: str = FULLTEXT_FIELD


class DeleteOperation(DataModel):
    """Remove the stored document."""

    op: Literal["delete"] = "delete"
    kind: str
    id: str


BulkOperation = Annotated[
    Union[IndexOperation, UpsertMergeOperation, DeleteOperation],
    Field(discriminator="op"),
]


class BulkFailure(DataModel):
    """Failed bulk item."""

    action: str
    kind: str | None = None
    id: str | None = None
    status: int | None = None
    error: Any = None


class FlushResult(DataModel):
    """Flush result."""

    count: int = 0
    """Number of submitted operations."""

    took: int | None = None
    """Server side processing time in milliseconds."""

    failures: list[BulkFailure] = []
    """Operations reported as failed."""

    @property
    def succeeded(self) -> bool:
        return not self.failures


class AliasUpdateResult(DataModel):
    """Alias update result."""

    alias: str
    index: str
    removed: list[str] = []
    """Indices the alias was removed from."""


class IndexStatus(str, Enum):
    CREATED = "created"
    EXISTS = "exists"


class IndexResult(DataModel):
    """Index creation result."""

    index: str
    status: IndexStatus
