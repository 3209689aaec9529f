from __future__ import annotations

from ._helper import Helper
from ._models import Node, NodeType


class IndexingHelper:
    """Default context helper available to indexing expressions.

    Registered in IndexingSettings.default_context, e.g.
    {"Indexing": "nodeindex.indexer.helpers:IndexingHelper"}.
    """

    def build_all_path_prefixes(self, path: str) -> list[str]:
        """Return every ancestor path of a node path, including itself.

        "/sites/acme/home" -> ["/", "/sites", "/sites/acme",
        "/sites/acme/home"]
        """
        if not path or path == "/":
            return ["/"]
        prefixes = ["/"]
        current = ""
        for segment in path.strip("/").split("/"):
            current = f"{current}/{segment}"
            prefixes.append(current)
        return prefixes

    def extract_node_types(self, node_type: NodeType) -> list[str]:
        names = [node_type.name]
        names.extend(n for n in node_type.super_types if n not in names)
        return names

    def convert_to_kind(self, node: Node) -> str:
        return Helper.convert_node_type_name_to_kind(node.node_type.name)
