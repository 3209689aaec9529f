# type: ignore

import pytest

from nodeindex.indexer import Node, NodeType
from nodeindex.indexer._helper import Helper
from nodeindex.indexer.helpers import IndexingHelper


@pytest.mark.parametrize(
    "name, kind",
    [
        ("Acme.Site:Page", "Acme-Site-Page"),
        ("Acme.Site:Content.Text", "Acme-Site-Content-Text"),
        ("unstructured", "unstructured"),
    ],
)
def test_convert_node_type_name_to_kind(name: str, kind: str):
    assert Helper.convert_node_type_name_to_kind(name) == kind


def test_get_index_name():
    assert Helper.get_index_name("acme", None) == "acme"
    assert Helper.get_index_name("acme", "") == "acme"
    assert Helper.get_index_name("acme", "1700000000") == "acme-1700000000"


def test_build_alias_actions():
    assert Helper.build_alias_actions("A", "A-new", ["A-old"]) == [
        {"remove": {"index": "A-old", "alias": "A"}},
        {"add": {"index": "A-new", "alias": "A"}},
    ]
    assert Helper.build_alias_actions("A", "A-new", ["A-new"]) == [
        {"add": {"index": "A-new", "alias": "A"}},
    ]
    actions = Helper.build_alias_actions("A", "A-3", ["A-1", "A-2", "A-3"])
    assert [next(iter(a)) for a in actions] == ["remove", "remove", "add"]


def test_get_stale_indices():
    assert Helper.get_stale_indices(
        alias="A",
        all_indices=["A-3", "A-1", "B-1", "A-2", "AB-1", "A"],
        live_indices=["A-3"],
    ) == ["A-1", "A-2"]
    assert Helper.get_stale_indices("A", ["A-1"], ["A-1"]) == []


def test_convert_bulk_response():
    result = Helper.convert_bulk_response(
        {
            "took": 7,
            "errors": True,
            "items": [
                {"index": {"_type": "k", "_id": "n1", "status": 201}},
                {
                    "update": {
                        "_type": "k",
                        "_id": "n2",
                        "status": 409,
                        "error": {"type": "version_conflict_engine_exception"},
                    }
                },
            ],
        },
        [],
    )
    assert result.count == 0
    assert result.took == 7
    assert not result.succeeded
    assert result.failures[0].action == "update"
    assert result.failures[0].kind == "k"
    assert result.failures[0].id == "n2"
    assert result.failures[0].status == 409


def test_indexing_helper():
    helper = IndexingHelper()
    assert helper.build_all_path_prefixes("/") == ["/"]
    assert helper.build_all_path_prefixes("/sites/acme/") == [
        "/",
        "/sites",
        "/sites/acme",
    ]
    node_type = NodeType(
        name="Acme:Page",
        super_types=["Acme:Document", "Acme:Page"],
    )
    assert helper.extract_node_types(node_type) == [
        "Acme:Page",
        "Acme:Document",
    ]
    node = Node(identifier="n1", node_type=NodeType(name="Acme.Site:Page"))
    assert helper.convert_to_kind(node) == "Acme-Site-Page"
