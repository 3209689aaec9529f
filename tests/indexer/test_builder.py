# type: ignore

import pytest
from structlog.testing import capture_logs

from nodeindex.indexer import (
    ConfigurationError,
    DocumentBuilder,
    IndexingSettings,
    Node,
)

from ._data import nodes, page_type, settings


def get_builder(custom_settings: dict | None = None) -> DocumentBuilder:
    return DocumentBuilder(
        settings=IndexingSettings.from_dict(custom_settings or settings)
    )


def get_events(logs: list[dict], event: str) -> list[dict]:
    return [log for log in logs if log["event"] == event]


def test_build_fields():
    builder = get_builder()
    node = Node.from_dict(nodes[0])
    with capture_logs() as logs:
        result = builder.build(node)

    assert result.removed is False
    assert result.is_fulltext_root is True
    assert result.document.id == node.identifier
    assert result.document.kind == "Acme-Site-Page"
    assert result.document.fields == {
        "title": "Hello",
        "__path": ["/", "/sites", "/sites/acme", "/sites/acme/home"],
    }

    not_indexed = get_events(logs, "property_not_indexed")
    assert [log["property"] for log in not_indexed] == ["body"]
    assert not_indexed[0]["reason"] == "no configuration found"
    assert not_indexed[0]["log_level"] == "debug"

    # explicit empty rule and empty type default opt out
    disabled = get_events(logs, "property_indexing_disabled")
    assert sorted(log["property"] for log in disabled) == [
        "hidden",
        "uriPathSegment",
    ]


def test_build_title_only():
    builder = get_builder({})
    node = Node.from_dict(
        {
            "identifier": "n1",
            "node_type": {
                "name": "Acme:Page",
                "properties": {
                    "title": {"search": {"indexing": "${value}"}},
                    "body": {},
                },
            },
            "properties": {"title": "Hello", "body": "World"},
        }
    )
    with capture_logs() as logs:
        result = builder.build(node)

    assert result.document.fields == {"title": "Hello"}
    assert result.is_fulltext_root is False
    assert len(get_events(logs, "property_not_indexed")) == 1


def test_build_missing_property_value():
    builder = get_builder()
    node = Node.from_dict(
        {
            "identifier": "n2",
            "node_type": page_type,
            "path": "/",
        }
    )
    result = builder.build(node)
    assert result.document.fields == {"title": None, "__path": ["/"]}


def test_build_expression_helpers():
    builder = get_builder()
    result = builder.build(Node.from_dict(nodes[1]))
    assert result.document.kind == "Acme-Site-Content-Text"
    assert result.document.fields == {"text": "Lorem ipsum", "length": 11}


def test_build_removed_node():
    builder = get_builder(
        {"default_configuration_per_type": {"string": {"indexing": "${bad"}}}
    )
    result = builder.build(Node.from_dict(nodes[2]))
    assert result.removed is True
    assert result.document.id == nodes[2]["identifier"]
    assert result.document.kind == "Acme-Site-Content-Text"
    assert result.document.fields == {}


def test_explicit_rule_precedence():
    builder = get_builder(
        {"default_configuration_per_type": {"string": {"indexing": "${1}"}}}
    )
    node = Node.from_dict(
        {
            "identifier": "n3",
            "node_type": {
                "name": "Acme:Page",
                "properties": {
                    "title": {
                        "type": "string",
                        "search": {"indexing": "${value | upper}"},
                    },
                    "subtitle": {"type": "string"},
                },
            },
            "properties": {"title": "hello", "subtitle": "world"},
        }
    )
    result = builder.build(node)
    assert result.document.fields == {"title": "HELLO", "subtitle": 1}


@pytest.mark.parametrize(
    "rule",
    [
        "value",
        "${value +}",
        "${unknown}",
        "${unknown.attribute}",
        "${node.__class__}",
    ],
)
def test_build_invalid_expression(rule: str):
    builder = get_builder({})
    node = Node.from_dict(
        {
            "identifier": "n4",
            "node_type": {
                "name": "Acme:Page",
                "properties": {"title": {"search": {"indexing": rule}}},
            },
            "properties": {"title": "Hello"},
        }
    )
    with pytest.raises(ConfigurationError) as e:
        builder.build(node)
    assert '"title"' in str(e.value)
    assert "Acme:Page" in str(e.value)


def test_build_expression_bindings():
    builder = get_builder({})
    node = Node.from_dict(
        {
            "identifier": "n5",
            "node_type": {
                "name": "Acme:Page",
                "properties": {
                    "title": {
                        "search": {
                            "indexing": "${propertyName ~ ':' ~ documentId}"
                        }
                    },
                    "path": {"search": {"indexing": "${node.path}"}},
                },
            },
            "path": "/sites/acme",
        }
    )
    result = builder.build(node)
    assert result.document.fields == {
        "title": "title:n5",
        "path": "/sites/acme",
    }
