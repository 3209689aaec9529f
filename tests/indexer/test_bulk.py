# type: ignore

import json
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import pytest

from nodeindex.indexer import (
    BadRequestError,
    BulkRequest,
    DeleteOperation,
    IndexOperation,
    SearchDocument,
    UpsertMergeOperation,
)


def get_lines(body: str) -> list[dict]:
    assert body.endswith("\n")
    return [json.loads(line) for line in body.splitlines()]


def test_upsert_non_fulltext_root():
    bulk = BulkRequest()
    document = SearchDocument(id="n1", kind="Acme-Page", fields={"a": 1})
    bulk.enqueue_upsert(document)

    assert bulk.pending_count() == 1
    assert bulk.operations == [
        IndexOperation(kind="Acme-Page", id="n1", payload={"a": 1})
    ]
    lines = get_lines(bulk.serialize())
    assert lines == [
        {"index": {"_type": "Acme-Page", "_id": "n1"}},
        {"a": 1},
    ]
    assert BulkRequest.parse(bulk.serialize()) == bulk.operations


def test_upsert_fulltext_root():
    bulk = BulkRequest()
    document = SearchDocument(id="n1", kind="Acme-Page", fields={"a": 1, "b": 2})
    bulk.enqueue_upsert(document, is_fulltext_root=True)

    lines = get_lines(bulk.serialize())
    data = {"a": 1, "b": 2, "__fulltext": {}}
    assert lines == [
        {"update": {"_type": "Acme-Page", "_id": "n1"}},
        {
            "script": "def fulltext = ctx._source.__fulltext; "
            "ctx._source = params.newData; "
            "ctx._source.__fulltext = fulltext",
            "params": {"newData": data},
            "upsert": data,
        },
    ]
    assert BulkRequest.parse(bulk.serialize()) == [
        UpsertMergeOperation(kind="Acme-Page", id="n1", new_data={"a": 1, "b": 2})
    ]


def test_custom_fulltext_field():
    bulk = BulkRequest(fulltext_field="_text")
    bulk.enqueue_upsert(
        SearchDocument(id="n1", kind="k", fields={}), is_fulltext_root=True
    )
    lines = get_lines(bulk.serialize())
    assert lines[1]["upsert"] == {"_text": {}}
    assert "ctx._source._text" in lines[1]["script"]
    assert BulkRequest.parse(bulk.serialize())[0].fulltext_field == "_text"


def test_order():
    bulk = BulkRequest()
    bulk.enqueue_upsert(SearchDocument(id="n1", kind="k", fields={"a": 1}))
    bulk.enqueue_delete(kind="k", id="n1")
    bulk.enqueue_upsert(
        SearchDocument(id="n2", kind="k", fields={}), is_fulltext_root=True
    )

    lines = get_lines(bulk.serialize())
    assert [next(iter(line)) for line in lines] == [
        "index",
        "a",
        "delete",
        "update",
        "script",
    ]
    assert lines[2] == {"delete": {"_type": "k", "_id": "n1"}}
    assert [op.op for op in BulkRequest.parse(bulk.serialize())] == [
        "index",
        "delete",
        "upsert_merge",
    ]


def test_empty():
    bulk = BulkRequest()
    assert bulk.pending_count() == 0
    assert bulk.serialize() == ""
    assert BulkRequest.parse("") == []


def test_detach_restore():
    bulk = BulkRequest()
    for i in range(3):
        bulk.enqueue_delete(kind="k", id=f"n{i}")
    detached = bulk.detach()
    assert [op.id for op in detached] == ["n0", "n1", "n2"]
    assert bulk.pending_count() == 0
    assert bulk.detach() == []

    # restored operations go before the ones enqueued meanwhile
    bulk.enqueue_delete(kind="k", id="n3")
    bulk.restore(detached)
    assert [op.id for op in bulk.operations] == ["n0", "n1", "n2", "n3"]
    assert bulk.snapshot() == bulk.operations

    bulk.clear()
    assert bulk.pending_count() == 0


def test_serialize_values():
    bulk = BulkRequest()
    bulk.enqueue_upsert(
        SearchDocument(
            id="n1",
            kind="k",
            fields={
                "start": datetime(2024, 1, 1, 12, 30),
                "day": date(2024, 1, 2),
                "price": Decimal("9.5"),
                "ref": UUID("7ab09a2c-1c3f-4d2b-9f1e-4a7b5c1d2e01"),
                "title": "Grüße",
            },
        )
    )
    lines = get_lines(bulk.serialize())
    assert lines[1] == {
        "start": "2024-01-01T12:30:00",
        "day": "2024-01-02",
        "price": 9.5,
        "ref": "7ab09a2c-1c3f-4d2b-9f1e-4a7b5c1d2e01",
        "title": "Grüße",
    }


def test_serialize_unencodable_value():
    bulk = BulkRequest()
    bulk.enqueue_upsert(SearchDocument(id="n1", kind="k", fields={"a": object()}))
    with pytest.raises(BadRequestError):
        bulk.serialize()
    assert bulk.pending_count() == 1


def test_serialize_without_type():
    bulk = BulkRequest()
    bulk.enqueue_upsert(SearchDocument(id="n1", kind="k", fields={"a": 1}))
    bulk.enqueue_delete(kind="k", id="n1")
    lines = get_lines(bulk.serialize(include_type=False))
    assert lines == [{"index": {"_id": "n1"}}, {"a": 1}, {"delete": {"_id": "n1"}}]
    # kind falls back to the engine default
    assert [op.kind for op in BulkRequest.parse(bulk.serialize(False))] == [
        "_doc",
        "_doc",
    ]


def test_concurrent_enqueue():
    bulk = BulkRequest()

    def enqueue(i: int):
        bulk.enqueue_upsert(SearchDocument(id=f"n{i}", kind="k", fields={}))

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(enqueue, range(200)))
    assert bulk.pending_count() == 200
    assert len({op.id for op in bulk.operations}) == 200


def test_enqueue_copies_fields():
    bulk = BulkRequest()
    document = SearchDocument(id="n1", kind="k", fields={"a": 1})
    bulk.enqueue_upsert(document)
    document.fields["a"] = 2
    assert bulk.operations[0].payload == {"a": 1}


@pytest.mark.parametrize(
    "body",
    [
        '{"index": {"_id": "n1"}, "delete": {"_id": "n2"}}\n{}\n',
        '{"index": {"_type": "k"}}\n{}\n',
        '{"index": {"_type": "k", "_id": "n1"}}\n',
        '{"update": {"_type": "k", "_id": "n1"}}\n{"doc": {"a": 1}}\n',
        '{"upsert": {"_type": "k", "_id": "n1"}}\n{}\n',
    ],
)
def test_parse_invalid(body: str):
    with pytest.raises(BadRequestError):
        BulkRequest.parse(body)
