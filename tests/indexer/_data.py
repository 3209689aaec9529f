settings = {
    "default_configuration_per_type": {
        "string": {"indexing": "${value}"},
        "DateTime": {"indexing": "${value}"},
        "boolean": {"indexing": ""},
    },
    "default_context": {
        "Indexing": "nodeindex.indexer.helpers:IndexingHelper",
    },
}

page_type = {
    "name": "Acme.Site:Page",
    "super_types": ["Acme.Site:Document"],
    "properties": {
        "title": {"type": "string"},
        "body": {},
        "hidden": {"type": "boolean"},
        "uriPathSegment": {
            "type": "string",
            "search": {"indexing": ""},
        },
        "__path": {
            "search": {
                "indexing": "${Indexing.build_all_path_prefixes(node.path)}"
            },
        },
    },
    "search": {"is_fulltext_root": True},
}

text_type = {
    "name": "Acme.Site:Content.Text",
    "properties": {
        "text": {"type": "string"},
        "length": {
            "type": "string",
            "search": {"indexing": "${value | length}"},
        },
    },
}

nodes = [
    {
        "identifier": "7ab09a2c-1c3f-4d2b-9f1e-4a7b5c1d2e01",
        "node_type": page_type,
        "path": "/sites/acme/home",
        "context_path": "/sites/acme/home@live",
        "properties": {
            "title": "Hello",
            "body": "Not indexed",
            "hidden": False,
            "uriPathSegment": "home",
        },
    },
    {
        "identifier": "7ab09a2c-1c3f-4d2b-9f1e-4a7b5c1d2e02",
        "node_type": text_type,
        "path": "/sites/acme/home/main/text0",
        "properties": {
            "text": "Lorem ipsum",
            "length": "Lorem ipsum",
        },
    },
    {
        "identifier": "7ab09a2c-1c3f-4d2b-9f1e-4a7b5c1d2e03",
        "node_type": text_type,
        "path": "/sites/acme/home/main/text1",
        "properties": {
            "text": "Removed",
        },
        "removed": True,
    },
]
