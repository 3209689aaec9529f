"""
Elastic Search.

Targets Elasticsearch 8 servers through the 8.x client. Mapping types
were removed in Elasticsearch 7, so bulk action lines carry no "_type"
unless mapping_types is set for a server that still accepts it
(6.x and earlier, or a 7.x server with the deprecation tolerated).
"""

from __future__ import annotations

__all__ = ["Elasticsearch"]

from typing import Any

from elasticsearch import ApiError, AsyncElasticsearch
from elasticsearch import ConnectionError as ESConnectionError
from elasticsearch import ConnectionTimeout as ESConnectionTimeout
from elasticsearch import Elasticsearch as SyncElasticsearch
from elasticsearch import NotFoundError as ESNotFoundError

from nodeindex.core import Context, Response
from nodeindex.core.exceptions import (
    BadRequestError,
    NotFoundError,
    TransportError,
)

from .._provider import IndexerProvider


class Elasticsearch(IndexerProvider):
    hosts: str | list[str] | dict[str, str | int]
    cloud_id: str | None
    api_key: str | list[str] | None
    basic_auth: str | list[str] | None
    bearer_auth: str | None
    headers: dict[str, str] | None
    verify_certs: bool | None
    ca_certs: str | None
    request_timeout: float | None
    max_retries: int | None
    mapping_types: bool
    nparams: dict[str, Any]

    _client: SyncElasticsearch
    _aclient: AsyncElasticsearch

    _init: bool
    _ainit: bool

    def __init__(
        self,
        hosts: str | list[str] | dict[str, str | int] = "http://localhost:9200",
        cloud_id: str | None = None,
        api_key: str | list[str] | None = None,
        basic_auth: str | list[str] | None = None,
        bearer_auth: str | None = None,
        headers: dict[str, str] | None = None,
        verify_certs: bool | None = None,
        ca_certs: str | None = None,
        request_timeout: float | None = None,
        max_retries: int | None = None,
        mapping_types: bool = False,
        nparams: dict[str, Any] | None = None,
        **kwargs,
    ):
        """Initialize.

        Args:
            hosts:
                Elasticsearch hosts.
            cloud_id:
                Elasticsearch cloud id.
            api_key:
                Elasticsearch api key.
            basic_auth:
                Elasticsearch basic auth.
            bearer_auth:
                Elasticsearch bearer auth.
            headers:
                Elasticsearch http headers.
            verify_certs:
                Elasticsearch verify certs.
            ca_certs:
                Elasticsearch ca certs.
            request_timeout:
                Timeout in seconds for every request.
            max_retries:
                Retries of the client on connection errors.
                The provider itself never retries.
            mapping_types:
                Carry the document kind as "_type" in bulk
                action lines.
            nparams:
                Native parameters to Elasticsearch client.
        """
        self.hosts = hosts
        self.cloud_id = cloud_id
        self.api_key = api_key
        self.basic_auth = basic_auth
        self.bearer_auth = bearer_auth
        self.headers = headers
        self.verify_certs = verify_certs
        self.ca_certs = ca_certs
        self.request_timeout = request_timeout
        self.max_retries = max_retries
        self.mapping_types = mapping_types
        self.nparams = nparams or dict()

        self._init = False
        self._ainit = False

    @property
    def client(self) -> SyncElasticsearch:
        if not self._init:
            self._client = SyncElasticsearch(**self._get_client_params())
            self._init = True
        return self._client

    @property
    def aclient(self) -> AsyncElasticsearch:
        if not self._ainit:
            self._aclient = AsyncElasticsearch(**self._get_client_params())
            self._ainit = True
        return self._aclient

    def __setup__(self, context: Context | None = None) -> None:
        _ = self.client

    async def __asetup__(self, context: Context | None = None) -> None:
        _ = self.aclient

    def _get_client_params(self) -> dict:
        def _add_if_not_none(key, value):
            return {key: value} if value is not None else {}

        def _convert_if_list(value):
            return tuple(value) if isinstance(value, list) else value

        args = {
            "hosts": self.hosts,
            **_add_if_not_none("cloud_id", self.cloud_id),
            **_add_if_not_none("api_key", _convert_if_list(self.api_key)),
            **_add_if_not_none(
                "basic_auth", _convert_if_list(self.basic_auth)
            ),
            **_add_if_not_none("bearer_auth", self.bearer_auth),
            **_add_if_not_none("headers", self.headers),
            **_add_if_not_none("verify_certs", self.verify_certs),
            **_add_if_not_none("ca_certs", self.ca_certs),
            **_add_if_not_none("request_timeout", self.request_timeout),
            **_add_if_not_none("max_retries", self.max_retries),
        }
        args.update(self.nparams)
        return args

    def close(self, **kwargs: Any) -> Response[None]:
        if self._init:
            self.client.close()
            self._init = False
        return Response(result=None)

    async def aclose(self, **kwargs: Any) -> Response[None]:
        if self._ainit:
            await self.aclient.close()
            self._ainit = False
        return Response(result=None)

    def _bulk(self, index: str, body: str) -> dict[str, Any]:
        try:
            resp = self.client.bulk(index=index, operations=body)
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError(f"Bulk request to {index} failed") from e
        except ApiError as e:
            raise BadRequestError(f"Bulk request rejected: {e}") from e
        return resp.body

    async def _abulk(self, index: str, body: str) -> dict[str, Any]:
        try:
            resp = await self.aclient.bulk(index=index, operations=body)
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError(f"Bulk request to {index} failed") from e
        except ApiError as e:
            raise BadRequestError(f"Bulk request rejected: {e}") from e
        return resp.body

    def _create_index(self, index: str, body: dict[str, Any]) -> bool:
        try:
            self.client.indices.create(index=index, body=body)
        except ApiError as e:
            if e.error == "resource_already_exists_exception":
                return False
            raise BadRequestError(f"Index {index} not created: {e}") from e
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError(f"Creating {index} failed") from e
        return True

    async def _acreate_index(self, index: str, body: dict[str, Any]) -> bool:
        try:
            await self.aclient.indices.create(index=index, body=body)
        except ApiError as e:
            if e.error == "resource_already_exists_exception":
                return False
            raise BadRequestError(f"Index {index} not created: {e}") from e
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError(f"Creating {index} failed") from e
        return True

    def _index_exists(self, index: str) -> bool:
        try:
            return bool(self.client.indices.exists(index=index))
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError(f"Checking {index} failed") from e

    async def _aindex_exists(self, index: str) -> bool:
        try:
            return bool(await self.aclient.indices.exists(index=index))
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError(f"Checking {index} failed") from e

    def _get_alias_targets(self, alias: str) -> list[str]:
        try:
            resp = self.client.indices.get_alias(index="*", name=alias)
        except ESNotFoundError:
            return []
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError(f"Reading alias {alias} failed") from e
        return sorted(resp.body.keys())

    async def _aget_alias_targets(self, alias: str) -> list[str]:
        try:
            resp = await self.aclient.indices.get_alias(index="*", name=alias)
        except ESNotFoundError:
            return []
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError(f"Reading alias {alias} failed") from e
        return sorted(resp.body.keys())

    def _list_indices(self) -> list[str]:
        try:
            resp = self.client.indices.get_alias(index="*")
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError("Listing indices failed") from e
        return self._convert_index_names(resp.body)

    async def _alist_indices(self) -> list[str]:
        try:
            resp = await self.aclient.indices.get_alias(index="*")
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError("Listing indices failed") from e
        return self._convert_index_names(resp.body)

    def _update_aliases(self, actions: list[dict[str, Any]]) -> None:
        try:
            self.client.indices.update_aliases(actions=actions)
        except ESNotFoundError as e:
            raise NotFoundError(f"Alias update failed: {e}") from e
        except ApiError as e:
            raise BadRequestError(f"Alias update rejected: {e}") from e
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError("Alias update failed") from e

    async def _aupdate_aliases(self, actions: list[dict[str, Any]]) -> None:
        try:
            await self.aclient.indices.update_aliases(actions=actions)
        except ESNotFoundError as e:
            raise NotFoundError(f"Alias update failed: {e}") from e
        except ApiError as e:
            raise BadRequestError(f"Alias update rejected: {e}") from e
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError("Alias update failed") from e

    def _delete_indices(self, indices: list[str]) -> None:
        try:
            self.client.indices.delete(index=",".join(indices))
        except ESNotFoundError as e:
            raise NotFoundError(f"Indices not found: {e}") from e
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError("Deleting indices failed") from e

    async def _adelete_indices(self, indices: list[str]) -> None:
        try:
            await self.aclient.indices.delete(index=",".join(indices))
        except ESNotFoundError as e:
            raise NotFoundError(f"Indices not found: {e}") from e
        except (ESConnectionError, ESConnectionTimeout) as e:
            raise TransportError("Deleting indices failed") from e

    @staticmethod
    def _convert_index_names(nmap: dict[str, Any]) -> list[str]:
        return sorted(
            name for name in nmap.keys() if not str(name).startswith(".")
        )
