"""
Elastic Search.
"""

from __future__ import annotations

__all__ = ["Elasticsearch"]

import json
import threading
from typing import Any, Callable

from elasticsearch import ApiError
from elasticsearch import Elasticsearch as SyncElasticsearch
from elasticsearch import TransportError as ESTransportError
from elasticsearch.exceptions import NotFoundError as ESNotFoundError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from esmapper.core import MapperConfig, Provider, Response
from esmapper.core._log_helper import info as log_info
from esmapper.core.exceptions import (
    NotFoundError,
    SerializationError,
    TransportError,
    ValidationError,
)
from esmapper.document import (
    DocumentCodec,
    DocumentInfo,
    DocumentInfoRegistry,
    IndexParam,
    IndexResult,
    IndexSettings,
    MappingBuilder,
)
from esmapper.query import (
    ConditionList,
    RequestAssembler,
    UpdateConditionList,
)

from .._bulk import BulkExecutor
from .._models import (
    BatchPolicy,
    BulkOperation,
    BulkOperationKind,
    SearchResult,
    WriteResult,
)


class Elasticsearch(Provider):
    hosts: str | list[str] | dict[str, str | int] | None
    cloud_id: str | None
    api_key: str | list[str] | None
    basic_auth: str | list[str] | None
    bearer_auth: str | None
    opaque_id: str | None

    headers: dict[str, str] | None
    verify_certs: bool | None
    ca_certs: str | None
    client_cert: str | None
    client_key: str | None

    index: str | None
    nparams: dict[str, Any]

    _client: SyncElasticsearch
    _init: bool

    _lock: threading.Lock
    _registry: DocumentInfoRegistry | None
    _document_cache: dict[type, ElasticsearchDocument]

    def __init__(
        self,
        hosts: str | list[str] | dict[str, str | int] | None = None,
        cloud_id: str | None = None,
        api_key: str | list[str] | None = None,
        basic_auth: str | list[str] | None = None,
        bearer_auth: str | None = None,
        opaque_id: str | None = None,
        headers: dict[str, str] | None = None,
        verify_certs: bool | None = None,
        ca_certs: str | None = None,
        client_cert: str | None = None,
        client_key: str | None = None,
        index: str | None = None,
        client: Any | None = None,
        nparams: dict[str, Any] = dict(),
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
            opaque_id:
                Elasticsearch opaque id.
            headers:
                Elasticsearch http headers.
            verify_certs:
                Elasticsearch verify certs.
            ca_certs:
                Elasticsearch ca certs.
            client_cert:
                Elasticsearch client cert.
            client_key:
                Elasticsearch client key.
            index:
                Elasticsearch index, overrides the document index.
            client:
                Pre-built Elasticsearch client.
                Connection parameters are ignored when set.
            nparams:
                Native parameters to Elasticsearch client.
        """
        self.hosts = hosts
        self.cloud_id = cloud_id
        self.api_key = api_key
        self.basic_auth = basic_auth
        self.bearer_auth = bearer_auth
        self.opaque_id = opaque_id
        self.headers = headers
        self.verify_certs = verify_certs
        self.ca_certs = ca_certs
        self.client_cert = client_cert
        self.client_key = client_key

        self.index = index
        self.nparams = nparams

        self._init = False
        if client is not None:
            self._client = client
            self._init = True
        self._lock = threading.Lock()
        self._registry = None
        self._document_cache = dict()
        super().__init__(**kwargs)

    @property
    def client(self) -> SyncElasticsearch:
        if not self._init:
            self._client = SyncElasticsearch(**self._get_client_params())
            self._init = True
        return self._client

    @property
    def config(self) -> MapperConfig:
        component = getattr(self, "__component__", None)
        return getattr(component, "config", None) or MapperConfig()

    def __setup__(self) -> None:
        _ = self.client

    def _get_client_params(self) -> dict:
        def _add_if_not_none(key, value):
            return {key: value} if value is not None else {}

        def _convert_if_list(value):
            return tuple(value) if isinstance(value, list) else value

        if self.hosts is None and self.cloud_id is None:
            raise ValidationError("Elasticsearch hosts or cloud id required")
        args = {
            **_add_if_not_none("hosts", self.hosts),
            **_add_if_not_none("cloud_id", self.cloud_id),
            **_add_if_not_none("api_key", _convert_if_list(self.api_key)),
            **_add_if_not_none(
                "basic_auth", _convert_if_list(self.basic_auth)
            ),
            **_add_if_not_none("bearer_auth", self.bearer_auth),
            **_add_if_not_none("opaque_id", self.opaque_id),
            **_add_if_not_none("headers", self.headers),
            **_add_if_not_none("verify_certs", self.verify_certs),
            **_add_if_not_none("ca_certs", self.ca_certs),
            **_add_if_not_none("client_cert", self.client_cert),
            **_add_if_not_none("client_key", self.client_key),
        }

        if self.nparams is not None:
            args.update(self.nparams)

        return args

    def _get_document(self) -> ElasticsearchDocument:
        document_type = self.__component__.document_type
        document = self._document_cache.get(document_type)
        if document is not None:
            return document
        with self._lock:
            document = self._document_cache.get(document_type)
            if document is not None:
                return document
            config = self.config
            if self._registry is None:
                self._registry = DocumentInfoRegistry(
                    default_id_type=config.id_type
                )
            document = ElasticsearchDocument(
                info=self._registry.get(document_type),
                config=config,
                index=self.index,
            )
            self._document_cache[document_type] = document
        return document

    def _execute(self, func: Callable[..., Any], **args: Any) -> Any:
        try:
            resp = func(**args)
        except ESNotFoundError as e:
            raise NotFoundError(f"Not found: {e}") from e
        except (ApiError, ESTransportError) as e:
            raise TransportError(
                f"Elasticsearch request failed: {e}", e
            ) from e
        return getattr(resp, "body", resp)

    def _bulk(self) -> BulkExecutor:
        return BulkExecutor(self.client, refresh=self.config.refresh)

    def _write_back(
        self,
        doc: ElasticsearchDocument,
        entities: list[Any],
        ids: list[str | None],
    ) -> None:
        if not self.config.write_back_ids:
            return
        for entity, id in zip(entities, ids):
            doc.codec.assign_id(entity, id)

    def _check_id(self, id: Any) -> str:
        if id is None or not str(id).strip():
            raise ValidationError("Document id must not be blank")
        return str(id)

    def _select_ids(
        self, doc: ElasticsearchDocument, conditions: ConditionList
    ) -> list[str]:
        args = doc.op_converter.convert_select_ids(
            body=doc.assembler.assemble(conditions)
        )
        resp = self._execute(self.client.search, **args)
        return doc.result_converter.convert_ids(resp)

    def insert(self, entity: Any, **kwargs: Any) -> Response[WriteResult]:
        doc = self._get_document()
        id = doc.codec.generate_id(entity)
        args = doc.op_converter.convert_insert(
            id=id, document=doc.codec.to_wire_fields(entity)
        )
        args.update(kwargs.get("nargs", {}))
        resp = self._execute(self.client.index, **args)
        result = doc.result_converter.convert_write(resp, success="created")
        self._write_back(doc, [entity], result.ids)
        return Response(result=result, native=dict(result=resp))

    def insert_batch(
        self, entities: list[Any], **kwargs: Any
    ) -> Response[WriteResult]:
        if not entities:
            return Response(result=WriteResult())
        doc = self._get_document()
        operations = [
            doc.op_converter.convert_bulk_insert(
                id=doc.codec.generate_id(entity),
                document=doc.codec.to_wire_fields(entity),
            )
            for entity in entities
        ]
        outcome = self._bulk().execute(operations, BatchPolicy.FAIL_FAST)
        self._write_back(doc, entities, outcome.ids)
        return Response(
            result=WriteResult(count=outcome.count, ids=outcome.ids)
        )

    def update(
        self,
        entity: Any | None = None,
        conditions: ConditionList | None = None,
        **kwargs: Any,
    ) -> Response[WriteResult]:
        doc = self._get_document()
        if conditions is None:
            raise ValidationError("Update requires conditions")
        if entity is not None:
            fields = doc.codec.to_wire_fields(entity)
        elif isinstance(conditions, UpdateConditionList):
            fields = doc.codec.to_partial_fields(conditions.updates)
        else:
            fields = {}
        if not fields:
            raise ValidationError("Update has no fields to set")
        ids = self._select_ids(doc, conditions)
        operations = [
            doc.op_converter.convert_bulk_update(id=id, fields=fields)
            for id in ids
        ]
        outcome = self._bulk().execute(operations, BatchPolicy.TALLY)
        return Response(
            result=WriteResult(count=outcome.count, ids=outcome.ids)
        )

    def update_by_id(
        self, entity: Any, **kwargs: Any
    ) -> Response[WriteResult]:
        doc = self._get_document()
        id = self._check_id(doc.codec.get_id(entity))
        args = doc.op_converter.convert_update(
            id=id, fields=doc.codec.to_wire_fields(entity)
        )
        args.update(kwargs.get("nargs", {}))
        resp = self._execute(self.client.update, **args)
        result = doc.result_converter.convert_write(resp, success="updated")
        return Response(result=result, native=dict(result=resp))

    def update_batch_by_id(
        self, entities: list[Any], **kwargs: Any
    ) -> Response[WriteResult]:
        if not entities:
            return Response(result=WriteResult())
        doc = self._get_document()
        operations = [
            doc.op_converter.convert_bulk_update(
                id=self._check_id(doc.codec.get_id(entity)),
                fields=doc.codec.to_wire_fields(entity),
            )
            for entity in entities
        ]
        outcome = self._bulk().execute(operations, BatchPolicy.TALLY)
        return Response(
            result=WriteResult(count=outcome.count, ids=outcome.ids)
        )

    def delete(
        self, conditions: ConditionList, **kwargs: Any
    ) -> Response[WriteResult]:
        doc = self._get_document()
        ids = self._select_ids(doc, conditions)
        operations = [
            doc.op_converter.convert_bulk_delete(id=id) for id in ids
        ]
        outcome = self._bulk().execute(operations, BatchPolicy.TALLY)
        return Response(
            result=WriteResult(count=outcome.count, ids=outcome.ids)
        )

    def delete_by_id(self, id: str, **kwargs: Any) -> Response[WriteResult]:
        doc = self._get_document()
        args = doc.op_converter.convert_delete(id=self._check_id(id))
        args.update(kwargs.get("nargs", {}))
        try:
            resp = self._execute(self.client.delete, **args)
        except NotFoundError:
            return Response(result=WriteResult(count=0, ids=[None]))
        result = doc.result_converter.convert_write(resp, success="deleted")
        return Response(result=result, native=dict(result=resp))

    def delete_batch_by_ids(
        self, ids: list[str], **kwargs: Any
    ) -> Response[WriteResult]:
        if not ids:
            raise ValidationError("Document ids must not be empty")
        doc = self._get_document()
        operations = [
            doc.op_converter.convert_bulk_delete(id=self._check_id(id))
            for id in ids
        ]
        outcome = self._bulk().execute(operations, BatchPolicy.TALLY)
        return Response(
            result=WriteResult(count=outcome.count, ids=outcome.ids)
        )

    def search(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[SearchResult]:
        doc = self._get_document()
        resp = self._search(doc, conditions or ConditionList(), **kwargs)
        result = doc.result_converter.convert_search(resp)
        return Response(result=result, native=dict(result=resp))

    def select_list(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[list[Any]]:
        doc = self._get_document()
        conditions = conditions or ConditionList()
        resp = self._search(doc, conditions, **kwargs)
        result = doc.result_converter.convert_entities(
            resp,
            include_identifier=RequestAssembler.include_identifier(
                doc.info.id_field, conditions
            ),
        )
        return Response(result=result, native=dict(result=resp))

    def select_one(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[Any | None]:
        conditions = (conditions or ConditionList()).model_copy(
            update={"size": 1}
        )
        response = self.select_list(conditions, **kwargs)
        items = response.result
        return Response(
            result=items[0] if items else None, native=response.native
        )

    def select_by_id(self, id: str, **kwargs: Any) -> Response[Any]:
        response = self.select_batch_by_ids([id], **kwargs)
        if not response.result:
            raise NotFoundError(f"Document {id} not found")
        return Response(result=response.result[0], native=response.native)

    def select_batch_by_ids(
        self, ids: list[str], **kwargs: Any
    ) -> Response[list[Any]]:
        if not ids:
            raise ValidationError("Document ids must not be empty")
        doc = self._get_document()
        args = doc.op_converter.convert_search_by_ids(
            ids=[self._check_id(id) for id in ids]
        )
        args.update(kwargs.get("nargs", {}))
        resp = self._execute(self.client.search, **args)
        result = doc.result_converter.convert_entities(resp)
        return Response(result=result, native=dict(result=resp))

    def select_count(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[int]:
        doc = self._get_document()
        conditions = conditions or ConditionList()
        args = doc.op_converter.convert_count(
            query=doc.assembler.compiler.compile(
                conditions.entries, conditions.geo
            )
        )
        args.update(kwargs.get("nargs", {}))
        resp = self._execute(self.client.count, **args)
        result = doc.result_converter.convert_count(resp)
        return Response(result=result, native=dict(result=resp))

    def get_source(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[str]:
        doc = self._get_document()
        body = doc.assembler.assemble(conditions or ConditionList())
        return Response(result=doc.op_converter.convert_dsl(body))

    def exists_index(
        self, index: str | None = None, **kwargs: Any
    ) -> Response[bool]:
        name = index or self._get_document().index
        resp = self._execute(self.client.indices.exists, index=name)
        return Response(result=bool(resp))

    def create_index(
        self,
        index: str | None = None,
        params: list[IndexParam] | None = None,
        mapping: dict | None = None,
        settings: IndexSettings | None = None,
        **kwargs: Any,
    ) -> Response[IndexResult]:
        name = index or self._get_document().index
        args: dict[str, Any] = {"index": name}
        if mapping is not None:
            args["mappings"] = mapping
        elif params:
            args["mappings"] = MappingBuilder.build_mapping(params)
        index_settings = MappingBuilder.build_settings(settings)
        if index_settings:
            args["settings"] = index_settings
        args.update(kwargs.get("nargs", {}))
        resp = self._execute(self.client.indices.create, **args)
        acknowledged = bool(resp.get("acknowledged", False))
        log_info("create index [%s] result: %s", name, acknowledged)
        return Response(
            result=IndexResult(index=name, acknowledged=acknowledged),
            native=dict(result=resp),
        )

    def update_index(
        self,
        index: str | None = None,
        params: list[IndexParam] | None = None,
        mapping: dict | None = None,
        **kwargs: Any,
    ) -> Response[IndexResult]:
        name = index or self._get_document().index
        if not self.exists_index(name).result:
            raise NotFoundError(f"Index {name} does not exist")
        if mapping is None:
            if not params:
                return Response(
                    result=IndexResult(index=name, acknowledged=False)
                )
            mapping = MappingBuilder.build_mapping(params)
        args: dict[str, Any] = {"index": name, **mapping}
        args.update(kwargs.get("nargs", {}))
        resp = self._execute(self.client.indices.put_mapping, **args)
        acknowledged = bool(resp.get("acknowledged", False))
        log_info("update index [%s] result: %s", name, acknowledged)
        return Response(
            result=IndexResult(index=name, acknowledged=acknowledged),
            native=dict(result=resp),
        )

    def delete_index(
        self, index: str | None = None, **kwargs: Any
    ) -> Response[IndexResult]:
        name = index or self._get_document().index
        resp = self._execute(self.client.indices.delete, index=name)
        acknowledged = bool(resp.get("acknowledged", False))
        log_info("delete index [%s] result: %s", name, acknowledged)
        return Response(
            result=IndexResult(index=name, acknowledged=acknowledged),
            native=dict(result=resp),
        )

    def close(self, **kwargs: Any) -> Response[None]:
        if self._init:
            self.client.close()
            self._init = False
        return Response(result=None)

    def _search(
        self,
        doc: ElasticsearchDocument,
        conditions: ConditionList,
        **kwargs: Any,
    ) -> Any:
        body = doc.assembler.assemble(conditions)
        if self.config.log_dsl:
            log_info(
                "search [%s] DSL: %s",
                doc.index,
                doc.op_converter.convert_dsl(body),
            )
        args = doc.op_converter.convert_search(body=body)
        args.update(kwargs.get("nargs", {}))
        return self._execute(self.client.search, **args)


class ElasticsearchDocument:
    info: DocumentInfo
    index: str
    codec: DocumentCodec
    assembler: RequestAssembler
    op_converter: OperationConverter
    result_converter: ResultConverter

    def __init__(
        self,
        info: DocumentInfo,
        config: MapperConfig,
        index: str | None = None,
    ):
        self.info = info
        self.index = index or info.index
        self.codec = DocumentCodec(info=info, config=config)
        self.assembler = RequestAssembler(default_size=config.default_size)
        self.op_converter = OperationConverter(
            index=self.index, refresh=config.refresh
        )
        self.result_converter = ResultConverter(codec=self.codec)


class OperationConverter:
    index: str
    refresh: bool | str | None

    _search_keys = {"from": "from_", "_source": "source"}

    def __init__(self, index: str, refresh: bool | str | None = None):
        self.index = index
        self.refresh = refresh

    def convert_insert(
        self, id: str | None, document: dict[str, Any]
    ) -> dict[str, Any]:
        args: dict[str, Any] = {"index": self.index, "document": document}
        if id is not None:
            args["id"] = id
        return self._add_refresh(args)

    def convert_update(self, id: str, fields: dict[str, Any]) -> dict:
        return self._add_refresh(
            {"index": self.index, "id": id, "doc": fields}
        )

    def convert_delete(self, id: str) -> dict:
        return self._add_refresh({"index": self.index, "id": id})

    def convert_bulk_insert(
        self, id: str | None, document: dict[str, Any]
    ) -> BulkOperation:
        return BulkOperation(
            kind=BulkOperationKind.INDEX,
            index=self.index,
            id=id,
            document=document,
        )

    def convert_bulk_update(
        self, id: str, fields: dict[str, Any]
    ) -> BulkOperation:
        return BulkOperation(
            kind=BulkOperationKind.UPDATE,
            index=self.index,
            id=id,
            document=fields,
        )

    def convert_bulk_delete(self, id: str) -> BulkOperation:
        return BulkOperation(
            kind=BulkOperationKind.DELETE, index=self.index, id=id
        )

    def convert_search(self, body: dict[str, Any]) -> dict[str, Any]:
        args: dict[str, Any] = {"index": self.index}
        for key, value in body.items():
            args[self._search_keys.get(key, key)] = value
        return args

    def convert_select_ids(self, body: dict[str, Any]) -> dict[str, Any]:
        args = self.convert_search(body)
        for key in ("sort", "highlight", "aggs"):
            args.pop(key, None)
        args["source"] = False
        return args

    def convert_search_by_ids(self, ids: list[str]) -> dict[str, Any]:
        return {
            "index": self.index,
            "query": {"ids": {"values": ids}},
            "size": len(ids),
        }

    def convert_count(self, query: dict[str, Any]) -> dict[str, Any]:
        return {"index": self.index, "query": query}

    def convert_dsl(self, body: dict[str, Any]) -> str:
        try:
            return json.dumps(to_jsonable_python(body))
        except PydanticSerializationError as e:
            raise SerializationError(
                f"Cannot encode request for {self.index}: {e}"
            ) from e

    def _add_refresh(self, args: dict[str, Any]) -> dict[str, Any]:
        if self.refresh is not None:
            args["refresh"] = self.refresh
        return args


class ResultConverter:
    codec: DocumentCodec

    def __init__(self, codec: DocumentCodec):
        self.codec = codec

    def convert_write(self, response: Any, success: str) -> WriteResult:
        count = 1 if response.get("result") == success else 0
        return WriteResult(count=count, ids=[response.get("_id")])

    def convert_search(self, response: Any) -> SearchResult:
        hits_block = response.get("hits", {})
        total = hits_block.get("total")
        if isinstance(total, dict):
            total = total.get("value")
        return SearchResult(
            total=total,
            hits=list(hits_block.get("hits", [])),
            aggregations=response.get("aggregations"),
        )

    def convert_entities(
        self, response: Any, include_identifier: bool = True
    ) -> list[Any]:
        hits = response.get("hits", {}).get("hits", [])
        return [
            self.codec.from_wire_hit(
                hit.get("_source"),
                hit.get("_id"),
                include_identifier=include_identifier,
            )
            for hit in hits
        ]

    def convert_ids(self, response: Any) -> list[str]:
        hits = response.get("hits", {}).get("hits", [])
        return [hit["_id"] for hit in hits]

    def convert_count(self, response: Any) -> int:
        return response.get("count", 0)
