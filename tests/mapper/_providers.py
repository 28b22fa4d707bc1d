from __future__ import annotations

from typing import Any

from esmapper import DocumentMapper, MapperConfig

from ._fake_client import FakeElasticsearch


class MapperProvider:
    ELASTICSEARCH = "elasticsearch"


def get_component(
    document_type: type,
    client: FakeElasticsearch | None = None,
    **config: Any,
) -> tuple[DocumentMapper, FakeElasticsearch]:
    client = client or FakeElasticsearch()
    component = DocumentMapper(
        document_type=document_type,
        config=MapperConfig(**config),
        __provider__=dict(
            type=MapperProvider.ELASTICSEARCH,
            parameters={"client": client},
        ),
    )
    return component, client
