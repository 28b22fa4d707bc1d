# type: ignore

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from esmapper import IdType, ValidationError, document
from esmapper.core import DataModel
from esmapper.document import (
    DocumentInfoRegistry,
    FieldStrategy,
    to_snake_case,
)

from ..mapper._data import AuditLog, BlogPost, Product, User


def test_index_names():
    registry = DocumentInfoRegistry()
    assert registry.get_index_name(User) == "user_document"
    assert registry.get_index_name(AuditLog) == "audit_log"
    assert registry.get_index_name(BlogPost) == "blog_post"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("User", "user"),
        ("BlogPost", "blog_post"),
        ("HTTPRequestLog", "http_request_log"),
        ("Order2Item", "order2_item"),
    ],
)
def test_to_snake_case(name, expected):
    assert to_snake_case(name) == expected


def test_key_field_and_id_type():
    registry = DocumentInfoRegistry()
    assert registry.get_key_field(User) == "id"
    assert registry.get_key_field(Product) == "sku"
    assert registry.get_id_type(User) == IdType.BACKEND
    assert registry.get_id_type(Product) == IdType.CUSTOM
    assert registry.get_id_type(AuditLog) == IdType.UUID

    registry = DocumentInfoRegistry(default_id_type=IdType.UUID)
    assert registry.get_id_type(User) == IdType.UUID
    assert registry.get_id_type(Product) == IdType.CUSTOM


def test_field_list():
    fields = {f.name: f for f in DocumentInfoRegistry().get_field_list(User)}

    assert list(fields) == [
        "name",
        "age",
        "gender",
        "nickname",
        "score",
        "created",
    ]
    assert fields["name"].strategy == FieldStrategy.NOT_EMPTY
    assert fields["score"].strategy == FieldStrategy.NOT_NULL
    assert fields["age"].strategy == FieldStrategy.DEFAULT
    assert fields["nickname"].column == "nick_name"
    assert fields["created"].date_format == "%Y-%m-%d %H:%M:%S"
    assert fields["created"].temporal == "datetime"
    assert fields["age"].temporal is None


def test_computed_once():
    registry = DocumentInfoRegistry()
    assert registry.get(User) is registry.get(User)
    assert DocumentInfoRegistry().get(User) is not registry.get(User)


def test_get_column():
    info = DocumentInfoRegistry().get(User)
    assert info.get_column("nickname") == "nick_name"
    assert info.get_column("age") == "age"
    assert info.get_column("unknown") == "unknown"


def test_missing_key_field():
    @document(id_field="code")
    class Country(DataModel):
        name: str | None = None

    with pytest.raises(ValidationError):
        DocumentInfoRegistry().get(Country)


def test_not_a_model():
    with pytest.raises(ValidationError):
        DocumentInfoRegistry().get(dict)


class SlowRegistry(DocumentInfoRegistry):
    def __init__(self):
        super().__init__()
        self.resolved = []

    def _resolve(self, document_type):
        self.resolved.append(document_type)
        time.sleep(0.05)
        return super()._resolve(document_type)


def test_concurrent_first_use_resolves_once():
    registry = SlowRegistry()
    barrier = threading.Barrier(8)

    def get(_):
        barrier.wait()
        return registry.get(User)

    with ThreadPoolExecutor(max_workers=8) as executor:
        infos = list(executor.map(get, range(8)))

    assert registry.resolved == [User]
    assert all(info is infos[0] for info in infos)
