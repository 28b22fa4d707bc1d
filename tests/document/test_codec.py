# type: ignore

import json
from datetime import date, datetime

import pytest

from esmapper import (
    DocumentField,
    IdType,
    MapperConfig,
    SerializationError,
    ValidationError,
    document,
)
from esmapper.core import DataModel
from esmapper.document import DocumentCodec, DocumentInfoRegistry

from ..mapper._data import AuditLog, Product, User


@document(index="event")
class Event(DataModel):
    id: str | None = None
    day: date | None = None
    at: datetime | None = None
    tags: list[str] = []


def get_codec(document_type, **config):
    config = MapperConfig(**config)
    info = DocumentInfoRegistry(default_id_type=config.id_type).get(
        document_type
    )
    return DocumentCodec(info=info, config=config)


def test_field_strategies():
    codec = get_codec(User)
    user = User(id="1", name="", age=None, gender="male", score=None)

    fields = codec.to_wire_fields(user)

    assert fields == {
        "age": None,
        "gender": "male",
        "nick_name": None,
        "created": None,
    }


def test_not_empty_round_trip():
    codec = get_codec(User)
    source = codec.to_wire_fields(User(name=""))

    user = codec.from_wire_hit(source, "7")

    assert "name" not in source
    assert user.name is None
    assert user.id == "7"


def test_to_wire_document():
    codec = get_codec(Product)
    data = codec.to_wire_document(Product(sku="s", title="café", price=2))
    assert isinstance(data, bytes)
    assert json.loads(data) == {"title": "café", "price": 2.0}


def test_date_format_priority():
    at = datetime(2024, 5, 6, 7, 8, 9)
    day = date(2024, 5, 6)
    user = User(created=at)
    event = Event(day=day, at=at)

    assert get_codec(User).to_wire_fields(user)["created"] == (
        "2024-05-06 07:08:09"
    )
    assert get_codec(User, date_format="%d/%m/%Y").to_wire_fields(user)[
        "created"
    ] == ("2024-05-06 07:08:09")
    assert get_codec(Event, date_format="%d/%m/%Y").to_wire_fields(
        event
    ) == {"day": "06/05/2024", "at": "06/05/2024", "tags": []}
    assert get_codec(Event).to_wire_fields(event) == {
        "day": "2024-05-06",
        "at": "2024-05-06T07:08:09",
        "tags": [],
    }


def test_decode_dates():
    codec = get_codec(Event, date_format="%Y%m%d")
    event = codec.from_wire_hit(
        {"day": "20240506", "at": "20240506", "tags": ["x"]}, "e1"
    )
    assert event.day == date(2024, 5, 6)
    assert event.at == datetime(2024, 5, 6)
    assert event.tags == ["x"]

    iso = get_codec(Event).from_wire_hit({"at": "2024-05-06T07:08:09"}, "e2")
    assert iso.at == datetime(2024, 5, 6, 7, 8, 9)


def test_decode_without_identifier():
    codec = get_codec(User)
    user = codec.from_wire_hit({"age": 3}, "9", include_identifier=False)
    assert user.id is None
    assert user.age == 3


def test_decode_failure():
    codec = get_codec(User)
    with pytest.raises(SerializationError):
        codec.from_wire_hit({"age": "not a number"}, "1")
    with pytest.raises(SerializationError):
        get_codec(Event, date_format="%Y").from_wire_hit({"day": "x"}, "1")


def test_encode_wrong_type():
    with pytest.raises(ValidationError):
        get_codec(User).to_wire_fields(Product(sku="1"))


def test_partial_document():
    codec = get_codec(User)
    data = codec.to_partial_document(
        {"id": "1", "nickname": None, "created": datetime(2024, 1, 2)}
    )
    assert json.loads(data) == {
        "nick_name": None,
        "created": "2024-01-02 00:00:00",
    }


def test_generate_id():
    assert get_codec(User).generate_id(User()) is None
    assert get_codec(User, id_type=IdType.UUID).generate_id(User()) != (
        get_codec(User, id_type=IdType.UUID).generate_id(User())
    )
    assert len(get_codec(AuditLog).generate_id(AuditLog())) == 36
    assert get_codec(Product).generate_id(Product(sku="p1")) == "p1"
    with pytest.raises(ValidationError):
        get_codec(Product).generate_id(Product(sku=" "))


def test_assign_and_get_id():
    codec = get_codec(Product)
    product = Product()
    codec.assign_id(product, "p9")
    codec.assign_id(product, None)
    assert product.sku == "p9"
    assert codec.get_id(product) == "p9"


def test_document_field_column_and_exist():
    codec = get_codec(User)
    fields = codec.to_wire_fields(User(nickname="n", remark="local"))
    assert fields["nick_name"] == "n"
    assert "remark" not in fields
    assert "nickname" not in fields
    user = codec.from_wire_hit({"nick_name": "n", "remark": "x"}, "1")
    assert user.nickname == "n"
    assert user.remark is None


def test_document_field_passes_pydantic_options():
    @document()
    class Tagged(DataModel):
        id: str | None = None
        tags: list[str] = DocumentField(default_factory=list)

    tagged = Tagged()
    assert tagged.tags == []
    assert get_codec(Tagged).to_wire_fields(tagged) == {"tags": []}


class Slot(DataModel):
    start: datetime | None = None


@document(index="schedule")
class Schedule(DataModel):
    id: str | None = None
    days: list[date] = []
    slot: Slot | None = None


def test_date_format_applies_to_lists():
    codec = get_codec(Schedule, date_format="%d/%m/%Y")
    schedule = Schedule(
        days=[date(2024, 5, 6), date(2024, 5, 7)],
        slot=Slot(start=datetime(2024, 5, 6, 9, 0)),
    )

    fields = codec.to_wire_fields(schedule)

    assert fields == {
        "days": ["06/05/2024", "07/05/2024"],
        "slot": {"start": "2024-05-06T09:00:00"},
    }
    decoded = codec.from_wire_hit(fields, "s1")
    assert decoded.days == schedule.days
    assert decoded.slot == schedule.slot
