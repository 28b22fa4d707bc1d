# type: ignore

import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime

import pytest

from esmapper import (
    BatchFailureError,
    ConditionList,
    IndexParam,
    IndexSettings,
    NotFoundError,
    TransportError,
    UpdateConditionList,
    ValidationError,
)
from esmapper.document import DocumentInfoRegistry

from ._data import AuditLog, Product, User, get_users
from ._providers import get_component


def test_insert_backend_id():
    mapper, client = get_component(User)
    user = get_users(1)[0]

    result = mapper.insert(user).result

    assert result.count == 1
    assert result.ids[0] is not None
    assert user.id == result.ids[0]
    name, args = client.calls[-1]
    assert name == "index"
    assert args["id"] is None
    assert args["index"] == "user_document"
    assert "id" not in args["document"]
    assert "remark" not in args["document"]
    assert args["document"]["nick_name"] == "nick0"
    assert args["document"]["created"] == "2024-01-01 08:30:00"


def test_insert_without_write_back():
    mapper, _ = get_component(User, write_back_ids=False)
    user = get_users(1)[0]

    result = mapper.insert(user).result

    assert result.ids[0] is not None
    assert user.id is None


def test_insert_uuid_id():
    mapper, client = get_component(AuditLog)
    log = AuditLog(message="started")

    result = mapper.insert(log).result

    assert result.count == 1
    assert len(log.id) == 36
    assert client.calls[-1][1]["id"] == log.id
    assert client.documents["audit_log"][log.id] == {"message": "started"}


def test_insert_custom_id_requires_key():
    mapper, client = get_component(Product)

    with pytest.raises(ValidationError):
        mapper.insert(Product(title="lamp"))
    assert client.calls == []


def test_custom_id_round_trip():
    mapper, _ = get_component(Product)
    product = Product(sku="sku-42", title="lamp", price=19.5)

    mapper.insert(product)
    found = mapper.select_by_id("sku-42").result

    assert found.sku == "sku-42"
    assert found == product


def test_insert_refresh_policy():
    mapper, client = get_component(Product, refresh="wait_for")

    mapper.insert(Product(sku="a", title="lamp"))
    mapper.insert_batch([Product(sku="b", title="desk")])

    assert client.calls[0][1]["refresh"] == "wait_for"
    assert client.calls[1][1]["refresh"] == "wait_for"


def test_insert_batch():
    mapper, client = get_component(User)
    users = get_users(10)

    result = mapper.insert_batch(users).result

    assert result.count == 10
    assert [u.id for u in users] == result.ids
    assert client.call_names() == ["bulk"]
    assert len(client.documents["user_document"]) == 10


def test_insert_batch_empty():
    mapper, client = get_component(User)

    result = mapper.insert_batch([]).result

    assert result.count == 0
    assert client.calls == []


def test_insert_batch_item_failure():
    mapper, client = get_component(User)
    client.fail_positions = {3}
    users = get_users(10)

    with pytest.raises(BatchFailureError) as e:
        mapper.insert_batch(users)

    assert e.value.count == 0
    assert len(e.value.failures) == 1
    assert e.value.failures[0]["position"] == 3
    assert all(u.id is None for u in users)


def test_update_batch_by_id_item_failure():
    mapper, client = get_component(User)
    users = get_users(10)
    mapper.insert_batch(users)
    client.fail_positions = {3}
    for user in users:
        user.age = 50

    result = mapper.update_batch_by_id(users).result

    assert result.count == 9
    assert result.ids[3] is None


def test_update_batch_by_id_requires_ids():
    mapper, client = get_component(User)

    with pytest.raises(ValidationError):
        mapper.update_batch_by_id(get_users(2))
    assert client.calls == []


def test_update_by_id():
    mapper, client = get_component(User)
    user = get_users(1)[0]
    mapper.insert(user)
    user.age = 99
    user.name = ""

    result = mapper.update_by_id(user).result

    assert result.count == 1
    stored = client.documents["user_document"][user.id]
    assert stored["age"] == 99
    assert stored["name"] == "user0"
    assert "name" not in client.calls[-1][1]["doc"]


def test_update_by_id_missing_document():
    mapper, _ = get_component(User)

    with pytest.raises(NotFoundError):
        mapper.update_by_id(User(id="missing", age=1))


def test_update_by_conditions_with_entity():
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(6))

    result = mapper.update(
        User(gender="other"), ConditionList().ge("age", 23)
    ).result

    assert result.count == 3
    assert client.call_names()[-2:] == ["search", "bulk"]
    search_args = client.calls[-2][1]
    assert search_args["source"] is False
    genders = sorted(
        d["gender"] for d in client.documents["user_document"].values()
    )
    assert genders == ["female", "male", "male", "other", "other", "other"]


def test_update_by_conditions_with_fields():
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(4))

    result = mapper.update(
        conditions=UpdateConditionList()
        .eq("gender", "male")
        .set("nickname", None)
        .set("age", 1)
    ).result

    assert result.count == 2
    updated = [
        d
        for d in client.documents["user_document"].values()
        if d["gender"] == "male"
    ]
    assert all(d["nick_name"] is None and d["age"] == 1 for d in updated)


def test_update_by_conditions_without_fields():
    mapper, _ = get_component(User)

    with pytest.raises(ValidationError):
        mapper.update(conditions=ConditionList().eq("age", 1))


def test_delete_by_conditions():
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(5))

    result = mapper.delete(ConditionList().eq("gender", "female")).result

    assert result.count == 2
    assert len(client.documents["user_document"]) == 3
    assert client.call_names()[-2:] == ["search", "bulk"]


def test_delete_by_conditions_no_match():
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(2))

    result = mapper.delete(ConditionList().eq("gender", "other")).result

    assert result.count == 0
    assert client.call_names()[-1] == "search"


def test_delete_by_id():
    mapper, _ = get_component(User)
    user = get_users(1)[0]
    mapper.insert(user)

    assert mapper.delete_by_id(user.id).result.count == 1
    assert mapper.delete_by_id(user.id).result.count == 0


@pytest.mark.parametrize("id", [None, "", "  "])
def test_delete_by_id_blank(id):
    mapper, client = get_component(User)

    with pytest.raises(ValidationError):
        mapper.delete_by_id(id)
    assert client.calls == []


def test_delete_batch_by_ids():
    mapper, client = get_component(User)
    users = get_users(3)
    mapper.insert_batch(users)

    result = mapper.delete_batch_by_ids(
        [users[0].id, "missing", users[2].id]
    ).result

    assert result.count == 2
    assert list(client.documents["user_document"]) == [users[1].id]


@pytest.mark.parametrize("ids", [[], ["a", ""]])
def test_delete_batch_by_ids_invalid(ids):
    mapper, client = get_component(User)

    with pytest.raises(ValidationError):
        mapper.delete_batch_by_ids(ids)
    assert client.calls == []


def test_select_list():
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(10))

    users = mapper.select_list(
        ConditionList()
        .eq("gender", "male")
        .between("age", 22, 26)
        .order_by_desc("age")
    ).result

    assert [u.age for u in users] == [26, 24, 22]
    assert all(u.id is not None for u in users)
    assert users[0].created == datetime(2024, 1, 7, 8, 30, 0)
    assert users[0].nickname == "nick6"
    assert client.calls[-1][1]["size"] == 10000


def test_select_list_projection_without_id():
    mapper, _ = get_component(User)
    mapper.insert_batch(get_users(2))

    users = mapper.select_list(ConditionList().select("name", "age")).result

    assert len(users) == 2
    assert all(u.id is None and u.gender is None for u in users)


def test_select_list_exclude_keeps_id():
    mapper, _ = get_component(User)
    mapper.insert_batch(get_users(2))

    users = mapper.select_list(ConditionList().exclude("gender")).result

    assert all(u.id is not None and u.gender is None for u in users)


def test_select_list_or_chain():
    mapper, _ = get_component(User)
    mapper.insert_batch(get_users(10))

    users = mapper.select_list(
        ConditionList().or_().eq("age", 21).eq("age", 25)
    ).result

    assert sorted(u.age for u in users) == [21, 25]


def test_select_one():
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(3))
    conditions = ConditionList().order_by_asc("age")

    user = mapper.select_one(conditions).result

    assert user.age == 20
    assert client.calls[-1][1]["size"] == 1
    assert conditions.size is None
    assert mapper.select_one(ConditionList().eq("age", 1)).result is None


def test_select_by_id_missing():
    mapper, _ = get_component(User)

    with pytest.raises(NotFoundError):
        mapper.select_by_id("missing")


def test_select_batch_by_ids():
    mapper, _ = get_component(Product)
    mapper.insert_batch(
        [Product(sku=f"s{i}", title=f"t{i}") for i in range(4)]
    )

    products = mapper.select_batch_by_ids(["s1", "s3", "s9"]).result

    assert sorted(p.sku for p in products) == ["s1", "s3"]
    with pytest.raises(ValidationError):
        mapper.select_batch_by_ids([])


def test_select_count():
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(10))

    count = mapper.select_count(ConditionList().lt("age", 25)).result

    assert count == 5
    assert client.call_names()[-1] == "count"


def test_search():
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(4))

    result = mapper.search(
        ConditionList().eq("gender", "male").limit(1).offset(1)
    ).result

    assert result.total == 2
    assert len(result.hits) == 1
    args = client.calls[-1][1]
    assert args["from_"] == 1
    assert args["size"] == 1


def test_get_source():
    mapper, client = get_component(User)

    source = mapper.get_source(
        ConditionList().eq("age", 1).select("name")
    ).result

    assert json.loads(source) == {
        "query": {"bool": {"must": [{"term": {"age": 1}}]}},
        "size": 10000,
        "_source": {"includes": ["name"]},
    }
    assert client.calls == []


def test_get_source_with_dates():
    mapper, _ = get_component(User)

    source = mapper.get_source(
        ConditionList()
        .gt("created", datetime(2024, 1, 1, 8, 30))
        .between("birthday", date(2000, 1, 1), date(2000, 12, 31))
    ).result

    assert json.loads(source)["query"]["bool"]["must"] == [
        {"range": {"created": {"gt": "2024-01-01T08:30:00"}}},
        {
            "range": {
                "birthday": {"gte": "2000-01-01", "lte": "2000-12-31"}
            }
        },
    ]


def test_metadata_resolved_once_under_concurrency(monkeypatch):
    calls = []
    resolve = DocumentInfoRegistry._resolve

    def slow_resolve(self, document_type):
        calls.append(document_type)
        time.sleep(0.05)
        return resolve(self, document_type)

    monkeypatch.setattr(DocumentInfoRegistry, "_resolve", slow_resolve)
    mapper, client = get_component(User)
    mapper.insert_batch(get_users(3))
    calls.clear()
    mapper, _ = get_component(User, client=client)
    barrier = threading.Barrier(8)

    def count(_):
        barrier.wait()
        return mapper.select_count(ConditionList()).result

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(count, range(8)))

    assert results == [3] * 8
    assert calls == [User]


def test_log_dsl(caplog):
    mapper, _ = get_component(User, log_dsl=True)

    with caplog.at_level("INFO", logger="esmapper"):
        mapper.select_list(ConditionList().eq("age", 1))

    assert '"term": {"age": 1}' in caplog.text


def test_log_dsl_with_dates(caplog):
    mapper, client = get_component(User, log_dsl=True)

    with caplog.at_level("INFO", logger="esmapper"):
        result = mapper.select_list(
            ConditionList().gt("created", datetime(2024, 1, 1))
        ).result

    assert result == []
    assert '"gt": "2024-01-01T00:00:00"' in caplog.text
    assert client.call_names() == ["search"]


def test_native_response():
    mapper, _ = get_component(User)
    response = mapper.insert(get_users(1)[0])
    assert response.native is None


def test_transport_error():
    mapper, client = get_component(User)
    client.unavailable = True

    with pytest.raises(TransportError) as e:
        mapper.select_list(ConditionList())
    assert e.value.cause is not None

    with pytest.raises(TransportError):
        mapper.insert_batch(get_users(2))


def test_index_management():
    mapper, client = get_component(User)

    assert mapper.exists_index().result is False
    result = mapper.create_index(
        params=[
            IndexParam(field_name="name", field_type="keyword"),
            IndexParam(field_name="age", field_type="integer"),
        ],
        settings=IndexSettings(number_of_shards=1, number_of_replicas=0),
    ).result
    assert result.acknowledged is True
    assert result.index == "user_document"
    assert mapper.exists_index().result is True
    assert client.settings["user_document"] == {
        "number_of_shards": 1,
        "number_of_replicas": 0,
    }

    result = mapper.update_index(
        params=[IndexParam(field_name="gender", field_type="keyword")]
    ).result
    assert result.acknowledged is True
    assert set(client.mappings["user_document"]["properties"]) == {
        "name",
        "age",
        "gender",
    }
    assert mapper.update_index().result.acknowledged is False

    assert mapper.delete_index().result.acknowledged is True
    assert mapper.exists_index().result is False
    with pytest.raises(NotFoundError):
        mapper.delete_index()
    with pytest.raises(NotFoundError):
        mapper.update_index(mapping={"properties": {}})


def test_create_index_raw_mapping():
    mapper, client = get_component(User)
    mapping = {"properties": {"name": {"type": "text"}}}

    mapper.create_index(index="custom", mapping=mapping)

    assert client.mappings["custom"] == mapping


def test_close():
    mapper, client = get_component(User)
    mapper.close()
    assert client.closed is True
