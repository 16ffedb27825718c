# SPDX-License-Identifier: Apache-2.0
"""
Object translators against the recording client.

Covers:
  • insert with tenant, explicit id, and an empty vector left to the vectorizer
  • insertMany partial failure reported as data
  • getById not-found, getMany defaults and metadata flags
  • deleteMany success semantics and dry runs
"""

import json
import uuid
from types import SimpleNamespace

import pytest

from tests.mock.mock_weaviate_client import FakeObject, Metadata, QueryResult
from weaviate_connector.errors import TransportError, ValidationError
from weaviate_connector.operations import objects

pytestmark = pytest.mark.asyncio

NEW_ID = uuid.UUID("aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee")


async def test_insert_scopes_tenant_and_returns_new_id(make_call, fake_client):
    """Verify that insert scopes the tenant and returns the new object id."""
    fake_client.respond("collection.data.insert", NEW_ID)
    call = make_call(
        {
            "collection": "Article",
            "properties": '{"title": "Hello"}',
            "vector": "[0.1, 0.2]",
            "objectId": "",
            "additionalOptions": {"tenant": "acme"},
        }
    )
    [record] = await objects.insert(call)

    sent = fake_client.last("collection.data.insert")
    assert sent.tenant == "acme"
    assert sent.kwargs == {"properties": {"title": "Hello"}, "vector": [0.1, 0.2]}
    assert record["id"] == str(NEW_ID)
    assert record["metadata"]["tenant"] == "acme"


async def test_insert_omits_empty_vector(make_call, fake_client):
    """Verify that insert omits an empty vector."""
    call = make_call(
        {"collection": "Article", "properties": {"title": "x"}, "vector": "[]", "objectId": "id-1"}
    )
    await objects.insert(call)
    sent = fake_client.last("collection.data.insert")
    assert "vector" not in sent.kwargs
    assert sent.kwargs["uuid"] == "id-1"
    assert sent.tenant is None


async def test_insert_rejects_non_object_properties(make_call, factory):
    """Verify that insert rejects properties that are not a JSON object."""
    with pytest.raises(ValidationError):
        await objects.insert(make_call({"collection": "Article", "properties": "[1, 2]"}))
    assert factory.params == []


async def test_insert_many_all_succeed(make_call, fake_client):
    """Verify that insertMany reports every object as inserted."""
    ids = {0: uuid.uuid4(), 1: uuid.uuid4(), 2: uuid.uuid4()}
    fake_client.respond("collection.data.insert_many", SimpleNamespace(uuids=ids, errors={}))
    payload = [{"title": "a"}, {"title": "b"}, {"properties": {"title": "c"}, "vector": [1.0]}]
    [record] = await objects.insert_many(make_call({"collection": "Article", "objects": json.dumps(payload)}))

    batch = fake_client.last("collection.data.insert_many").args[0]
    assert [o.properties for o in batch] == [{"title": "a"}, {"title": "b"}, {"title": "c"}]
    assert batch[2].vector == [1.0]
    assert record["success"] is True
    assert (record["inserted"], record["errors"]) == (3, 0)
    assert set(record["uuids"]) == {"0", "1", "2"}


async def test_insert_many_partial_failure_is_data(make_call, fake_client):
    """Verify that insertMany reports partial failures as data."""
    fake_client.respond(
        "collection.data.insert_many",
        SimpleNamespace(
            uuids={0: uuid.uuid4(), 2: uuid.uuid4()},
            errors={1: SimpleNamespace(message="invalid property type")},
        ),
    )
    payload = [{"title": "a"}, {"title": 5}, {"title": "c"}]
    [record] = await objects.insert_many(make_call({"collection": "Article", "objects": payload}))
    assert record["success"] is False
    assert (record["inserted"], record["errors"]) == (2, 1)
    assert record["errorDetails"] == {"1": "invalid property type"}


async def test_insert_many_requires_array(make_call):
    """Verify that insertMany requires a JSON array of objects."""
    with pytest.raises(ValidationError) as exc_info:
        await objects.insert_many(make_call({"collection": "Article", "objects": '{"a": 1}'}))
    assert exc_info.value.message == "Objects must be an array"


async def test_get_by_id_includes_vectors_on_request(make_call, fake_client):
    """Verify that getById returns vectors when asked."""
    fake_client.respond(
        "collection.query.fetch_object_by_id",
        FakeObject(uuid=NEW_ID, properties={"title": "x"}, vector={"default": [0.5]}),
    )
    call = make_call(
        {"collection": "Article", "objectId": str(NEW_ID), "additionalOptions": {"includeVectors": True}}
    )
    [record] = await objects.get_by_id(call)
    assert record["id"] == str(NEW_ID)
    assert record["vectors"] == {"default": [0.5]}
    assert fake_client.last("collection.query.fetch_object_by_id").kwargs == {"include_vector": True}


async def test_get_by_id_missing_object_is_not_found(make_call, fake_client):
    """Verify that getById on a missing object raises NOT_FOUND."""
    fake_client.respond("collection.query.fetch_object_by_id", None)
    with pytest.raises(TransportError) as exc_info:
        await objects.get_by_id(make_call({"collection": "Article", "objectId": "nope"}))
    assert exc_info.value.code == "NOT_FOUND"
    assert exc_info.value.status_code == 404


async def test_get_many_defaults_and_metadata(make_call, fake_client):
    """Verify that getMany applies its defaults and returns object metadata."""
    fake_client.respond(
        "collection.query.fetch_objects",
        QueryResult(objects=[FakeObject(uuid="1", properties={"title": "a"}, metadata=Metadata())]),
    )
    call = make_call(
        {
            "collection": "Article",
            "additionalOptions": {"returnProperties": "title", "returnCreationTime": True},
        }
    )
    [record] = await objects.get_many(call)

    kwargs = fake_client.last("collection.query.fetch_objects").kwargs
    assert kwargs["limit"] == 50
    assert kwargs["return_properties"] == ["title"]
    assert kwargs["return_metadata"].creation_time is True
    assert "offset" not in kwargs
    assert record["metadata"]["resultCount"] == 1
    assert record["metadata"]["offset"] == 0


async def test_get_many_empty_result(make_call, fake_client):
    """Verify that getMany with no objects returns the empty record."""
    fake_client.respond("collection.query.fetch_objects", QueryResult(objects=[]))
    assert await objects.get_many(make_call({"collection": "Article", "limit": 5})) == []


async def test_delete_by_id(make_call, fake_client):
    """Verify that deleteById deletes the object and reports success."""
    [record] = await objects.delete_by_id(make_call({"collection": "Article", "objectId": "id-9"}))
    assert fake_client.last("collection.data.delete_by_id").args == ("id-9",)
    assert record["message"] == "Object id-9 deleted successfully"


async def test_delete_many_reports_failures(make_call, fake_client):
    """Verify that deleteMany reports failures and is unsuccessful when any fail."""
    fake_client.respond(
        "collection.data.delete_many",
        SimpleNamespace(successful=3, failed=1, matches=4),
    )
    call = make_call(
        {
            "collection": "Article",
            "whereFilter": '{"path": "lang", "operator": "Equal", "valueText": "de"}',
            "dryRun": True,
        }
    )
    [record] = await objects.delete_many(call)
    sent = fake_client.last("collection.data.delete_many")
    assert sent.kwargs["dry_run"] is True
    assert sent.kwargs["where"] is not None
    assert record["success"] is False
    assert (record["deleted"], record["failed"], record["matches"]) == (3, 1, 4)


async def test_delete_many_requires_where_filter(make_call, factory):
    """Verify that deleteMany requires a where filter."""
    with pytest.raises(ValidationError):
        await objects.delete_many(make_call({"collection": "Article", "whereFilter": ""}))
    assert factory.params == []
