# SPDX-License-Identifier: Apache-2.0
"""
Search translators, plain and generative.

Covers:
  • query kwargs per kind (similarity thresholds, alpha, move, target vector)
  • payload validation happens before any connection is opened
  • perObject vs singleItem result shapes, including the empty-result record
  • generative prompts, grouped output on the first record, provider config
"""

import pytest

from tests.mock.mock_weaviate_client import (
    FakeObject,
    Generative,
    Metadata,
    QueryResult,
    make_object,
)
from weaviate_connector.errors import ValidationError
from weaviate_connector.operations.search import MEDIA_TYPES, run_search, translator

pytestmark = pytest.mark.asyncio


async def test_near_text_builds_query_with_thresholds_and_move(make_call, fake_client):
    """Verify that nearText sends thresholds, target vector and move directions."""
    fake_client.respond("collection.query.near_text", QueryResult(objects=[make_object("a")]))
    call = make_call(
        {
            "collection": "Article",
            "queryText": "vector databases",
            "limit": 3,
            "additionalOptions": {
                "certainty": 0.7,
                "distance": 0,
                "alpha": 0.5,
                "targetVector": "body",
                "returnDistance": True,
                "moveAway": '{"force": 0.4, "concepts": ["sql"]}',
            },
        }
    )
    await run_search(call, "nearText")

    kwargs = fake_client.last("collection.query.near_text").kwargs
    assert kwargs["query"] == "vector databases"
    assert kwargs["limit"] == 3
    assert kwargs["certainty"] == 0.7
    assert "distance" not in kwargs
    assert "alpha" not in kwargs
    assert kwargs["target_vector"] == "body"
    assert kwargs["return_metadata"].distance is True
    assert kwargs["move_away"].force == 0.4


async def test_bm25_ignores_similarity_and_target_vector(make_call, fake_client):
    """Verify that bm25 drops similarity thresholds and the target vector."""
    fake_client.respond("collection.query.bm25", QueryResult(objects=[]))
    call = make_call(
        {
            "collection": "Article",
            "query": "weaviate",
            "additionalOptions": {"certainty": 0.9, "targetVector": "body", "returnScore": True},
        }
    )
    await run_search(call, "bm25")
    kwargs = fake_client.last("collection.query.bm25").kwargs
    assert kwargs["limit"] == 10
    assert "certainty" not in kwargs
    assert "target_vector" not in kwargs
    assert kwargs["return_metadata"].score is True


async def test_hybrid_passes_alpha_and_filter(make_call, fake_client):
    """Verify that hybrid sends alpha and the compiled where filter."""
    fake_client.respond("collection.query.hybrid", QueryResult(objects=[make_object("a")]))
    call = make_call(
        {
            "collection": "Article",
            "query": "q",
            "additionalOptions": {
                "alpha": 0,
                "whereFilter": {"path": "lang", "operator": "Equal", "valueText": "en"},
            },
        }
    )
    [record] = await run_search(call, "hybrid")
    kwargs = fake_client.last("collection.query.hybrid").kwargs
    assert kwargs["alpha"] == 0
    assert kwargs["filters"] is not None
    assert record["metadata"]["alpha"] == 0


async def test_near_vector_rejects_object_payload_without_connecting(make_call, factory):
    """Verify that a non-list query vector is rejected before connecting."""
    call = make_call({"collection": "Article", "queryVector": '{"x": 1}'})
    with pytest.raises(ValidationError) as exc_info:
        await run_search(call, "nearVector")
    assert exc_info.value.message == "Query vector must be an array of numbers"
    assert factory.params == []


async def test_near_media_maps_media_type(make_call, fake_client):
    """Verify that nearMedia maps the media type onto the client enum."""
    fake_client.respond("collection.query.near_media", QueryResult(objects=[]))
    call = make_call({"collection": "Article", "mediaData": "AAAA", "mediaType": "video"})
    await run_search(call, "nearMedia")
    kwargs = fake_client.last("collection.query.near_media").kwargs
    assert kwargs["media_type"] is MEDIA_TYPES["video"]
    assert kwargs["media"] == "AAAA"


async def test_near_image_requires_data(make_call):
    """Verify that nearImage requires non-blank image data."""
    with pytest.raises(ValidationError):
        await run_search(make_call({"collection": "Article", "imageData": " "}), "nearImage")


async def test_per_object_records_carry_operation_metadata(make_call, fake_client):
    """Verify that perObject records carry the search operation metadata."""
    fake_client.respond(
        "collection.query.near_object",
        QueryResult(objects=[make_object("a", metadata=Metadata(distance=0.1)), make_object("b")]),
    )
    records = await run_search(
        make_call({"collection": "Article", "objectId": "id-1", "additionalOptions": {"tenant": "acme"}}),
        "nearObject",
    )
    assert len(records) == 2
    assert records[0]["properties"] == {"title": "a"}
    assert records[0]["metadata"]["distance"] == 0.1
    assert records[0]["metadata"]["operation"] == "search:nearObject"
    assert records[1]["metadata"]["resultCount"] == 2
    assert records[1]["metadata"]["tenant"] == "acme"
    assert fake_client.last("collection.query.near_object").tenant == "acme"


async def test_per_object_empty_result_is_a_single_zero_count_record(make_call, fake_client):
    """Verify that an empty perObject search returns one zero-count record."""
    fake_client.respond("collection.query.near_text", QueryResult(objects=[]))
    [record] = await run_search(make_call({"collection": "Article", "queryText": "x"}), "nearText")
    assert record["objects"] == []
    assert record["metadata"]["count"] == 0
    assert record["metadata"]["operation"] == "search:nearText"


async def test_single_item_wraps_all_objects(make_call, fake_client):
    """Verify that singleItem wraps every object in one record."""
    fake_client.respond(
        "collection.query.bm25",
        QueryResult(objects=[make_object("a"), make_object("b")]),
    )
    call = make_call(
        {"collection": "Article", "query": "q", "additionalOptions": {"returnFormat": "singleItem"}}
    )
    [record] = await run_search(call, "bm25")
    assert [o["properties"]["title"] for o in record["objects"]] == ["a", "b"]
    assert record["metadata"]["totalCount"] == 2


async def test_unknown_return_format_is_rejected(make_call):
    """Verify that an unknown return format is rejected."""
    call = make_call({"collection": "Article", "query": "q", "additionalOptions": {"returnFormat": "csv"}})
    with pytest.raises(ValidationError):
        await run_search(call, "bm25")


async def test_generative_requires_a_prompt_before_connecting(make_call, factory):
    """Verify that generative search needs a prompt or task before connecting."""
    call = make_call({"collection": "Article", "queryText": "x", "generativeOptions": {}})
    with pytest.raises(ValidationError) as exc_info:
        await run_search(call, "nearText", generative=True)
    assert "Single Prompt" in exc_info.value.message
    assert factory.params == []


async def test_generative_per_object_with_grouped_output(make_call, fake_client):
    """Verify that generative perObject records carry single and grouped output."""
    objects = [
        FakeObject(uuid="1", properties={"title": "a"}, generative=Generative("summary a")),
        FakeObject(uuid="2", properties={"title": "b"}, generative=Generative("summary b")),
    ]
    fake_client.respond(
        "collection.generate.near_text",
        QueryResult(objects=objects, generative=Generative("overall", metadata={"usage": 12})),
    )
    call = make_call(
        {
            "collection": "Article",
            "queryText": "x",
            "generativeOptions": {"singlePrompt": "Summarize {title}", "groupedTask": "Combine"},
        }
    )
    records = await run_search(call, "nearText", generative=True)

    kwargs = fake_client.last("collection.generate.near_text").kwargs
    assert kwargs["single_prompt"] == "Summarize {title}"
    assert kwargs["grouped_task"] == "Combine"
    assert "generative_provider" not in kwargs
    assert [r["generated"] for r in records] == ["summary a", "summary b"]
    assert records[0]["groupedGenerated"] == "overall"
    assert records[0]["metadata"]["groupedGenerativeMetadata"] == {"usage": 12}
    assert "groupedGenerated" not in records[1]
    assert records[0]["metadata"]["operation"] == "generate:nearText"


async def test_generative_single_item_nests_generated_text(make_call, fake_client):
    """Verify that generative singleItem nests the generated text."""
    fake_client.respond(
        "collection.generate.bm25",
        QueryResult(
            objects=[FakeObject(uuid="1", properties={}, generative=Generative("g1"))],
            generative=Generative("all"),
        ),
    )
    call = make_call(
        {
            "collection": "Article",
            "query": "q",
            "additionalOptions": {"returnFormat": "singleItem"},
            "generativeOptions": {"groupedTask": "Combine"},
        }
    )
    [record] = await run_search(call, "bm25", generative=True)
    assert record["objects"][0]["generative"] == {"text": "g1", "metadata": None}
    assert record["generative"] == {"text": "all", "metadata": None}


async def test_generative_provider_is_sent_as_runtime_config(make_call, fake_client):
    """Verify that a known provider is sent as a runtime generative config."""
    fake_client.respond("collection.generate.hybrid", QueryResult(objects=[]))
    call = make_call(
        {
            "collection": "Article",
            "query": "q",
            "generativeOptions": {
                "singlePrompt": "p",
                "modelProvider": "openai",
                "openaiModel": "gpt-4o",
                "openaiTemperature": 0,
            },
        }
    )
    [record] = await run_search(call, "hybrid", generative=True)
    assert fake_client.last("collection.generate.hybrid").kwargs["generative_provider"] is not None
    assert record["metadata"]["provider"] == "openai"


async def test_unknown_provider_falls_back_to_collection_default(make_call, fake_client):
    """Verify that an unknown provider falls back to the collection default."""
    fake_client.respond("collection.generate.bm25", QueryResult(objects=[]))
    call = make_call(
        {
            "collection": "Article",
            "query": "q",
            "generativeOptions": {"singlePrompt": "p", "modelProvider": "palm"},
        }
    )
    await run_search(call, "bm25", generative=True)
    assert "generative_provider" not in fake_client.last("collection.generate.bm25").kwargs


async def test_translator_binds_kind_and_mode(make_call, fake_client):
    """Verify that translator binds the search kind and generative mode."""
    fake_client.respond("collection.generate.near_vector", QueryResult(objects=[]))
    translate = translator("nearVector", generative=True)
    assert translate.__name__ == "generate_nearVector"
    call = make_call(
        {"collection": "Article", "queryVector": "[0.1, 0.2]", "generativeOptions": {"singlePrompt": "p"}}
    )
    [record] = await translate(call)
    assert fake_client.last("collection.generate.near_vector").kwargs["near_vector"] == [0.1, 0.2]
    assert record["metadata"]["dimensions"] == 2


async def test_generative_provider_missing_required_option_is_a_validation_error(make_call, fake_client):
    """Verify that a provider missing a required option fails validation before searching."""
    call = make_call(
        {
            "collection": "Article",
            "query": "q",
            "generativeOptions": {"singlePrompt": "p", "modelProvider": "databricks"},
        }
    )
    with pytest.raises(ValidationError) as exc_info:
        await run_search(call, "bm25", generative=True)
    assert "databricksEndpoint" in exc_info.value.message
    assert fake_client.calls_to("collection.generate.bm25") == []
