"""Tests for variant generation."""

import asyncio

import pytest

from photo_regen.errors import GenerationError, StorageError
from photo_regen.services.generator import (
    ImageGeneratorService,
    clamp_variant_count,
    variant_path,
)
from photo_regen.services.images import FetchedImage
from photo_regen.services.storage import UniqueMillisClock
from tests.conftest import PUBLIC_BASE, encode_image

SOURCE = FetchedImage(content=b"\xff\xd8\xff-source", mime_type="image/jpeg")


def test_clamp_variant_count() -> None:
    assert clamp_variant_count(1) == 1
    assert clamp_variant_count(2) == 2
    assert clamp_variant_count(4) == 4
    assert clamp_variant_count("4") == 4
    assert clamp_variant_count(3) == 2
    assert clamp_variant_count(0) == 2
    assert clamp_variant_count("many") == 2
    assert clamp_variant_count(None) == 2


def test_variant_path_omits_index_for_single_variant() -> None:
    assert variant_path("a.b@c.de", 123, 1, 1) == "a_b_c_de_gen/gemini_123.jpg"
    assert variant_path("a.b@c.de", 123, 2, 4) == "a_b_c_de_gen/gemini_123_2.jpg"
    assert variant_path(None, 123, 1, 1) == "anonymous_gen/gemini_123.jpg"


def test_single_variant_has_no_suffix(pipeline) -> None:
    variants = asyncio.run(
        pipeline.generator.generate(SOURCE, "prompt", 1, "chef@example.com")
    )

    assert len(variants) == 1
    assert variants[0].url == (
        f"{PUBLIC_BASE}/chef_example_com_gen/gemini_1700000000001.jpg"
    )


def test_requested_three_is_coerced_to_two_suffixed_variants(pipeline) -> None:
    variants = asyncio.run(
        pipeline.generator.generate(SOURCE, "prompt", 3, "chef@example.com")
    )

    assert [variant.url.rsplit("/", 1)[1] for variant in variants] == [
        "gemini_1700000000001_1.jpg",
        "gemini_1700000000001_2.jpg",
    ]
    assert len(pipeline.model.calls) == 2


def test_four_variants_are_all_stored_as_jpeg(pipeline) -> None:
    variants = asyncio.run(
        pipeline.generator.generate(SOURCE, "prompt", 4, "chef@example.com", 3)
    )

    assert len(variants) == 4
    assert all(variant.source_image_index == 3 for variant in variants)
    assert sorted(path.rsplit("_", 1)[1] for path in pipeline.blob_store.objects) == [
        "1.jpg",
        "2.jpg",
        "3.jpg",
        "4.jpg",
    ]
    assert {
        content_type for _, content_type in pipeline.blob_store.objects.values()
    } == {"image/jpeg"}


def test_each_variant_resends_the_source_image(pipeline) -> None:
    asyncio.run(pipeline.generator.generate(SOURCE, "prompt", 2, "chef@example.com"))

    assert [call["image"] for call in pipeline.model.calls] == [SOURCE.content] * 2
    assert all(call["mime_type"] == "image/jpeg" for call in pipeline.model.calls)


def test_partial_call_keeps_completed_variants(pipeline) -> None:
    pipeline.model.fail_on = {2}

    variants = asyncio.run(
        pipeline.generator.generate(SOURCE, "prompt", 4, "chef@example.com")
    )

    assert len(variants) == 1
    assert len(pipeline.model.calls) == 2
    assert len(pipeline.blob_store.objects) == 1


def test_first_variant_failure_propagates(pipeline) -> None:
    pipeline.model.fail_on = {1}

    with pytest.raises(GenerationError):
        asyncio.run(pipeline.generator.generate(SOURCE, "prompt", 2, "x@example.com"))

    assert len(pipeline.model.calls) == 1


def test_storage_failure_propagates_without_variants(pipeline) -> None:
    pipeline.blob_store.fail_prefixes = ("gemini_",)

    with pytest.raises(StorageError):
        asyncio.run(pipeline.generator.generate(SOURCE, "prompt", 2, "x@example.com"))


def test_portrait_source_requests_portrait_output(pipeline) -> None:
    source = FetchedImage(content=encode_image(60, 90), mime_type="image/png")

    asyncio.run(pipeline.generator.generate(source, "prompt", 1, "x@example.com"))

    assert pipeline.model.calls[0]["aspect_ratio"] == "9:16"
    assert pipeline.model.calls[0]["mime_type"] == "image/png"


def test_unexpected_error_after_first_variant_keeps_completed_variants(
    pipeline,
) -> None:
    pipeline.model.raise_on = {2: ConnectionError("connection reset by peer")}

    variants = asyncio.run(
        pipeline.generator.generate(SOURCE, "prompt", 2, "chef@example.com")
    )

    assert len(variants) == 1
    assert len(pipeline.blob_store.objects) == 1


def test_unexpected_error_on_first_variant_propagates(pipeline) -> None:
    pipeline.model.raise_on = {1: ConnectionError("connection reset by peer")}

    with pytest.raises(ConnectionError):
        asyncio.run(pipeline.generator.generate(SOURCE, "prompt", 2, "x@example.com"))


def test_unique_clock_never_repeats_within_a_millisecond(monkeypatch) -> None:
    monkeypatch.setattr("photo_regen.services.storage.time.time", lambda: 1700000000.0)
    clock = UniqueMillisClock()

    assert [clock(), clock(), clock()] == [
        1700000000000,
        1700000000001,
        1700000000002,
    ]


def test_default_clock_gives_same_owner_generations_distinct_paths(pipeline) -> None:
    generator = ImageGeneratorService(
        client=pipeline.model, blob_store=pipeline.blob_store
    )

    async def generate_both() -> list[list[object]]:
        return await asyncio.gather(
            generator.generate(SOURCE, "prompt", 2, "chef@example.com", 0),
            generator.generate(SOURCE, "prompt", 2, "chef@example.com", 1),
        )

    first, second = asyncio.run(generate_both())

    urls = [variant.url for variant in [*first, *second]]
    assert len(set(urls)) == 4
    assert len(pipeline.blob_store.objects) == 4
