"""Tests for the generation stores."""

import json

import pytest

from flashgen.persistence import (
    GenerationErrorRecord,
    GenerationRecord,
    GenerationStore,
    InMemoryGenerationStore,
    JsonlGenerationStore,
)
from flashgen.schema import FlashcardProposal


@pytest.fixture
def record():
    return GenerationRecord(
        user_id="user-1",
        model="mock-ai-v1",
        generated_count=3,
        source_text_hash="abc123",
        source_text_length=1500,
        generation_duration=420,
    )


@pytest.fixture
def error_record():
    return GenerationErrorRecord(
        user_id="user-1",
        error_code="max_retries_exceeded:rate_limit",
        error_message="Request failed after 3 attempts: Rate limit exceeded",
        model="openai/gpt-4-turbo",
        source_text_hash="abc123",
        source_text_length=1500,
        generation_duration=7000,
    )


@pytest.fixture
def proposals():
    return [FlashcardProposal(front=f"Q{i}", back=f"A{i}") for i in range(3)]


@pytest.mark.parametrize("store_type", [InMemoryGenerationStore, JsonlGenerationStore])
def test_stores_satisfy_protocol(store_type, tmp_path):
    store = store_type() if store_type is InMemoryGenerationStore else store_type(tmp_path)

    assert isinstance(store, GenerationStore)


class TestInMemoryStore:

    def test_sequential_ids(self, record):
        store = InMemoryGenerationStore()

        assert store.save_generation(record) == 1
        assert store.save_generation(record) == 2

    def test_errors_and_flashcards(self, error_record, proposals):
        store = InMemoryGenerationStore()

        store.save_generation_error(error_record)
        store.save_flashcards(proposals, 7, "user-1")

        assert store.errors == [error_record]
        assert len(store.flashcards) == 3
        assert store.flashcards[0] == {
            "front": "Q0",
            "back": "A0",
            "source": "ai-generated",
            "generation_id": 7,
            "user_id": "user-1",
        }


class TestJsonlStore:

    def test_generation_ids_follow_line_count(self, tmp_path, record):
        store = JsonlGenerationStore(tmp_path / "data")

        assert store.save_generation(record) == 1
        assert store.save_generation(record) == 2

        # a fresh instance continues from the file
        assert JsonlGenerationStore(tmp_path / "data").save_generation(record) == 3

    def test_generation_row(self, tmp_path, record):
        store = JsonlGenerationStore(tmp_path)
        store.save_generation(record)

        lines = (tmp_path / "generations.jsonl").read_text().splitlines()
        row = json.loads(lines[0])
        assert row["id"] == 1
        assert row["user_id"] == "user-1"
        assert row["source_text_length"] == 1500
        assert row["generation_duration"] == 420
        assert "created_at" in row

    def test_error_rows(self, tmp_path, error_record):
        store = JsonlGenerationStore(tmp_path)
        store.save_generation_error(error_record)

        errors = store.load_errors()
        assert len(errors) == 1
        assert errors[0]["error_code"] == "max_retries_exceeded:rate_limit"
        assert store.load_generations() == []

    def test_flashcard_rows(self, tmp_path, proposals):
        store = JsonlGenerationStore(tmp_path)
        store.save_flashcards(proposals, 4, "user-2")

        rows = store.load_flashcards()
        assert [r["front"] for r in rows] == ["Q0", "Q1", "Q2"]
        assert {r["generation_id"] for r in rows} == {4}
        assert {r["user_id"] for r in rows} == {"user-2"}
