"""Tests for the flashcard output contract."""

import pytest

from flashgen import schema
from flashgen.errors import SchemaError
from flashgen.schema import FlashcardProposal


def test_describe_shape():
    """Schema exposes flashcards with length and count bounds."""
    described = schema.describe()
    flashcards = described["properties"]["flashcards"]

    assert described["required"] == ["flashcards"]
    assert flashcards["minItems"] == 3
    assert flashcards["maxItems"] == 7
    assert flashcards["items"]["properties"]["front"]["maxLength"] == 200
    assert flashcards["items"]["properties"]["back"]["maxLength"] == 500


@pytest.mark.parametrize("count", [3, 5, 7])
def test_valid_payload_keeps_count_and_order(make_payload, count):
    """Well-formed payloads come back unchanged in count and order."""
    proposals = schema.validate(make_payload(count))

    assert len(proposals) == count
    assert [p.front for p in proposals] == [f"What is photosynthesis? {i}" for i in range(count)]
    assert all(p.source == "ai-generated" for p in proposals)


def test_fields_are_trimmed():
    """Surrounding whitespace is removed from both sides."""
    payload = {
        "flashcards": [{"front": "  Q  ", "back": "\tA\n"}] * 3
    }

    proposals = schema.validate(payload)

    assert proposals[0] == FlashcardProposal(front="Q", back="A")


def test_more_than_seven_items_truncated(make_payload):
    """Only the first seven items survive, in their original order."""
    proposals = schema.validate(make_payload(10))

    assert len(proposals) == 7
    assert [p.front for p in proposals] == [f"What is photosynthesis? {i}" for i in range(7)]


def test_too_few_items(make_payload):
    """Fewer than three items is rejected."""
    with pytest.raises(SchemaError) as exc_info:
        schema.validate(make_payload(2))

    assert exc_info.value.kind == "too_few"
    assert exc_info.value.code == "too_few"


@pytest.mark.parametrize("payload", [{}, {"cards": []}, {"flashcards": "nope"}, [], None])
def test_missing_flashcards_field(payload):
    """Payload without a flashcards list is rejected."""
    with pytest.raises(SchemaError) as exc_info:
        schema.validate(payload)

    assert exc_info.value.kind == "missing_field"


@pytest.mark.parametrize("item", [
    {"front": "   ", "back": "Answer"},
    {"front": "Question", "back": ""},
    {"front": "Question"},
    {"front": 42, "back": "Answer"},
    "not an object",
])
def test_empty_field(make_payload, item):
    """Blank, missing or non-string sides are rejected."""
    payload = make_payload(3)
    payload["flashcards"][1] = item

    with pytest.raises(SchemaError) as exc_info:
        schema.validate(payload)

    assert exc_info.value.kind == "empty_field"


def test_long_front_truncated_to_limit(make_payload):
    """A 250-character front is cut to exactly 200 characters."""
    payload = make_payload(3)
    payload["flashcards"][0]["front"] = "x" * 250

    proposals = schema.validate(payload)

    assert len(proposals[0].front) == 200
    assert proposals[0].front == "x" * 200


def test_long_back_truncated_to_limit(make_payload):
    """A long back is cut to 500 characters."""
    payload = make_payload(3)
    payload["flashcards"][2]["back"] = "y" * 800

    proposals = schema.validate(payload)

    assert len(proposals[2].back) == 500


def test_raw_item_count(make_payload):
    assert schema.raw_item_count(make_payload(9)) == 9
    assert schema.raw_item_count({"flashcards": None}) == 0
    assert schema.raw_item_count("text") == 0
