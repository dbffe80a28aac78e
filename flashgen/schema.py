"""Output contract for AI-generated flashcards."""

from dataclasses import dataclass
from typing import Any

from flashgen.errors import SchemaError

FRONT_MAX_LENGTH = 200
BACK_MAX_LENGTH = 500
MIN_ITEMS = 3
MAX_ITEMS = 7

AI_SOURCE = "ai-generated"


@dataclass(frozen=True)
class FlashcardProposal:
    front: str
    back: str
    source: str = AI_SOURCE

    def to_dict(self) -> dict[str, str]:
        return {"front": self.front, "back": self.back, "source": self.source}


def describe() -> dict[str, Any]:
    """JSON schema for a flashcard-proposal response."""
    return {
        "type": "object",
        "properties": {
            "flashcards": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "front": {"type": "string", "maxLength": FRONT_MAX_LENGTH},
                        "back": {"type": "string", "maxLength": BACK_MAX_LENGTH},
                    },
                    "required": ["front", "back"],
                },
                "minItems": MIN_ITEMS,
                "maxItems": MAX_ITEMS,
            },
        },
        "required": ["flashcards"],
    }


def raw_item_count(raw: Any) -> int:
    """Number of items under ``flashcards`` before validation, 0 if absent."""
    if isinstance(raw, dict) and isinstance(raw.get("flashcards"), list):
        return len(raw["flashcards"])
    return 0


def validate(raw: Any) -> list[FlashcardProposal]:
    """Normalize a decoded payload into flashcard proposals.

    Items beyond ``MAX_ITEMS`` are dropped, keeping the first ones in their
    original order. Each side is trimmed and cut to its maximum length.

    Raises:
        SchemaError: ``missing_field`` if ``flashcards`` is absent or not a
            list, ``empty_field`` if a side is missing or blank, ``too_few``
            if fewer than ``MIN_ITEMS`` cards remain
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("flashcards"), list):
        raise SchemaError(
            SchemaError.MISSING_FIELD,
            "Response is missing the 'flashcards' list",
        )

    proposals = []
    for index, item in enumerate(raw["flashcards"][:MAX_ITEMS]):
        if not isinstance(item, dict):
            raise SchemaError(
                SchemaError.EMPTY_FIELD,
                f"Flashcard {index} is not an object",
            )
        front = _clean(item.get("front"), FRONT_MAX_LENGTH)
        back = _clean(item.get("back"), BACK_MAX_LENGTH)
        if not front or not back:
            raise SchemaError(
                SchemaError.EMPTY_FIELD,
                f"Flashcard {index} has an empty front or back",
            )
        proposals.append(FlashcardProposal(front=front, back=back))

    if len(proposals) < MIN_ITEMS:
        raise SchemaError(
            SchemaError.TOO_FEW,
            f"Expected at least {MIN_ITEMS} flashcards, got {len(proposals)}",
        )

    return proposals


def _clean(value: Any, max_length: int) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:max_length]
