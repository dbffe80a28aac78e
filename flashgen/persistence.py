"""
Generation records and the persistence port.

The orchestrator only depends on the ``GenerationStore`` protocol. Two
implementations ship here: an in-memory store for tests and local runs, and
an append-only JSON Lines store on disk.
"""

import json
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol, Sequence, runtime_checkable

from .schema import FlashcardProposal


@dataclass(frozen=True)
class GenerationRecord:
    """Metadata of a successful generation.

    Attributes:
        user_id: Requester identity
        model: Model that produced the proposals
        generated_count: Number of proposals returned
        source_text_hash: ``content_hash`` of the source text
        source_text_length: Length of the source text in characters
        generation_duration: Wall-clock duration of the attempt in ms
    """
    user_id: str
    model: str
    generated_count: int
    source_text_hash: str
    source_text_length: int
    generation_duration: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GenerationErrorRecord:
    """Metadata of a failed generation."""
    user_id: str
    error_code: str
    error_message: str
    model: str
    source_text_hash: str
    source_text_length: int
    generation_duration: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@runtime_checkable
class GenerationStore(Protocol):
    """
    Durable storage for generation outcomes.

    Each call is an independent single-record write; no transaction spans
    two calls.
    """

    def save_generation(self, record: GenerationRecord) -> int:
        """
        Store a successful generation.

        Returns:
            Identifier of the stored generation
        """
        ...

    def save_generation_error(self, record: GenerationErrorRecord) -> None:
        """Store a failed generation."""
        ...

    def save_flashcards(
        self,
        proposals: Sequence[FlashcardProposal],
        generation_id: int,
        user_id: str,
    ) -> None:
        """
        Store proposals the user accepted.

        Called by the layer above the orchestrator once the user has
        reviewed the proposals.
        """
        ...


class InMemoryGenerationStore:
    """Store that keeps everything in lists. Identifiers start at 1."""

    def __init__(self):
        self.generations: list[tuple[int, GenerationRecord]] = []
        self.errors: list[GenerationErrorRecord] = []
        self.flashcards: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def save_generation(self, record: GenerationRecord) -> int:
        with self._lock:
            generation_id = len(self.generations) + 1
            self.generations.append((generation_id, record))
        return generation_id

    def save_generation_error(self, record: GenerationErrorRecord) -> None:
        with self._lock:
            self.errors.append(record)

    def save_flashcards(
        self,
        proposals: Sequence[FlashcardProposal],
        generation_id: int,
        user_id: str,
    ) -> None:
        with self._lock:
            for proposal in proposals:
                self.flashcards.append({
                    **proposal.to_dict(),
                    "generation_id": generation_id,
                    "user_id": user_id,
                })


class JsonlGenerationStore:
    """Append-only store writing one JSON object per line.

    Layout under ``root``::

        generations.jsonl
        generation_errors.jsonl
        flashcards.jsonl

    A generation's identifier is its line number in ``generations.jsonl``.
    """

    GENERATIONS_FILE = "generations.jsonl"
    ERRORS_FILE = "generation_errors.jsonl"
    FLASHCARDS_FILE = "flashcards.jsonl"

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self._lock = threading.Lock()

    def _path(self, name: str) -> Path:
        return self.root / name

    def _append(self, name: str, rows: list[dict[str, Any]]) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self._path(name), "a", encoding="utf-8") as f:
            for row in rows:
                f.write(json.dumps(row) + "\n")

    def _count(self, name: str) -> int:
        path = self._path(name)
        if not path.exists():
            return 0
        with open(path, encoding="utf-8") as f:
            return sum(1 for line in f if line.strip())

    def save_generation(self, record: GenerationRecord) -> int:
        with self._lock:
            generation_id = self._count(self.GENERATIONS_FILE) + 1
            self._append(self.GENERATIONS_FILE, [{
                "id": generation_id,
                "created_at": _now(),
                **record.to_dict(),
            }])
        return generation_id

    def save_generation_error(self, record: GenerationErrorRecord) -> None:
        with self._lock:
            self._append(self.ERRORS_FILE, [{"created_at": _now(), **record.to_dict()}])

    def save_flashcards(
        self,
        proposals: Sequence[FlashcardProposal],
        generation_id: int,
        user_id: str,
    ) -> None:
        created_at = _now()
        rows = [
            {
                **proposal.to_dict(),
                "generation_id": generation_id,
                "user_id": user_id,
                "created_at": created_at,
            }
            for proposal in proposals
        ]
        with self._lock:
            self._append(self.FLASHCARDS_FILE, rows)

    def load_generations(self) -> list[dict[str, Any]]:
        return self._load(self.GENERATIONS_FILE)

    def load_errors(self) -> list[dict[str, Any]]:
        return self._load(self.ERRORS_FILE)

    def load_flashcards(self) -> list[dict[str, Any]]:
        return self._load(self.FLASHCARDS_FILE)

    def _load(self, name: str) -> list[dict[str, Any]]:
        path = self._path(name)
        if not path.exists():
            return []
        with open(path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
