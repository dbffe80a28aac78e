"""Generation orchestrator: source text in, persisted proposals out."""

import time
from dataclasses import dataclass, field
from typing import Callable

from . import schema
from .errors import PersistenceError, SourceTextError, error_code_for
from .generators import Generator
from .hashing import content_hash
from .logger import get_logger
from .persistence import GenerationErrorRecord, GenerationRecord, GenerationStore
from .schema import FlashcardProposal

logger = get_logger(__name__)

SOURCE_TEXT_MIN_LENGTH = 1000
SOURCE_TEXT_MAX_LENGTH = 10000


def validate_source_text(text: str) -> str:
    """Check source text length before generation.

    Raises:
        SourceTextError: With a message fit to show the user
    """
    if not isinstance(text, str):
        raise SourceTextError("Source text must be a string")
    if len(text) < SOURCE_TEXT_MIN_LENGTH:
        raise SourceTextError(
            f"Source text must be at least {SOURCE_TEXT_MIN_LENGTH} characters long"
        )
    if len(text) > SOURCE_TEXT_MAX_LENGTH:
        raise SourceTextError(
            f"Source text must not exceed {SOURCE_TEXT_MAX_LENGTH} characters"
        )
    return text


@dataclass
class GenerationResult:
    generation_id: int
    record: GenerationRecord
    proposals: list[FlashcardProposal] = field(default_factory=list)

    @property
    def generated_count(self) -> int:
        return len(self.proposals)

    def to_dict(self) -> dict:
        return {
            "generation_id": self.generation_id,
            "flashcards_proposals": [p.to_dict() for p in self.proposals],
            "generated_count": self.generated_count,
        }


class GenerationOrchestrator:
    """Runs one generation end to end with full failure accounting.

    Exactly one record is written per call: a ``GenerationRecord`` on
    success or a ``GenerationErrorRecord`` on failure. Failures are always
    re-raised unchanged, even when writing the error record fails.
    """

    def __init__(
        self,
        generator: Generator,
        store: GenerationStore,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.generator = generator
        self.store = store
        self.clock = clock

    def _elapsed_ms(self, start: float) -> int:
        return int((self.clock() - start) * 1000)

    def generate(self, source_text: str, user_id: str) -> GenerationResult:
        """Generate flashcard proposals for ``source_text``.

        Raises:
            GenerationError: Any gateway, schema or persistence failure, as raised
        """
        start = self.clock()
        model = self.generator.model
        source_hash = content_hash(source_text)
        source_length = len(source_text)

        logger.info(
            "generation.start",
            user_id=user_id,
            model=model,
            source_text_length=source_length,
        )

        try:
            payload = self.generator.generate(source_text)
            proposals = schema.validate(payload)

            raw_count = schema.raw_item_count(payload)
            if raw_count > schema.MAX_ITEMS:
                logger.warning(
                    "generation.proposals.truncated",
                    user_id=user_id,
                    received=raw_count,
                    kept=len(proposals),
                )

            record = GenerationRecord(
                user_id=user_id,
                model=model,
                generated_count=len(proposals),
                source_text_hash=source_hash,
                source_text_length=source_length,
                generation_duration=self._elapsed_ms(start),
            )

            try:
                generation_id = self.store.save_generation(record)
            except Exception as e:
                raise PersistenceError(
                    f"Failed to save generation record: {e}"
                ) from e

        except Exception as e:
            self._record_failure(e, source_hash, source_length, user_id, model, start)
            raise

        logger.info(
            "generation.success",
            user_id=user_id,
            generation_id=generation_id,
            generated_count=record.generated_count,
            duration_ms=record.generation_duration,
            source_text_hash=record.source_text_hash[:8],
        )
        return GenerationResult(generation_id=generation_id, record=record, proposals=proposals)

    def _record_failure(
        self,
        error: Exception,
        source_hash: str,
        source_length: int,
        user_id: str,
        model: str,
        start: float,
    ) -> None:
        """Write the error record; never raises."""
        try:
            record = GenerationErrorRecord(
                user_id=user_id,
                error_code=error_code_for(error),
                error_message=str(error),
                model=model,
                source_text_hash=source_hash,
                source_text_length=source_length,
                generation_duration=self._elapsed_ms(start),
            )

            logger.error(
                "generation.failed",
                user_id=user_id,
                model=model,
                error_type=type(error).__name__,
                error_code=record.error_code,
                error_message=record.error_message,
                duration_ms=record.generation_duration,
            )

            self.store.save_generation_error(record)
        except Exception as log_error:
            logger.error(
                "generation.error_log.failed",
                user_id=user_id,
                error_type=type(log_error).__name__,
                error_message=str(log_error),
            )
