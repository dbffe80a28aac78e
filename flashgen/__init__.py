"""AI-assisted flashcard generation pipeline."""

from .config import GenerationSettings, load_settings
from .generators import GatewayGenerator, Generator, MockGenerator, build_generator
from .hashing import content_hash
from .orchestrator import GenerationOrchestrator, GenerationResult, validate_source_text
from .persistence import (
    GenerationErrorRecord,
    GenerationRecord,
    GenerationStore,
    InMemoryGenerationStore,
    JsonlGenerationStore,
)
from .schema import FlashcardProposal

__all__ = [
    "GenerationSettings",
    "load_settings",
    "Generator",
    "GatewayGenerator",
    "MockGenerator",
    "build_generator",
    "content_hash",
    "GenerationOrchestrator",
    "GenerationResult",
    "validate_source_text",
    "GenerationRecord",
    "GenerationErrorRecord",
    "GenerationStore",
    "InMemoryGenerationStore",
    "JsonlGenerationStore",
    "FlashcardProposal",
]
