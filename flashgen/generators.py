"""Flashcard generators: the real gateway and a deterministic local mock."""

import random
import time
from typing import Any, Callable, Protocol, runtime_checkable

from . import schema
from .config import GenerationSettings
from .errors import TransientError
from .llm.gateway import GatewayClient
from .llm.retry import RetryPolicy
from .logger import get_logger

logger = get_logger(__name__)

MOCK_MODEL = "mock-ai-v1"

SYSTEM_PROMPT = f"""You are an expert educational content creator. Generate between {schema.MIN_ITEMS} and {schema.MAX_ITEMS} flashcards with:
- front: A clear question (max {schema.FRONT_MAX_LENGTH} characters)
- back: A concise answer (max {schema.BACK_MAX_LENGTH} characters)
Return as JSON with an array of flashcards."""

USER_PROMPT_TEMPLATE = "Generate flashcards from the following text:\n\n{source_text}"


@runtime_checkable
class Generator(Protocol):
    """Turns source text into a decoded flashcard payload."""

    @property
    def model(self) -> str:
        """Model name recorded with each generation."""
        ...

    def generate(self, source_text: str) -> Any:
        """Return the decoded payload, not yet validated."""
        ...


class GatewayGenerator:
    """Generator backed by the chat-completion API."""

    def __init__(self, client: GatewayClient):
        self.client = client
        self.client.set_system_prompt(SYSTEM_PROMPT)
        self.client.set_structured_output(schema.describe())

    @property
    def model(self) -> str:
        return self.client.model

    def generate(self, source_text: str) -> Any:
        return self.client.send(USER_PROMPT_TEMPLATE.format(source_text=source_text))


class MockGenerator:
    """Placeholder generator for local runs without an API key.

    Card count grows by one per 2000 characters of source text, from 3 up
    to 7. A small share of attempts fail with a transient error; those are
    retried with the same policy the gateway uses.
    """

    def __init__(
        self,
        failure_rate: float = 0.05,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
        retry_policy: RetryPolicy | None = None,
        latency_s: tuple[float, float] = (0.2, 0.5),
    ):
        self.failure_rate = failure_rate
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.retry_policy = retry_policy or RetryPolicy(sleep=sleep)
        self.latency_s = latency_s

    @property
    def model(self) -> str:
        return MOCK_MODEL

    @staticmethod
    def card_count(source_text: str) -> int:
        return min(schema.MIN_ITEMS + len(source_text) // 2000, schema.MAX_ITEMS)

    def generate(self, source_text: str) -> dict[str, Any]:
        return self.retry_policy.run(
            lambda attempt: self._attempt(source_text),
            label="generator.mock",
        )

    def _attempt(self, source_text: str) -> dict[str, Any]:
        self.sleep(self.rng.uniform(*self.latency_s))

        if self.rng.random() < self.failure_rate:
            raise TransientError(
                "Simulated AI service temporary failure",
                TransientError.API_ERROR,
            )

        return {
            "flashcards": [
                {
                    "front": f"Mock Question {i + 1} based on provided text",
                    "back": f"Mock Answer {i + 1} extracted from source material",
                }
                for i in range(self.card_count(source_text))
            ]
        }


def build_generator(
    settings: GenerationSettings,
    sleep: Callable[[float], None] = time.sleep,
    rng: random.Random | None = None,
) -> Generator:
    """Pick the generator for ``settings``.

    ``openrouter`` without a credential falls back to the mock so local
    flows keep working.
    """
    if settings.provider == "openrouter":
        if settings.has_credential:
            client = GatewayClient(
                api_key=settings.api_key,
                base_url=settings.base_url,
                default_model=settings.model,
                timeout_s=settings.timeout_s,
                max_retries=settings.max_retries,
                default_params=settings.parameters,
                base_delay_s=settings.base_delay_s,
                sleep=sleep,
            )
            return GatewayGenerator(client)

        logger.warning(
            "generator.mock.fallback",
            reason=f"{settings.api_key_env} is not set",
        )

    return MockGenerator(
        failure_rate=settings.mock_failure_rate,
        rng=rng,
        sleep=sleep,
        retry_policy=RetryPolicy(
            max_attempts=settings.max_retries,
            base_delay_s=settings.base_delay_s,
            sleep=sleep,
        ),
    )
