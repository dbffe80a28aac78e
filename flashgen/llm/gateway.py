"""OpenRouter-compatible chat-completion client."""

import json
import time
from typing import Any, Callable

import requests

from flashgen.errors import (
    AuthError,
    ConfigError,
    DecodeError,
    GatewayTimeoutError,
    TransientError,
)
from flashgen.logger import get_logger

from .messages import ChatMessage, ChatRequest, GatewayResponse, ModelParameters
from .retry import RetryPolicy

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openai/gpt-4-turbo"
DEFAULT_TIMEOUT_S = 60
DEFAULT_MAX_RETRIES = 3
DEFAULT_PARAMETERS = ModelParameters()

APP_REFERER = "https://github.com/flashgen/flashgen"
APP_TITLE = "Flashcard Generator"

STRUCTURED_OUTPUT_INSTRUCTIONS = (
    "\n\nCRITICAL: Respond with actual JSON DATA, not a schema definition. "
    "Your response must be valid JSON following this structure "
    "(but with real values, not schema syntax):\n\n"
)

FLASHCARDS_EXAMPLE = """Example format:
{
  "flashcards": [
    {
      "front": "actual question text here",
      "back": "actual answer text here"
    },
    {
      "front": "another question",
      "back": "another answer"
    }
  ]
}

Do NOT respond with type definitions, schema, or metadata. Only actual data."""


class GatewayClient:
    """Client for a single chat-completion endpoint.

    The client holds the prompt configuration for the next request (system
    prompt, structured-output schema, model). It is not safe to reconfigure
    one instance while another thread is sending with it; use one instance
    per prompt/schema pairing instead.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_retries: int = DEFAULT_MAX_RETRIES,
        default_params: ModelParameters | dict[str, Any] | None = None,
        base_delay_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Configure the client.

        Args:
            api_key: Bearer token for the API
            base_url: API root; ``/chat/completions`` is appended
            default_model: Model identifier used unless ``set_model`` is called
            timeout_s: Per-attempt timeout in seconds
            max_retries: Total number of attempts for transient failures
            default_params: Sampling parameters merged over the defaults
            base_delay_s: Backoff delay before the second attempt
            sleep: Wait function used between attempts

        Raises:
            ConfigError: If the API key is empty or a limit is out of range
        """
        if not api_key or not api_key.strip():
            raise ConfigError("OpenRouter API key is required")
        if timeout_s <= 0:
            raise ConfigError(f"Invalid timeout_s: {timeout_s}. Must be positive.")
        if max_retries < 1:
            raise ConfigError(f"Invalid max_retries: {max_retries}. Must be at least 1.")

        try:
            parameters = DEFAULT_PARAMETERS.merged(default_params)
        except (TypeError, ValueError) as e:
            raise ConfigError(str(e)) from e

        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout_s = timeout_s
        self.retry_policy = RetryPolicy(
            max_attempts=max_retries,
            base_delay_s=base_delay_s,
            sleep=sleep,
        )
        self.default_params = parameters

        self.model = default_model
        self.parameters = parameters
        self._base_system_prompt: str | None = None
        self._system_prompt: str | None = None
        self._response_schema: dict[str, Any] | None = None

        logger.info(
            "gateway.configured",
            model=self.model,
            timeout_s=self.timeout_s,
            max_retries=max_retries,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    @property
    def max_retries(self) -> int:
        return self.retry_policy.max_attempts

    @property
    def system_prompt(self) -> str | None:
        """Effective system prompt, including structured-output instructions."""
        return self._system_prompt

    @property
    def structured_output(self) -> bool:
        return self._response_schema is not None

    def set_system_prompt(self, text: str) -> None:
        if not text or not text.strip():
            raise ValueError("System prompt cannot be empty")
        self._base_system_prompt = text.strip()
        self._refresh_system_prompt()

    def set_structured_output(self, schema: dict[str, Any]) -> None:
        """Require JSON output shaped like ``schema``.

        The schema is described to the model in the system prompt; the API
        itself only receives the JSON-mode flag.
        """
        if not isinstance(schema, dict) or not schema:
            raise ValueError("Invalid JSON schema")
        self._response_schema = schema
        self._refresh_system_prompt()

    def set_model(self, name: str, parameters: ModelParameters | dict[str, Any] | None = None) -> None:
        if not name or not name.strip():
            raise ValueError("Model name cannot be empty")
        self.model = name.strip()
        self.parameters = self.parameters.merged(parameters)
        logger.info("gateway.model.set", model=self.model)

    def reset_messages(self) -> None:
        self._base_system_prompt = None
        self._system_prompt = None

    def reset_all(self) -> None:
        self.model = self.default_model
        self.parameters = self.default_params
        self._base_system_prompt = None
        self._system_prompt = None
        self._response_schema = None

    def _refresh_system_prompt(self) -> None:
        if not self._base_system_prompt:
            self._system_prompt = None
            return

        prompt = self._base_system_prompt
        if self._response_schema is not None:
            prompt += STRUCTURED_OUTPUT_INSTRUCTIONS
            # A worked example steers the model toward data instead of echoing the schema
            if "flashcards" in (self._response_schema.get("properties") or {}):
                prompt += FLASHCARDS_EXAMPLE
            else:
                prompt += json.dumps(self._response_schema, indent=2)

        self._system_prompt = prompt

    def build_request(self, user_message: str) -> ChatRequest:
        if not user_message or not user_message.strip():
            raise ValueError("User message cannot be empty")

        messages = []
        if self._system_prompt:
            messages.append(ChatMessage("system", self._system_prompt))
        messages.append(ChatMessage("user", user_message.strip()))

        return ChatRequest(
            model=self.model,
            messages=tuple(messages),
            parameters=self.parameters,
            structured_output=self.structured_output,
        )

    def send(self, user_message: str) -> Any:
        """Send ``user_message`` and return the first candidate.

        Returns:
            Decoded JSON when structured output is configured, text otherwise

        Raises:
            AuthError: Credential rejected (no retry)
            GatewayTimeoutError: An attempt exceeded the timeout (no retry)
            MaxRetriesExceeded: Every attempt failed with a transient error
            DecodeError: Structured output was not valid JSON
        """
        request = self.build_request(user_message)
        response = self.retry_policy.run(
            lambda attempt: self.execute(request),
            label="gateway",
        )

        content = response.content
        if not request.structured_output:
            return content

        try:
            return json.loads(content)
        except (TypeError, ValueError) as e:
            raise DecodeError(
                f"Failed to parse JSON response: {e}",
                body=content,
            ) from e

    def execute(self, request: ChatRequest) -> GatewayResponse:
        """Perform one HTTP attempt and classify its outcome.

        Raises:
            AuthError: HTTP 401
            GatewayTimeoutError: The attempt exceeded ``timeout_s``
            TransientError: Rate limit, other non-2xx status, network failure,
                or a 2xx body without candidates
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": APP_REFERER,
            "X-Title": APP_TITLE,
        }

        start_time = time.time()
        try:
            response = requests.post(
                self.endpoint,
                headers=headers,
                json=request.to_payload(),
                timeout=self.timeout_s,
            )
        except requests.Timeout as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            raise GatewayTimeoutError(
                f"Request timed out after {elapsed_ms}ms (timeout: {self.timeout_s}s)"
            ) from e
        except requests.RequestException as e:
            raise TransientError(f"Network error: {e}", TransientError.API_ERROR) from e

        elapsed_ms = int((time.time() - start_time) * 1000)

        if response.status_code == 401:
            raise AuthError(
                "Authentication failed - invalid API key",
                status_code=401,
                body=response.text,
            )
        if response.status_code == 429:
            raise TransientError(
                "Rate limit exceeded",
                TransientError.RATE_LIMIT,
                status_code=429,
                body=response.text,
            )
        if not 200 <= response.status_code < 300:
            raise TransientError(
                _error_message(response),
                TransientError.API_ERROR,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransientError(
                "Invalid API response - body is not JSON",
                TransientError.INVALID_RESPONSE,
                status_code=response.status_code,
                body=response.text,
            ) from e

        result = GatewayResponse.from_json(data if isinstance(data, dict) else {})
        if not result.choices:
            raise TransientError(
                "Invalid API response - no choices returned",
                TransientError.INVALID_RESPONSE,
                status_code=response.status_code,
                body=data,
            )

        logger.info(
            "gateway.success",
            model=result.model or request.model,
            elapsed_ms=elapsed_ms,
            usage=result.usage,
        )
        return result


def _error_message(response: requests.Response) -> str:
    """Best available description of a failed HTTP response."""
    message = f"API request failed with status {response.status_code}"
    try:
        data = response.json()
    except ValueError:
        return response.text or message

    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return data["error"].get("message") or message
    return message
