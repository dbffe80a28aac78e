"""Chat request and response data structures."""

from dataclasses import asdict, dataclass, field, replace
from typing import Any

ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ModelParameters:
    """Sampling configuration sent with every request."""

    temperature: float = 0.7
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0

    def merged(self, overrides: "ModelParameters | dict[str, Any] | None") -> "ModelParameters":
        """Return a copy with ``overrides`` applied on top."""
        if overrides is None:
            return self
        if isinstance(overrides, ModelParameters):
            overrides = asdict(overrides)
        unknown = set(overrides) - set(asdict(self))
        if unknown:
            raise ValueError(f"Unknown model parameters: {', '.join(sorted(unknown))}")
        return replace(self, **overrides)

    def range_errors(self) -> list[str]:
        errors = []
        if not 0 <= self.temperature <= 2:
            errors.append(f"temperature must be between 0 and 2, got {self.temperature}")
        if not 0 <= self.top_p <= 1:
            errors.append(f"top_p must be between 0 and 1, got {self.top_p}")
        return errors

    def to_payload(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Invalid message role: {self.role}")


@dataclass(frozen=True)
class ChatRequest:
    """One chat-completion request.

    At most one system message is allowed and it must come first; the
    request must end with a user message.
    """

    model: str
    messages: tuple[ChatMessage, ...]
    parameters: ModelParameters = field(default_factory=ModelParameters)
    structured_output: bool = False

    def __post_init__(self):
        if not self.model:
            raise ValueError("Model not specified")
        if not self.messages:
            raise ValueError("Chat request has no messages")

        system_positions = [i for i, m in enumerate(self.messages) if m.role == "system"]
        if len(system_positions) > 1:
            raise ValueError("Chat request may contain at most one system message")
        if system_positions and system_positions[0] != 0:
            raise ValueError("System message must be the first message")
        if self.messages[-1].role != "user":
            raise ValueError("Chat request must end with a user message")

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON body for the chat-completions endpoint."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in self.messages],
        }
        payload.update(self.parameters.to_payload())

        # OpenAI-compatible JSON mode; the shape itself travels in the system prompt
        if self.structured_output:
            payload["response_format"] = {"type": "json_object"}

        return payload


@dataclass
class GatewayResponse:
    """Decoded reply from the chat-completion API."""

    choices: list[str]
    model: str | None = None
    usage: dict[str, Any] | None = None
    raw: dict[str, Any] | None = None

    @property
    def content(self) -> str:
        """Text of the first candidate; only the first one is used."""
        return self.choices[0]

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "GatewayResponse":
        choices = []
        raw_choices = data.get("choices")
        for choice in raw_choices if isinstance(raw_choices, list) else []:
            if not isinstance(choice, dict):
                continue
            message = choice.get("message")
            if not isinstance(message, dict):
                continue
            choices.append(message.get("content") or "")

        usage = None
        if isinstance(data.get("usage"), dict):
            usage = {
                "prompt_tokens": data["usage"].get("prompt_tokens", 0),
                "completion_tokens": data["usage"].get("completion_tokens", 0),
                "total_tokens": data["usage"].get("total_tokens", 0),
            }
            if "total_cost" in data["usage"]:
                usage["total_cost"] = data["usage"]["total_cost"]

        return cls(choices=choices, model=data.get("model"), usage=usage, raw=data)
