"""Chat-completion gateway: request types, retry policy and HTTP client."""

from .gateway import GatewayClient
from .messages import ChatMessage, ChatRequest, GatewayResponse, ModelParameters
from .retry import RetryPolicy

__all__ = [
    "GatewayClient",
    "ChatMessage",
    "ChatRequest",
    "GatewayResponse",
    "ModelParameters",
    "RetryPolicy",
]
