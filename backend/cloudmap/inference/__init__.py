"""
Model provider clients (plain REST over requests) and retry helpers.
"""

from cloudmap.inference.base import LLMClient, LLMResult
from cloudmap.inference.chat_completions_client import ChatCompletionsClient
from cloudmap.inference.cohere_client import CohereChatClient
from cloudmap.inference.config import (
    default_model,
    get_llm_client,
    model_for_intent,
    temperature_for_intent,
)
from cloudmap.inference.retry import with_exponential_backoff

__all__ = [
    "LLMClient",
    "LLMResult",
    "ChatCompletionsClient",
    "CohereChatClient",
    "get_llm_client",
    "default_model",
    "model_for_intent",
    "temperature_for_intent",
    "with_exponential_backoff",
]
