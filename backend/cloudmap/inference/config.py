from typing import Optional

from cloudmap import config
from cloudmap.errors import ConfigurationError
from cloudmap.inference.base import LLMClient
from cloudmap.inference.chat_completions_client import ChatCompletionsClient
from cloudmap.inference.cohere_client import CohereChatClient

SUPPORTED_PROVIDERS = ("cohere", "openai")


def get_llm_client(provider: Optional[str] = None) -> LLMClient:
    provider = (provider or config.LLM_PROVIDER).lower()

    if provider == "cohere":
        if not config.is_cohere_configured():
            raise ConfigurationError(
                "Cohere API key is missing. Please add COHERE_API_KEY to your .env file."
            )
        return CohereChatClient(
            api_key=config.cohere_api_key(),
            model=config.COHERE_MODEL,
            base_url=config.COHERE_BASE_URL,
            timeout=config.LLM_TIMEOUT,
        )

    if provider == "openai":
        if not config.is_openai_configured():
            raise ConfigurationError(
                "OpenAI API key is missing. Please add OPENAI_API_KEY to your .env file."
            )
        return ChatCompletionsClient(
            base_url=config.OPENAI_BASE_URL,
            model=config.OPENAI_MODEL,
            api_key=config.openai_api_key(),
            timeout=config.LLM_TIMEOUT,
        )

    raise ConfigurationError(
        f"Unknown LLM provider '{provider}'. Expected one of: {', '.join(SUPPORTED_PROVIDERS)}"
    )


def default_model(provider: Optional[str] = None) -> str:
    provider = (provider or config.LLM_PROVIDER).lower()
    return config.OPENAI_MODEL if provider == "openai" else config.COHERE_MODEL


# ---- Per-intent sampling ----
# Intent values are plain strings so this module stays free of assistant imports.

CODE_INTENTS = ("code_generation", "cdk_generation")
EXPLANATION_INTENTS = ("architecture_explanation", "code_explanation")


def temperature_for_intent(intent: str) -> float:
    if intent in CODE_INTENTS:
        return 0.5
    if intent in EXPLANATION_INTENTS:
        return 0.8
    return 0.7


def model_for_intent(intent: str, provider: Optional[str] = None) -> str:
    # Every intent currently runs on the provider's default model
    return default_model(provider)
