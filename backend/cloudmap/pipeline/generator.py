"""
One-shot generation flows behind /generate, /adjust and /generate-cdk.

Each flow calls the model through the retry helper, parses the answer,
stores the result and records the call in the generation log.
"""

import logging
import random
import uuid
from typing import Optional, Tuple

from cloudmap.assistant.prompts import (
    DEFAULT_CDK_LANGUAGE,
    build_adjustment_prompt,
    build_cdk_messages,
    build_generation_messages,
    cdk_language_name,
)
from cloudmap.db.session import log_generation
from cloudmap.errors import ArchitectureNotFoundError, CloudMapError
from cloudmap.inference.base import LLMClient
from cloudmap.inference.retry import with_exponential_backoff
from cloudmap.ir.architecture import Architecture
from cloudmap.llm.parser import extract_code_block, parse_architecture
from cloudmap.store.architecture_store import ArchitectureStore, get_store, utc_now_iso

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 0.4
GENERATION_MAX_TOKENS = 4096


def _complete(client: LLMClient, messages, kind: str, prompt: str, architecture_id: Optional[str]) -> str:
    try:
        result = with_exponential_backoff(
            lambda: client.generate(
                messages,
                temperature=GENERATION_TEMPERATURE,
                max_tokens=GENERATION_MAX_TOKENS,
            )
        )
    except CloudMapError as e:
        log_generation(kind, prompt, e.message, False, architecture_id)
        raise
    return result.text


def _parse(text: str, kind: str, prompt: str, architecture_id: Optional[str], rng) -> Tuple[Architecture, str]:
    try:
        return parse_architecture(text, rng)
    except CloudMapError:
        log_generation(kind, prompt, text, False, architecture_id)
        raise


def generate_architecture(
    client: LLMClient,
    prompt: str,
    store: Optional[ArchitectureStore] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Generate a new architecture for `prompt` and return its id."""
    store = store or get_store()

    text = _complete(client, build_generation_messages(prompt), "generate", prompt, None)
    architecture, rationale = _parse(text, "generate", prompt, None, rng)

    architecture_id = str(uuid.uuid4())
    architecture.metadata = {
        "prompt": prompt,
        "rationale": rationale,
        "timestamp": utc_now_iso(),
    }
    store.save(architecture_id, architecture, edited_by="Generator")

    log_generation("generate", prompt, text, True, architecture_id)
    logger.info(
        "[Generator] Created %s with %d services, %d connections",
        architecture_id,
        len(architecture.nodes),
        len(architecture.edges),
    )
    return architecture_id


def adjust_architecture(
    client: LLMClient,
    architecture_id: str,
    original_prompt: str,
    adjustment_prompt: str,
    store: Optional[ArchitectureStore] = None,
    rng: Optional[random.Random] = None,
) -> Architecture:
    store = store or get_store()
    current = store.get(architecture_id)
    if current is None:
        raise ArchitectureNotFoundError(architecture_id)

    prompt = build_adjustment_prompt(original_prompt, adjustment_prompt, current)
    text = _complete(client, build_generation_messages(prompt), "adjust", adjustment_prompt, architecture_id)
    adjusted, rationale = _parse(text, "adjust", adjustment_prompt, architecture_id, rng)

    adjusted.metadata = {
        **current.metadata,
        "originalPrompt": original_prompt,
        "adjustmentPrompt": adjustment_prompt,
        "rationale": rationale,
        "lastUpdated": utc_now_iso(),
    }
    saved = store.save(architecture_id, adjusted, edited_by="Adjuster")

    log_generation("adjust", adjustment_prompt, text, True, architecture_id)
    logger.info("[Adjuster] Updated %s", architecture_id)
    return saved


def generate_cdk(
    client: LLMClient,
    architecture_id: str,
    language: str = DEFAULT_CDK_LANGUAGE,
    store: Optional[ArchitectureStore] = None,
) -> str:
    """Generate CDK code for a stored architecture and keep it in the metadata."""
    store = store or get_store()
    architecture = store.get(architecture_id)
    if architecture is None:
        raise ArchitectureNotFoundError(architecture_id)

    prompt = f"CDK ({language}) for {architecture_id}"
    text = _complete(client, build_cdk_messages(architecture, language), "cdk", prompt, architecture_id)
    cdk_code = extract_code_block(text)

    store.update_fields(
        architecture_id,
        metadata={
            "cdkCode": cdk_code,
            "cdkLanguage": language,
            "cdkGeneratedAt": utc_now_iso(),
        },
        edited_by="CDK Generator",
    )

    log_generation("cdk", prompt, cdk_code, True, architecture_id)
    logger.info("[CDK] Generated %s code for %s", cdk_language_name(language), architecture_id)
    return cdk_code
