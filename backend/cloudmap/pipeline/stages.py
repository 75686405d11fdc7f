"""
Chat pipeline stages.

intent -> language -> context -> prompt -> inference -> post-process
"""

import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from cloudmap import config
from cloudmap.assistant.context import context_level_for_intent, generate_context_string
from cloudmap.assistant.intent import Intent, detect_enhanced_intent
from cloudmap.assistant.language import detect_language
from cloudmap.assistant.prompts import (
    TASK_PROMPT_INTENTS,
    build_ai_prompt,
    build_system_prompt,
    format_user_message,
    get_prompt_template,
    sampling_temperature,
)
from cloudmap.assistant.response import format_update_confirmation, post_process_response
from cloudmap.inference.base import LLMClient
from cloudmap.inference.retry import with_exponential_backoff
from cloudmap.ir.architecture import Architecture
from cloudmap.ir.validation import ValidationResult
from cloudmap.llm.parser import extract_architecture_update
from cloudmap.pipeline.context import ChatContext
from cloudmap.pipeline.stage import PipelineStage

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 5
CHAT_ROLES = {"user", "assistant"}

UPDATE_PARSE_FAILURE = (
    "I tried to update the architecture, but couldn't parse the result properly. "
    "Please try rephrasing your request."
)
EMPTY_RESPONSE = "I apologize, but I couldn't generate a response. Please try again."


class IntentStage(PipelineStage):
    name = "intent"

    def run(self, context: ChatContext) -> ValidationResult:
        if not context.message or not context.message.strip():
            return ValidationResult.failure(self.name, "Message is required but was empty")

        context.intent = detect_enhanced_intent(context.message, context.has_architecture)

        if context.debug or config.DEBUG_INTENT_DETECTION:
            logger.info(
                "[Intent] %s (confidence %.2f, sub-type %s)",
                context.intent.intent.value,
                context.intent.confidence,
                context.intent.sub_type,
            )
        return ValidationResult.success()


class LanguageStage(PipelineStage):
    name = "language"

    def run(self, context: ChatContext) -> ValidationResult:
        context.language = detect_language(context.message)
        return ValidationResult.success()


class ContextStage(PipelineStage):
    name = "context"

    def run(self, context: ChatContext) -> ValidationResult:
        level = context_level_for_intent(context.intent.intent)
        context.context_level = level
        context.context_string = generate_context_string(context.architecture, level)
        return ValidationResult.success()


class PromptStage(PipelineStage):
    name = "prompt"

    def run(self, context: ChatContext) -> ValidationResult:
        intent = context.intent.intent

        if intent in TASK_PROMPT_INTENTS:
            # These intents carry a strict output contract
            context.system_prompt = build_ai_prompt(
                context.intent,
                context.message,
                context.architecture,
                context.target_language,
            )
        else:
            context.system_prompt = build_system_prompt(intent, context.context_string)

        context.user_message = format_user_message(intent, context.message)
        context.temperature = sampling_temperature(intent)
        context.model = get_prompt_template(intent).model

        if context.debug or config.DEBUG_PROMPTS:
            logger.info("[Prompt] Context level: %s", context.context_level.value)
            logger.info("[Prompt] System prompt:\n%s", context.system_prompt)
            logger.info("[Prompt] User message: %s", context.user_message)

        return ValidationResult.success()


def build_messages(context: ChatContext) -> List[Dict[str, str]]:
    """system + last few history turns + current user message"""
    messages = [{"role": "system", "content": context.system_prompt}]

    history = [
        {"role": m["role"], "content": m["content"]}
        for m in context.history
        if m.get("role") in CHAT_ROLES and isinstance(m.get("content"), str)
    ]
    messages.extend(history[-HISTORY_WINDOW:])

    messages.append({"role": "user", "content": context.user_message})
    return messages


class InferenceStage(PipelineStage):
    name = "inference"

    UPDATE_MAX_TOKENS = 4096
    DEFAULT_MAX_TOKENS = 2048

    def __init__(self, client: Optional[LLMClient] = None):
        self.client = client

    def max_tokens_for(self, intent: Intent) -> int:
        if intent == Intent.ARCHITECTURE_UPDATE:
            return self.UPDATE_MAX_TOKENS
        return self.DEFAULT_MAX_TOKENS

    def run(self, context: ChatContext) -> ValidationResult:
        if self.client is None:
            return ValidationResult.failure(self.name, "No model client configured")

        messages = build_messages(context)
        max_tokens = self.max_tokens_for(context.intent.intent)

        # LLMServiceError propagates once retries are exhausted
        result = with_exponential_backoff(
            lambda: self.client.generate(
                messages,
                temperature=context.temperature,
                max_tokens=max_tokens,
                model=context.model,
            )
        )

        context.raw_response = result.text or ""
        context.tokens_used = result.tokens_used
        context.response_model = result.model
        return ValidationResult.success()


def apply_architecture_update(context: ChatContext):
    parsed, explanation = extract_architecture_update(context.raw_response)

    if parsed is None:
        logger.warning("[PostProcess] No architecture JSON found in update response")
        context.response = UPDATE_PARSE_FAILURE
        return

    metadata = context.architecture.metadata if context.architecture else {}
    try:
        updated = Architecture.model_validate({
            "nodes": parsed["nodes"],
            "edges": parsed["edges"],
            "metadata": dict(metadata),
        })
    except ValidationError as e:
        logger.warning("[PostProcess] Updated architecture failed validation: %s", e)
        context.response = UPDATE_PARSE_FAILURE
        return

    context.updated_architecture = updated
    context.architecture_updated = True
    context.response = format_update_confirmation(explanation)


class PostProcessStage(PipelineStage):
    name = "post_process"

    def run(self, context: ChatContext) -> ValidationResult:
        intent = context.intent.intent

        if not context.raw_response.strip():
            context.response = EMPTY_RESPONSE
            return ValidationResult.success()

        if intent == Intent.ARCHITECTURE_UPDATE:
            apply_architecture_update(context)
        else:
            context.response = post_process_response(intent, context.raw_response, context.language)

        return ValidationResult.success()
