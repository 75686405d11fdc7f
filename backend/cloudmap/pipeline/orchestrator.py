"""
Jarvis Orchestrator - runs the chat pipeline for one architecture and wires
in sessions, persistence of updated architectures, follow-ups and the
generation audit log.
"""

import logging
import time
from typing import Callable, Dict, Iterator, List, Optional

from cloudmap import config
from cloudmap.assistant.followups import generate_followup_suggestions
from cloudmap.assistant.intent import Intent, IntentMatch
from cloudmap.assistant.response import response_format_for_intent
from cloudmap.assistant.sessions import SessionStore, get_session_store
from cloudmap.db.session import log_generation
from cloudmap.errors import ArchitectureNotFoundError, ConfigurationError, LLMServiceError
from cloudmap.inference.base import LLMClient
from cloudmap.inference.retry import with_exponential_backoff
from cloudmap.ir.architecture import Architecture
from cloudmap.pipeline.context import ChatContext
from cloudmap.pipeline.controller import ChatPipelineController
from cloudmap.pipeline.stages import build_messages
from cloudmap.store.architecture_store import ArchitectureStore, get_store

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = (
    "I'm sorry, I encountered an error while processing your request. "
    "Please try again or rephrase your question."
)
FALLBACK_FOLLOWUPS = [
    "How can I design a serverless architecture?",
    "What are best practices for AWS security?",
    "How do I optimize costs in AWS?",
]
STREAM_ERROR = "I'm sorry, but I encountered an error while processing your request."

ClientFactory = Callable[[], LLMClient]


class JarvisOrchestrator:
    def __init__(
        self,
        client_factory: ClientFactory,
        store: Optional[ArchitectureStore] = None,
        sessions: Optional[SessionStore] = None,
    ):
        self.client_factory = client_factory
        self.store = store or get_store()
        self.sessions = sessions or get_session_store()

    # ------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------

    def _load(self, architecture_id: str) -> Architecture:
        architecture = self.store.get(architecture_id)
        if architecture is None:
            raise ArchitectureNotFoundError(architecture_id)
        return architecture

    def _history(self, session_id: str, history: Optional[List[Dict[str, str]]]) -> List[Dict[str, str]]:
        if history:
            return list(history)
        return self.sessions.history(session_id)

    def _metadata(self, context: ChatContext, started: float) -> dict:
        match: IntentMatch = context.intent
        metrics = dict(context.metrics)
        metrics["total"] = round((time.perf_counter() - started) * 1000, 2)

        return {
            "intent": match.intent.value,
            "subIntent": match.sub_type,
            "entities": match.entities,
            "confidence": round(match.confidence, 2),
            "language": context.language,
            "contextLevel": context.context_level.value,
            "format": response_format_for_intent(match.intent).value,
            "metrics": metrics,
            "tokensUsed": context.tokens_used,
            "model": context.response_model,
            "suggestedFollowUps": generate_followup_suggestions(
                match.intent, context.updated_architecture or context.architecture
            ),
        }

    def _fallback(self, started: float) -> dict:
        return {
            "response": FALLBACK_RESPONSE,
            "architectureUpdated": False,
            "metadata": {
                "intent": Intent.GENERAL_CHAT.value,
                "confidence": 0,
                "format": "conversation",
                "suggestedFollowUps": list(FALLBACK_FOLLOWUPS),
                "metrics": {"total": round((time.perf_counter() - started) * 1000, 2)},
            },
        }

    def _save_update(self, architecture_id: str, context: ChatContext) -> Architecture:
        updated = context.updated_architecture
        updated.metadata = {**updated.metadata, "lastUpdateRequest": context.message}
        return self.store.save(architecture_id, updated, edited_by="Jarvis")

    # ------------------------------------------------------------
    # Request / response
    # ------------------------------------------------------------

    def handle(
        self,
        architecture_id: str,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
        session_id: Optional[str] = None,
    ) -> dict:
        started = time.perf_counter()
        session_id = session_id or architecture_id
        architecture = self._load(architecture_id)
        history = self._history(session_id, history)

        try:
            controller = ChatPipelineController(self.client_factory())
            context = controller.run(
                message,
                architecture=architecture,
                history=history,
                debug=config.DEBUG_JARVIS,
            )
        except (LLMServiceError, ConfigurationError) as e:
            logger.error("[Jarvis] Model call failed for %s: %s", architecture_id, e.message)
            log_generation("chat", message, str(e.message), False, architecture_id)
            return self._fallback(started)

        if context.errors:
            fallback = self._fallback(started)
            fallback["response"] = "; ".join(str(e) for e in context.errors)
            return fallback

        self.sessions.update(session_id, intent=context.intent.intent.value)
        self.sessions.append_message(session_id, "user", message)
        self.sessions.append_message(session_id, "assistant", context.response)

        result = {
            "response": context.response,
            "architectureUpdated": context.architecture_updated,
        }

        if context.architecture_updated:
            saved = self._save_update(architecture_id, context)
            result["updatedArchitecture"] = saved.to_payload()
            logger.info("[Jarvis] Architecture %s updated from chat", architecture_id)

        result["metadata"] = self._metadata(context, started)
        log_generation("chat", message, context.raw_response, True, architecture_id)
        return result

    # ------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------

    def prepare_stream(
        self,
        architecture_id: str,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
        session_id: Optional[str] = None,
    ) -> ChatContext:
        """Run everything up to the model call so headers can carry the intent."""
        session_id = session_id or architecture_id
        architecture = self._load(architecture_id)

        # No client needed until stream()
        controller = ChatPipelineController()
        context = controller.new_context(
            message,
            architecture=architecture,
            history=self._history(session_id, history),
            debug=config.DEBUG_JARVIS,
        )
        return controller.prepare(context)

    def stream(
        self,
        architecture_id: str,
        context: ChatContext,
        session_id: Optional[str] = None,
    ) -> Iterator[str]:
        """
        Yield model tokens for a prepared context.

        When the stream ends the full text is post-processed and recorded in
        the session. Architecture updates are not streamed; callers use
        `handle()` for those.
        """
        session_id = session_id or architecture_id

        if context.errors:
            yield "; ".join(str(e) for e in context.errors)
            return

        chunks: List[str] = []
        try:
            client = self.client_factory()
            messages = build_messages(context)

            def open_stream():
                # Pull the first token so connection errors surface inside the retry
                tokens = client.stream(messages, temperature=context.temperature, model=context.model)
                return next(tokens, None), tokens

            first, tokens = with_exponential_backoff(open_stream)
            if first is not None:
                chunks.append(first)
                yield first
            for token in tokens:
                chunks.append(token)
                yield token
        except (LLMServiceError, ConfigurationError) as e:
            logger.error("[Jarvis] Streaming failed for %s: %s", architecture_id, e.message)
            log_generation("chat_stream", context.message, str(e.message), False, architecture_id)
            yield STREAM_ERROR
            return

        context.raw_response = "".join(chunks)
        ChatPipelineController().finish(context)

        self.sessions.update(session_id, intent=context.intent.intent.value)
        self.sessions.append_message(session_id, "user", context.message)
        self.sessions.append_message(session_id, "assistant", context.response)
        log_generation("chat_stream", context.message, context.raw_response, True, architecture_id)
