"""
Jarvis assistant building blocks: intent, language, context, prompts,
response shaping, follow-ups and conversation sessions.
"""

from cloudmap.assistant.context import ContextLevel, context_level_for_intent, generate_context_string
from cloudmap.assistant.intent import Intent, IntentMatch, detect_enhanced_intent, infer_intent
from cloudmap.assistant.language import detect_language
from cloudmap.assistant.response import post_process_response, response_format_for_intent
from cloudmap.assistant.sessions import SessionStore, get_session_store

__all__ = [
    "ContextLevel",
    "context_level_for_intent",
    "generate_context_string",
    "Intent",
    "IntentMatch",
    "detect_enhanced_intent",
    "infer_intent",
    "detect_language",
    "post_process_response",
    "response_format_for_intent",
    "SessionStore",
    "get_session_store",
]
