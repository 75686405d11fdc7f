import re
from enum import Enum
from typing import Optional

from cloudmap.assistant.intent import Intent
from cloudmap.assistant.language import detect_code_block_language


class ResponseFormat(str, Enum):
    MARKDOWN = "markdown"
    CODE = "code"
    CODE_WITH_EXPLANATION = "code_with_explanation"
    ARCHITECTURE_UPDATE = "architecture_update"
    LIST = "list"
    CONVERSATION = "conversation"


_FORMATS = {
    Intent.ARCHITECTURE_UPDATE: ResponseFormat.ARCHITECTURE_UPDATE,
    Intent.CDK_GENERATION: ResponseFormat.CODE,
    Intent.CODE_GENERATION: ResponseFormat.CODE,
    Intent.CODE_EXPLANATION: ResponseFormat.CODE_WITH_EXPLANATION,
    Intent.ARCHITECTURE_EXPLANATION: ResponseFormat.MARKDOWN,
    Intent.SYSTEM_DESIGN: ResponseFormat.MARKDOWN,
    Intent.ARCHITECTURE_RATIONALE: ResponseFormat.MARKDOWN,
    Intent.QUESTION: ResponseFormat.LIST,
    Intent.COMPARISON: ResponseFormat.LIST,
}


def response_format_for_intent(intent: Intent) -> ResponseFormat:
    return _FORMATS.get(intent, ResponseFormat.CONVERSATION)


FIRST_CODE_BLOCK_RE = re.compile(r"```[a-z#+]*\n[\s\S]+?```", re.IGNORECASE)
CODE_SPLIT_RE = re.compile(r"(?:Here'?s the code|Implementation:|Code example)", re.IGNORECASE)
NUMBERED_RE = re.compile(r"^\d+\.\s*")

SECTION_HEADERS = {
    Intent.ARCHITECTURE_EXPLANATION: "## Architecture Explanation",
    Intent.SYSTEM_DESIGN: "## System Design",
    Intent.COMPARISON: "## Comparison",
}

MAX_INTRO_CHARS = 100


def _format_code(intent: Intent, raw: str, language: Optional[str]) -> str:
    if "```" not in raw:
        if language:
            lang = language
        elif intent == Intent.CDK_GENERATION:
            lang = "typescript"
        else:
            lang = detect_code_block_language(raw)
        return f"```{lang}\n{raw.strip()}\n```"

    block = FIRST_CODE_BLOCK_RE.search(raw)
    if not block:
        return raw

    intro = raw[: raw.index("```")].strip()
    if intro and len(intro) < MAX_INTRO_CHARS:
        return f"{intro}\n\n{block.group(0)}"
    return block.group(0)


def _format_code_explanation(raw: str, language: Optional[str]) -> str:
    if "```" in raw:
        return raw

    parts = CODE_SPLIT_RE.split(raw, maxsplit=1)
    if len(parts) < 2:
        return raw

    explanation, code = parts[0].strip(), parts[1].strip()
    return f"{explanation}\n\n```{language or 'javascript'}\n{code}\n```"


def _format_structured(intent: Intent, raw: str) -> str:
    if "#" not in raw:
        lines = raw.split("\n")
        header = SECTION_HEADERS.get(intent)
        if header and len(lines) > 3:
            return f"{header}\n\n{raw}"

    if (
        intent in (Intent.COMPARISON, Intent.QUESTION)
        and "-" not in raw
        and "*" not in raw
    ):
        paragraphs = raw.split("\n\n")
        if len(paragraphs) > 2:
            return "\n\n".join(NUMBERED_RE.sub("- ", p.strip()) for p in paragraphs)

    return raw


def post_process_response(intent: Intent, raw: str, language: Optional[str] = None) -> str:
    """Nudge model output into the shape the chat UI renders for this intent."""
    raw = raw or ""

    if intent in (Intent.CDK_GENERATION, Intent.CODE_GENERATION):
        return _format_code(intent, raw, language)
    if intent == Intent.CODE_EXPLANATION:
        return _format_code_explanation(raw, language)
    if intent in (
        Intent.ARCHITECTURE_EXPLANATION,
        Intent.SYSTEM_DESIGN,
        Intent.QUESTION,
        Intent.COMPARISON,
    ):
        return _format_structured(intent, raw)
    if intent in (Intent.GREETING, Intent.GENERAL_CHAT):
        return raw.strip()

    # architecture_update is handled by the update extractor
    return raw


def format_update_confirmation(explanation: str) -> str:
    return (
        "✅ **Architecture Updated Successfully**\n\n"
        f"### Changes Made:\n{explanation}\n\n"
        "### Impact:\n"
        "- Your architecture has been updated with these changes\n"
        "- All connections and permissions have been configured appropriately\n"
        "- The diagram reflects the current state of your design"
    )
