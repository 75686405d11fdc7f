from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from cloudmap.assistant.context import ContextLevel
from cloudmap.assistant.intent import IntentMatch
from cloudmap.ir.architecture import Architecture


@dataclass
class ChatContext:
    # Raw input (authoritative)
    message: str
    architecture: Optional[Architecture] = None
    history: List[Dict[str, str]] = field(default_factory=list)
    debug: bool = False

    # Understanding
    intent: Optional[IntentMatch] = None
    language: Optional[str] = None
    context_level: ContextLevel = ContextLevel.NONE
    context_string: str = ""

    # Prompt
    system_prompt: str = ""
    user_message: str = ""
    temperature: float = 0.7
    model: Optional[str] = None

    # Model output
    raw_response: str = ""
    tokens_used: int = 0
    response_model: Optional[str] = None

    # Result
    response: str = ""
    architecture_updated: bool = False
    updated_architecture: Optional[Architecture] = None

    metrics: Dict[str, float] = field(default_factory=dict)
    errors: List[Any] = field(default_factory=list)

    @property
    def has_architecture(self) -> bool:
        return self.architecture is not None

    @property
    def target_language(self) -> str:
        return self.language or "typescript"

    def add_error(self, message: str):
        self.errors.append(message)
