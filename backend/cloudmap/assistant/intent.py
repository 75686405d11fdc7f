"""
Intent detection for the Jarvis assistant.

Messages are matched against an ordered list of weighted rules. A rule fires
when one of its regex patterns matches AND (if it has keyword sets) every
keyword of at least one set is present. The highest weight wins; the
fallback `general_chat` rule matches anything.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Pattern, Sequence


class Intent(str, Enum):
    ARCHITECTURE_UPDATE = "architecture_update"
    ARCHITECTURE_RATIONALE = "architecture_rationale"
    CDK_GENERATION = "cdk_generation"
    CODE_GENERATION = "code_generation"
    CODE_EXPLANATION = "code_explanation"
    ARCHITECTURE_EXPLANATION = "architecture_explanation"
    SYSTEM_DESIGN = "system_design"
    COMPARISON = "comparison"
    QUESTION = "question"
    GREETING = "greeting"
    GENERAL_CHAT = "general_chat"


def _compile(patterns: Sequence[str]) -> List[Pattern]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


@dataclass
class IntentRule:
    intent: Intent
    patterns: List[Pattern]
    weight: int
    # Outer list is OR, inner list is AND
    keyword_sets: Optional[List[List[str]]] = None
    requires_context: bool = False

    def matches(self, message: str) -> bool:
        if not any(p.search(message) for p in self.patterns):
            return False
        if not self.keyword_sets:
            return True
        lowered = message.lower()
        return any(all(k in lowered for k in keywords) for keywords in self.keyword_sets)


_ARCH = r"(architecture|diagram|system)"
_SUBJECT = r"(this|the|current|existing)"
_DESIGN = r"(architecture|design|system|diagram)"
_ANALYSIS = r"(rationale|explanation|analysis|assessment|evaluation|review|breakdown|cost analysis|costing)"

INTENT_RULES: List[IntentRule] = [
    IntentRule(
        intent=Intent.GREETING,
        patterns=_compile([
            r"^(hi|hello|hey|greetings|howdy|good (morning|afternoon|evening)|what'?s up)",
        ]),
        weight=10,
    ),
    IntentRule(
        intent=Intent.ARCHITECTURE_UPDATE,
        patterns=_compile([
            rf"update (the|this|my|our) {_ARCH}",
            rf"add .+ to (the|this|my|our) {_ARCH}",
            rf"modify (the|this|my|our) {_ARCH}",
            rf"change (the|this|my|our) {_ARCH}",
            rf"redesign (the|this|my|our) {_ARCH}",
        ]),
        keyword_sets=[
            ["add", "architecture"],
            ["update", "architecture"],
            ["modify", "architecture"],
            ["change", "architecture"],
            ["redesign", "architecture"],
        ],
        requires_context=True,
        weight=90,
    ),
    IntentRule(
        intent=Intent.ARCHITECTURE_RATIONALE,
        patterns=_compile([
            rf"provide.*{_ANALYSIS}.*(for|of|about).*{_SUBJECT}.*{_DESIGN}",
            rf"generate.*{_ANALYSIS}.*(for|of|about).*{_SUBJECT}.*{_DESIGN}",
            rf"explain.*(rationale|reasoning|thinking|logic|decision|costs?|pricing).*(behind|for|of).*{_SUBJECT}.*{_DESIGN}",
            rf"(analyze|assess|evaluate|review).*{_SUBJECT}.*{_DESIGN}",
            rf"what('s| is| are).*(the).*(costs?|pricing|expenses?|budget).*(of|for).*{_SUBJECT}.*{_DESIGN}",
            rf"how much.*(would|does|will).*{_SUBJECT}.*{_DESIGN}.*(cost)",
            r"break down.*(this|the|current).*(architecture|design|system|diagram)",
        ]),
        keyword_sets=[
            ["rationale", "architecture"],
            ["explain", "architecture"],
            ["analyze", "architecture"],
            ["cost", "architecture"],
            ["costs", "architecture"],
            ["pricing", "architecture"],
            ["evaluation", "architecture"],
            ["breakdown", "architecture"],
            ["analysis", "architecture"],
            ["assessment", "architecture"],
        ],
        requires_context=True,
        weight=85,
    ),
    IntentRule(
        intent=Intent.CDK_GENERATION,
        patterns=_compile([
            r"generate.*(cdk|cloud development kit).*(code|implementation)",
            r"create.*(cdk|cloud development kit).*(code|implementation)",
            r"write.*(cdk|cloud development kit).*(code|implementation)",
            r"implement.*(architecture|diagram|design).*(using|with|in).*(cdk|cloud development kit)",
            r"convert.*(architecture|diagram|design).*(to|into).*(cdk|cloud development kit)",
        ]),
        keyword_sets=[
            ["generate", "cdk"],
            ["create", "cdk"],
            ["write", "cdk"],
            ["implement", "cdk"],
            ["convert", "cdk"],
        ],
        requires_context=True,
        weight=100,
    ),
    IntentRule(
        intent=Intent.CODE_GENERATION,
        patterns=_compile([
            r"generate.*(code|function|class|module)",
            r"write.*(code|function|class|module)",
            r"create.*(code|function|class|module)",
            r"implement.*(in|using).*(javascript|typescript|python|java|c#|go)",
            r"code.*(for|that).*(does|performs|handles|implements)",
        ]),
        keyword_sets=[
            ["generate", "code"],
            ["write", "code"],
            ["create", "code"],
            ["implement", "function"],
            ["code", "for"],
        ],
        weight=80,
    ),
    IntentRule(
        intent=Intent.CODE_EXPLANATION,
        patterns=_compile([
            r"explain.*(this|the).*(code|function|class|module)",
            r"how.*(does|do).*(this|the).*(code|function|class|module).*(work|function)",
            r"what.*(does|do).*(this|the).*(code|function|class|module).*(do|mean)",
            r"understand.*(this|the).*(code|function|class|module)",
            r"analyze.*(this|the).*(code|function|class|module)",
        ]),
        keyword_sets=[
            ["explain", "code"],
            ["how", "code", "work"],
            ["what", "code", "do"],
            ["understand", "code"],
            ["analyze", "code"],
        ],
        weight=70,
    ),
    IntentRule(
        intent=Intent.ARCHITECTURE_EXPLANATION,
        patterns=_compile([
            r"explain.*(this|the).*(architecture|diagram|system|design)",
            r"how.*(does|do).*(this|the).*(architecture|diagram|system|design).*(work|function)",
            r"what.*(does|do).*(this|the).*(architecture|diagram|system|design).*(do|mean)",
            r"understand.*(this|the).*(architecture|diagram|system|design)",
            r"analyze.*(this|the).*(architecture|diagram|system|design)",
        ]),
        keyword_sets=[
            ["explain", "architecture"],
            ["how", "architecture", "work"],
            ["what", "architecture", "do"],
            ["understand", "architecture"],
            ["analyze", "architecture"],
        ],
        requires_context=True,
        weight=75,
    ),
    IntentRule(
        intent=Intent.SYSTEM_DESIGN,
        patterns=_compile([
            r"design.*(a|an).*(architecture|system|solution)",
            r"create.*(a|an).*(architecture|system|solution).*(for|that)",
            r"architect.*(a|an).*(system|solution).*(for|that)",
            r"how.*(would|should|could).*(you|we|I).*(architect|design|build|create).*(a|an).*(system|solution)",
            r"what.*(architecture|system|solution).*(would|should|could).*(you|we|I).*(use|implement|create).*(for|to)",
        ]),
        keyword_sets=[
            ["design", "architecture"],
            ["create", "system"],
            ["architect", "solution"],
            ["how", "design", "system"],
            ["what", "architecture", "use"],
        ],
        weight=85,
    ),
    IntentRule(
        intent=Intent.COMPARISON,
        patterns=_compile([
            r"compare.*(between|with|and)",
            r"difference.*(between|with|and)",
            r"similarities.*(between|with|and)",
            r"pros.*(and).*(cons|benefits|advantages|disadvantages)",
            r"better.*(option|choice|alternative|approach)",
            r"which.*(is|are).*(better|best|optimal|preferred)",
        ]),
        keyword_sets=[
            ["compare"],
            ["difference", "between"],
            ["similarities"],
            ["pros", "cons"],
            ["better", "option"],
            ["which", "better"],
        ],
        weight=60,
    ),
    IntentRule(
        intent=Intent.QUESTION,
        patterns=_compile([
            r"^(what|how|why|when|where|who|which|can|could|would|should|is|are|do|does|did|has|have|had)",
            r"\?(.*)?$",
        ]),
        weight=20,
    ),
    # Fallback, lowest weight
    IntentRule(
        intent=Intent.GENERAL_CHAT,
        patterns=_compile([r".+"]),
        weight=1,
    ),
]


def infer_intent(message: str, has_architecture_context: bool = False) -> Intent:
    """Return the highest weighted intent whose rule matches the message."""
    best: Optional[IntentRule] = None

    for rule in INTENT_RULES:
        if rule.requires_context and not has_architecture_context:
            continue
        if not rule.matches(message):
            continue
        # Strict ">" keeps the earlier rule on ties
        if best is None or rule.weight > best.weight:
            best = rule

    return best.intent if best else Intent.GENERAL_CHAT


def is_greeting(message: str) -> bool:
    return infer_intent(message) == Intent.GREETING


# ============================================================
# ENHANCED INTENT (sub-types, entities, confidence)
# ============================================================

@dataclass
class IntentMatch:
    intent: Intent
    confidence: float
    sub_type: Optional[str] = None
    entities: Dict[str, str] = field(default_factory=dict)
    trigger: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "intent": self.intent.value,
            "confidence": round(self.confidence, 2),
            "subType": self.sub_type,
            "entities": self.entities,
        }


@dataclass
class SubIntentRule:
    sub_type: str
    pattern: Pattern
    entity_keys: List[str]


ARCHITECTURE_SUB_INTENTS: List[SubIntentRule] = [
    SubIntentRule(
        sub_type="add_service",
        pattern=re.compile(
            r"(?:add|include|incorporate)\s+(?:(?:an|a)\s+)?([A-Za-z0-9\s]+?)"
            r"(?:\s+(?:to|in|into|for)\b|$)",
            re.IGNORECASE,
        ),
        entity_keys=["serviceName"],
    ),
    SubIntentRule(
        sub_type="remove_service",
        pattern=re.compile(
            r"(?:remove|delete|exclude)\s+(?:(?:the|an|a)\s+)?([A-Za-z0-9\s]+?)"
            r"(?:\s+(?:from|in)\b|$)",
            re.IGNORECASE,
        ),
        entity_keys=["serviceName"],
    ),
    SubIntentRule(
        sub_type="connect_services",
        pattern=re.compile(
            r"(?:connect|link|integrate)\s+(?:(?:the|an|a)\s+)?([A-Za-z0-9\s]+?)\s+"
            r"(?:to|with|and)\s+(?:(?:the|an|a)\s+)?([A-Za-z0-9\s]+)",
            re.IGNORECASE,
        ),
        entity_keys=["sourceService", "targetService"],
    ),
    SubIntentRule(
        sub_type="edit_service",
        pattern=re.compile(
            r"(?:edit|modify|change|update)\s+(?:(?:the|an|a)\s+)?([A-Za-z0-9\s]+)",
            re.IGNORECASE,
        ),
        entity_keys=["serviceName"],
    ),
]

BASE_CONFIDENCE = 0.9


def _extract_sub_intent(match: IntentMatch, message: str):
    for rule in ARCHITECTURE_SUB_INTENTS:
        m = rule.pattern.search(message)
        if not m:
            continue

        entities = {}
        for i, key in enumerate(rule.entity_keys, start=1):
            if i <= (m.lastindex or 0) and m.group(i):
                entities[key] = m.group(i).strip()

        match.sub_type = rule.sub_type
        match.entities = entities
        match.trigger = rule.pattern.pattern
        return


def adjust_intent_confidence(match: IntentMatch, message: str):
    lowered = message.lower()

    if "?" in message and match.intent != Intent.QUESTION:
        match.confidence -= 0.15

    if (
        any(word in lowered for word in ("code", "script", "snippet"))
        and match.intent not in (Intent.CODE_GENERATION, Intent.CDK_GENERATION)
    ):
        match.confidence -= 0.1

    if "cdk" in lowered and match.intent != Intent.CDK_GENERATION:
        match.confidence -= 0.2

    # Very short messages are rarely real architecture edits
    if match.intent == Intent.ARCHITECTURE_UPDATE and len(message) < 15:
        match.confidence -= 0.3

    match.confidence = min(1.0, max(0.0, match.confidence))


def detect_enhanced_intent(message: str, has_architecture: bool = True) -> IntentMatch:
    match = IntentMatch(
        intent=infer_intent(message, has_architecture),
        confidence=BASE_CONFIDENCE,
    )

    if match.intent == Intent.ARCHITECTURE_UPDATE:
        _extract_sub_intent(match, message)

    adjust_intent_confidence(match, message)
    return match
