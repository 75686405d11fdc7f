"""
Programming language detection for chat messages and code blocks.
"""

import re
from typing import List, Optional, Pattern, Tuple


CDK_PATTERNS: List[Pattern] = [
    re.compile(r"cdk|cloud development kit", re.I),
    re.compile(r"infrastructure as code", re.I),
    re.compile(r"\biac\b", re.I),
    re.compile(r"cloudformation", re.I),
    re.compile(r"terraform", re.I),
]

# CDK requests default to TypeScript unless another CDK language is named
CDK_LANGUAGE_OVERRIDES: List[Tuple[Pattern, str]] = [
    (re.compile(r"python cdk|cdk.* python|in python", re.I), "python"),
    (re.compile(r"java cdk|cdk.* java\b|in java\b", re.I), "java"),
    (re.compile(r"csharp cdk|cdk.* csharp|c# cdk|in c#|\.net", re.I), "csharp"),
    (re.compile(r"go cdk|cdk.* go\b|golang|in go\b", re.I), "go"),
]

KEYWORD_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"python|boto3|django|flask|pandas|numpy|\bpip\b|\.py\b", re.I), "python"),
    (re.compile(r"typescript|\bts\b|angular|vue|react|\.ts\b", re.I), "typescript"),
    (re.compile(r"javascript|\bjs\b|node|express|\.js\b", re.I), "javascript"),
    (re.compile(r"java\b|spring|maven|gradle|\.java\b", re.I), "java"),
    (re.compile(r"c#|\.net|asp\.net|azure|\.cs\b", re.I), "csharp"),
    (re.compile(r"\bgo\b|golang|\.go\b", re.I), "go"),
    (re.compile(r"\brust\b|cargo|\.rs\b", re.I), "rust"),
    (re.compile(r"\bruby\b|rails|\.rb\b", re.I), "ruby"),
    (re.compile(r"\bphp\b|laravel|symfony", re.I), "php"),
    (re.compile(r"yaml|\byml\b", re.I), "yaml"),
    (re.compile(r"\bbash\b|shell|\bsh\b|command line|terminal", re.I), "bash"),
    (re.compile(r"\bsql\b|mysql|postgresql|database query", re.I), "sql"),
]

HTML_RE = re.compile(r"html|css|\bweb\b|frontend", re.I)
PROGRAM_RE = re.compile(r"code|function|class|program", re.I)

EXPLICIT_RE = re.compile(r"\b(?:in|using|with|for)\s+([a-zA-Z#]+(?:\s*[a-zA-Z]+)?)", re.I)
EXPLICIT_ALIASES = {
    "python": "python",
    "typescript": "typescript",
    "ts": "typescript",
    "javascript": "javascript",
    "js": "javascript",
    "java": "java",
    "c#": "csharp",
    "csharp": "csharp",
    "c sharp": "csharp",
    "go": "go",
    "golang": "go",
    "rust": "rust",
    "ruby": "ruby",
    "php": "php",
}

FENCE_LANG_RE = re.compile(r"```([a-zA-Z#]+)\s")
FENCE_ALIASES = {
    "python": "python",
    "typescript": "typescript",
    "javascript": "javascript",
    "java": "java",
    "csharp": "csharp",
    "go": "go",
    "rust": "rust",
    "ruby": "ruby",
    "php": "php",
    "ts": "typescript",
    "js": "javascript",
    "cs": "csharp",
    "c#": "csharp",
}

PY_SYNTAX_RE = re.compile(r"def\s+\w+\s*\(|if\s+\w+\s*:|\bself\b", re.I)
JS_SYNTAX_RE = re.compile(r"function\s+\w+\s*\(|\bconst\b|\blet\b|=>|interface\s+\w+|type\s+\w+", re.I)
TS_ANNOTATION_RE = re.compile(r":\s*(\w+|\{|\[)", re.I)
JAVA_SYNTAX_RE = re.compile(r"public\s+(static\s+)?(void|class|int|String)", re.I)


def is_cdk_request(message: str) -> bool:
    if not message:
        return False
    return any(p.search(message) for p in CDK_PATTERNS)


def detect_language(message: str) -> Optional[str]:
    """Best-effort guess of the programming language a message is about."""
    if not message:
        return None

    if is_cdk_request(message):
        for pattern, language in CDK_LANGUAGE_OVERRIDES:
            if pattern.search(message):
                return language
        return "typescript"

    for pattern, language in KEYWORD_RULES:
        if pattern.search(message):
            return language

    if HTML_RE.search(message) and not PROGRAM_RE.search(message):
        return "html"

    explicit = EXPLICIT_RE.search(message)
    if explicit:
        candidate = explicit.group(1).strip().lower()
        if candidate in EXPLICIT_ALIASES:
            return EXPLICIT_ALIASES[candidate]
        first_word = candidate.split()[0]
        if first_word in EXPLICIT_ALIASES:
            return EXPLICIT_ALIASES[first_word]

    if "```" in message:
        fence = FENCE_LANG_RE.search(message)
        if fence and fence.group(1).lower() in FENCE_ALIASES:
            return FENCE_ALIASES[fence.group(1).lower()]

    # Syntax heuristics
    if PY_SYNTAX_RE.search(message):
        return "python"
    if JS_SYNTAX_RE.search(message):
        if TS_ANNOTATION_RE.search(message):
            return "typescript"
        return "javascript"
    if JAVA_SYNTAX_RE.search(message):
        return "java"

    return None


CODE_GENERATION_PATTERNS: List[Pattern] = [
    re.compile(r"generate\s+code", re.I),
    re.compile(r"write\s+(a|some|the)?\s*code", re.I),
    re.compile(r"implement\s+(a|an|the)?\s*function", re.I),
    re.compile(r"create\s+(a|an|the)?\s*(function|class|module|script)", re.I),
    re.compile(r"how\s+(would|do)\s+(i|you)\s+(code|program|implement)", re.I),
    re.compile(r"code\s+to\s+(perform|do|handle|process)", re.I),
    re.compile(r"script\s+that\s+(will|can|would)", re.I),
]


def is_code_generation_request(message: str) -> bool:
    if not message:
        return False
    return any(p.search(message) for p in CODE_GENERATION_PATTERNS)


# Checked in order, first hit wins
CODE_BLOCK_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"def\s+\w+\s*\(|from\s+\w+\s+import|import\s+\w+\s+as|if\s+\w+\s*:\s*$", re.M), "python"),
    (re.compile(r"namespace\s+\w+|using\s+[\w.]+;|Console\.WriteLine"), "csharp"),
    (re.compile(r"public\s+(static\s+)?(void|class|int|String)|@Override|System\.out\.println"), "java"),
    (re.compile(r"interface\s+\w+|type\s+\w+\s*=|\w+\s*:\s*(string|number|boolean|any)\b|<[A-Z]\w*>"), "typescript"),
    (re.compile(r"func\s+\w+\s*\(|package\s+\w+|fmt\.Println"), "go"),
    (re.compile(r"const\s+\w+\s*=|let\s+\w+\s*=|var\s+\w+\s*=|function\s+\w+\s*\(|new\s+\w+\s*\("), "javascript"),
]


def detect_code_block_language(code: str) -> str:
    """Language of a code block. Falls back to TypeScript, the CDK default."""
    if not code:
        return "typescript"

    for pattern, language in CODE_BLOCK_RULES:
        if pattern.search(code):
            return language

    return "typescript"
