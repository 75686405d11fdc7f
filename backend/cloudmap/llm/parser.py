import json
import random
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from cloudmap.errors import LLMResponseError
from cloudmap.ir.architecture import Architecture


# ============================================================
# SAFE JSON LOADER (LLM TRUST BOUNDARY)
# ============================================================

FENCE_RE = re.compile(r"```(?:json)?|```")


def clean_json_text(text: str) -> str:
    return FENCE_RE.sub("", text or "").strip()


def strip_json_comments(text: str) -> str:
    """Remove // and /* */ comments that sit outside of JSON strings."""
    out = []
    i = 0
    n = len(text)
    in_string = False

    while i < n:
        ch = text[i]

        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        else:
            out.append(ch)
            i += 1

    return "".join(out)


def load_model_json(text: str) -> Any:
    """
    Parse JSON produced by a model.

    Strategy:
    1. Strict parse after removing markdown fences
    2. Strip JS-style comments
    3. Repair single-quoted JSON
    4. Extract first {...} span

    Raises LLMResponseError when nothing parses.
    """
    if not text or not isinstance(text, str):
        raise LLMResponseError("Empty response from AI", raw=text)

    cleaned = clean_json_text(text)
    no_comments = strip_json_comments(cleaned)

    candidates = [cleaned, no_comments, no_comments.replace("'", '"')]

    match = re.search(r"\{.*\}", no_comments, re.DOTALL)
    if match:
        candidates.append(match.group(0))

    last_error = None
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = e

    raise LLMResponseError(f"Invalid JSON from AI: {last_error}", raw=text)


# ============================================================
# ARCHITECTURE PARSER
# ============================================================

NODE_PALETTE = [
    "#42a5f5",  # Blue (Lambda)
    "#5c6bc0",  # Indigo (DynamoDB)
    "#ec407a",  # Pink (API Gateway)
    "#66bb6a",  # Green (S3)
    "#ffa726",  # Orange (SQS/SNS)
    "#8d6e63",  # Brown (EC2)
    "#7e57c2",  # Purple (CloudFront)
]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def default_position(index: int) -> Dict[str, float]:
    return {"x": 100 + index * 200, "y": 100 + (index // 5) * 150}


def default_style(rng: Optional[random.Random] = None) -> Dict[str, Any]:
    rng = rng or random
    return {
        "background": rng.choice(NODE_PALETTE),
        "color": "#ffffff",
        "border": "1px solid #000000",
        "width": 180,
    }


def _normalize_node(node: dict, index: int, rng: Optional[random.Random]) -> dict:
    node = dict(node)

    # Flat nodes: {"id", "label", "service"} -> data block
    data = node.get("data")
    if not isinstance(data, dict):
        data = {
            k: node.pop(k)
            for k in ("label", "service", "description")
            if k in node
        }
    data = dict(data)
    if not data.get("label") and data.get("service"):
        data["label"] = data["service"]
    if not data.get("service") and data.get("label"):
        data["service"] = data["label"]
    node["data"] = data

    position = node.get("position")
    if (
        not isinstance(position, dict)
        or not _is_number(position.get("x"))
        or not _is_number(position.get("y"))
    ):
        node["position"] = default_position(index)

    if not node.get("style"):
        node["style"] = default_style(rng)

    if not node.get("type"):
        node["type"] = "awsService"

    if node.get("id") is not None:
        node["id"] = str(node["id"])

    return node


def _normalize_edge(edge: dict) -> dict:
    edge = dict(edge)
    for key in ("source", "target", "id"):
        if edge.get(key) is not None:
            edge[key] = str(edge[key])
    if not edge.get("id") and edge.get("source") and edge.get("target"):
        edge["id"] = f"edge-{edge['source']}-{edge['target']}"
    return edge


def normalize_architecture_data(
    data: dict,
    rng: Optional[random.Random] = None,
) -> Dict[str, List[dict]]:
    nodes = [
        _normalize_node(n, i, rng)
        for i, n in enumerate(data.get("nodes", []))
        if isinstance(n, dict)
    ]
    edges = [_normalize_edge(e) for e in data.get("edges", []) if isinstance(e, dict)]
    return {"nodes": nodes, "edges": edges}


def parse_architecture(
    text: str,
    rng: Optional[random.Random] = None,
) -> Tuple[Architecture, str]:
    """Parse a generated architecture and its rationale from model output."""
    data = load_model_json(text)

    if (
        not isinstance(data, dict)
        or not isinstance(data.get("nodes"), list)
        or not isinstance(data.get("edges"), list)
    ):
        raise LLMResponseError(
            "Invalid architecture format received from AI: missing nodes or edges",
            raw=text,
        )

    normalized = normalize_architecture_data(data, rng)

    try:
        architecture = Architecture.model_validate(normalized)
    except ValidationError as e:
        raise LLMResponseError(f"Architecture validation failed: {e}", raw=text) from e

    rationale = data.get("rationale")
    if not isinstance(rationale, str):
        rationale = ""

    return architecture, rationale.strip()


# ============================================================
# ARCHITECTURE UPDATE EXTRACTION (chat responses)
# ============================================================

UPDATE_PATTERNS = [
    re.compile(r"<architecture>([\s\S]*?)</architecture>"),
    re.compile(r"```json\s*([\s\S]*?)```"),
    re.compile(r"```[a-zA-Z]*\s*([\s\S]*?)```"),
]
EXPLANATION_RE = re.compile(r"<explanation>([\s\S]*?)</explanation>")

DEFAULT_EXPLANATION = "Architecture updated."
MAX_EXPLANATION_CHARS = 1500


def _is_architecture_dict(value) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("nodes"), list)
        and isinstance(value.get("edges"), list)
    )


def _find_bare_architecture(text: str) -> Tuple[Optional[dict], Optional[Tuple[int, int]]]:
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        start = match.start()
        try:
            value, end = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            continue
        if _is_architecture_dict(value):
            return value, (start, end)
    return None, None


def extract_architecture_update(raw: str) -> Tuple[Optional[dict], str]:
    """
    Pull `{nodes, edges}` and an explanation out of a chat response.

    Returns (architecture dict or None, explanation).
    """
    raw = raw or ""
    parsed = None
    matched_span = None

    for pattern in UPDATE_PATTERNS:
        for match in pattern.finditer(raw):
            try:
                value = load_model_json(match.group(1))
            except LLMResponseError:
                continue
            if _is_architecture_dict(value):
                parsed = value
                matched_span = match.span()
                break
        if parsed is not None:
            break

    if parsed is None:
        parsed, matched_span = _find_bare_architecture(raw)

    explanation_match = EXPLANATION_RE.search(raw)
    if explanation_match and explanation_match.group(1).strip():
        explanation = explanation_match.group(1).strip()
    else:
        cleaned = raw
        if matched_span:
            cleaned = raw[: matched_span[0]] + raw[matched_span[1]:]
        for pattern in UPDATE_PATTERNS:
            cleaned = pattern.sub("", cleaned)
        explanation = cleaned.strip() or DEFAULT_EXPLANATION

        if len(explanation) > MAX_EXPLANATION_CHARS:
            explanation = explanation[:MAX_EXPLANATION_CHARS] + "..."

    return parsed, explanation


# ============================================================
# CODE EXTRACTION
# ============================================================

CODE_BLOCK_RE = re.compile(r"```[\w#+.-]*[ \t]*\n([\s\S]*?)```")


def extract_code_block(text: str) -> str:
    match = CODE_BLOCK_RE.search(text or "")
    if match:
        return match.group(1).strip()
    return (text or "").strip()
