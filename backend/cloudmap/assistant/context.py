"""
Architecture context selection.

Each intent gets only as much of the current architecture as it needs:
a greeting gets nothing, an update gets the full JSON.
"""

import json
from enum import Enum
from typing import Optional, Sequence

from cloudmap.assistant.intent import Intent
from cloudmap.ir.architecture import Architecture


class ContextLevel(str, Enum):
    NONE = "none"        # simple chat
    MINIMAL = "minimal"  # counts and the original requirement
    SUMMARY = "summary"  # services and connections, no JSON
    FULL = "full"        # complete nodes / edges JSON


_LEVELS = {
    Intent.ARCHITECTURE_UPDATE: ContextLevel.FULL,
    Intent.CDK_GENERATION: ContextLevel.FULL,
    Intent.ARCHITECTURE_RATIONALE: ContextLevel.FULL,
    Intent.CODE_GENERATION: ContextLevel.SUMMARY,
    Intent.CODE_EXPLANATION: ContextLevel.SUMMARY,
    Intent.SYSTEM_DESIGN: ContextLevel.SUMMARY,
    Intent.ARCHITECTURE_EXPLANATION: ContextLevel.MINIMAL,
    Intent.COMPARISON: ContextLevel.MINIMAL,
    Intent.QUESTION: ContextLevel.MINIMAL,
}


def context_level_for_intent(intent: Intent) -> ContextLevel:
    return _LEVELS.get(intent, ContextLevel.NONE)


def _original_requirement(architecture: Architecture) -> str:
    prompt = architecture.metadata.get("prompt")
    if prompt:
        return f"Original requirement: {prompt}"
    return "No original requirement specified"


def services_summary(architecture: Architecture) -> str:
    return "\n- ".join(
        f"{n.data.service} ({n.data.label}): {n.data.description or 'No description'}"
        for n in architecture.nodes
    )


def connections_summary(architecture: Architecture) -> str:
    lines = []
    for edge in architecture.edges:
        source = architecture.find_node(edge.source)
        target = architecture.find_node(edge.target)
        protocol = (edge.data.protocol if edge.data else None) or "default"
        lines.append(
            f"{source.data.label if source else 'Unknown'} → "
            f"{target.data.label if target else 'Unknown'} ({protocol})"
        )
    return "\n- ".join(lines)


def generate_context_string(architecture: Optional[Architecture], level: ContextLevel) -> str:
    if level == ContextLevel.NONE or architecture is None:
        return ""

    service_count = len(architecture.nodes)
    connection_count = len(architecture.edges)
    requirement = _original_requirement(architecture)

    if level == ContextLevel.MINIMAL:
        return (
            "CURRENT ARCHITECTURE (MINIMAL):\n"
            f"- {service_count} services\n"
            f"- {connection_count} connections\n"
            f"{requirement}\n"
        )

    services = services_summary(architecture)
    connections = connections_summary(architecture)

    if level == ContextLevel.SUMMARY:
        return (
            "CURRENT ARCHITECTURE SUMMARY:\n"
            f"Services ({service_count}):\n"
            f"- {services}\n\n"
            f"Connections ({connection_count}):\n"
            f"- {connections}\n\n"
            f"{requirement}\n"
        )

    nodes_json = json.dumps(architecture.nodes_payload(), indent=2)
    edges_json = json.dumps(architecture.edges_payload(), indent=2)

    return (
        "FULL CURRENT ARCHITECTURE:\n"
        "Nodes JSON:\n"
        f"```json\n{nodes_json}\n```\n\n"
        "Edges JSON:\n"
        f"```json\n{edges_json}\n```\n\n"
        "Services Summary:\n"
        f"- {services}\n\n"
        "Connections Summary:\n"
        f"- {connections}\n\n"
        f"{requirement}\n"
    )


def generate_message_history_context(messages: Sequence[dict], limit: int = 10) -> str:
    if not messages:
        return ""

    recent = list(messages)[-limit:]
    body = "\n\n".join(
        f"{str(m.get('role', 'user')).upper()}: {m.get('content', '')}"
        for m in recent
    )
    return f"CONVERSATION HISTORY:\n{body}\n"
