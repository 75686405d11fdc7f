"""
Prompt templates.

Chat prompts are layered: every intent starts from BASE_PROMPT, architecture
intents add ARCHITECTURE_EXPERT_PROMPT, code intents add CODE_EXPERT_PROMPT and
CDK generation adds CDK_EXPERT_PROMPT on top of that. Generation prompts
(new architecture, adjustment, CDK export) live at the bottom of the module.
"""

import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from cloudmap.assistant.context import (
    context_level_for_intent,
    generate_context_string,
    services_summary,
)
from cloudmap.assistant.intent import Intent, IntentMatch
from cloudmap.inference.config import temperature_for_intent
from cloudmap.ir.architecture import Architecture


@dataclass(frozen=True)
class PromptTemplate:
    system_prompt: str
    user_prompt_prefix: Optional[str] = None
    user_prompt_suffix: Optional[str] = None
    temperature: Optional[float] = None
    model: Optional[str] = None


BASE_PROMPT = """You are Jarvis, an intelligent AI assistant specialized in cloud architecture and system design.
You provide helpful, accurate, and concise responses.
Always prioritize clarity, security best practices, and scalable design when giving recommendations.
"""

ARCHITECTURE_EXPERT_PROMPT = BASE_PROMPT + """
You excel at cloud architecture design using AWS services. When analyzing or modifying architectures:
1. Focus on security, scalability, and cost-effectiveness
2. Use appropriate AWS services for each requirement
3. Consider separation of concerns and system boundaries
4. Suggest efficient data flows between services
5. Recommend appropriate connection protocols between services
"""

CODE_EXPERT_PROMPT = BASE_PROMPT + """
You excel at writing clean, efficient, and well-documented code. When generating code:
1. Follow best practices and design patterns for the target language
2. Include necessary error handling and edge cases
3. Write clear comments explaining complex logic
4. Structure the code for maintainability and extensibility
5. Use modern syntax and features when appropriate
"""

CDK_EXPERT_PROMPT = CODE_EXPERT_PROMPT + """
You specialize in AWS CDK (Cloud Development Kit). When generating CDK code:
1. Use L2 constructs when available for better abstractions
2. Apply security best practices (least privilege IAM, encryption)
3. Create reusable and modular constructs
4. Use proper CDK patterns and idioms
5. Include necessary imports and explicit dependencies
6. Consider resource removal policies and retention strategies
"""


PROMPT_TEMPLATES: Dict[Intent, PromptTemplate] = {
    Intent.ARCHITECTURE_UPDATE: PromptTemplate(
        system_prompt=ARCHITECTURE_EXPERT_PROMPT + """
When updating an architecture based on user requirements:
1. Always maintain the structure of the existing architecture where possible
2. Add or modify only the necessary components to fulfill the request
3. Preserve IDs and relationships of existing components
4. Explain your reasoning for each change
5. Return the updated nodes and edges JSON that can be directly used to replace the existing architecture""",
        user_prompt_prefix="Please update the current architecture based on this requirement: ",
        temperature=0.2,
    ),
    Intent.ARCHITECTURE_RATIONALE: PromptTemplate(
        system_prompt=ARCHITECTURE_EXPERT_PROMPT + """
When providing a comprehensive architecture rationale:
1. Analyze the current architecture in detail including costs, scalability, and security
2. Estimate the cost of each AWS service and provide a total monthly cost estimate
3. Describe the purpose and importance of each component in the system
4. Explain data flows and service connections, including why certain connections exist
5. Evaluate the security, compliance, and operational aspects of the design
6. Provide relevant best practices and potential improvements
7. Format your response with clear markdown headings and structure""",
        user_prompt_prefix="Please provide a comprehensive rationale and analysis for this architecture: ",
        temperature=0.3,
    ),
    Intent.CDK_GENERATION: PromptTemplate(
        system_prompt=CDK_EXPERT_PROMPT + """
When generating CDK code for the architecture:
1. Create CDK constructs that implement the entire architecture
2. Organize code into logical stacks based on service boundaries
3. Include all necessary connections and permissions between services
4. Add appropriate comments explaining implementation decisions
5. Format your response as compilable code in markdown code blocks""",
        user_prompt_prefix="Generate AWS CDK code for the following architecture: ",
        temperature=0.2,
    ),
    Intent.CODE_GENERATION: PromptTemplate(
        system_prompt=CODE_EXPERT_PROMPT + """
When generating code based on requirements:
1. Implement a complete solution that meets all specified requirements
2. Structure the code logically with proper separation of concerns
3. Include error handling, validation, and edge case management
4. Add appropriate comments explaining implementation decisions
5. Format your response as compilable code in markdown code blocks""",
        user_prompt_prefix="Please generate code for the following requirement: ",
        temperature=0.3,
    ),
    Intent.CODE_EXPLANATION: PromptTemplate(
        system_prompt=BASE_PROMPT + """
When explaining code:
1. First summarize what the code does at a high level
2. Break down key sections and explain their purpose
3. Identify important patterns, algorithms, or techniques used
4. Note any potential issues, optimizations, or security concerns
5. Use clear, educational language assuming the user has technical background""",
        user_prompt_prefix="Please explain this code: ",
        temperature=0.3,
    ),
    Intent.ARCHITECTURE_EXPLANATION: PromptTemplate(
        system_prompt=ARCHITECTURE_EXPERT_PROMPT + """
When explaining an architecture:
1. Provide a high-level overview of the system and its purpose
2. Describe each component and its role in the architecture
3. Explain the data flow and interactions between components
4. Highlight key design decisions and their rationales
5. Discuss scalability, security, and resilience aspects""",
        user_prompt_prefix="Please explain this architecture: ",
        temperature=0.3,
    ),
    Intent.SYSTEM_DESIGN: PromptTemplate(
        system_prompt=ARCHITECTURE_EXPERT_PROMPT + """
When designing a system from requirements:
1. First analyze the functional and non-functional requirements
2. Propose a high-level architecture with appropriate services
3. Justify your choice of components and their relationships
4. Consider scalability, security, reliability, and cost
5. Suggest implementation approaches and potential challenges""",
        user_prompt_prefix="Please design a system for these requirements: ",
        temperature=0.4,
    ),
    Intent.COMPARISON: PromptTemplate(
        system_prompt=BASE_PROMPT + """
When making comparisons:
1. Identify the key dimensions for comparison
2. Objectively evaluate each option against these dimensions
3. Highlight the strengths and weaknesses of each option
4. Consider contextual factors that might affect the decision
5. Provide a balanced assessment without unwarranted bias""",
        user_prompt_prefix="Compare the following: ",
        temperature=0.3,
    ),
    Intent.GREETING: PromptTemplate(
        system_prompt=BASE_PROMPT + """
When greeting users:
1. Be friendly, concise, and professional
2. Briefly mention your capabilities relevant to cloud architecture
3. Ask how you can assist them with their cloud architecture needs""",
        temperature=0.7,
    ),
    # No fixed temperature: falls back to temperature_for_intent
    Intent.QUESTION: PromptTemplate(system_prompt=BASE_PROMPT),
    Intent.GENERAL_CHAT: PromptTemplate(system_prompt=BASE_PROMPT),
}

DEFAULT_TEMPERATURE = 0.4


def get_prompt_template(intent: Intent) -> PromptTemplate:
    return PROMPT_TEMPLATES.get(intent, PROMPT_TEMPLATES[Intent.GENERAL_CHAT])


def build_system_prompt(intent: Intent, context: str) -> str:
    template = get_prompt_template(intent)
    if context:
        return f"{template.system_prompt}\n\nCONTEXT:\n{context}"
    return template.system_prompt


def format_user_message(intent: Intent, message: str) -> str:
    template = get_prompt_template(intent)
    return f"{template.user_prompt_prefix or ''}{message}{template.user_prompt_suffix or ''}"


def model_config_for_intent(intent: Intent) -> Tuple[float, Optional[str]]:
    template = get_prompt_template(intent)
    temperature = template.temperature if template.temperature is not None else DEFAULT_TEMPERATURE
    return temperature, template.model


def sampling_temperature(intent: Intent) -> float:
    """Template temperature when one is set, otherwise the per-intent default."""
    template = get_prompt_template(intent)
    if template.temperature is not None:
        return template.temperature
    return temperature_for_intent(intent.value)


# ============================================================
# TASK PROMPTS (intents with a strict output contract)
# ============================================================

def _architecture_json(architecture: Optional[Architecture]) -> str:
    if architecture is None:
        return '{ "nodes": [], "edges": [] }'
    nodes = json.dumps(architecture.nodes_payload(), indent=2)
    edges = json.dumps(architecture.edges_payload(), indent=2)
    return f'{{ "nodes": {nodes}, "edges": {edges} }}'


def _update_prompt(match: IntentMatch, message: str, architecture: Optional[Architecture]) -> str:
    edit_type = match.sub_type or "modify"
    return f"""You are an AWS architecture expert modifying a diagram JSON based on a user request.
CURRENT ARCHITECTURE JSON:
```json
{_architecture_json(architecture)}
```
USER REQUEST: "{message}"
TASK: Directly modify the architecture JSON to perform the '{edit_type}' action.
OUTPUT FORMAT (Strictly follow):
<architecture>
{{ "nodes": [...], "edges": [...] }}
</architecture>
<explanation>
Brief bullet points of changes made.
</explanation>
IMPORTANT: Return the COMPLETE, modified architecture JSON. Ensure nodes/edges arrays are valid.
Every node needs "id", "type", "position" {{x, y}} and "data" {{label, service}}.
Every edge needs "id", "source" and "target".
"""


def _rationale_prompt(message: str, architecture: Optional[Architecture]) -> str:
    services = services_summary(architecture) if architecture else ""
    return f"""You are an AWS architecture expert providing a comprehensive rationale and analysis.
CURRENT ARCHITECTURE JSON:
```json
{_architecture_json(architecture)}
```

Services Summary:
- {services}

USER REQUEST: "{message}"

TASK: Provide a detailed rationale and analysis of this AWS architecture, responding to the user's specific request.

Include in your comprehensive analysis:
1. Executive Summary - Brief overview of the architecture's purpose and design
2. Cost Analysis - Estimated monthly costs for each AWS service and approximate total cost
3. Architecture Components - Detailed explanation of each service's purpose
4. Data Flow - How information moves through the system
5. Security Assessment - Security features and potential improvements
6. Scalability Analysis - How the system handles increased load
7. Reliability & Availability - Disaster recovery and high availability features
8. Operational Excellence - Monitoring, alerting, and management
9. Best Practices - AWS recommendations that are followed or could be implemented
10. Trade-offs - Key design decisions and their implications

FORMAT: Use proper markdown formatting with clear headings, bullet points, and tables where appropriate.
For the cost analysis, include a table with service names, estimated usage, and monthly costs.

IMPORTANT: Make all cost estimates realistic based on typical usage patterns for this type of architecture.
"""


def _cdk_chat_prompt(message: str, context: str, language: str) -> str:
    return f"""You are an AWS CDK expert generating COMPLETE, production-ready Infrastructure as Code.
{context}
USER REQUEST: "{message}"
TASK: Generate complete AWS CDK v2 code in {language} for the user's request, based on the provided architecture context.
OUTPUT FORMAT:
- Start with a brief one-sentence description (optional).
- Provide the code ONLY within a single markdown code block with the correct language tag (e.g., ```{language} ... ```).
- Include necessary imports and structure the code properly (e.g., Stack class).
- DO NOT include explanations outside the code block unless specifically asked.
"""


def _code_chat_prompt(message: str, context: str, language: str) -> str:
    return f"""You are a software engineer generating a concise code snippet.
{context}
USER REQUEST: "{message}"
TASK: Generate a code snippet in {language} that fulfills the user's request, referencing the provided architecture context if needed.
OUTPUT FORMAT:
- Start with a brief one-sentence description (optional, max 1 sentence).
- Provide the code ONLY within a single markdown code block with the correct language tag (```{language} ... ```).
- Include necessary imports/setup for the snippet to be understandable.
- DO NOT include lengthy explanations outside the code block.
"""


TASK_PROMPT_INTENTS = (
    Intent.ARCHITECTURE_UPDATE,
    Intent.ARCHITECTURE_RATIONALE,
    Intent.CDK_GENERATION,
    Intent.CODE_GENERATION,
)


def build_ai_prompt(
    match: IntentMatch,
    message: str,
    architecture: Optional[Architecture],
    target_language: str = "typescript",
) -> str:
    """Single prompt for the detected intent, context included."""
    intent = match.intent
    context = generate_context_string(architecture, context_level_for_intent(intent))

    if intent == Intent.ARCHITECTURE_UPDATE:
        return _update_prompt(match, message, architecture)
    if intent == Intent.ARCHITECTURE_RATIONALE:
        return _rationale_prompt(message, architecture)
    if intent == Intent.CDK_GENERATION:
        return _cdk_chat_prompt(message, context, target_language)
    if intent == Intent.CODE_GENERATION:
        return _code_chat_prompt(message, context, target_language)

    system_prompt = build_system_prompt(intent, context)
    return f"{system_prompt}\n\nUSER MESSAGE: {format_user_message(intent, message)}"


# ============================================================
# GENERATION PROMPTS (/generate, /adjust, /generate-cdk)
# ============================================================

ARCHITECTURE_SYSTEM_PROMPT = """
You design AWS cloud architectures and return them as strict JSON for a diagram editor.

Rules:
- Output ONLY valid JSON, double-quoted
- No markdown, no comments, no text outside the JSON object
- Use real AWS service names (e.g. "Amazon API Gateway", "AWS Lambda", "Amazon DynamoDB")
- Every connection must reference existing node ids
- Prefer managed and serverless services unless the requirement says otherwise

JSON schema:
{
  "nodes": [
    {
      "id": "string",
      "type": "awsService",
      "position": { "x": number, "y": number },
      "data": {
        "label": "string",
        "service": "string",
        "description": "string",
        "estCost": "string",
        "faultTolerance": "string"
      }
    }
  ],
  "edges": [
    {
      "id": "string",
      "source": "node id",
      "target": "node id",
      "animated": true,
      "data": { "dataFlow": "string", "protocol": "string" }
    }
  ],
  "rationale": "string explaining the design decisions"
}

Lay nodes out left to right, roughly 200px apart, wrapping every 5 nodes.
"""


def build_generation_messages(problem_statement: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": ARCHITECTURE_SYSTEM_PROMPT},
        {"role": "user", "content": f"Design an AWS architecture for this requirement:\n{problem_statement}"},
    ]


def build_adjustment_prompt(original_prompt: str, adjustment_prompt: str, architecture: Architecture) -> str:
    return f"""
Original requirement: {original_prompt}
Current architecture context: This architecture has {len(architecture.nodes)} services and {len(architecture.edges)} connections.
Current architecture JSON:
{_architecture_json(architecture)}
Adjustment request: {adjustment_prompt}
Please provide an updated architecture based on the original requirements and the adjustment request.
Keep the ids of services that remain unchanged.
"""


# language -> (display name, download file extension)
CDK_LANGUAGES: Dict[str, Tuple[str, str]] = {
    "typescript": ("TypeScript", "ts"),
    "javascript": ("JavaScript", "js"),
    "python": ("Python", "py"),
    "java": ("Java", "java"),
    "csharp": ("C# (.NET)", "cs"),
}
DEFAULT_CDK_LANGUAGE = "typescript"


def cdk_language_name(language: Optional[str]) -> str:
    return CDK_LANGUAGES.get(language or "", CDK_LANGUAGES[DEFAULT_CDK_LANGUAGE])[0]


def cdk_file_extension(language: Optional[str]) -> str:
    return CDK_LANGUAGES.get(language or "", CDK_LANGUAGES[DEFAULT_CDK_LANGUAGE])[1]


def build_cdk_prompt(architecture: Architecture, language: str = DEFAULT_CDK_LANGUAGE) -> str:
    display = cdk_language_name(language)
    metadata = architecture.metadata
    nodes = json.dumps(architecture.nodes_payload(), indent=2)
    edges = json.dumps(architecture.edges_payload(), indent=2)

    return f"""
I have a cloud architecture design with the following details:

Original Requirements:
{metadata.get("prompt") or "Unknown requirements"}

Architecture Description:
{metadata.get("rationale") or "No rationale provided"}

Architecture Nodes (AWS Services):
{nodes}

Architecture Edges (Service Connections):
{edges}

Please generate complete, deployable AWS CDK code in {display} for this architecture. Include:
1. All necessary imports
2. Main stack definition
3. All resources as per the architecture
4. Proper connections between services
5. IAM roles and permissions
6. Security best practices
7. Comments explaining key parts of the code

Make sure your code follows best practices for {display} and uses the most current AWS CDK constructs.
Include clear comments explaining how the infrastructure maps to the architecture diagram.
Return the code in a single markdown code block.
"""


def build_cdk_messages(architecture: Architecture, language: str = DEFAULT_CDK_LANGUAGE) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": CDK_EXPERT_PROMPT},
        {"role": "user", "content": build_cdk_prompt(architecture, language)},
    ]

