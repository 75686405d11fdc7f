import random
from typing import Dict, List, Optional

from cloudmap.assistant.intent import Intent
from cloudmap.ir.architecture import Architecture

SUGGESTION_COUNT = 3

INTENT_SUGGESTIONS: Dict[Intent, List[str]] = {
    Intent.ARCHITECTURE_UPDATE: [
        "Generate CDK code for this architecture",
        "What are the security considerations for this design?",
        "Explain the data flow in this architecture",
        "What is the estimated cost for this architecture?",
        "How does this architecture handle scaling during peak loads?",
    ],
    Intent.ARCHITECTURE_RATIONALE: [
        "How can we optimize the costs of this architecture?",
        "What would be the disaster recovery strategy for this design?",
        "Generate CDK code for this architecture",
        "How would this architecture scale to handle 10x the load?",
        "What are the security best practices we should implement?",
    ],
    Intent.CDK_GENERATION: [
        "How would I deploy this CDK code?",
        "What AWS permissions are needed to deploy this?",
        "Explain how the CDK constructs work together",
        "How can I add monitoring to this infrastructure?",
        "What is the estimated cost of running this infrastructure?",
    ],
    Intent.CODE_GENERATION: [
        "Explain how this code works",
        "What error handling should I add?",
        "How would I test this code?",
        "How can I make this code more efficient?",
        "How do I integrate this with the rest of my application?",
    ],
    Intent.ARCHITECTURE_EXPLANATION: [
        "What are the security considerations for this architecture?",
        "How much would this architecture cost to run?",
        "How would this architecture scale with increased load?",
        "Generate CDK code for this architecture",
        "What are alternative approaches to this architecture?",
    ],
    Intent.CODE_EXPLANATION: [
        "How can I optimize this code?",
        "What are potential security vulnerabilities in this code?",
        "How would I test this code?",
        "What are best practices for this type of implementation?",
        "Generate similar code for a different use case",
    ],
}

QUESTION_SUGGESTIONS = [
    "Generate code example for this concept",
    "What are the best practices for this?",
    "What are common mistakes to avoid?",
    "How does this compare to alternative approaches?",
    "How would you implement this in a production environment?",
]
INTENT_SUGGESTIONS[Intent.QUESTION] = QUESTION_SUGGESTIONS
INTENT_SUGGESTIONS[Intent.COMPARISON] = QUESTION_SUGGESTIONS

DEFAULT_SUGGESTIONS = [
    "Update the architecture diagram",
    "Generate CDK code for AWS deployment",
    "Explain the benefits of this architecture",
    "What AWS services would you recommend for my use case?",
    "How can I optimize costs in my AWS architecture?",
]

# (services that close the gap, suggestion when none are present)
GAP_SUGGESTIONS = [
    (("Lambda",), "How can I add a Lambda function to process data in this architecture?"),
    (("DynamoDB", "RDS"), "What database would you recommend for this architecture?"),
    (("CloudFront", "API Gateway"), "How can I add an API layer to this architecture?"),
    (("SQS", "SNS", "EventBridge"), "How can I make this architecture event-driven?"),
    (("WAF", "Shield"), "What security measures should I add to protect this architecture?"),
    (("CloudWatch", "X-Ray"), "How should I monitor this architecture?"),
]

UPDATE_SUGGESTIONS = [
    "Add authentication with Cognito",
    "Make this architecture more cost-efficient",
    "Improve the security of this architecture",
    "Make this architecture more scalable",
    "Add monitoring and alerting to this architecture",
    "Optimize database performance in this design",
    "Add a CDN to improve performance",
    "Implement a disaster recovery strategy",
    "Add a caching layer to improve performance",
    "Implement a serverless version of this architecture",
]

CDK_SUGGESTIONS = [
    "How do I deploy this CDK code?",
    "Add monitoring and alerting to this CDK code",
    "How can I make this CDK code more modular?",
    "Add proper IAM permissions to this CDK code",
    "How do I add CI/CD for this CDK deployment?",
    "Implement cost optimizations in this CDK code",
    "Add proper logging to this infrastructure",
    "How should I manage secrets in this CDK code?",
    "Implement proper tagging for all resources",
    "Add environment-specific configurations",
]


def _pick(pool: List[str], rng: Optional[random.Random]) -> List[str]:
    rng = rng or random
    shuffled = list(pool)
    rng.shuffle(shuffled)
    return shuffled[:SUGGESTION_COUNT]


def missing_component_suggestions(architecture: Optional[Architecture]) -> List[str]:
    if architecture is None or not architecture.nodes:
        return []

    services = architecture.service_names()
    return [
        suggestion
        for markers, suggestion in GAP_SUGGESTIONS
        if not any(marker in s for s in services for marker in markers)
    ]


def generate_followup_suggestions(
    intent: Intent,
    architecture: Optional[Architecture] = None,
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Three follow-up prompts for the UI, based on intent and architecture gaps."""
    suggestions = list(INTENT_SUGGESTIONS.get(intent, DEFAULT_SUGGESTIONS))
    suggestions.extend(missing_component_suggestions(architecture))
    return _pick(suggestions, rng)


def architecture_update_suggestions(rng: Optional[random.Random] = None) -> List[str]:
    return _pick(UPDATE_SUGGESTIONS, rng)


def cdk_followup_suggestions(rng: Optional[random.Random] = None) -> List[str]:
    return _pick(CDK_SUGGESTIONS, rng)
