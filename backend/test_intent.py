"""Intent detection: weighted rules, sub-types and confidence."""

import pytest

from cloudmap.assistant.intent import (
    BASE_CONFIDENCE,
    Intent,
    detect_enhanced_intent,
    infer_intent,
    is_greeting,
)


@pytest.mark.parametrize("message, expected", [
    ("Hello Jarvis", Intent.GREETING),
    ("Add a Redis cache to the architecture", Intent.ARCHITECTURE_UPDATE),
    ("Generate CDK code for this architecture", Intent.CDK_GENERATION),
    ("Provide a cost analysis for this architecture", Intent.ARCHITECTURE_RATIONALE),
    ("Explain this architecture", Intent.ARCHITECTURE_EXPLANATION),
    ("Compare SQS and SNS", Intent.COMPARISON),
    ("What is AWS Lambda?", Intent.QUESTION),
    ("thanks, that helps", Intent.GENERAL_CHAT),
])
def test_infer_intent_with_architecture(message, expected):
    assert infer_intent(message, has_architecture_context=True) == expected


def test_context_only_rules_are_skipped_without_architecture():
    assert infer_intent("Add a Redis cache to the architecture") == Intent.GENERAL_CHAT
    # CDK needs an architecture, plain code generation does not
    assert infer_intent("Generate CDK code for this architecture") == Intent.CODE_GENERATION


def test_highest_weight_wins_over_code_generation():
    # Both CDK (100) and code generation (80) match
    match = detect_enhanced_intent("Generate CDK code for this architecture")
    assert match.intent == Intent.CDK_GENERATION
    assert match.confidence == pytest.approx(BASE_CONFIDENCE)


def test_is_greeting():
    assert is_greeting("hey there")
    assert is_greeting("Good morning!")
    assert not is_greeting("Design a system for me")


def test_add_service_sub_intent():
    match = detect_enhanced_intent("Add a Redis cache to the architecture")
    assert match.sub_type == "add_service"
    assert match.entities == {"serviceName": "Redis cache"}
    assert match.confidence == pytest.approx(0.9)


def test_remove_service_sub_intent():
    match = detect_enhanced_intent("Update the architecture: remove the Lambda function")
    assert match.intent == Intent.ARCHITECTURE_UPDATE
    assert match.sub_type == "remove_service"
    assert match.entities["serviceName"] == "Lambda function"


def test_connect_services_sub_intent():
    match = detect_enhanced_intent("Change the architecture to connect the API to the queue")
    assert match.sub_type == "connect_services"
    assert match.entities == {"sourceService": "API", "targetService": "queue"}


def test_question_mark_lowers_confidence_for_non_questions():
    match = detect_enhanced_intent("Can you add a queue to the architecture?")
    assert match.intent == Intent.ARCHITECTURE_UPDATE
    assert match.confidence == pytest.approx(0.75)


def test_cdk_mention_lowers_confidence_for_other_intents():
    match = detect_enhanced_intent("Generate CDK code for this architecture", has_architecture=False)
    assert match.intent == Intent.CODE_GENERATION
    assert match.confidence == pytest.approx(0.7)


def test_sub_types_only_for_updates():
    match = detect_enhanced_intent("Compare SQS and SNS")
    assert match.sub_type is None
    assert match.entities == {}


def test_to_dict():
    data = detect_enhanced_intent("Add a Redis cache to the architecture").to_dict()
    assert data["intent"] == "architecture_update"
    assert data["subType"] == "add_service"
    assert data["confidence"] == 0.9


def test_article_is_not_part_of_service_name():
    match = detect_enhanced_intent("Add an SQS queue to the architecture")
    assert match.entities == {"serviceName": "SQS queue"}


def test_edit_service_sub_intent():
    match = detect_enhanced_intent("Edit the Lambda timeout, then update the architecture")
    assert match.intent == Intent.ARCHITECTURE_UPDATE
    assert match.sub_type == "edit_service"
    assert match.entities == {"serviceName": "Lambda timeout"}


def test_code_mention_lowers_confidence_for_non_code_intents():
    match = detect_enhanced_intent("Explain this architecture and show a script")
    assert match.intent == Intent.ARCHITECTURE_EXPLANATION
    assert match.confidence == pytest.approx(0.8)
