import pytest

from cloudmap.assistant.intent import Intent, IntentMatch
from cloudmap.assistant.prompts import (
    ARCHITECTURE_SYSTEM_PROMPT,
    CDK_EXPERT_PROMPT,
    build_adjustment_prompt,
    build_ai_prompt,
    build_cdk_messages,
    build_generation_messages,
    build_system_prompt,
    cdk_file_extension,
    cdk_language_name,
    format_user_message,
    get_prompt_template,
    model_config_for_intent,
    sampling_temperature,
)


def test_system_prompt_appends_context():
    template = get_prompt_template(Intent.GREETING)
    assert build_system_prompt(Intent.GREETING, "") == template.system_prompt
    assert build_system_prompt(Intent.GREETING, "ctx").endswith("\n\nCONTEXT:\nctx")


def test_layered_prompts():
    assert get_prompt_template(Intent.CDK_GENERATION).system_prompt.startswith(CDK_EXPERT_PROMPT)
    assert "You are Jarvis" in get_prompt_template(Intent.COMPARISON).system_prompt


def test_user_message_prefix():
    assert format_user_message(Intent.COMPARISON, "SQS vs SNS") == "Compare the following: SQS vs SNS"
    assert format_user_message(Intent.GENERAL_CHAT, "thanks") == "thanks"


@pytest.mark.parametrize("intent, expected", [
    (Intent.ARCHITECTURE_UPDATE, 0.2),
    (Intent.CODE_GENERATION, 0.3),
    (Intent.SYSTEM_DESIGN, 0.4),
    (Intent.GREETING, 0.7),
    # No template temperature: per-intent default
    (Intent.QUESTION, 0.7),
    (Intent.GENERAL_CHAT, 0.7),
])
def test_sampling_temperature(intent, expected):
    assert sampling_temperature(intent) == pytest.approx(expected)


def test_model_config_defaults():
    assert model_config_for_intent(Intent.GENERAL_CHAT) == (0.4, None)
    assert model_config_for_intent(Intent.ARCHITECTURE_UPDATE) == (0.2, None)


def test_update_prompt_carries_contract(architecture):
    match = IntentMatch(Intent.ARCHITECTURE_UPDATE, 0.9, sub_type="add_service")
    prompt = build_ai_prompt(match, "Add a queue", architecture)
    assert "<architecture>" in prompt
    assert "<explanation>" in prompt
    assert "'add_service' action" in prompt
    assert 'USER REQUEST: "Add a queue"' in prompt
    assert '"Resize Function"' in prompt


def test_update_prompt_defaults_to_modify(architecture):
    match = IntentMatch(Intent.ARCHITECTURE_UPDATE, 0.9)
    assert "'modify' action" in build_ai_prompt(match, "Make it faster", architecture)


def test_rationale_prompt(architecture):
    prompt = build_ai_prompt(IntentMatch(Intent.ARCHITECTURE_RATIONALE, 0.9), "Cost?", architecture)
    assert "Cost Analysis" in prompt
    assert "Lambda (Resize Function)" in prompt


def test_cdk_prompt_uses_target_language(architecture):
    prompt = build_ai_prompt(IntentMatch(Intent.CDK_GENERATION, 0.9), "cdk please", architecture, "python")
    assert "AWS CDK v2 code in python" in prompt
    assert "FULL CURRENT ARCHITECTURE" in prompt


def test_other_intents_fall_back_to_system_prompt(architecture):
    prompt = build_ai_prompt(IntentMatch(Intent.QUESTION, 0.9), "What is S3?", architecture)
    assert prompt.startswith(get_prompt_template(Intent.QUESTION).system_prompt)
    assert "CURRENT ARCHITECTURE (MINIMAL)" in prompt
    assert prompt.endswith("USER MESSAGE: What is S3?")


def test_generation_messages():
    messages = build_generation_messages("A blog platform")
    assert messages[0] == {"role": "system", "content": ARCHITECTURE_SYSTEM_PROMPT}
    assert messages[1]["role"] == "user"
    assert "A blog platform" in messages[1]["content"]


def test_adjustment_prompt(architecture):
    prompt = build_adjustment_prompt("A blog", "Add a CDN", architecture)
    assert "Original requirement: A blog" in prompt
    assert "3 services and 2 connections" in prompt
    assert "Adjustment request: Add a CDN" in prompt


def test_cdk_languages():
    assert cdk_language_name("csharp") == "C# (.NET)"
    assert cdk_file_extension("python") == "py"
    assert cdk_file_extension("java") == "java"
    assert cdk_file_extension(None) == "ts"
    assert cdk_file_extension("cobol") == "ts"


def test_cdk_messages(architecture):
    messages = build_cdk_messages(architecture, "javascript")
    assert messages[0]["content"] == CDK_EXPERT_PROMPT
    assert "in JavaScript" in messages[1]["content"]
    assert "A serverless image upload service" in messages[1]["content"]
    assert "No rationale provided" in messages[1]["content"]
